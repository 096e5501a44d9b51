"""
nora.tools - External toolchain collaborators.

The pipeline only talks to these protocols. Default implementations
shell out to swc, postcss and vite through npx.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol


@dataclass(frozen=True)
class TransformOptions:
    """Options handed to the transpiler."""

    syntax: str = "typescript"  # or "ecmascript"
    decorators: bool = True
    dynamic_import: bool = True
    import_assertions: bool = True
    target: str = "esnext"

    @classmethod
    def for_suffix(cls, suffix: str) -> "TransformOptions":
        if suffix in (".ts", ".mts"):
            return cls(syntax="typescript")
        return cls(syntax="ecmascript")


@dataclass(frozen=True)
class TransformOutput:
    code: str
    source_map: Optional[str] = None


@dataclass(frozen=True)
class StyleOutput:
    css: str
    source_map: Optional[str] = None


class Transpiler(Protocol):
    def transform(self, source_text: str, filename: str, options: TransformOptions) -> TransformOutput:
        ...


class StyleProcessor(Protocol):
    def process(self, text: str, from_path: Path, to_path: Path) -> StyleOutput:
        ...


class Bundler(Protocol):
    def bundle(self, entries: dict[str, Path], out_dir: Path, assets_dir: str) -> list[Path]:
        ...


@dataclass
class Toolchain:
    """The set of collaborators one pipeline run needs."""

    transpiler: Transpiler
    style_processor: StyleProcessor
    bundler: Bundler


def default_toolchain(project_root: Path, vite_config: str = "vite.config.ts") -> Toolchain:
    """Toolchain backed by the project's node_modules."""
    from nora.tools.postcss import PostcssProcessor
    from nora.tools.swc import SwcTranspiler
    from nora.tools.vite import ViteBundler

    return Toolchain(
        transpiler=SwcTranspiler(project_root),
        style_processor=PostcssProcessor(project_root),
        bundler=ViteBundler(project_root, config_file=vite_config),
    )


__all__ = [
    "TransformOptions",
    "TransformOutput",
    "StyleOutput",
    "Transpiler",
    "StyleProcessor",
    "Bundler",
    "Toolchain",
    "default_toolchain",
]
