"""
Shared pytest fixtures for nora tests.

Provides a throwaway project tree and deterministic stand-ins for the
external toolchain (transpiler, style processor, bundler), the archive
extractor and the artifact patchers, so the pipeline can run without
node or a real browser archive.

Test Tier Markers:
  @pytest.mark.evergreen - Tests that always run, never skip
  @pytest.mark.dev       - Development/WIP tests, toggle-able
"""

from __future__ import annotations

import json
import shutil
import threading
from pathlib import Path

import pytest

from nora.build.config import BuildConfig
from nora.core.utils import log
from nora.errors import PatchError
from nora.tools import StyleOutput, Toolchain, TransformOptions, TransformOutput


# =============================================================================
# Toolchain Doubles
# =============================================================================


class FakeTranspiler:
    """Prefixes the code with its syntax. Fails on sources containing FAIL."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, TransformOptions]] = []
        self._lock = threading.Lock()

    def transform(self, source_text: str, filename: str, options: TransformOptions) -> TransformOutput:
        with self._lock:
            self.calls.append((filename, options))
        if "FAIL" in source_text:
            raise ValueError(f"syntax error in {filename}")
        code = f"// transpiled:{options.syntax}\n{source_text}"
        source_map = json.dumps({"version": 3, "file": filename, "mappings": ""})
        return TransformOutput(code=code, source_map=source_map)


class FakeStyleProcessor:
    def __init__(self, with_map: bool = True) -> None:
        self.with_map = with_map
        self.calls: list[tuple[Path, Path]] = []

    def process(self, text: str, from_path: Path, to_path: Path) -> StyleOutput:
        self.calls.append((from_path, to_path))
        if "FAIL" in text:
            raise ValueError("unclosed block")
        css = f"/* processed */\n{text}"
        source_map = json.dumps({"version": 3, "file": to_path.name}) if self.with_map else None
        return StyleOutput(css=css, source_map=source_map)


class FakeBundler:
    """Empties out_dir and writes one .js file per entry, like vite would."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[dict[str, Path]] = []

    def bundle(self, entries: dict[str, Path], out_dir: Path, assets_dir: str) -> list[Path]:
        self.calls.append(dict(entries))
        if self.fail:
            raise RuntimeError("rollup failed")
        if out_dir.exists():
            shutil.rmtree(out_dir)
        written = []
        for name in sorted(entries):
            out = out_dir / "content" / f"{name}.js"
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(f"// bundle {name}\n")
            written.append(out)
        (out_dir / assets_dir).mkdir(parents=True, exist_ok=True)
        return written


class FakeExtractor:
    """Writes a tiny runtime tree instead of decompressing a real archive."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.calls = 0
        self.files = files or {
            "firefox": "#!/bin/sh\n",
            "browser/chrome.manifest": "manifest chrome/browser.manifest\n",
            "browser/chrome/browser/content/browser/browser.xhtml": (
                '<?xml version="1.0"?>\n'
                '<html xmlns="http://www.w3.org/1999/xhtml"><head><title>b</title></head>'
                "<body/></html>\n"
            ),
        }

    def __call__(self, archive: Path, dest: Path) -> None:
        self.calls += 1
        for rel, content in self.files.items():
            path = dest / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)


class RecordingPatcher:
    def __init__(self, name: str, order: list[str], fail: bool = False) -> None:
        self.name = name
        self.order = order
        self.fail = fail

    def patch(self, install_root: Path) -> None:
        if self.fail:
            raise PatchError(f"{self.name} failed")
        self.order.append(self.name)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def quiet_log():
    """Keep the colored logger plain for captured output."""
    log.set_color(False)
    log.set_verbose(False)
    yield


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A minimal overlay project with every source subtree populated."""
    root = tmp_path / "project"
    files = {
        "package.json": json.dumps({"name": "noraneko"}),
        "bin.tar.zst": "",
        "src/content/index.ts": "export const main = 1;\n",
        "src/content/webpanel/index.html": "<html></html>\n",
        "src/skin/browser.pcss": "a { b { color: red; } }\n",
        "src/skin/icons/logo.svg": "<svg/>\n",
        "src/modules/Utils.ts": "export const x: number = 1;\n",
        "src/modules/nested/Feature.mts": "export default 2;\n",
        "src/modules/data/prefs.json": '{"a": 1}\n',
        "src/private/browser/components/Private.ts": "export const p = 3;\n",
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def config(project: Path) -> BuildConfig:
    return BuildConfig(project_root=project, jobs=4)


@pytest.fixture
def toolchain() -> Toolchain:
    return Toolchain(
        transpiler=FakeTranspiler(),
        style_processor=FakeStyleProcessor(),
        bundler=FakeBundler(),
    )


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()
