"""
Pipeline stages for nora.

Each stage transforms one source subtree into one output subtree and
reports what it wrote and which entries failed. A failing entry is
recorded as a StageError; its siblings still run.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from nora.build.config import MODULE_REWRITES, STYLE_REWRITES
from nora.build.mapping import (
    EntryKind,
    OutputMapping,
    SourceEntry,
    discover_entries,
    find_collisions,
)
from nora.core.utils import log
from nora.errors import StageError
from nora.tools import Bundler, StyleProcessor, TransformOptions, Transpiler


# =============================================================================
# Results
# =============================================================================


@dataclass
class StageResult:
    """What one stage produced in one pipeline run."""

    name: str
    written: list[Path] = field(default_factory=list)
    errors: list[StageError] = field(default_factory=list)
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.errors


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


def _copy_file(src: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(src, dest)


# =============================================================================
# Per-entry Stages
# =============================================================================


class EntryStage(ABC):
    """Base for stages that map each source entry to its own output file."""

    name = "entries"
    rewrites: Mapping[str, str] = {}

    def __init__(self, jobs: int = 8):
        self.jobs = max(1, jobs)

    async def run(self, source_root: Path, output_root: Path) -> StageResult:
        start = time.monotonic()
        result = StageResult(self.name)
        mapping = OutputMapping(source_root, output_root, self.rewrites)

        try:
            entries = await asyncio.to_thread(discover_entries, source_root)
        except OSError as e:
            result.errors.append(StageError(source_root, f"cannot list sources: {e}"))
            result.duration = round(time.monotonic() - start, 3)
            return result

        if not entries:
            log.warning(f"{self.name}: no sources under {source_root}")

        collisions = find_collisions(entries, mapping)
        colliding = {entry for claimants in collisions.values() for entry in claimants}
        for out_path, claimants in collisions.items():
            names = ", ".join(e.relative.as_posix() for e in claimants)
            for entry in claimants:
                result.errors.append(
                    StageError(entry.path, f"output {out_path} is also claimed by: {names}")
                )

        semaphore = asyncio.Semaphore(self.jobs)

        async def process(entry: SourceEntry) -> None:
            out_path = mapping.map(entry.relative)
            async with semaphore:
                try:
                    written = await asyncio.to_thread(self.process_entry, entry, out_path)
                except Exception as e:
                    result.errors.append(StageError(entry.path, str(e) or type(e).__name__))
                    return
            result.written.extend(written)

        await asyncio.gather(*(process(e) for e in entries if e not in colliding))

        result.written.sort()
        result.errors.sort(key=lambda err: str(err.path))
        result.duration = round(time.monotonic() - start, 3)
        log.debug(f"{self.name}: {len(result.written)} written, {len(result.errors)} failed")
        return result

    @abstractmethod
    def process_entry(self, entry: SourceEntry, out_path: Path) -> list[Path]:
        """Transform one entry. Runs in a worker thread."""


class StyleStage(EntryStage):
    """Runs .pcss through the style processor, copies everything else."""

    name = "style"
    rewrites = STYLE_REWRITES

    def __init__(self, processor: StyleProcessor, jobs: int = 8):
        super().__init__(jobs)
        self.processor = processor

    def process_entry(self, entry: SourceEntry, out_path: Path) -> list[Path]:
        if entry.kind is not EntryKind.STYLE:
            _copy_file(entry.path, out_path)
            return [out_path]

        output = self.processor.process(entry.path.read_text(), entry.path, out_path)
        written = [out_path]
        _write_text(out_path, output.css)
        if output.source_map:
            map_path = out_path.with_name(out_path.name + ".map")
            _write_text(map_path, output.source_map)
            written.append(map_path)
        return written


class ModuleCopyStage(EntryStage):
    """Transpiles module sources and appends a source-map reference."""

    rewrites = MODULE_REWRITES

    def __init__(self, transpiler: Transpiler, name: str = "modules", jobs: int = 8):
        super().__init__(jobs)
        self.transpiler = transpiler
        self.name = name

    def process_entry(self, entry: SourceEntry, out_path: Path) -> list[Path]:
        if entry.kind is not EntryKind.MODULE:
            _copy_file(entry.path, out_path)
            return [out_path]

        options = TransformOptions.for_suffix(entry.relative.suffix)
        output = self.transpiler.transform(entry.path.read_text(), entry.path.name, options)

        map_path = out_path.with_name(out_path.name + ".map")
        code = output.code.rstrip("\n") + "\n"

        # map first: a module file never points at a missing map
        written = []
        if output.source_map:
            reference = os.path.relpath(map_path, out_path.parent).replace(os.sep, "/")
            code += f"//# sourceMappingURL={reference}\n"
            _write_text(map_path, output.source_map)
            written.append(map_path)
        _write_text(out_path, code)
        written.append(out_path)
        return written


# =============================================================================
# Bundle Stage
# =============================================================================


class BundleStage:
    """Hands the named entry points to the bundler.

    The bundler empties and owns the whole overlay output root, so this
    stage must finish before any other stage writes into it.
    """

    name = "bundle"

    def __init__(self, bundler: Bundler, entries: Mapping[str, str], assets_dir: str = "content/assets"):
        self.bundler = bundler
        self.entries = dict(entries)
        self.assets_dir = assets_dir

    async def run(self, source_root: Path, output_root: Path) -> StageResult:
        start = time.monotonic()
        result = StageResult(self.name)

        resolved: dict[str, Path] = {}
        for name, rel in self.entries.items():
            path = source_root / rel
            if not path.is_file():
                result.errors.append(StageError(path, f"bundle entry '{name}' not found"))
            else:
                resolved[name] = path

        if not result.errors:
            try:
                result.written = await asyncio.to_thread(
                    self.bundler.bundle, resolved, output_root, self.assets_dir
                )
            except Exception as e:
                result.errors.append(StageError(source_root, f"bundler failed: {e}"))

        result.duration = round(time.monotonic() - start, 3)
        return result

