"""
Source discovery and output path mapping.

A stage walks one source subtree, classifies each file, and maps it to
exactly one path under its output subtree.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Mapping

MODULE_SUFFIXES = frozenset({".ts", ".mts", ".js", ".mjs"})
STYLE_SUFFIXES = frozenset({".pcss"})


class EntryKind(Enum):
    MODULE = "module"
    STYLE = "style"
    STATIC = "static"


def classify(path: PurePosixPath) -> EntryKind:
    if path.suffix in MODULE_SUFFIXES:
        return EntryKind.MODULE
    if path.suffix in STYLE_SUFFIXES:
        return EntryKind.STYLE
    return EntryKind.STATIC


@dataclass(frozen=True)
class SourceEntry:
    """A file under a source subtree, as seen by one build pass."""

    root: Path
    relative: PurePosixPath
    kind: EntryKind

    @property
    def path(self) -> Path:
        return self.root.joinpath(*self.relative.parts)


@dataclass(frozen=True)
class OutputMapping:
    """Maps entries of one source subtree onto one output subtree.

    Only the final suffix is rewritten, so ``foo.ts.bak`` stays put and
    ``a.d.ts`` becomes ``a.d.js``.
    """

    source_root: Path
    output_root: Path
    rewrites: Mapping[str, str]

    def map(self, relative: PurePosixPath) -> Path:
        suffix = relative.suffix
        if suffix in self.rewrites:
            relative = relative.with_suffix(self.rewrites[suffix])
        return self.output_root.joinpath(*relative.parts)


def discover_entries(root: Path) -> list[SourceEntry]:
    """List every file under root, sorted, skipping dot-files and dot-dirs."""
    if not root.is_dir():
        return []

    entries = []
    for path in root.rglob("*"):
        relative = PurePosixPath(path.relative_to(root).as_posix())
        if any(part.startswith(".") for part in relative.parts):
            continue
        if not path.is_file():
            continue
        entries.append(SourceEntry(root=root, relative=relative, kind=classify(relative)))

    entries.sort(key=lambda e: e.relative.as_posix())
    return entries


def find_collisions(
    entries: list[SourceEntry], mapping: OutputMapping
) -> dict[Path, list[SourceEntry]]:
    """Return output paths claimed by more than one entry."""
    claims: dict[Path, list[SourceEntry]] = defaultdict(list)
    for entry in entries:
        claims[mapping.map(entry.relative)].append(entry)
    return {out: claimants for out, claimants in claims.items() if len(claimants) > 1}
