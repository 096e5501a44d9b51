"""
nora.patch - Edits applied to the installed runtime so the overlay loads.

Each patcher is idempotent: running it twice leaves the same artifact
as running it once.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from nora.patch.document import DocumentPatcher
from nora.patch.manifest import ManifestPatcher


class Patcher(Protocol):
    name: str

    def patch(self, install_root: Path) -> None:
        ...


def default_patchers(package: str, overlay_root: Path) -> list[Patcher]:
    """Manifest first, then document: the script it injects needs the package registered."""
    return [
        ManifestPatcher(package, overlay_root),
        DocumentPatcher(package),
    ]


__all__ = ["Patcher", "ManifestPatcher", "DocumentPatcher", "default_patchers"]
