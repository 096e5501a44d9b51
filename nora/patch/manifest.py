"""Registers the overlay's chrome package with the host's chrome.manifest."""

from __future__ import annotations

import os
from pathlib import Path

from nora.errors import PatchError

MARK = "# nora"


class ManifestPatcher:
    """Writes browser/<package>.manifest and references it from chrome.manifest.

    The package manifest maps chrome://<package>/content, skin and
    resource://<package> onto the overlay output tree with paths relative
    to the manifest itself.
    """

    name = "manifest"

    def __init__(self, package: str, overlay_root: Path, manifest_dir: str = "browser"):
        self.package = package
        self.overlay_root = overlay_root
        self.manifest_dir = manifest_dir

    def render(self, manifest_dir: Path) -> str:
        rel = os.path.relpath(self.overlay_root, manifest_dir).replace(os.sep, "/")
        pkg = self.package
        lines = [
            f"content {pkg} {rel}/content/ contentaccessible=yes",
            f"skin {pkg} classic/1.0 {rel}/skin/",
            f"resource {pkg} {rel}/resource/",
            f"resource {pkg}-private {rel}/private/resource/",
        ]
        return "\n".join(lines) + "\n"

    def patch(self, install_root: Path) -> None:
        manifest_dir = install_root / self.manifest_dir
        chrome_manifest = manifest_dir / "chrome.manifest"
        if not chrome_manifest.is_file():
            raise PatchError(f"chrome.manifest not found: {chrome_manifest}")

        try:
            (manifest_dir / f"{self.package}.manifest").write_text(self.render(manifest_dir))

            # the marker comment owns the line right after it
            kept: list[str] = []
            skip_next = False
            for line in chrome_manifest.read_text().splitlines():
                if skip_next:
                    skip_next = False
                    continue
                if line == MARK:
                    skip_next = True
                    continue
                kept.append(line)

            kept += [MARK, f"manifest {self.package}.manifest"]
            chrome_manifest.write_text("\n".join(kept) + "\n")
        except OSError as e:
            raise PatchError(f"Failed to patch {chrome_manifest}: {e}") from e
