"""
Host runtime bootstrap for nora.

Extracts the packaged browser (bin.tar.zst) into dist/bin once per
version tag. The tag of the installed tree lives in a marker file next
to it; a missing or different marker means the tree is stale.
"""

from __future__ import annotations

import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import Callable, Optional

import zstandard

from nora.build.config import MARKER_NAME
from nora.core.utils import log
from nora.errors import BootstrapError

Extractor = Callable[[Path, Path], None]


# =============================================================================
# Archive Extraction
# =============================================================================


def _extract_tar(tf: tarfile.TarFile, dest: Path) -> None:
    if hasattr(tarfile, "data_filter"):
        tf.extractall(dest, filter="data")
    else:
        tf.extractall(dest)


def extract_archive(archive: Path, dest: Path) -> None:
    """Decompress an archive into dest, preserving relative paths.

    Supports .tar.zst/.tzst (via zstandard), any tar flavour tarfile can
    detect, and .zip.
    """
    dest.mkdir(parents=True, exist_ok=True)
    name = archive.name.lower()

    if name.endswith((".tar.zst", ".tzst", ".zst")):
        dctx = zstandard.ZstdDecompressor()
        with archive.open("rb") as fh, dctx.stream_reader(fh) as reader:
            with tarfile.open(fileobj=reader, mode="r|") as tf:
                _extract_tar(tf, dest)
    elif name.endswith(".zip"):
        with zipfile.ZipFile(archive) as zf:
            zf.extractall(dest)
    else:
        with tarfile.open(archive, "r:*") as tf:
            _extract_tar(tf, dest)


# =============================================================================
# Marker
# =============================================================================


def read_marker(install_root: Path) -> Optional[str]:
    """Return the installed version tag, or None if nothing usable is installed.

    An unreadable or undecodable marker counts as no marker, so the
    runtime gets reinstalled.
    """
    marker = install_root / MARKER_NAME
    try:
        if not marker.is_file():
            return None
        return marker.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        log.warning(f"Ignoring unreadable version marker {marker}: {e}")
        return None


# =============================================================================
# Bootstrap
# =============================================================================


def ensure_runtime(
    version: str,
    archive: Path,
    install_root: Path,
    extractor: Extractor = extract_archive,
) -> bool:
    """Make sure install_root holds the runtime for `version`.

    Returns True if the archive was extracted, False if the installed
    tree already matched.

    Raises:
        BootstrapError: If deleting, extracting or writing the marker fails.
    """
    installed = read_marker(install_root)
    if installed == version:
        log.debug(f"Runtime {version} already installed at {install_root}")
        return False

    if installed is None:
        log.info(f"Installing runtime {version}")
    else:
        log.info(f"Runtime version changed ({installed} -> {version}), reinstalling")

    if not archive.is_file():
        raise BootstrapError(
            f"Runtime archive not found: {archive}\n"
            f"  Fix: place the packaged browser archive at that path"
        )

    try:
        if install_root.exists():
            shutil.rmtree(install_root)
        install_root.mkdir(parents=True)

        log.info(f"Decompressing {archive.name}...")
        extractor(archive, install_root)

        (install_root / MARKER_NAME).write_text(version)
    except (OSError, tarfile.TarError, zipfile.BadZipFile, zstandard.ZstdError) as e:
        raise BootstrapError(f"Failed to install runtime {version}: {e}") from e

    log.success(f"Runtime {version} installed")
    return True
