"""
Source watching for nora dev mode.

Wraps a watchdog observer on the source tree and forwards relevant
change events onto the asyncio loop that runs the dev controller.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from nora.core.utils import log

ChangeCallback = Callable[[Path], object]

_IGNORED_SUFFIXES = (".swp", ".swx", ".tmp", "~")


def is_relevant(path: Path, root: Path) -> bool:
    """Whether a change at `path` should trigger a rebuild."""
    try:
        relative = path.relative_to(root)
    except ValueError:
        return False

    if any(part.startswith(".") for part in relative.parts):
        return False
    if "__pycache__" in relative.parts or "node_modules" in relative.parts:
        return False
    return not path.name.endswith(_IGNORED_SUFFIXES)


class SourceEventHandler(FileSystemEventHandler):
    """Filters file system events and hands the changed path to the loop."""

    def __init__(self, root: Path, loop: asyncio.AbstractEventLoop, callback: ChangeCallback):
        super().__init__()
        self.root = root
        self.loop = loop
        self.callback = callback

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._handle(event.src_path)

    def on_created(self, event: FileSystemEvent) -> None:
        self._handle(event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._handle(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._handle(event.dest_path)

    def _handle(self, src_path) -> None:
        path = Path(src_path if isinstance(src_path, str) else src_path.decode())
        if not is_relevant(path, self.root):
            return
        try:
            self.loop.call_soon_threadsafe(self.callback, path)
        except RuntimeError:
            # loop already closed during shutdown
            pass


class SourceWatcher:
    """One watchdog observer over the source root, started and closed once."""

    def __init__(self, root: Path, callback: ChangeCallback, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.root = root.resolve()
        self.callback = callback
        self.loop = loop or asyncio.get_running_loop()
        self._observer: Optional[Observer] = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        if self._observer is not None:
            return
        if not self.root.is_dir():
            log.warning(f"Source directory not found: {self.root}")
            return
        handler = SourceEventHandler(self.root, self.loop, self.callback)
        observer = Observer()
        observer.schedule(handler, str(self.root), recursive=True)
        observer.start()
        self._observer = observer
        log.info(f"Watching: {self.root}")

    def close(self) -> None:
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        observer.stop()
        observer.join(timeout=5)
