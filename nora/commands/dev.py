"""
Dev loop for nora.

Builds the overlay, launches the host browser, and rebuilds and
relaunches it whenever the source tree changes. A host that exits on its
own (crash, or the window closed by hand) ends the session; a host the
loop closes for a restart does not.
"""

from __future__ import annotations

import asyncio
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Optional, Protocol

from nora.build.config import BuildConfig
from nora.commands.watch import ChangeCallback, SourceWatcher
from nora.core.utils import log
from nora.errors import BuildError, ProcessError
from nora.host.driver import HostDriver, ProcessHandle


class LoopState(Enum):
    IDLE = auto()
    BUILDING = auto()
    RUNNING = auto()
    RESTARTING = auto()


class Orchestrator(Protocol):
    async def build_once(self) -> object:
        ...

    def clean_output(self) -> None:
        ...


class Watcher(Protocol):
    def start(self) -> None:
        ...

    def close(self) -> None:
        ...


WatcherFactory = Callable[[Path, ChangeCallback], Watcher]


# =============================================================================
# Dev Loop Controller
# =============================================================================


class DevLoopController:
    """Owns the host process, the source watcher and the restart gate.

    Change notifications land in a queue of size one. While a restart is
    in progress (`restarting` is set) they are dropped outright; while the
    host is running, extra notifications beyond the first are coalesced.
    Either way the next build sees the latest tree.
    """

    def __init__(
        self,
        config: BuildConfig,
        orchestrator: Orchestrator,
        driver: HostDriver,
        watcher_factory: Optional[WatcherFactory] = None,
    ):
        self.config = config
        self.orchestrator = orchestrator
        self.driver = driver
        self.watcher_factory: WatcherFactory = watcher_factory or SourceWatcher

        self.state = LoopState.IDLE
        self.handle: Optional[ProcessHandle] = None
        self.watcher: Optional[Watcher] = None
        self.restarting = False
        self.intended_close = False
        self.cycles = 0
        self.dropped = 0
        self.last_error: Optional[BuildError] = None

        self._changes: Optional[asyncio.Queue[Path]] = None
        self._fatal: Optional[asyncio.Future[None]] = None

    # -------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------

    def notify_change(self, path: Path) -> bool:
        """Offer a change event. Returns False if it was dropped or coalesced."""
        if self._changes is None or self.restarting:
            self.dropped += 1
            return False
        try:
            self._changes.put_nowait(path)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        log.info(f"Change detected: {path}")
        return True

    def _on_disconnected(self, handle: ProcessHandle) -> None:
        if handle is not self.handle:
            return
        if self.intended_close:
            return
        log.error("Host process exited without a restart request")
        if self._fatal is not None and not self._fatal.done():
            self._fatal.set_exception(ProcessError("Host process terminated unexpectedly"))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def _cycle(self) -> None:
        """Idle -> Building -> Running (or back to Idle on build failure), then arm the watcher."""
        self.cycles += 1
        self.state = LoopState.BUILDING
        try:
            await self.orchestrator.build_once()
        except BuildError as e:
            self._build_failed(e)
        except OSError as e:
            self._build_failed(BuildError(f"Build aborted: {e}"))
        else:
            self.last_error = None
            await self._launch()
            self.state = LoopState.RUNNING

        self.watcher = self.watcher_factory(self.config.source_root, self.notify_change)
        self.watcher.start()

    def _build_failed(self, error: BuildError) -> None:
        self.last_error = error
        log.error(str(error))
        for stage_error in error.errors:
            log.error(f"  {stage_error}")
        log.warning("Fix the sources to trigger another build")
        self.state = LoopState.IDLE

    async def _launch(self) -> None:
        profile = self.config.profile_path
        profile.mkdir(parents=True, exist_ok=True)

        handle = await self.driver.launch(self.config.executable_path, profile, list(self.config.host_args))
        self.handle = handle
        self.intended_close = False
        handle.on_disconnected(lambda: self._on_disconnected(handle))

    async def _close_host(self) -> None:
        """Close the current host on purpose.

        The intended-close flag covers exactly this close attempt: it is
        cleared afterwards whether the close or anything after it fails.
        """
        handle = self.handle
        if handle is None:
            return
        self.intended_close = True
        try:
            await handle.close()
        finally:
            self.handle = None
            self.intended_close = False

    def _close_watcher(self) -> None:
        if self.watcher is not None:
            watcher, self.watcher = self.watcher, None
            watcher.close()

    async def _teardown(self) -> None:
        self.state = LoopState.RESTARTING
        log.header("Restarting host")
        await self._close_host()
        self._close_watcher()
        try:
            await asyncio.to_thread(self.orchestrator.clean_output)
        except (BuildError, OSError) as e:
            # the next bundle empties the output root anyway
            log.warning(str(e))

    def _drain_changes(self) -> None:
        """Discard notifications that raced in; the rebuild covers them."""
        if self._changes is None:
            return
        while not self._changes.empty():
            self._changes.get_nowait()
            self.dropped += 1

    async def _wait_for_change(self) -> Path:
        """Block until a change arrives, or raise if the host died."""
        if self._changes is None or self._fatal is None:
            raise RuntimeError("dev loop is not running")
        change = asyncio.ensure_future(self._changes.get())
        try:
            await asyncio.wait({change, self._fatal}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not change.done():
                change.cancel()
        if self._fatal.done():
            self._fatal.result()
        return change.result()

    async def run(self) -> None:
        """Run until the host dies on its own.

        Raises:
            ProcessError: When the host terminates without a restart request.
        """
        loop = asyncio.get_running_loop()
        self._changes = asyncio.Queue(maxsize=1)
        self._fatal = loop.create_future()

        try:
            while True:
                self.restarting = True
                try:
                    await self._cycle()
                finally:
                    self.restarting = False

                if self.state is LoopState.RUNNING:
                    log.info("Watching for changes... (Ctrl+C to stop)")

                path = await self._wait_for_change()

                self.restarting = True
                self._drain_changes()
                log.debug(f"Restart triggered by {path}")
                await self._teardown()
        finally:
            self.restarting = True
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop watching and close a still-running host."""
        self._close_watcher()
        if self.handle is not None:
            try:
                await self._close_host()
            except ProcessError as e:
                log.warning(str(e))
        self.state = LoopState.IDLE


# =============================================================================
# Run Command
# =============================================================================


async def cmd_run(config: BuildConfig) -> None:
    """Build once, launch the host, and keep it in sync with the sources."""
    from nora.build.orchestrator import BuildOrchestrator
    from nora.host.driver import create_driver

    controller = DevLoopController(
        config,
        BuildOrchestrator(config),
        create_driver(config.driver),
    )
    await controller.run()
