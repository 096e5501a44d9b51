"""
Host process drivers.

A driver launches the installed browser and hands back a handle that can
be closed and that reports when the process goes away, whoever caused it.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Optional, Protocol

from nora.core.utils import log
from nora.errors import ProcessError

DisconnectCallback = Callable[[], None]

CLOSE_TIMEOUT = 10.0


class ProcessHandle(Protocol):
    def on_disconnected(self, callback: DisconnectCallback) -> None:
        ...

    async def close(self) -> None:
        ...


class HostDriver(Protocol):
    async def launch(self, executable: Path, profile_dir: Path, args: list[str]) -> ProcessHandle:
        ...


# =============================================================================
# Subprocess Driver
# =============================================================================


class SubprocessHandle:
    """Wraps an asyncio subprocess and watches for its exit."""

    def __init__(self, proc: asyncio.subprocess.Process):
        self.proc = proc
        self._callbacks: list[DisconnectCallback] = []
        self._exited = asyncio.Event()
        self._monitor = asyncio.create_task(self._wait())

    @property
    def pid(self) -> int:
        return self.proc.pid

    @property
    def returncode(self) -> Optional[int]:
        return self.proc.returncode

    async def _wait(self) -> None:
        await self.proc.wait()
        self._exited.set()
        log.debug(f"Host process {self.proc.pid} exited with {self.proc.returncode}")
        for callback in list(self._callbacks):
            callback()

    def on_disconnected(self, callback: DisconnectCallback) -> None:
        self._callbacks.append(callback)

    async def close(self) -> None:
        """Terminate the process and wait until it has exited."""
        if self._exited.is_set():
            return

        try:
            self.proc.terminate()
        except ProcessLookupError:
            pass

        try:
            await asyncio.wait_for(self._exited.wait(), CLOSE_TIMEOUT)
        except asyncio.TimeoutError:
            log.warning(f"Host process {self.proc.pid} ignored terminate, killing")
            try:
                self.proc.kill()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(self._exited.wait(), CLOSE_TIMEOUT)
            except asyncio.TimeoutError as e:
                raise ProcessError(f"Host process {self.proc.pid} could not be stopped") from e


class SubprocessDriver:
    """Launches the browser binary directly with a dedicated profile."""

    def __init__(self, passthrough_output: bool = True):
        # dumpio: let the browser's console output through
        self.passthrough_output = passthrough_output

    async def launch(self, executable: Path, profile_dir: Path, args: list[str]) -> SubprocessHandle:
        if not executable.exists():
            raise ProcessError(f"Host executable not found: {executable}")

        cmd = [str(executable), "--profile", str(profile_dir), "--no-remote", *args]
        log.debug(f"$ {' '.join(cmd)}")
        stream = None if self.passthrough_output else asyncio.subprocess.DEVNULL
        try:
            proc = await asyncio.create_subprocess_exec(*cmd, stdout=stream, stderr=stream)
        except OSError as e:
            raise ProcessError(f"Failed to launch {executable}: {e}") from e

        log.success(f"Host started (PID: {proc.pid})")
        return SubprocessHandle(proc)


def create_driver(kind: str) -> HostDriver:
    """Pick a driver by config name."""
    if kind == "playwright":
        from nora.host.playwright_driver import PlaywrightDriver

        return PlaywrightDriver()
    if kind == "process":
        return SubprocessDriver()
    raise ValueError(f"Unknown host driver: {kind}")
