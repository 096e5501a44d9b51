"""Playwright-backed host driver.

Only useful with a Firefox build Playwright can drive; the plain
subprocess driver is the default.
"""

from __future__ import annotations

from pathlib import Path

from nora.core.utils import log
from nora.errors import ProcessError
from nora.host.driver import DisconnectCallback


class PlaywrightHandle:
    """A persistent Firefox context; its close event is the disconnect signal."""

    def __init__(self, playwright, context):
        self._playwright = playwright
        self._context = context
        self._closed = False

    def on_disconnected(self, callback: DisconnectCallback) -> None:
        self._context.on("close", lambda _ctx: callback())

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._context.close()
        finally:
            await self._playwright.stop()


class PlaywrightDriver:
    def __init__(self, headless: bool = False):
        self.headless = headless

    async def launch(self, executable: Path, profile_dir: Path, args: list[str]) -> PlaywrightHandle:
        try:
            from playwright.async_api import async_playwright
        except ImportError as e:
            raise ProcessError(
                "playwright not installed. Run: pip install playwright"
            ) from e

        playwright = await async_playwright().start()
        try:
            context = await playwright.firefox.launch_persistent_context(
                str(profile_dir),
                executable_path=str(executable),
                headless=self.headless,
                args=list(args),
            )
        except Exception as e:
            await playwright.stop()
            raise ProcessError(f"Failed to launch {executable}: {e}") from e

        log.success("Host started (playwright)")
        return PlaywrightHandle(playwright, context)
