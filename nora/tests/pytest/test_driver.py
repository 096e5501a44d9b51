"""
Tests for the subprocess host driver, using a shell script as the host.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from nora.errors import ProcessError
from nora.host.driver import SubprocessDriver, create_driver

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell script as the host")


def _fake_host(tmp_path: Path) -> Path:
    exe = tmp_path / "firefox"
    exe.write_text("#!/bin/sh\nexec sleep 30\n")
    exe.chmod(0o755)
    return exe


@pytest.mark.evergreen
class TestSubprocessDriver:
    def test_close_fires_disconnect_once(self, tmp_path: Path):
        async def scenario():
            driver = SubprocessDriver(passthrough_output=False)
            handle = await driver.launch(_fake_host(tmp_path), tmp_path / "profile", [])
            fired = []
            handle.on_disconnected(lambda: fired.append(handle.returncode))

            await handle.close()
            await handle.close()
            return fired

        fired = asyncio.run(scenario())
        assert len(fired) == 1
        assert fired[0] is not None

    def test_external_kill_fires_disconnect(self, tmp_path: Path):
        async def scenario():
            driver = SubprocessDriver(passthrough_output=False)
            handle = await driver.launch(_fake_host(tmp_path), tmp_path / "profile", [])
            gone = asyncio.Event()
            handle.on_disconnected(gone.set)

            handle.proc.kill()
            await asyncio.wait_for(gone.wait(), 5)

        asyncio.run(scenario())

    def test_missing_executable(self, tmp_path: Path):
        async def scenario():
            await SubprocessDriver().launch(tmp_path / "firefox", tmp_path / "profile", [])

        with pytest.raises(ProcessError, match="not found"):
            asyncio.run(scenario())


@pytest.mark.evergreen
class TestCreateDriver:
    def test_process(self):
        assert isinstance(create_driver("process"), SubprocessDriver)

    def test_unknown(self):
        with pytest.raises(ValueError):
            create_driver("chrome")
