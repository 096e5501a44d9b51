"""nora.host - Launching and supervising the host browser process."""

from nora.host.driver import (
    HostDriver,
    ProcessHandle,
    SubprocessDriver,
    SubprocessHandle,
    create_driver,
)

__all__ = [
    "HostDriver",
    "ProcessHandle",
    "SubprocessDriver",
    "SubprocessHandle",
    "create_driver",
]
