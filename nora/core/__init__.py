"""
nora.core - Foundation layer for the nora CLI.

Exports logging, path and subprocess helpers, and timing utilities.
"""

from nora.core.utils import (
    # Logging
    log,
    Logger,
    # Constants
    PROJECT_FILE,
    CONFIG_FILE,
    # Path utilities
    get_project_root,
    detect_project_name,
    # Runtime utilities
    run_cmd,
)
from nora.core.timing import PhaseTimings, format_duration

__all__ = [
    "log",
    "Logger",
    "PROJECT_FILE",
    "CONFIG_FILE",
    "get_project_root",
    "detect_project_name",
    "run_cmd",
    "PhaseTimings",
    "format_duration",
]
