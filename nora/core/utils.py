"""
Shared utilities for the nora build tool.
"""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from typing import Optional

from nora.errors import ToolError

# =============================================================================
# Constants
# =============================================================================

PROJECT_FILE = "package.json"
CONFIG_FILE = "nora.json"


# =============================================================================
# Logging
# =============================================================================


class Logger:
    """Colored console logger for build output.

    Every line is indented two spaces under the current header. Tags are
    colored only when stdout is a terminal (or when forced on), and debug
    lines appear only in verbose mode.
    """

    COLORS = {
        "reset": "\033[0m",
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "blue": "\033[94m",
        "cyan": "\033[96m",
        "bold": "\033[1m",
        "dim": "\033[2m",
    }

    def __init__(self, use_color: Optional[bool] = None, verbose: bool = False):
        self._use_color = sys.stdout.isatty() if use_color is None else use_color
        self._verbose = verbose

    def set_color(self, use_color: bool) -> None:
        self._use_color = use_color

    def set_verbose(self, verbose: bool) -> None:
        self._verbose = verbose

    @property
    def verbose(self) -> bool:
        return self._verbose

    def _color(self, text: str, color: str) -> str:
        if not self._use_color:
            return text
        return f"{self.COLORS.get(color, '')}{text}{self.COLORS['reset']}"

    def _emit(self, message: str, tag: str = "", color: str = "") -> None:
        prefix = f"{self._color(tag, color)} " if tag else ""
        print(f"  {prefix}{message}", flush=True)

    def header(self, message: str) -> None:
        """Start a new section, e.g. one pipeline run or one restart."""
        rule = self._color("===", "cyan")
        print(f"\n{rule} {self._color(message, 'bold')} {rule}", flush=True)

    def info(self, message: str) -> None:
        self._emit(message)

    def success(self, message: str) -> None:
        self._emit(message, "[OK]", "green")

    def warning(self, message: str) -> None:
        self._emit(message, "[WARN]", "yellow")

    def error(self, message: str) -> None:
        self._emit(message, "[ERROR]", "red")

    def dim(self, message: str) -> None:
        self._emit(self._color(message, "dim"))

    def debug(self, message: str) -> None:
        """Only shown with --verbose."""
        if self._verbose:
            self._emit(self._color(message, "dim"), "[DEBUG]", "blue")


# Global logger instance
log = Logger()


# =============================================================================
# Path Utilities
# =============================================================================


def get_project_root(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find project root (directory containing package.json).

    Searches from start_dir (or cwd) upward.
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while current != current.parent:
        if (current / PROJECT_FILE).exists():
            return current
        current = current.parent

    return None


def detect_project_name(project_root: Path) -> str:
    """Read the project name from package.json, falling back to the dir name."""
    package_json = project_root / PROJECT_FILE
    if not package_json.exists():
        return project_root.name

    try:
        data = json.loads(package_json.read_text())
    except json.JSONDecodeError:
        return project_root.name

    return data.get("name") or project_root.name


# =============================================================================
# Runtime Utilities
# =============================================================================


def run_cmd(
    cmd: list[str],
    cwd: Optional[Path] = None,
    capture: bool = False,
    check: bool = True,
    env: Optional[dict[str, str]] = None,
) -> subprocess.CompletedProcess:
    """Run a command, raising ToolError when it fails and check is set."""
    log.debug(f"$ {' '.join(cmd)}" + (f"  (in {cwd})" if cwd else ""))
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=capture,
            text=True,
            check=check,
            env=env,
        )
        return result
    except subprocess.CalledProcessError as e:
        raise ToolError(cmd, e.returncode, e.stderr or "") from e
    except FileNotFoundError as e:
        raise ToolError(cmd, 127, str(e)) from e
