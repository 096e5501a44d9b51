"""Exception types raised by the nora build pipeline and dev loop."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional


class NoraError(Exception):
    """Base class for all nora errors."""


class ConfigError(NoraError):
    """Invalid nora.json or build configuration."""


class ToolError(NoraError):
    """An external tool (swc, postcss, vite, ...) exited with an error."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        tail = stderr.strip().splitlines()[-5:] if stderr else []
        detail = ("\n" + "\n".join(tail)) if tail else ""
        super().__init__(f"{command[0] if command else '?'} exited with {returncode}{detail}")


class StageError(NoraError):
    """A single source entry failed to transform.

    Collected by stages rather than raised; one bad file never stops
    its siblings.
    """

    def __init__(self, path: Path, message: str):
        self.path = Path(path)
        self.message = message
        super().__init__(f"{self.path}: {message}")


class BuildError(NoraError):
    """A pipeline run failed and produced no consistent output."""

    def __init__(self, message: str, errors: Optional[Iterable[StageError]] = None):
        self.errors: list[StageError] = list(errors or [])
        super().__init__(message)

    @classmethod
    def from_stage_errors(cls, errors: list[StageError]) -> "BuildError":
        noun = "error" if len(errors) == 1 else "errors"
        return cls(f"Build failed with {len(errors)} stage {noun}", errors)


class BootstrapError(BuildError):
    """The host runtime could not be installed."""


class PatchError(BuildError):
    """An artifact patch inside the installed runtime failed."""


class ProcessError(NoraError):
    """The host process terminated without being asked to."""
