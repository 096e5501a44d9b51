"""
Build configuration for nora.

Constants, dataclasses, and project loading.
"""

from __future__ import annotations

import dataclasses
import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from nora.core.utils import CONFIG_FILE, detect_project_name
from nora.errors import ConfigError

# =============================================================================
# Constants
# =============================================================================

# Host runtime version; bump when bin.tar.zst changes
VERSION = "000"

MARKER_NAME = "nora.version.txt"

DEFAULT_BUNDLE_ENTRIES: dict[str, str] = {
    "index": "content/index.ts",
    "webpanel-index": "content/webpanel/index.html",
}

MODULE_REWRITES: dict[str, str] = {
    ".ts": ".js",
    ".mts": ".mjs",
}

STYLE_REWRITES: dict[str, str] = {
    ".pcss": ".css",
}


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ModuleTree:
    """A module subtree and where its output lands under the overlay root."""

    source: str
    output: str


def _default_module_trees() -> list[ModuleTree]:
    return [
        ModuleTree("modules", "resource/modules"),
        ModuleTree("private/browser/components", "private/resource/modules"),
    ]


@dataclass
class BuildConfig:
    """Configuration for a build run."""

    project_root: Path
    project_name: str = "noraneko"
    version: str = VERSION
    source_dir: str = "src"
    dist_dir: str = "dist"
    overlay_name: str = "noraneko"
    archive: str = "bin.tar.zst"
    install_dir: str = "bin"
    profile_dir: str = "profile/test"
    executable: str = "firefox.exe" if sys.platform == "win32" else "firefox"
    chrome_package: str = "noraneko"
    bundle_entries: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_BUNDLE_ENTRIES))
    style_dir: str = "skin"
    module_trees: list[ModuleTree] = field(default_factory=_default_module_trees)
    vite_config: str = "vite.config.ts"
    driver: str = "process"  # "process" or "playwright"
    host_args: list[str] = field(default_factory=list)
    jobs: int = field(default_factory=lambda: min(32, (os.cpu_count() or 1) + 4))
    verbose: bool = False

    @property
    def source_root(self) -> Path:
        return self.project_root / self.source_dir

    @property
    def dist_root(self) -> Path:
        return self.project_root / self.dist_dir

    @property
    def output_root(self) -> Path:
        """Overlay output tree written by the stages."""
        return self.dist_root / self.overlay_name

    @property
    def install_root(self) -> Path:
        """Host runtime tree written by the bootstrapper."""
        return self.dist_root / self.install_dir

    @property
    def marker_path(self) -> Path:
        return self.install_root / MARKER_NAME

    @property
    def archive_path(self) -> Path:
        return self.project_root / self.archive

    @property
    def executable_path(self) -> Path:
        return self.install_root / self.executable

    @property
    def profile_path(self) -> Path:
        return self.dist_root / self.profile_dir


# =============================================================================
# Project Loading
# =============================================================================


# Keys in nora.json that map straight onto BuildConfig fields
_OVERRIDABLE = {
    f.name: f for f in dataclasses.fields(BuildConfig) if f.name not in ("project_root", "project_name")
}


def _coerce(key: str, value: object) -> object:
    """Validate a nora.json value against the BuildConfig field it sets."""
    if key == "module_trees":
        if not isinstance(value, list):
            raise ConfigError("module_trees must be a list of {source, output} objects")
        trees = []
        for item in value:
            if not isinstance(item, dict) or set(item) != {"source", "output"}:
                raise ConfigError(f"Invalid module tree entry: {item!r}")
            trees.append(ModuleTree(str(item["source"]), str(item["output"])))
        return trees

    if key == "bundle_entries":
        if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
            raise ConfigError("bundle_entries must map entry names to paths")
        return dict(value)

    if key == "host_args":
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError("host_args must be a list of strings")
        return list(value)

    if key == "jobs":
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ConfigError("jobs must be a positive integer")
        return value

    if key == "verbose":
        if not isinstance(value, bool):
            raise ConfigError("verbose must be true or false")
        return value

    if key == "driver" and value not in ("process", "playwright"):
        raise ConfigError(f"Unknown driver: {value!r} (expected 'process' or 'playwright')")

    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value


def load_config(project_root: Path, **overrides: object) -> BuildConfig:
    """Build a BuildConfig from nora.json (optional) and CLI overrides.

    Raises:
        ConfigError: If nora.json is malformed or names unknown keys.
    """
    project_root = project_root.resolve()
    values: dict[str, object] = {}

    config_path = project_root / CONFIG_FILE
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
        except json.JSONDecodeError as e:
            raise ConfigError(f"{CONFIG_FILE} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{CONFIG_FILE} must contain a JSON object")

        unknown = sorted(set(data) - set(_OVERRIDABLE))
        if unknown:
            raise ConfigError(f"Unknown keys in {CONFIG_FILE}: {', '.join(unknown)}")

        for key, value in data.items():
            values[key] = _coerce(key, value)

    for key, value in overrides.items():
        if value is not None:
            values[key] = value

    return BuildConfig(
        project_root=project_root,
        project_name=detect_project_name(project_root),
        **values,
    )
