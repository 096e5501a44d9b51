"""vite bundler adapter."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from nora.core.utils import run_cmd

logger = logging.getLogger(__name__)

# Read by the project's vite config to build rollupOptions.input
ENTRIES_ENV = "NORA_BUILD_ENTRIES"


class ViteBundler:
    """Runs `vite build` against the project's vite config.

    Entry points travel through the NORA_BUILD_ENTRIES environment
    variable as a JSON object of name -> absolute path.
    """

    def __init__(
        self,
        project_root: Path,
        config_file: str = "vite.config.ts",
        command: tuple[str, ...] = ("npx", "--no-install", "vite"),
    ):
        self.project_root = project_root
        self.config_file = config_file
        self.command = command

    def bundle(self, entries: dict[str, Path], out_dir: Path, assets_dir: str) -> list[Path]:
        env = os.environ.copy()
        env[ENTRIES_ENV] = json.dumps({name: str(path) for name, path in entries.items()})

        cmd = [
            *self.command,
            "build",
            "--config", str(self.project_root / self.config_file),
            "--outDir", str(out_dir),
            "--assetsDir", assets_dir,
            "--emptyOutDir",
            "--sourcemap",
            "--minify", "false",
        ]
        logger.debug("bundling %d entries into %s", len(entries), out_dir)
        run_cmd(cmd, cwd=self.project_root, capture=True, env=env)

        return sorted(p for p in out_dir.rglob("*") if p.is_file())
