"""postcss style-preprocessor adapter."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from nora.core.utils import run_cmd
from nora.tools import StyleOutput

logger = logging.getLogger(__name__)

DEFAULT_PLUGINS = ("autoprefixer", "postcss-nested", "postcss-sorting")


class PostcssProcessor:
    """Runs postcss-cli with the autoprefixer/nested/sorting chain."""

    def __init__(
        self,
        project_root: Path,
        plugins: tuple[str, ...] = DEFAULT_PLUGINS,
        command: tuple[str, ...] = ("npx", "--no-install", "postcss"),
    ):
        self.project_root = project_root
        self.plugins = plugins
        self.command = command

    def process(self, text: str, from_path: Path, to_path: Path) -> StyleOutput:
        with tempfile.TemporaryDirectory(prefix="nora-postcss-") as tmp:
            tmp_dir = Path(tmp)
            src = tmp_dir / from_path.name
            out = tmp_dir / to_path.name
            src.write_text(text)

            cmd = [
                *self.command,
                str(src),
                "--output", str(out),
                "--map",
                "--no-config",
                "--use", *self.plugins,
            ]
            logger.debug("processing %s -> %s", from_path, to_path)
            run_cmd(cmd, cwd=self.project_root, capture=True)

            css = out.read_text()
            map_path = out.with_name(out.name + ".map")
            source_map = map_path.read_text() if map_path.exists() else None

        return StyleOutput(css=css, source_map=source_map)
