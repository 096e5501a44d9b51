"""swc transpiler adapter."""

from __future__ import annotations

import logging
import re
import tempfile
from pathlib import Path

from nora.core.utils import run_cmd
from nora.tools import TransformOptions, TransformOutput

logger = logging.getLogger(__name__)

# swc appends its own reference; the stage writes the final one
_SOURCE_MAP_COMMENT = re.compile(r"\n?//# sourceMappingURL=.*\s*$")


def swc_args(options: TransformOptions) -> list[str]:
    """Translate TransformOptions into `swc -C key=value` flags."""
    flags = {
        "jsc.parser.syntax": options.syntax,
        "jsc.target": options.target,
    }
    if options.syntax == "typescript":
        flags["jsc.parser.decorators"] = str(options.decorators).lower()
    else:
        flags["jsc.parser.importAssertions"] = str(options.import_assertions).lower()
    flags["jsc.parser.dynamicImport"] = str(options.dynamic_import).lower()

    args: list[str] = []
    for key, value in flags.items():
        args += ["-C", f"{key}={value}"]
    return args


class SwcTranspiler:
    """Runs @swc/cli on one file at a time."""

    def __init__(self, project_root: Path, command: tuple[str, ...] = ("npx", "--no-install", "swc")):
        self.project_root = project_root
        self.command = command

    def transform(self, source_text: str, filename: str, options: TransformOptions) -> TransformOutput:
        with tempfile.TemporaryDirectory(prefix="nora-swc-") as tmp:
            tmp_dir = Path(tmp)
            src = tmp_dir / Path(filename).name
            out = tmp_dir / "out.js"
            src.write_text(source_text)

            cmd = [
                *self.command,
                str(src),
                "--out-file", str(out),
                "--source-maps", "true",
                "--no-swcrc",
                *swc_args(options),
            ]
            logger.debug("transpiling %s", filename)
            run_cmd(cmd, cwd=self.project_root, capture=True)

            code = _SOURCE_MAP_COMMENT.sub("", out.read_text())
            map_path = out.with_name(out.name + ".map")
            source_map = map_path.read_text() if map_path.exists() else None

        return TransformOutput(code=code, source_map=source_map)
