"""
Tests for the external tool adapters.

The node tools themselves are not invoked; run_cmd is replaced with a
stand-in that writes what the real tool would.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from nora.core.utils import run_cmd
from nora.errors import ToolError
from nora.tools import TransformOptions
from nora.tools import postcss as postcss_mod
from nora.tools import swc as swc_mod
from nora.tools import vite as vite_mod


def _arg(cmd: list[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


@pytest.mark.evergreen
class TestTransformOptions:
    def test_for_suffix(self):
        assert TransformOptions.for_suffix(".ts").syntax == "typescript"
        assert TransformOptions.for_suffix(".mts").syntax == "typescript"
        assert TransformOptions.for_suffix(".js").syntax == "ecmascript"
        assert TransformOptions.for_suffix(".mjs").syntax == "ecmascript"


@pytest.mark.evergreen
class TestSwc:
    def test_args_for_typescript(self):
        args = swc_mod.swc_args(TransformOptions())
        assert "jsc.parser.syntax=typescript" in args
        assert "jsc.parser.decorators=true" in args
        assert "jsc.target=esnext" in args
        assert all(flag == "-C" for flag in args[::2])

    def test_args_for_ecmascript(self):
        args = swc_mod.swc_args(TransformOptions(syntax="ecmascript"))
        assert "jsc.parser.importAssertions=true" in args
        assert not any("decorators" in a for a in args)

    def test_transform_strips_tool_map_reference(self, tmp_path: Path, monkeypatch):
        def fake_run(cmd, cwd=None, capture=False, check=True, env=None):
            out = Path(_arg(cmd, "--out-file"))
            out.write_text("export const x = 1;\n//# sourceMappingURL=out.js.map\n")
            out.with_name("out.js.map").write_text('{"version":3}')
            return subprocess.CompletedProcess(cmd, 0, "", "")

        monkeypatch.setattr(swc_mod, "run_cmd", fake_run)

        output = swc_mod.SwcTranspiler(tmp_path).transform("export const x: number = 1;", "Utils.ts", TransformOptions())

        assert output.code == "export const x = 1;"
        assert json.loads(output.source_map) == {"version": 3}


@pytest.mark.evergreen
class TestPostcss:
    def test_process_passes_plugins_and_reads_map(self, tmp_path: Path, monkeypatch):
        seen = []

        def fake_run(cmd, cwd=None, capture=False, check=True, env=None):
            seen.append(cmd)
            out = Path(_arg(cmd, "--output"))
            out.write_text("a b { color: red; }\n")
            out.with_name(out.name + ".map").write_text("{}")
            return subprocess.CompletedProcess(cmd, 0, "", "")

        monkeypatch.setattr(postcss_mod, "run_cmd", fake_run)

        output = postcss_mod.PostcssProcessor(tmp_path).process(
            "a { b { color: red; } }", tmp_path / "browser.pcss", tmp_path / "out" / "browser.css"
        )

        assert output.css == "a b { color: red; }\n"
        assert output.source_map == "{}"
        assert seen[0][-3:] == list(postcss_mod.DEFAULT_PLUGINS)


@pytest.mark.evergreen
class TestVite:
    def test_entries_travel_through_env(self, tmp_path: Path, monkeypatch):
        seen = {}

        def fake_run(cmd, cwd=None, capture=False, check=True, env=None):
            seen["cmd"] = cmd
            seen["entries"] = json.loads(env[vite_mod.ENTRIES_ENV])
            out_dir = Path(_arg(cmd, "--outDir"))
            (out_dir / "content").mkdir(parents=True)
            (out_dir / "content" / "index.js").write_text("")
            return subprocess.CompletedProcess(cmd, 0, "", "")

        monkeypatch.setattr(vite_mod, "run_cmd", fake_run)
        entry = tmp_path / "src" / "content" / "index.ts"

        written = vite_mod.ViteBundler(tmp_path).bundle({"index": entry}, tmp_path / "dist", "content/assets")

        assert seen["entries"] == {"index": str(entry)}
        assert "--emptyOutDir" in seen["cmd"]
        assert _arg(seen["cmd"], "--assetsDir") == "content/assets"
        assert written == [tmp_path / "dist" / "content" / "index.js"]


@pytest.mark.evergreen
class TestRunCmd:
    def test_missing_tool(self):
        with pytest.raises(ToolError) as exc_info:
            run_cmd(["nora-definitely-not-installed"], capture=True)
        assert exc_info.value.returncode == 127

    def test_failure_keeps_stderr_tail(self):
        err = ToolError(["npx", "swc"], 2, "\n".join(f"line {i}" for i in range(10)))
        text = str(err)
        assert text.startswith("npx exited with 2")
        assert "line 9" in text
        assert "line 4" not in text
