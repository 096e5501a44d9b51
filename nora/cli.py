"""
Main CLI for the nora tool.

`nora` builds the overlay once; `nora run` builds it, launches the
browser and rebuilds on every source change.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from nora import __version__
from nora.build.config import BuildConfig, load_config
from nora.core.utils import get_project_root, log
from nora.errors import ConfigError, NoraError


# =============================================================================
# Argument Parsing
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nora",
        description="noraneko overlay build orchestrator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  build       Build the overlay and patch the runtime once (default)
  run         Build, launch the browser, and relaunch it on source changes

Examples:
  nora                         # One build
  nora run                     # Dev loop
  nora run --project-dir ../noraneko -v
        """,
    )

    parser.add_argument(
        "command",
        nargs="?",
        choices=["build", "run"],
        default="build",
        help="What to do (default: build)",
    )

    parser.add_argument(
        "--project-dir",
        type=Path,
        default=None,
        help="Project directory (default: nearest parent with package.json)",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose debug output",
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


# =============================================================================
# Commands
# =============================================================================


def cmd_build(config: BuildConfig) -> int:
    from nora.build.orchestrator import BuildOrchestrator

    asyncio.run(BuildOrchestrator(config).build_once())
    log.info(f"Output: {config.output_root}")
    return 0


def cmd_dev(config: BuildConfig) -> int:
    from nora.commands.dev import cmd_run

    asyncio.run(cmd_run(config))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.no_color:
        log.set_color(False)
    log.set_verbose(args.verbose)

    project_root = args.project_dir or get_project_root() or Path.cwd()

    try:
        config = load_config(project_root, verbose=args.verbose or None)

        if args.command == "run":
            return cmd_dev(config)
        return cmd_build(config)

    except KeyboardInterrupt:
        log.warning("Interrupted")
        return 130
    except ConfigError as e:
        log.error(f"Configuration error: {e}")
        return 1
    except NoraError as e:
        log.error(str(e))
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
