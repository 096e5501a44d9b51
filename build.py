#!/usr/bin/env python3
"""noraneko Build Orchestrator - Entry Point.

    python build.py          # build once
    python build.py run      # build, launch, relaunch on change
"""
import sys

# Add the project directory to path for the nora package
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent))

from nora.cli import main

if __name__ == "__main__":
    sys.exit(main())
