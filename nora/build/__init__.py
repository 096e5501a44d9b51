"""
nora.build - Build pipeline for the noraneko overlay.

Stages, runtime bootstrap, and the orchestrator that sequences them.
"""

from nora.build.config import (
    VERSION,
    MARKER_NAME,
    ModuleTree,
    BuildConfig,
    load_config,
)
from nora.build.bootstrap import ensure_runtime, extract_archive, read_marker
from nora.build.stages import BundleStage, ModuleCopyStage, StageResult, StyleStage
from nora.build.orchestrator import BuildOrchestrator, BuildReport

__all__ = [
    # Constants
    "VERSION",
    "MARKER_NAME",
    # Configuration
    "ModuleTree",
    "BuildConfig",
    "load_config",
    # Bootstrap
    "ensure_runtime",
    "extract_archive",
    "read_marker",
    # Stages
    "BundleStage",
    "ModuleCopyStage",
    "StageResult",
    "StyleStage",
    # Orchestrator
    "BuildOrchestrator",
    "BuildReport",
]
