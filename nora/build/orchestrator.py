"""
Build orchestrator for nora.

Runs the bundle stage, then the style and module stages side by side,
then installs the host runtime and patches it to load the overlay.
"""

from __future__ import annotations

import asyncio
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from nora.build.bootstrap import Extractor, ensure_runtime, extract_archive
from nora.build.config import BuildConfig
from nora.build.stages import BundleStage, EntryStage, ModuleCopyStage, StageResult, StyleStage
from nora.core.timing import PhaseTimings
from nora.core.utils import log
from nora.errors import BootstrapError, BuildError, PatchError
from nora.patch import Patcher, default_patchers
from nora.tools import Toolchain, default_toolchain


@dataclass
class BuildReport:
    """Outcome of a successful pipeline run."""

    stages: list[StageResult] = field(default_factory=list)
    extracted: bool = False
    timings: PhaseTimings = field(default_factory=PhaseTimings)

    @property
    def written(self) -> list[Path]:
        return sorted(p for stage in self.stages for p in stage.written)


# =============================================================================
# Build Orchestrator
# =============================================================================


class BuildOrchestrator:
    """Sequences one pipeline run over the current source tree."""

    def __init__(
        self,
        config: BuildConfig,
        toolchain: Optional[Toolchain] = None,
        patchers: Optional[Sequence[Patcher]] = None,
        extractor: Extractor = extract_archive,
    ):
        self.config = config
        self.toolchain = toolchain or default_toolchain(config.project_root, config.vite_config)
        self.patchers = list(
            patchers if patchers is not None
            else default_patchers(config.chrome_package, config.output_root)
        )
        self.extractor = extractor
        self._runs = 0

    @property
    def runs(self) -> int:
        return self._runs

    def _transform_stages(self) -> list[tuple[EntryStage, Path, Path]]:
        """The stages that may run concurrently, with their (source, output) roots."""
        cfg = self.config
        stages: list[tuple[EntryStage, Path, Path]] = [
            (
                StyleStage(self.toolchain.style_processor, jobs=cfg.jobs),
                cfg.source_root / cfg.style_dir,
                cfg.output_root / cfg.style_dir,
            ),
        ]
        for tree in cfg.module_trees:
            stages.append((
                ModuleCopyStage(self.toolchain.transpiler, name=f"modules:{tree.source}", jobs=cfg.jobs),
                cfg.source_root / tree.source,
                cfg.output_root / tree.output,
            ))
        return stages

    def clean_output(self) -> None:
        """Remove the overlay output tree. The installed runtime is left alone.

        Raises:
            BuildError: If the tree cannot be removed.
        """
        output_root = self.config.output_root
        if not output_root.exists():
            return
        log.debug(f"Removing {output_root}")
        try:
            shutil.rmtree(output_root)
        except OSError as e:
            raise BuildError(f"Failed to remove {output_root}: {e}") from e

    def _report_errors(self, results: list[StageResult]) -> None:
        for result in results:
            for error in result.errors:
                log.error(f"[{result.name}] {error}")

    async def build_once(self) -> BuildReport:
        """Run every stage, then bootstrap and patch.

        Raises:
            BuildError: If any stage entry failed, or bootstrap/patching failed.
        """
        cfg = self.config
        self._runs += 1
        report = BuildReport()
        start = time.monotonic()

        log.header(f"{cfg.project_name}: build #{self._runs}")

        # Bundle owns and empties the overlay root, so it goes first
        with report.timings.phase("bundle"):
            bundle = await BundleStage(self.toolchain.bundler, cfg.bundle_entries).run(
                cfg.source_root, cfg.output_root
            )
        report.stages.append(bundle)

        with report.timings.phase("transform"):
            results = await asyncio.gather(
                *(stage.run(src, out) for stage, src, out in self._transform_stages())
            )
        report.stages.extend(results)

        errors = [e for result in report.stages for e in result.errors]
        if errors:
            self._report_errors(report.stages)
            raise BuildError.from_stage_errors(errors)

        for result in report.stages:
            log.success(f"{result.name}: {len(result.written)} file(s) in {result.duration:.1f}s")

        with report.timings.phase("bootstrap"):
            try:
                report.extracted = await asyncio.to_thread(
                    ensure_runtime, cfg.version, cfg.archive_path, cfg.install_root, self.extractor
                )
            except OSError as e:
                raise BootstrapError(f"Failed to install runtime {cfg.version}: {e}") from e

        with report.timings.phase("patch"):
            for patcher in self.patchers:
                log.info(f"Patching {patcher.name}")
                try:
                    await asyncio.to_thread(patcher.patch, cfg.install_root)
                except PatchError:
                    raise
                except Exception as e:
                    raise PatchError(f"{patcher.name} patch failed: {e}") from e

        log.success(f"Build complete in {time.monotonic() - start:.1f}s")
        log.dim(report.timings.summary())
        return report
