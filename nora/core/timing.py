"""Phase timings for nora builds."""

import time
from contextlib import contextmanager
from typing import Iterator


def format_duration(seconds: float) -> str:
    """Format seconds for the build log.

    Examples:
        0.042 -> "42ms"
        2.5 -> "2.5s"
        65.3 -> "1m 5.3s"
    """
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, remaining = divmod(seconds, 60)
    return f"{int(minutes)}m {remaining:.1f}s"


class PhaseTimings:
    """Wall-clock durations of the phases of one pipeline run, in run order.

    Usage:
        timings = PhaseTimings()
        with timings.phase("bundle"):
            run_bundle()
        timings.summary()  # "bundle: 2.1s | total: 2.1s"
    """

    def __init__(self) -> None:
        self.durations: dict[str, float] = {}

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        """Time a block. The duration is recorded even if the block raises."""
        start = time.monotonic()
        try:
            yield
        finally:
            self.durations[name] = round(time.monotonic() - start, 3)

    @property
    def total(self) -> float:
        return round(sum(self.durations.values()), 3)

    def summary(self) -> str:
        if not self.durations:
            return "(no timing data)"
        parts = [f"{name}: {format_duration(d)}" for name, d in self.durations.items()]
        parts.append(f"total: {format_duration(self.total)}")
        return " | ".join(parts)
