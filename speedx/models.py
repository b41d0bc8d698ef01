"""
Engine state and the shared measurement record.

``MetricsSnapshot`` is the mutable record the engine owns and lends to the
active probe; observers only ever see a ``FrozenMetrics`` copy of it.
"""
from __future__ import annotations

import enum
from dataclasses import asdict, dataclass


class TestState(enum.Enum):
    """Which phase of a run (if any) is active."""

    __test__ = False  # keep pytest from collecting this as a test class

    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    DOWNLOAD = "DOWNLOAD"
    UPLOAD = "UPLOAD"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"


@dataclass(frozen=True)
class FrozenMetrics:
    """Immutable copy of the metrics, as handed to observers."""

    download_speed_mbps: float = 0.0
    upload_speed_mbps: float = 0.0
    ping_ms: int = 0
    jitter_ms: int = 0
    progress_percent: float = 0.0


@dataclass
class MetricsSnapshot:
    """Live measurement state for the current run."""

    download_speed_mbps: float = 0.0
    upload_speed_mbps: float = 0.0
    ping_ms: int = 0
    jitter_ms: int = 0
    progress_percent: float = 0.0

    def advance(self, percent: float) -> None:
        """Move progress forward to *percent*; never moves it backwards."""
        percent = min(100.0, percent)
        if percent > self.progress_percent:
            self.progress_percent = percent

    def freeze(self) -> FrozenMetrics:
        return FrozenMetrics(**asdict(self))
