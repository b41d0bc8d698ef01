"""
Network measurement statistics.

Pure functions and lightweight dataclasses -- no I/O, no side effects.
Everything here is deterministic and easy to unit-test.
"""
from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from typing import List, Tuple

from .constants import MAX_SPEED_MBPS, MIN_RATE_WINDOW


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass
class LatencyStats:
    """Aggregated latency statistics computed from a list of samples."""

    samples: List[float] = field(default_factory=list)
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    jitter: float = 0.0
    count: int = 0

    def calculate(self) -> None:
        if not self.samples:
            return
        self.count = len(self.samples)
        self.min = min(self.samples)
        self.max = max(self.samples)
        self.mean = statistics.mean(self.samples)
        self.jitter = calculate_jitter(self.samples)

    def to_dict(self) -> dict:
        return {
            "samples": [round(s, 3) for s in self.samples],
            "min": round(self.min, 3),
            "max": round(self.max, 3),
            "mean": round(self.mean, 3),
            "jitter": round(self.jitter, 3),
            "count": self.count,
        }


# ---------------------------------------------------------------------------
# Pure helper functions
# ---------------------------------------------------------------------------

def calculate_jitter(samples: List[float]) -> float:
    """Largest absolute deviation of any sample from the mean."""
    if not samples:
        return 0.0
    mean = statistics.mean(samples)
    return max(0.0, max(abs(s - mean) for s in samples))


def round_half_up(value: float) -> int:
    """Nearest integer with halves rounded up (``round`` rounds half to even)."""
    return int(math.floor(value + 0.5))


def ping_and_jitter(samples: List[float]) -> Tuple[int, int]:
    """Return ``(ping_ms, jitter_ms)`` as non-negative whole milliseconds."""
    return (
        max(0, round_half_up(min(samples))),
        max(0, round_half_up(calculate_jitter(samples))),
    )


def clamp_speed(speed_mbps: float) -> float:
    """Apply the throughput ceiling."""
    return min(speed_mbps, MAX_SPEED_MBPS)


def rate_mbps(num_bytes: float, seconds: float) -> float:
    """Bytes over *seconds* as Mbps; 0 for an empty window."""
    if seconds <= 0:
        return 0.0
    return (num_bytes * 8) / seconds / 1_000_000


def final_rate_mbps(num_bytes: float, seconds: float) -> float:
    """Whole-transfer rate, floored window, clamped and rounded for display."""
    return round(clamp_speed(rate_mbps(num_bytes, max(MIN_RATE_WINDOW, seconds))), 2)


def ease_out(fraction: float) -> float:
    """Quadratic ease-out: fast start, flattening toward 1."""
    return 1 - (1 - fraction) ** 2


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def format_speed(speed_mbps: float) -> str:
    """Human-readable speed string."""
    if speed_mbps >= 1000:
        return f"{speed_mbps / 1000:.2f} Gbps"
    return f"{speed_mbps:.2f} Mbps"


def format_latency(latency_ms: float) -> str:
    """Human-readable latency string."""
    if latency_ms >= 1000:
        return f"{latency_ms / 1000:.2f} s"
    return f"{latency_ms:.0f} ms"
