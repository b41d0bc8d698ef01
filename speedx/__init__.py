"""SpeedX measurement engine -- probes, fallbacks, and statistics."""

from .api import ClientInfo, ClientInfoAPI
from .cancel import CancellationToken
from .config import Endpoints, load_config
from .download import DownloadProbe, DownloadResult
from .engine import SpeedTestEngine
from .errors import ProbeError, TestCancelled
from .insights import get_network_insights
from .latency import LatencyProbe
from .models import FrozenMetrics, MetricsSnapshot, TestState
from .simulation import SimulationFallback
from .stats import (
    LatencyStats,
    calculate_jitter,
    format_latency,
    format_speed,
    ping_and_jitter,
)
from .upload import UploadProbe, UploadResult

__all__ = [
    "CancellationToken",
    "ClientInfo",
    "ClientInfoAPI",
    "DownloadProbe",
    "DownloadResult",
    "Endpoints",
    "FrozenMetrics",
    "LatencyProbe",
    "LatencyStats",
    "MetricsSnapshot",
    "ProbeError",
    "SimulationFallback",
    "SpeedTestEngine",
    "TestCancelled",
    "TestState",
    "UploadProbe",
    "UploadResult",
    "calculate_jitter",
    "format_latency",
    "format_speed",
    "get_network_insights",
    "load_config",
    "ping_and_jitter",
]
