"""
Download speed test module.

Streams one fixed-size payload over a single HTTPS GET and reads it
incrementally.  The early part of the transfer is excluded from the live
readout (warmup), while the final figure is bytes over total elapsed time.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import aiohttp

from .cancel import CancellationToken
from .constants import (
    CHUNK_SIZE,
    DOWNLOAD_PROGRESS_SPAN,
    DOWNLOAD_SIZE,
    DOWNLOAD_URL,
    MIN_RATE_WINDOW,
    NO_STORE_HEADERS,
    UPDATE_INTERVAL,
    WARMUP_BYTES,
    WARMUP_SECONDS,
)
from .errors import ProbeError
from .models import MetricsSnapshot
from .session import cache_buster, open_session
from .stats import clamp_speed, final_rate_mbps, rate_mbps

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class DownloadResult:
    """Download test result."""

    speed_mbps: float = 0.0
    bytes_total: int = 0
    duration_ms: float = 0.0
    samples: List[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "speed_mbps": round(self.speed_mbps, 2),
            "bytes_total": self.bytes_total,
            "duration_ms": round(self.duration_ms, 2),
            "samples": [round(s, 2) for s in self.samples],
        }


# ---------------------------------------------------------------------------
# Probe
# ---------------------------------------------------------------------------

class DownloadProbe:
    """
    Single-stream download speed probe.

    Until 0.5 s have passed or 1 MB has arrived the connection is still
    ramping up.  Once either threshold is crossed the byte count and time
    are latched, and periodic updates report throughput measured from that
    point on.  The completion figure uses the whole transfer.
    """

    def __init__(
        self,
        url: str = DOWNLOAD_URL,
        size: int = DOWNLOAD_SIZE,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.url = url
        self.size = size
        self._session = session
        self._clock = clock

    async def measure(
        self,
        metrics: MetricsSnapshot,
        token: CancellationToken,
        notify: Callable[[], None],
    ) -> DownloadResult:
        async with open_session(self._session) as session:
            token.raise_if_cancelled()
            return await token.guard(self._stream(session, metrics, token, notify))

    async def _stream(
        self,
        session: aiohttp.ClientSession,
        metrics: MetricsSnapshot,
        token: CancellationToken,
        notify: Callable[[], None],
    ) -> DownloadResult:
        result = DownloadResult()
        params = {"bytes": str(self.size), "t": cache_buster()}
        timeout = aiohttp.ClientTimeout(total=None, connect=10, sock_read=10)

        async with session.get(
            self.url, params=params, headers=NO_STORE_HEADERS, timeout=timeout,
        ) as resp:
            if not 200 <= resp.status < 300 or resp.content is None:
                raise ProbeError(f"Failed to start download (HTTP {resp.status})")

            received = 0
            start = self._clock()
            last_update = start

            warmup_done = False
            warmup_bytes = 0
            warmup_time = 0.0

            async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                token.raise_if_cancelled()

                received += len(chunk)
                now = self._clock()
                elapsed = now - start

                if not warmup_done and (elapsed > WARMUP_SECONDS or received > WARMUP_BYTES):
                    warmup_done = True
                    warmup_bytes = received
                    warmup_time = now

                if now - last_update >= UPDATE_INTERVAL:
                    if warmup_done:
                        speed = rate_mbps(received - warmup_bytes, now - warmup_time)
                    else:
                        speed = rate_mbps(received, max(MIN_RATE_WINDOW, elapsed))

                    metrics.download_speed_mbps = round(clamp_speed(speed), 2)
                    metrics.advance(
                        min(DOWNLOAD_PROGRESS_SPAN, received / self.size * DOWNLOAD_PROGRESS_SPAN)
                    )
                    result.samples.append(metrics.download_speed_mbps)
                    notify()
                    last_update = now

        duration = self._clock() - start
        metrics.download_speed_mbps = final_rate_mbps(received, duration)
        notify()

        result.speed_mbps = metrics.download_speed_mbps
        result.bytes_total = received
        result.duration_ms = duration * 1000
        logger.debug("Download finished: %d bytes in %.2f s", received, duration)
        return result
