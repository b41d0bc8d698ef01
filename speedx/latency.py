"""
HTTP round-trip latency measurement.

Issues a fixed number of sequential, cache-busted GETs against a tiny trace
endpoint and times each one::

    1. Check the run's cancellation token
    2. GET {ping_url}?t={unique}   (Cache-Control: no-store)
    3. Record wall-clock milliseconds for the completed round-trip
    4. Repeat; failed attempts are skipped, not retried

Ping is the fastest sample, jitter the largest deviation from the mean.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

import aiohttp

from .cancel import CancellationToken
from .constants import (
    FALLBACK_JITTER_MS,
    FALLBACK_PING_MS,
    NO_STORE_HEADERS,
    PING_ATTEMPTS,
    PING_TIMEOUT,
    PING_URL,
)
from .models import MetricsSnapshot
from .session import cache_buster, open_session
from .stats import LatencyStats, ping_and_jitter

logger = logging.getLogger(__name__)


class LatencyProbe:
    """Measure ping and jitter to a single HTTP endpoint."""

    def __init__(
        self,
        url: str = PING_URL,
        attempts: int = PING_ATTEMPTS,
        timeout: float = PING_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.url = url
        self.attempts = attempts
        self.timeout = timeout
        self._session = session
        self._clock = clock

    async def measure(
        self,
        metrics: MetricsSnapshot,
        token: CancellationToken,
        notify: Callable[[], None],
    ) -> LatencyStats:
        stats = LatencyStats()

        async with open_session(self._session) as session:
            for attempt in range(self.attempts):
                token.raise_if_cancelled()

                start = self._clock()
                try:
                    await token.guard(self._round_trip(session))
                except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
                    logger.debug("Latency attempt %d failed: %s", attempt + 1, exc)
                    continue

                latency_ms = (self._clock() - start) * 1000
                if latency_ms > 0:
                    stats.samples.append(latency_ms)

        if stats.samples:
            stats.calculate()
            metrics.ping_ms, metrics.jitter_ms = ping_and_jitter(stats.samples)
        else:
            logger.warning("No latency samples; reporting fixed fallback values")
            metrics.ping_ms = FALLBACK_PING_MS
            metrics.jitter_ms = FALLBACK_JITTER_MS

        notify()
        return stats

    async def _round_trip(self, session: aiohttp.ClientSession) -> None:
        async with session.get(
            self.url,
            params={"t": cache_buster()},
            headers=NO_STORE_HEADERS,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as resp:
            await resp.read()
