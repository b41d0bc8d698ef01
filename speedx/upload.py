"""
Upload speed test module.

POSTs one random in-memory payload.  The body is fed to aiohttp as an async
generator, so every chunk handed to the transport doubles as an
upload-progress event.
"""
from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, List, Optional

import aiohttp

from .cancel import CancellationToken
from .constants import (
    CHUNK_SIZE,
    NO_STORE_HEADERS,
    UPDATE_INTERVAL,
    UPLOAD_PROGRESS_BASE,
    UPLOAD_SEND_BUFFER,
    UPLOAD_SIZE,
    UPLOAD_TIMEOUT,
    UPLOAD_URL,
    WARMUP_SECONDS,
)
from .errors import ProbeError
from .models import MetricsSnapshot
from .session import cache_buster, open_session
from .stats import clamp_speed, final_rate_mbps, rate_mbps

logger = logging.getLogger(__name__)


@dataclass
class UploadResult:
    """Upload test result."""
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


class UploadProbe:
    """
    Single-request upload speed probe.

    Progress events in the first 0.5 s are not reported.  After that the
    live rate is bytes sent since the very start over time since the start
    (no byte baseline is latched, unlike the download probe).

    Progress is counted as the body generator hands chunks to aiohttp, so
    the socket opened here gets a small send buffer to keep that count
    within a few chunks of what has left the host.
    """

    def __init__(
        self,
        url: str = UPLOAD_URL,
        size: int = UPLOAD_SIZE,
        timeout: float = UPLOAD_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.perf_counter,
        send_buffer: int = UPLOAD_SEND_BUFFER,
    ) -> None:
        self.url = url
        self.size = size
        self.timeout = timeout
        self.send_buffer = send_buffer
        self._session = session
        self._rng = rng or random.Random()
        self._clock = clock

    async def measure(
        self,
        metrics: MetricsSnapshot,
        token: CancellationToken,
        notify: Callable[[], None],
    ) -> UploadResult:
        payload = self._rng.randbytes(self.size)

        async with open_session(self._session, send_buffer=self.send_buffer) as session:
            token.raise_if_cancelled()
            return await token.guard(self._post(session, payload, metrics, notify))

    async def _post(
        self,
        session: aiohttp.ClientSession,
        payload: bytes,
        metrics: MetricsSnapshot,
        notify: Callable[[], None],
    ) -> UploadResult:
        result = UploadResult()
        total = len(payload)
        start = self._clock()
        last_update = start

        def on_progress(sent: int) -> None:
            nonlocal last_update
            now = self._clock()
            elapsed = now - start

            # Warmup: connection setup dominates the first half second
            if elapsed <= WARMUP_SECONDS or now - last_update < UPDATE_INTERVAL:
                return

            metrics.upload_speed_mbps = round(clamp_speed(rate_mbps(sent, elapsed)), 2)
            metrics.advance(UPLOAD_PROGRESS_BASE + (sent / total) * (100 - UPLOAD_PROGRESS_BASE))
            result.samples.append(metrics.upload_speed_mbps)
            notify()
            last_update = now

        async def body() -> AsyncIterator[bytes]:
            sent = 0
            for offset in range(0, total, CHUNK_SIZE):
                chunk = payload[offset:offset + CHUNK_SIZE]
                yield chunk
                sent += len(chunk)
                on_progress(sent)

        headers = {
            **NO_STORE_HEADERS,
            "Content-Type": "application/octet-stream",
            "Content-Length": str(total),
        }

        try:
            async with session.post(
                self.url,
                params={"t": cache_buster()},
                data=body(),
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                status = resp.status
                await resp.read()
        except asyncio.TimeoutError as exc:
            raise ProbeError("Upload timeout") from exc

        if not 200 <= status < 300:
            raise ProbeError(f"Upload failed: {status}")

        duration = self._clock() - start
        metrics.upload_speed_mbps = final_rate_mbps(total, duration)
        notify()

        result.speed_mbps = metrics.upload_speed_mbps
        result.bytes_total = total
        result.duration_ms = duration * 1000
        logger.debug("Upload finished: %d bytes in %.2f s", total, duration)
        return result
