"""
Synthetic stand-ins for the live probes.

Used when a live phase fails for any reason other than cancellation.  The
shape is fixed (a 3 s ease-out ramp toward one randomly chosen target) and
only the parameters are random, so an injected ``random.Random`` makes a run
fully reproducible.
"""
from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, Optional, Tuple

from .cancel import CancellationToken
from .constants import (
    DOWNLOAD_PROGRESS_SPAN,
    SIM_DOWNLOAD_NOISE,
    SIM_DOWNLOAD_RANGE,
    SIM_JITTER_RANGE,
    SIM_LATENCY_DELAY,
    SIM_PING_RANGE,
    SIM_RAMP_SECONDS,
    SIM_TICK_SECONDS,
    SIM_UPLOAD_NOISE,
    SIM_UPLOAD_RANGE,
    UPLOAD_PROGRESS_BASE,
)
from .models import MetricsSnapshot
from .stats import ease_out

logger = logging.getLogger(__name__)

Publish = Callable[[float, float], None]


class SimulationFallback:
    """Plausible ramping values for latency, download and upload."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        duration: float = SIM_RAMP_SECONDS,
        tick: float = SIM_TICK_SECONDS,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock
        self._sleep = sleep
        self.duration = duration
        self.tick = tick

    # -- Phases -------------------------------------------------------------

    async def latency(
        self,
        metrics: MetricsSnapshot,
        token: CancellationToken,
        notify: Callable[[], None],
    ) -> None:
        await self._sleep(SIM_LATENCY_DELAY)
        if token.cancelled:
            return

        metrics.ping_ms = self._rng.randint(*SIM_PING_RANGE)
        metrics.jitter_ms = self._rng.randint(*SIM_JITTER_RANGE)
        notify()

    async def download(
        self,
        metrics: MetricsSnapshot,
        token: CancellationToken,
        notify: Callable[[], None],
    ) -> None:
        def publish(speed: float, fraction: float) -> None:
            metrics.download_speed_mbps = speed
            metrics.advance(min(DOWNLOAD_PROGRESS_SPAN, fraction * DOWNLOAD_PROGRESS_SPAN))

        target = await self._ramp(SIM_DOWNLOAD_RANGE, SIM_DOWNLOAD_NOISE, publish, token, notify)
        if target is not None:
            metrics.download_speed_mbps = target
            notify()

    async def upload(
        self,
        metrics: MetricsSnapshot,
        token: CancellationToken,
        notify: Callable[[], None],
    ) -> None:
        def publish(speed: float, fraction: float) -> None:
            metrics.upload_speed_mbps = speed
            metrics.advance(UPLOAD_PROGRESS_BASE + fraction * (100 - UPLOAD_PROGRESS_BASE))

        target = await self._ramp(SIM_UPLOAD_RANGE, SIM_UPLOAD_NOISE, publish, token, notify)
        if target is not None:
            metrics.upload_speed_mbps = target
            notify()

    # -- Internals ----------------------------------------------------------

    async def _ramp(
        self,
        target_range: Tuple[int, int],
        noise: float,
        publish: Publish,
        token: CancellationToken,
        notify: Callable[[], None],
    ) -> Optional[float]:
        """
        Run the ramp and return its target, or ``None`` if cancelled.

        Each tick publishes the eased value plus symmetric noise; the caller
        then overwrites the last noisy sample with the exact target.
        """
        target = float(self._rng.randint(*target_range))
        logger.debug("Simulated ramp toward %.0f Mbps", target)

        start = self._clock()
        while True:
            elapsed = self._clock() - start
            if elapsed >= self.duration:
                break
            if token.cancelled:
                return None

            fraction = elapsed / self.duration
            speed = target * ease_out(fraction) + self._rng.uniform(-noise, noise)
            publish(round(max(0.0, speed), 2), fraction)
            notify()
            await self._sleep(self.tick)

        if token.cancelled:
            return None
        return target
