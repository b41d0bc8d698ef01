"""
Speed test engine -- the state machine that drives a run.

A run walks ``CONNECTING -> DOWNLOAD -> UPLOAD -> COMPLETE``.  Each phase
tries its live probe first; if the probe raises anything other than
``TestCancelled`` the phase is replayed by ``SimulationFallback`` and the
run carries on.  Every state or metric change is pushed to the observer as
``(TestState, FrozenMetrics)``.
"""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .cancel import CancellationToken
from .config import Endpoints
from .constants import UPLOAD_PROGRESS_BASE
from .download import DownloadProbe
from .errors import TestCancelled
from .latency import LatencyProbe
from .models import FrozenMetrics, MetricsSnapshot, TestState
from .simulation import SimulationFallback
from .upload import UploadProbe

logger = logging.getLogger(__name__)

Observer = Callable[[TestState, FrozenMetrics], None]
Notify = Callable[[], None]
Phase = Callable[[MetricsSnapshot, CancellationToken, Notify], Awaitable[Any]]

_STARTABLE = (TestState.IDLE, TestState.COMPLETE, TestState.ERROR)


class SpeedTestEngine:
    """
    Sequences latency, download and upload measurements for one client.

    ``start()`` is a coroutine that returns when the run ends; ``stop()`` is
    a plain method that may be called at any time from the event loop
    (another task, a key handler, a signal handler).
    """

    def __init__(
        self,
        on_update: Observer,
        *,
        endpoints: Optional[Endpoints] = None,
        latency: Optional[LatencyProbe] = None,
        download: Optional[DownloadProbe] = None,
        upload: Optional[UploadProbe] = None,
        simulator: Optional[SimulationFallback] = None,
    ) -> None:
        endpoints = endpoints or Endpoints()

        self._on_update: Optional[Observer] = on_update
        self._latency = latency or LatencyProbe(url=endpoints.ping_url)
        self._download = download or DownloadProbe(
            url=endpoints.download_url, size=endpoints.download_size,
        )
        self._upload = upload or UploadProbe(
            url=endpoints.upload_url,
            size=endpoints.upload_size,
            timeout=endpoints.upload_timeout,
        )
        self._simulator = simulator or SimulationFallback()

        self._state = TestState.IDLE
        self._metrics = MetricsSnapshot()
        self._token: Optional[CancellationToken] = None
        self._use_fallback = False
        self._disposed = False

        # Per-phase details from live probes of the last run
        self.details: Dict[str, Dict[str, Any]] = {}

    # -- Read-only views ----------------------------------------------------

    @property
    def state(self) -> TestState:
        return self._state

    @property
    def metrics(self) -> FrozenMetrics:
        return self._metrics.freeze()

    # -- Lifecycle ----------------------------------------------------------

    async def start(self) -> None:
        """Run one full test.  A no-op while another run is in progress."""
        if self._disposed:
            raise RuntimeError("SpeedTestEngine has been disposed")
        if self._state not in _STARTABLE:
            return

        self.reset()
        token = self._token = CancellationToken()
        self._use_fallback = False
        self.details = {}

        try:
            self._set_state(TestState.CONNECTING)
            await self._run_phase("latency", self._latency.measure, self._simulator.latency, token)
            token.raise_if_cancelled()

            self._set_state(TestState.DOWNLOAD)
            await self._run_phase("download", self._download.measure, self._simulator.download, token)
            token.raise_if_cancelled()

            self._metrics.advance(UPLOAD_PROGRESS_BASE)
            self._set_state(TestState.UPLOAD)
            await self._run_phase("upload", self._upload.measure, self._simulator.upload, token)
            token.raise_if_cancelled()

            self._finish()

        except TestCancelled:
            logger.info("Test aborted")
            if token is self._token and self._state is not TestState.IDLE:
                self._state = TestState.IDLE
                self.reset()
                self._notify()

        except Exception:
            logger.exception("Speed test critical error")
            if token is self._token:
                self._state = TestState.ERROR
                try:
                    self._notify()
                except Exception:
                    logger.exception("Observer failed on error notification")

    def stop(self) -> None:
        """Abort any run in progress and return to ``IDLE`` with zero metrics."""
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._state = TestState.IDLE
        self.reset()
        self._notify()

    def reset(self) -> None:
        """Zero the metrics without touching the state."""
        self._metrics = MetricsSnapshot()

    def dispose(self) -> None:
        """Stop, detach the observer, and refuse further runs."""
        if self._disposed:
            return
        self.stop()
        self._on_update = None
        self._disposed = True

    # -- Internals ----------------------------------------------------------

    async def _run_phase(
        self,
        name: str,
        live: Phase,
        simulated: Phase,
        token: CancellationToken,
    ) -> None:
        notify = self._notifier(token)

        if not self._use_fallback:
            try:
                result = await live(self._metrics, token, notify)
            except TestCancelled:
                raise
            except Exception as exc:
                logger.warning(
                    "%s measurement failed, switching to fallback: %r",
                    name.capitalize(), exc,
                )
                self._use_fallback = True
            else:
                if result is not None:
                    self.details[name] = result.to_dict()
                return

        await simulated(self._metrics, token, notify)

    def _notifier(self, token: CancellationToken) -> Notify:
        """Notify callback for one run; silent once that run is cancelled."""
        def notify() -> None:
            if not token.cancelled:
                self._notify()
        return notify

    def _set_state(self, state: TestState) -> None:
        self._state = state
        self._notify()

    def _finish(self) -> None:
        self._state = TestState.COMPLETE
        self._metrics.progress_percent = 100.0
        self._notify()

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self._state, self._metrics.freeze())
