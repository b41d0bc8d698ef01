"""
Per-run cancellation token.

A boolean flag that probes poll at their suspension points, plus an
``asyncio.Event`` so an in-flight transfer can be aborted the moment
``cancel()`` is called instead of at the next chunk.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from .errors import TestCancelled

T = TypeVar("T")


class CancellationToken:
    """Signalled at most once; call ``cancel()`` from the event loop thread."""

    def __init__(self) -> None:
        self._cancelled = False
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise TestCancelled("Test aborted")

    async def guard(self, aw: Awaitable[T]) -> T:
        """
        Await *aw*, aborting it if the token fires first.

        On cancellation the inner task is cancelled (which closes any open
        connection it holds) and ``TestCancelled`` is raised.
        """
        if self._cancelled:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise TestCancelled("Test aborted")

        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if self._cancelled:
            if not task.done():
                task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise TestCancelled("Test aborted")

        return task.result()
