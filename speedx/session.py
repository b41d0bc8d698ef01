"""HTTP session plumbing shared by the probes."""
from __future__ import annotations

import socket
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional, Tuple

import aiohttp

from .constants import COMMON_HEADERS


def small_send_buffer(size: int) -> Callable[[Tuple], socket.socket]:
    """
    Socket factory for ``aiohttp.TCPConnector`` that caps ``SO_SNDBUF``.

    With the kernel's auto-tuned send buffer a multi-megabyte body is
    swallowed almost at once, so body-generator progress would say nothing
    about what actually reached the wire.
    """
    def factory(addr_info: Tuple) -> socket.socket:
        family, type_, proto, _, _ = addr_info
        sock = socket.socket(family=family, type=type_, proto=proto)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF, size)
        return sock
    return factory


@asynccontextmanager
async def open_session(
    session: Optional[aiohttp.ClientSession] = None,
    send_buffer: Optional[int] = None,
) -> AsyncIterator[aiohttp.ClientSession]:
    """
    Yield *session* unchanged, or a fresh one that is closed on exit.

    Probes accept an injected session so callers (and tests) can share or
    replace the transport; without one each phase owns its own.  A
    *send_buffer* size applies only to a session opened here.
    """
    if session is not None:
        yield session
        return

    connector_kwargs = {}
    if send_buffer:
        connector_kwargs["socket_factory"] = small_send_buffer(send_buffer)

    connector = aiohttp.TCPConnector(limit=1, **connector_kwargs)
    async with aiohttp.ClientSession(
        headers=COMMON_HEADERS,
        connector=connector,
    ) as own:
        yield own


def cache_buster() -> str:
    """Unique-per-request query value so no cache can answer for the endpoint."""
    return str(time.time_ns() // 1000)
