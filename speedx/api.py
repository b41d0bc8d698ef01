"""
Client metadata lookup.

Finds the client's public IP, ISP and rough location by trying three public
services in order.  All HTTP work goes through a single
``aiohttp.ClientSession`` managed via async-context-manager protocol
(``async with ClientInfoAPI() as api: ...``).

This is display enrichment only; the measurement engine never waits on it.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from .constants import COMMON_HEADERS, PING_URL

logger = logging.getLogger(__name__)

WTFISMYIP_URL = "https://wtfismyip.com/json"
IPAPI_URL = "https://ipapi.co/json/"

UNKNOWN = "Unknown"
UNDETECTED = "Unable to detect"

_LOOKUP_TIMEOUT = aiohttp.ClientTimeout(total=5)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class ClientInfo:
    """Who and where the client appears to be."""

    ip: str
    isp: str
    location: str

    @classmethod
    def undetected(cls) -> ClientInfo:
        return cls(ip=UNDETECTED, isp=UNKNOWN, location=UNDETECTED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip": self.ip,
            "isp": self.isp,
            "location": self.location,
        }


# ---------------------------------------------------------------------------
# Parsers (one per service)
# ---------------------------------------------------------------------------

def parse_wtfismyip(data: dict) -> ClientInfo:
    return ClientInfo(
        ip=data.get("YourFuckingIPAddress") or data.get("ip", ""),
        isp=data.get("YourFuckingISP") or "Unknown ISP",
        location=data.get("YourFuckingLocation") or UNKNOWN,
    )


def parse_ipapi(data: dict) -> ClientInfo:
    return ClientInfo(
        ip=data.get("ip", ""),
        isp=data.get("org") or data.get("asn") or UNKNOWN,
        location=f"{data.get('city')}, {data.get('country_code')}",
    )


def parse_trace(text: str) -> ClientInfo:
    """Parse ``key=value`` lines from a Cloudflare trace (no ISP there)."""
    fields = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            fields[key.strip()] = value.strip()
    return ClientInfo(
        ip=fields.get("ip", UNKNOWN),
        isp="Unknown ISP",
        location=fields.get("loc", UNKNOWN),
    )


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------

class ClientInfoAPI:
    """Async context-manager wrapping the three lookup services."""

    def __init__(self, trace_url: str = PING_URL) -> None:
        self.trace_url = trace_url
        self._session: Optional[aiohttp.ClientSession] = None
        self.client_info: Optional[ClientInfo] = None

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> ClientInfoAPI:
        self._session = aiohttp.ClientSession(headers=COMMON_HEADERS, timeout=_LOOKUP_TIMEOUT)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._session:
            await self._session.close()
            self._session = None

    # -- Internal helpers ---------------------------------------------------

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError(
                "ClientInfoAPI must be used as an async context manager "
                "(async with ClientInfoAPI() as api: ...)"
            )
        return self._session

    async def _fetch_json(self, url: str) -> dict:
        session = self._ensure_session()
        async with session.get(url) as resp:
            resp.raise_for_status()
            return await resp.json(content_type=None)

    async def _fetch_text(self, url: str) -> str:
        session = self._ensure_session()
        async with session.get(url) as resp:
            resp.raise_for_status()
            return await resp.text()

    # -- Public methods -----------------------------------------------------

    async def get_client_info(self) -> ClientInfo:
        """Try each service in turn; never raises for network failures."""
        try:
            self.client_info = parse_wtfismyip(await self._fetch_json(WTFISMYIP_URL))
            return self.client_info
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("wtfismyip.com lookup failed, trying fallback: %s", exc)

        try:
            self.client_info = parse_ipapi(await self._fetch_json(IPAPI_URL))
            return self.client_info
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("ipapi.co lookup failed, trying Cloudflare: %s", exc)

        try:
            self.client_info = parse_trace(await self._fetch_text(self.trace_url))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("All client info lookups failed: %s", exc)
            self.client_info = ClientInfo.undetected()

        return self.client_info
