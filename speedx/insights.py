"""
Plain-language analysis of a finished test.

Sends the final metrics to Gemini through the ``google-genai`` SDK and
returns the model's text.  Failures never raise: the caller always gets a
displayable string back.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from google import genai
from google.genai import types

from .models import FrozenMetrics, TestState

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-3-flash-preview"

KEY_ERROR = "API Key configuration error. Unable to fetch insights."
FETCH_ERROR = "Unable to analyze network at this time. Please try again later."
EMPTY_ANSWER = "No insights available."

_TIMEOUT_MS = 30_000


def api_key_from_env() -> Optional[str]:
    return os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")


def build_prompt(metrics: FrozenMetrics) -> str:
    return (
        "Analyze these internet connection metrics:\n"
        f"- Download Speed: {metrics.download_speed_mbps} Mbps\n"
        f"- Upload Speed: {metrics.upload_speed_mbps} Mbps\n"
        f"- Ping/Latency: {metrics.ping_ms} ms\n"
        f"- Jitter: {metrics.jitter_ms} ms\n"
        "\n"
        "Provide a concise, helpful summary (max 3 sentences) covering:\n"
        "1. What this connection is good for (e.g., 4K streaming, gaming, "
        "large file transfers).\n"
        "2. Any potential bottlenecks.\n"
        "3. A rating (e.g., Excellent, Good, Fair, Poor).\n"
        "\n"
        "Keep the tone professional yet friendly. Do not use markdown headers, "
        "just plain text or bullet points."
    )


async def get_network_insights(
    state: TestState,
    metrics: FrozenMetrics,
    *,
    api_key: Optional[str] = None,
    model: str = DEFAULT_MODEL,
    client: Optional[genai.Client] = None,
) -> Optional[str]:
    """
    Return analysis text for *metrics*, or ``None`` unless *state* is COMPLETE.

    Error conditions come back as fixed sentinel strings.
    """
    if state is not TestState.COMPLETE:
        return None

    if client is None:
        api_key = api_key or api_key_from_env()
        if not api_key:
            logger.error("GEMINI_API_KEY is missing from environment variables.")
            return KEY_ERROR
        client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=_TIMEOUT_MS),
        )

    try:
        response = await client.aio.models.generate_content(
            model=model,
            contents=build_prompt(metrics),
        )
        text = response.text
    except Exception as exc:
        # Transport, quota and safety-block failures all surface differently
        logger.error("Error fetching Gemini insights: %s", exc)
        return FETCH_ERROR

    return (text or "").strip() or EMPTY_ANSWER
