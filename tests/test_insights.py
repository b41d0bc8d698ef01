"""Tests for speedx.insights -- the Gemini analysis call."""

import unittest
from types import SimpleNamespace
from unittest import mock

from speedx.insights import (
    EMPTY_ANSWER,
    FETCH_ERROR,
    KEY_ERROR,
    build_prompt,
    get_network_insights,
)
from speedx.models import FrozenMetrics, TestState

METRICS = FrozenMetrics(
    download_speed_mbps=94.5, upload_speed_mbps=31.2, ping_ms=18, jitter_ms=3, progress_percent=100.0,
)


def _client(text=None, error=None):
    """Stand-in for ``genai.Client`` whose async generate_content answers *text*."""
    generate = mock.AsyncMock(return_value=SimpleNamespace(text=text), side_effect=error)
    client = mock.MagicMock()
    client.aio.models.generate_content = generate
    return client, generate


class TestPrompt(unittest.TestCase):
    def test_prompt_mentions_every_metric(self):
        prompt = build_prompt(METRICS)
        self.assertIn("Download Speed: 94.5 Mbps", prompt)
        self.assertIn("Upload Speed: 31.2 Mbps", prompt)
        self.assertIn("Ping/Latency: 18 ms", prompt)
        self.assertIn("Jitter: 3 ms", prompt)


class TestGetNetworkInsights(unittest.IsolatedAsyncioTestCase):
    async def test_not_complete_returns_none(self):
        client, generate = _client("unused")
        for state in (TestState.IDLE, TestState.DOWNLOAD, TestState.ERROR):
            self.assertIsNone(await get_network_insights(state, METRICS, client=client))
        generate.assert_not_awaited()

    async def test_missing_key(self):
        with mock.patch.dict("os.environ", {}, clear=True), \
                mock.patch("speedx.insights.genai.Client") as client_cls:
            with self.assertLogs("speedx.insights", level="ERROR"):
                result = await get_network_insights(TestState.COMPLETE, METRICS)
        self.assertEqual(result, KEY_ERROR)
        client_cls.assert_not_called()

    async def test_key_from_environment(self):
        client, _ = _client("Fine.")
        with mock.patch.dict("os.environ", {"GEMINI_API_KEY": "env-key"}, clear=True), \
                mock.patch("speedx.insights.genai.Client", return_value=client) as client_cls:
            result = await get_network_insights(TestState.COMPLETE, METRICS)
        self.assertEqual(result, "Fine.")
        self.assertEqual(client_cls.call_args.kwargs["api_key"], "env-key")

    async def test_success(self):
        client, generate = _client("  Excellent for 4K streaming. ")
        result = await get_network_insights(TestState.COMPLETE, METRICS, model="m-1", client=client)
        self.assertEqual(result, "Excellent for 4K streaming.")
        kwargs = generate.await_args.kwargs
        self.assertEqual(kwargs["model"], "m-1")
        self.assertIn("94.5", kwargs["contents"])

    async def test_request_error(self):
        client, _ = _client(error=ConnectionError("offline"))
        with self.assertLogs("speedx.insights", level="ERROR"):
            result = await get_network_insights(TestState.COMPLETE, METRICS, client=client)
        self.assertEqual(result, FETCH_ERROR)

    async def test_empty_answer(self):
        client, _ = _client(text=None)
        result = await get_network_insights(TestState.COMPLETE, METRICS, client=client)
        self.assertEqual(result, EMPTY_ANSWER)


if __name__ == "__main__":
    unittest.main()
