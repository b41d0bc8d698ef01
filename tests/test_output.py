"""Unit tests for ui.output -- JSON creation and text formatting."""

import json
import os
import tempfile
import unittest

from speedx.models import FrozenMetrics, TestState
from ui.output import create_result_json, format_text_result, save_json

METRICS = FrozenMetrics(
    download_speed_mbps=123.456, upload_speed_mbps=40.0, ping_ms=19, jitter_ms=4, progress_percent=100.0,
)


class TestCreateResultJson(unittest.TestCase):
    def test_basic_structure(self):
        r = create_result_json(TestState.COMPLETE, METRICS)
        self.assertIn("timestamp", r)
        self.assertEqual(r["state"], "COMPLETE")
        self.assertEqual(r["ping"], 19)
        self.assertEqual(r["jitter"], 4)
        self.assertEqual(r["download"], {"speed_mbps": 123.46})
        self.assertEqual(r["upload"], {"speed_mbps": 40.0})
        self.assertEqual(r["client"], {})
        self.assertNotIn("insight", r)
        self.assertNotIn("latency", r)

    def test_client_and_insight(self):
        r = create_result_json(
            TestState.COMPLETE, METRICS,
            client_info={"ip": "1.2.3.4", "isp": "ISP", "location": "X"},
            insight="Good for gaming.",
        )
        self.assertEqual(r["client"]["ip"], "1.2.3.4")
        self.assertEqual(r["insight"], "Good for gaming.")

    def test_live_details_merged(self):
        details = {
            "latency": {"samples": [19.0, 20.0], "count": 2},
            "download": {"bytes_total": 25_000_000, "duration_ms": 2000.0, "samples": [90.0, 100.0]},
        }
        r = create_result_json(TestState.COMPLETE, METRICS, details=details)
        self.assertEqual(r["download"]["bytes"], 25_000_000)
        self.assertEqual(r["download"]["samples"], [90.0, 100.0])
        self.assertEqual(r["latency"]["count"], 2)
        # Simulated phases leave no details behind
        self.assertEqual(r["upload"], {"speed_mbps": 40.0})

    def test_serialisable(self):
        json.dumps(create_result_json(TestState.COMPLETE, METRICS))


class TestSaveJson(unittest.TestCase):
    def test_roundtrip(self):
        data = {"key": "value", "number": 42}
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "result.json")
            save_json(data, path)
            with open(path) as fh:
                self.assertEqual(json.load(fh), data)
            self.assertEqual(os.listdir(tmpdir), ["result.json"])

    def test_atomic_no_partial(self):
        # If the directory doesn't exist, it should raise, not leave a temp file
        with self.assertRaises(IOError):
            save_json({"a": 1}, "/nonexistent/dir/file.json")


class TestFormatTextResult(unittest.TestCase):
    def test_contains_values(self):
        text = format_text_result(METRICS, ip="1.2.3.4", isp="ISP")
        self.assertIn("Client: 1.2.3.4 (ISP)", text)
        self.assertIn("Ping: 19 ms (jitter: 4 ms)", text)
        self.assertIn("123.46 Mbps", text)
        self.assertIn("40.00 Mbps", text)

    def test_without_client(self):
        text = format_text_result(METRICS)
        self.assertNotIn("Client", text)
        self.assertEqual(len(text.splitlines()), 3)


if __name__ == "__main__":
    unittest.main()
