"""Tests for speedx.config -- configuration persistence and endpoints."""

import os
import tempfile
import unittest
from unittest import mock

from speedx.config import (
    DEFAULTS,
    Endpoints,
    get_config_value,
    load_config,
    save_config,
    set_config_value,
)


class TestConfigDefaults(unittest.TestCase):
    def test_defaults_have_required_keys(self):
        for key in ("ping_url", "download_url", "upload_url", "download_size",
                    "upload_size", "upload_timeout", "log_level", "insights_model"):
            self.assertIn(key, DEFAULTS)

    def test_default_sizes(self):
        self.assertEqual(DEFAULTS["download_size"], 25_000_000)
        self.assertEqual(DEFAULTS["upload_size"], 5_000_000)
        self.assertEqual(DEFAULTS["upload_timeout"], 60.0)


class TestLoadSaveConfig(unittest.TestCase):
    def test_load_defaults_when_missing(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("speedx.config._config_path", return_value=path):
                cfg = load_config()
                self.assertEqual(cfg, DEFAULTS)

    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "sub", "config.json")
            with mock.patch("speedx.config._config_path", return_value=path):
                save_config({"download_size": 1000, "log_level": "DEBUG"})
                cfg = load_config()
                self.assertEqual(cfg["download_size"], 1000)
                self.assertEqual(cfg["log_level"], "DEBUG")
                # Defaults still present
                self.assertEqual(cfg["upload_size"], 5_000_000)

    def test_corrupt_file_returns_defaults(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with open(path, "w") as f:
                f.write("NOT JSON")
            with mock.patch("speedx.config._config_path", return_value=path):
                cfg = load_config()
                self.assertEqual(cfg["upload_timeout"], 60.0)

    def test_non_object_ignored(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with open(path, "w") as f:
                f.write("[1, 2, 3]")
            with mock.patch("speedx.config._config_path", return_value=path):
                self.assertEqual(load_config(), DEFAULTS)

    def test_get_set_value(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with mock.patch("speedx.config._config_path", return_value=path):
                set_config_value("upload_url", "https://up.example/post")
                self.assertEqual(get_config_value("upload_url"), "https://up.example/post")

                set_config_value("download_size", 999)
                self.assertEqual(get_config_value("download_size"), 999)


class TestEndpoints(unittest.TestCase):
    def test_defaults_match_config_defaults(self):
        self.assertEqual(Endpoints.from_config(), Endpoints())

    def test_from_config_overrides(self):
        ep = Endpoints.from_config({"download_url": "https://dl.example/x", "upload_size": "1024"})
        self.assertEqual(ep.download_url, "https://dl.example/x")
        self.assertEqual(ep.upload_size, 1024)
        self.assertEqual(ep.ping_url, DEFAULTS["ping_url"])

    def test_unrelated_keys_ignored(self):
        ep = Endpoints.from_config({"log_level": "DEBUG"})
        self.assertEqual(ep, Endpoints())


if __name__ == "__main__":
    unittest.main()
