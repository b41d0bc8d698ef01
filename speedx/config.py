"""
User configuration file support.

Reads/writes ``~/.speedx/config.json``.

Supported keys::

    ping_url = "https://cloudflare.com/cdn-cgi/trace"
    download_url = "https://speed.cloudflare.com/__down"
    upload_url = "https://httpbin.org/post"
    download_size = 25000000      # bytes
    upload_size = 5000000         # bytes
    upload_timeout = 60.0         # seconds
    log_level = "WARNING"
    insights_model = "gemini-3-flash-preview"
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .constants import (
    DOWNLOAD_SIZE,
    DOWNLOAD_URL,
    PING_URL,
    UPLOAD_SIZE,
    UPLOAD_TIMEOUT,
    UPLOAD_URL,
)

_CONFIG_DIR = os.path.join(Path.home(), ".speedx")
_CONFIG_FILE = "config.json"


def _config_path() -> str:
    return os.path.join(_CONFIG_DIR, _CONFIG_FILE)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULTS: Dict[str, Any] = {
    "ping_url": PING_URL,
    "download_url": DOWNLOAD_URL,
    "upload_url": UPLOAD_URL,
    "download_size": DOWNLOAD_SIZE,
    "upload_size": UPLOAD_SIZE,
    "upload_timeout": UPLOAD_TIMEOUT,
    "log_level": "WARNING",
    "insights_model": "gemini-3-flash-preview",
}


# ---------------------------------------------------------------------------
# Read / Write
# ---------------------------------------------------------------------------

def load_config() -> Dict[str, Any]:
    """Load config from disk, returning defaults for missing keys."""
    path = _config_path()
    config = dict(DEFAULTS)

    if not os.path.isfile(path):
        return config

    try:
        with open(path, encoding="utf-8") as fh:
            user = json.load(fh)
        if isinstance(user, dict):
            config.update(user)
    except (json.JSONDecodeError, IOError):
        pass  # corrupt file; use defaults

    return config


def save_config(config: Dict[str, Any]) -> str:
    """Write *config* to disk.  Returns the file path."""
    path = _config_path()
    os.makedirs(os.path.dirname(path), exist_ok=True)

    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)

    return path


def get_config_value(key: str) -> Any:
    """Get a single config value."""
    return load_config().get(key, DEFAULTS.get(key))


def set_config_value(key: str, value: Any) -> str:
    """Set a single config value and persist.  Returns file path."""
    config = load_config()
    config[key] = value
    return save_config(config)


def config_path() -> str:
    """Return the config file path (for display purposes)."""
    return _config_path()


# ---------------------------------------------------------------------------
# Probe endpoints
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Endpoints:
    """Where the probes send their traffic, and how much of it."""

    ping_url: str = PING_URL
    download_url: str = DOWNLOAD_URL
    upload_url: str = UPLOAD_URL
    download_size: int = DOWNLOAD_SIZE
    upload_size: int = UPLOAD_SIZE
    upload_timeout: float = UPLOAD_TIMEOUT

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> Endpoints:
        cfg = dict(DEFAULTS)
        if config:
            cfg.update(config)
        return cls(
            ping_url=str(cfg["ping_url"]),
            download_url=str(cfg["download_url"]),
            upload_url=str(cfg["upload_url"]),
            download_size=int(cfg["download_size"]),
            upload_size=int(cfg["upload_size"]),
            upload_timeout=float(cfg["upload_timeout"]),
        )
