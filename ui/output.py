"""
Output formatting -- JSON export and plain text.
"""
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from speedx.models import FrozenMetrics, TestState


def create_result_json(
    state: TestState,
    metrics: FrozenMetrics,
    client_info: Optional[Dict[str, Any]] = None,
    details: Optional[Dict[str, Any]] = None,
    insight: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a JSON-serialisable summary of one run."""
    result: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "state": state.value,
        "client": client_info or {},
        "ping": metrics.ping_ms,
        "jitter": metrics.jitter_ms,
        "download": {"speed_mbps": round(metrics.download_speed_mbps, 2)},
        "upload": {"speed_mbps": round(metrics.upload_speed_mbps, 2)},
    }

    for phase in ("download", "upload"):
        if details and phase in details:
            extra = details[phase]
            result[phase]["bytes"] = extra.get("bytes_total", 0)
            result[phase]["duration_ms"] = extra.get("duration_ms", 0)
            result[phase]["samples"] = extra.get("samples", [])

    if details and "latency" in details:
        result["latency"] = details["latency"]

    if insight:
        result["insight"] = insight

    return result


def save_json(result: Dict[str, Any], filepath: str) -> None:
    """Write *result* to *filepath* atomically (write-tmp then rename)."""
    dir_path = os.path.dirname(filepath) or "."
    tmp = os.path.join(dir_path, f".tmp_{os.path.basename(filepath)}")

    try:
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(result, fh, indent=2, ensure_ascii=False)
        os.replace(tmp, filepath)
    except (IOError, OSError) as exc:
        # Clean up partial temp file
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise IOError(f"Failed to save JSON to {filepath}: {exc}") from exc


# ---------------------------------------------------------------------------
# Plain-text helpers
# ---------------------------------------------------------------------------

def format_text_result(metrics: FrozenMetrics, ip: str = "", isp: str = "") -> str:
    lines = []
    if ip:
        lines.append(f"Client: {ip}" + (f" ({isp})" if isp else ""))
    lines.append(f"Ping: {metrics.ping_ms} ms (jitter: {metrics.jitter_ms} ms)")
    lines.append(f"Download: {metrics.download_speed_mbps:.2f} Mbps")
    lines.append(f"Upload: {metrics.upload_speed_mbps:.2f} Mbps")
    return "\n".join(lines)
