"""
Shared constants used across all engine modules.

Centralises magic numbers, default headers, and tunables so they live in
exactly one place.
"""

# ---------------------------------------------------------------------------
# HTTP headers
# ---------------------------------------------------------------------------

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/144.0.0.0 Safari/537.36"
)

COMMON_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
}

# Sent with every probe request so intermediaries never answer from cache.
NO_STORE_HEADERS = {
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

PING_URL = "https://cloudflare.com/cdn-cgi/trace"
DOWNLOAD_URL = "https://speed.cloudflare.com/__down"
UPLOAD_URL = "https://httpbin.org/post"

# ---------------------------------------------------------------------------
# Latency
# ---------------------------------------------------------------------------

PING_ATTEMPTS = 5
PING_TIMEOUT = 5.0               # seconds per round-trip
FALLBACK_PING_MS = 50            # reported when no attempt succeeded
FALLBACK_JITTER_MS = 10

# ---------------------------------------------------------------------------
# Throughput
# ---------------------------------------------------------------------------

DOWNLOAD_SIZE = 25_000_000       # bytes requested from the download endpoint
UPLOAD_SIZE = 5_000_000          # bytes of random payload posted
UPLOAD_TIMEOUT = 60.0            # seconds, whole upload request
CHUNK_SIZE = 64 * 1024
UPLOAD_SEND_BUFFER = 64 * 1024   # SO_SNDBUF for the upload socket

WARMUP_SECONDS = 0.5
WARMUP_BYTES = 1_000_000
UPDATE_INTERVAL = 0.1            # seconds between progress emissions
MIN_RATE_WINDOW = 0.1            # floor for the rate denominator, seconds

MAX_SPEED_MBPS = 1000.0          # throughput ceiling

# ---------------------------------------------------------------------------
# Progress split
# ---------------------------------------------------------------------------

DOWNLOAD_PROGRESS_SPAN = 50.0    # download fills 0..50, upload 50..100
UPLOAD_PROGRESS_BASE = 50.0

# ---------------------------------------------------------------------------
# Simulation fallback
# ---------------------------------------------------------------------------

SIM_LATENCY_DELAY = 0.6
SIM_RAMP_SECONDS = 3.0
SIM_TICK_SECONDS = 0.05
SIM_PING_RANGE = (15, 34)
SIM_JITTER_RANGE = (0, 4)
SIM_DOWNLOAD_RANGE = (60, 99)
SIM_UPLOAD_RANGE = (20, 39)
SIM_DOWNLOAD_NOISE = 2.5
SIM_UPLOAD_NOISE = 1.0
