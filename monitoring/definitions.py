"""Prometheus metric definitions."""

from prometheus_client import Counter, Histogram

# ============================================================
# REQUEST METRICS
# ============================================================

REQUESTS = Counter(
    "infisical_requests_total",
    "HTTP requests issued to the Infisical API",
    ["method", "status"],
)

REQUEST_LATENCY = Histogram(
    "infisical_request_latency_seconds",
    "Time for a single HTTP attempt",
    ["method"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

RETRIES = Counter(
    "infisical_retries_total", "Request retries scheduled", ["reason"]
)

# ============================================================
# AUTH METRICS
# ============================================================

TOKEN_REFRESHES = Counter(
    "infisical_token_refreshes_total",
    "Universal auth login exchanges",
    ["status"],
)
