"""Metrics recorder - stateless functions to record metrics."""

import time
from contextlib import contextmanager
from typing import Generator, Optional

from monitoring.definitions import (
    REQUESTS,
    REQUEST_LATENCY,
    RETRIES,
    TOKEN_REFRESHES,
)


@contextmanager
def track_time() -> Generator[dict, None, None]:
    """
    Context manager to track execution time.

    Usage:
        with track_time() as t:
            do_work()
        print(t["duration"])  # seconds
    """
    result = {"duration": 0.0}
    start = time.perf_counter()
    try:
        yield result
    finally:
        result["duration"] = time.perf_counter() - start


class Metrics:
    """
    Stateless metrics recorder.

    Usage:
        from monitoring import Metrics, track_time

        with track_time() as t:
            response = http.request(...)
        Metrics.request("GET", response.status_code, latency=t["duration"])
    """

    @staticmethod
    def request(method: str, status, latency: Optional[float] = None) -> None:
        """Record one HTTP attempt. Use status='error' when no response arrived."""
        REQUESTS.labels(method=method, status=str(status)).inc()
        if latency:
            REQUEST_LATENCY.labels(method=method).observe(latency)

    @staticmethod
    def retry(reason: str) -> None:
        """Record a scheduled retry (unauthorized, status, network, auth)."""
        RETRIES.labels(reason=reason).inc()

    @staticmethod
    def token_refresh(success: bool = True) -> None:
        """Record a login exchange."""
        status = "success" if success else "error"
        TOKEN_REFRESHES.labels(status=status).inc()
