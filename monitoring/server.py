"""Prometheus HTTP endpoint for gateway metrics."""

import threading

from prometheus_client import start_http_server

from core.utils.logging import get_logger

logger = get_logger(__name__)

_lock = threading.Lock()
_started_port = None


def start_metrics_server(port: int = 8000, addr: str = "0.0.0.0") -> bool:
    """
    Expose /metrics once per process.

    Returns:
        True if this call started the endpoint, False if it was already running

    Usage:
        from monitoring import start_metrics_server

        start_metrics_server(port=9108)
        # Metrics available at http://localhost:9108/metrics
    """
    global _started_port
    with _lock:
        if _started_port is not None:
            logger.debug(f"Metrics server already running on :{_started_port}")
            return False
        start_http_server(port, addr=addr)
        _started_port = port
    logger.info(f"Metrics server started on {addr}:{port}/metrics")
    return True
