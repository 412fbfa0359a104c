"""Simple in-memory metrics for health connections: accepted, answered, empty, failed."""

import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class Metrics:
    """In-memory counters shared by the accept loop and connection handlers; log on shutdown."""

    def __init__(self):
        self._lock = threading.Lock()
        self._connections_accepted = 0
        self._responses_sent = 0
        self._empty_requests = 0
        self._handler_errors = 0

    def inc_connections_accepted(self) -> int:
        with self._lock:
            self._connections_accepted += 1
            return self._connections_accepted

    def inc_responses_sent(self) -> int:
        with self._lock:
            self._responses_sent += 1
            return self._responses_sent

    def inc_empty_requests(self) -> int:
        with self._lock:
            self._empty_requests += 1
            return self._empty_requests

    def inc_handler_errors(self) -> int:
        with self._lock:
            self._handler_errors += 1
            return self._handler_errors

    @property
    def connections_accepted(self) -> int:
        with self._lock:
            return self._connections_accepted

    @property
    def responses_sent(self) -> int:
        with self._lock:
            return self._responses_sent

    @property
    def empty_requests(self) -> int:
        with self._lock:
            return self._empty_requests

    @property
    def handler_errors(self) -> int:
        with self._lock:
            return self._handler_errors

    def log_snapshot(self) -> None:
        """Log current metrics snapshot."""
        with self._lock:
            parts = [
                f"connections_accepted={self._connections_accepted}",
                f"responses_sent={self._responses_sent}",
            ]
            if self._empty_requests:
                parts.append(f"empty_requests={self._empty_requests}")
            if self._handler_errors:
                parts.append(f"handler_errors={self._handler_errors}")
        logger.info("metrics " + " ".join(parts))


_global_metrics: Optional[Metrics] = None


def get_metrics() -> Metrics:
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = Metrics()
    return _global_metrics
