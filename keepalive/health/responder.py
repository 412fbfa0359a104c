"""Per-connection health responder: read one request line, write one JSON status line, close.

Wire format (one line each way):
    -> any text\\n                      (content ignored)
    <- {"status":"ok","unity_version":"<version>","timestamp":"<ISO-8601 UTC>"}\\n

Each call to ConnectionResponder.handle() is independent; handlers for different
connections run concurrently on their own threads.
"""

import json
import logging
import socket
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from keepalive.core.logging_utils import log_health_request, new_trace_id
from keepalive.core.metrics import Metrics, get_metrics

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
# Wire key kept for compatibility with existing editor probes
VERSION_KEY = "unity_version"

_DEFAULT_READ_TIMEOUT_SEC = 5.0
_DEFAULT_MAX_REQUEST_BYTES = 4096


def format_timestamp(now: datetime) -> str:
    """ISO-8601 UTC with microseconds and a Z suffix, e.g. 2026-01-02T03:04:05.123456Z."""
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


@dataclass(frozen=True)
class HealthResponse:
    """Status payload for one request. Built fresh per request, never stored."""

    status: str
    version: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status, VERSION_KEY: self.version, "timestamp": self.timestamp}

    def to_json_line(self) -> bytes:
        return (json.dumps(self.to_dict(), separators=(",", ":")) + "\n").encode("utf-8")


def build_health_response(version: str, now: Optional[datetime] = None) -> HealthResponse:
    """Construct a HealthResponse; timestamp is taken here, not when the request arrived."""
    now = now or datetime.now(timezone.utc)
    return HealthResponse(status=STATUS_OK, version=version, timestamp=format_timestamp(now))


class ConnectionResponder:
    """Serve exactly one accepted connection. Never raises; always closes the connection."""

    def __init__(
        self,
        version: str,
        read_timeout: float = _DEFAULT_READ_TIMEOUT_SEC,
        max_request_bytes: int = _DEFAULT_MAX_REQUEST_BYTES,
        metrics: Optional[Metrics] = None,
    ):
        self.version = version
        self.read_timeout = read_timeout
        self.max_request_bytes = max_request_bytes
        self._metrics = metrics or get_metrics()

    def handle(self, conn: socket.socket, peer: Any = None) -> None:
        trace_id = new_trace_id()
        reader = None
        try:
            conn.settimeout(self.read_timeout)
            reader = conn.makefile("rb")
            raw = reader.readline(self.max_request_bytes)
            if not raw:
                # Peer closed before sending anything
                self._metrics.inc_empty_requests()
                logger.debug("Empty connection from %s closed (trace_id=%s)", peer, trace_id)
                return
            request = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            log_health_request(peer=peer, request=request, trace_id=trace_id)
            response = build_health_response(self.version)
            conn.sendall(response.to_json_line())
            self._metrics.inc_responses_sent()
        except Exception as e:
            self._metrics.inc_handler_errors()
            logger.warning("Client handler error (peer=%s trace_id=%s): %s", peer, trace_id, e)
        finally:
            try:
                if reader is not None:
                    reader.close()
                conn.close()
            except OSError as e:
                logger.debug("Close failed (trace_id=%s): %s", trace_id, e)
