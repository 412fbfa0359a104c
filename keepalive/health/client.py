"""Client side of the health wire protocol: connect, send one line, read one JSON line."""

import json
import socket
from typing import Any, Dict

_DEFAULT_TIMEOUT_SEC = 2.0
_MAX_RESPONSE_BYTES = 65536


class HealthProbeError(Exception):
    """Endpoint answered, but not with one well-formed JSON status line."""


def probe(host: str, port: int, timeout: float = _DEFAULT_TIMEOUT_SEC, request: str = "ping") -> Dict[str, Any]:
    """Query a health endpoint and return the decoded response.

    Raises OSError on connect/read failure (refused, timeout, reset) and HealthProbeError when
    the reply is empty or not a JSON object.
    """
    with socket.create_connection((host, port), timeout=timeout) as sock:
        sock.sendall((request.rstrip("\r\n") + "\n").encode("utf-8"))
        with sock.makefile("rb") as reader:
            line = reader.readline(_MAX_RESPONSE_BYTES)
    if not line:
        raise HealthProbeError(f"no response from {host}:{port}")
    try:
        payload = json.loads(line.decode("utf-8"))
    except ValueError as e:
        raise HealthProbeError(f"invalid response from {host}:{port}: {line!r}") from e
    if not isinstance(payload, dict):
        raise HealthProbeError(f"unexpected response from {host}:{port}: {payload!r}")
    return payload


def is_healthy(host: str, port: int, timeout: float = _DEFAULT_TIMEOUT_SEC) -> bool:
    """True when the endpoint answers with status ok; any failure reads as unhealthy."""
    try:
        return probe(host, port, timeout=timeout).get("status") == "ok"
    except (OSError, HealthProbeError):
        return False
