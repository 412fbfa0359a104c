"""Structured logging for health requests, listener transitions, host environment."""

import logging
import uuid
from typing import Any, Optional

logger = logging.getLogger(__name__)


def new_trace_id() -> str:
    """Short id used to correlate all log lines of one connection."""
    return str(uuid.uuid4())[:8]


def _ensure_trace_id(extra: dict) -> str:
    trace_id = extra.get("trace_id")
    if not trace_id:
        trace_id = new_trace_id()
        extra["trace_id"] = trace_id
    return trace_id


def _format(event: str, extra: dict) -> str:
    return event + " " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))


def log_health_request(
    peer: Any = None,
    request: Optional[str] = None,
    trace_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log one received request line. Request text is truncated; its content is not interpreted."""
    extra = extra or {}
    if trace_id:
        extra["trace_id"] = trace_id
    _ensure_trace_id(extra)
    if peer is not None:
        extra["peer"] = peer
    if request is not None:
        extra["request"] = repr(request[:80])
    logger.info(_format("health_request", extra))


def log_listener_transition(
    from_state: str,
    to_state: str,
    port: Optional[int] = None,
    trace_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log listener state transition: trace_id, from_state, to_state, port."""
    extra = extra or {}
    if trace_id:
        extra["trace_id"] = trace_id
    _ensure_trace_id(extra)
    extra["from_state"] = from_state
    extra["to_state"] = to_state
    if port is not None:
        extra["port"] = port
    logger.debug(_format("listener_transition", extra))


def log_environment(env: Any, extra: Optional[dict] = None) -> None:
    """Log host identification (version, project path, platform) as one structured line."""
    extra = extra or {}
    _ensure_trace_id(extra)
    extra["version"] = getattr(env, "version", None)
    extra["project_path"] = getattr(env, "project_path", None)
    extra["platform"] = getattr(env, "platform", None)
    logger.info(_format("host_environment", extra))
