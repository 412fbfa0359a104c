"""Unit tests for ConnectionResponder and HealthResponse (socketpair, no listener)."""

import json
import socket
from datetime import datetime, timezone

import pytest

from keepalive.core.metrics import Metrics
from keepalive.health.responder import (
    ConnectionResponder,
    HealthResponse,
    build_health_response,
    format_timestamp,
)


def _parse_ts(ts: str) -> datetime:
    assert ts.endswith("Z")
    return datetime.strptime(ts, "%Y-%m-%dT%H:%M:%S.%fZ").replace(tzinfo=timezone.utc)


def _recv_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        data = sock.recv(4096)
        if not data:
            return b"".join(chunks)
        chunks.append(data)


@pytest.fixture
def metrics() -> Metrics:
    return Metrics()


@pytest.fixture
def responder(metrics: Metrics) -> ConnectionResponder:
    return ConnectionResponder("2022.3.10f1", read_timeout=1.0, metrics=metrics)


class TestHealthResponse:
    def test_build_uses_given_time(self):
        now = datetime(2026, 1, 2, 3, 4, 5, 123456, tzinfo=timezone.utc)
        resp = build_health_response("1.2.3", now=now)
        assert resp == HealthResponse(status="ok", version="1.2.3", timestamp="2026-01-02T03:04:05.123456Z")

    def test_json_line_is_compact_single_line(self):
        resp = HealthResponse(status="ok", version="v", timestamp="2026-01-02T03:04:05.000000Z")
        line = resp.to_json_line()
        assert line == b'{"status":"ok","unity_version":"v","timestamp":"2026-01-02T03:04:05.000000Z"}\n'
        assert line.count(b"\n") == 1

    def test_timestamp_converted_to_utc(self):
        from datetime import timedelta

        local = datetime(2026, 1, 2, 5, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(local) == "2026-01-02T03:00:00.000000Z"

    def test_default_timestamp_is_now(self):
        before = datetime.now(timezone.utc)
        resp = build_health_response("v")
        after = datetime.now(timezone.utc)
        assert before.replace(microsecond=0) <= _parse_ts(resp.timestamp) <= after


class TestConnectionResponder:
    def test_ping_gets_one_json_line(self, responder, metrics):
        server, client = socket.socketpair()
        with client:
            client.sendall(b"ping\n")
            responder.handle(server, peer="test")
            data = _recv_all(client)
        assert data.endswith(b"\n")
        assert data.count(b"\n") == 1
        payload = json.loads(data)
        assert payload["status"] == "ok"
        assert payload["unity_version"] == "2022.3.10f1"
        _parse_ts(payload["timestamp"])
        assert metrics.responses_sent == 1
        assert metrics.handler_errors == 0

    def test_request_content_is_ignored(self, responder):
        server, client = socket.socketpair()
        with client:
            client.sendall(b'{"cmd": "anything at all"}\r\n')
            responder.handle(server)
            payload = json.loads(_recv_all(client))
        assert payload["status"] == "ok"

    def test_partial_line_before_close_still_answered(self, responder):
        server, client = socket.socketpair()
        with client:
            client.sendall(b"ping")
            client.shutdown(socket.SHUT_WR)
            responder.handle(server)
            payload = json.loads(_recv_all(client))
        assert payload["status"] == "ok"

    def test_zero_bytes_is_silent_noop(self, responder, metrics):
        server, client = socket.socketpair()
        with client:
            client.shutdown(socket.SHUT_WR)
            responder.handle(server)
            assert _recv_all(client) == b""
        assert metrics.empty_requests == 1
        assert metrics.handler_errors == 0
        assert metrics.responses_sent == 0

    def test_read_timeout_logged_and_connection_closed(self, metrics, caplog):
        responder = ConnectionResponder("v", read_timeout=0.1, metrics=metrics)
        server, client = socket.socketpair()
        with client:
            responder.handle(server)
            assert _recv_all(client) == b""
        assert metrics.handler_errors == 1
        assert any(r.levelname == "WARNING" and "Client handler error" in r.getMessage() for r in caplog.records)
        assert server.fileno() == -1

    def test_write_to_closed_peer_does_not_raise(self, responder, metrics):
        server, client = socket.socketpair()
        client.sendall(b"ping\n")
        client.close()
        responder.handle(server)
        assert server.fileno() == -1
        assert metrics.responses_sent + metrics.handler_errors == 1

    def test_oversized_request_is_truncated_not_fatal(self, metrics):
        responder = ConnectionResponder("v", read_timeout=1.0, max_request_bytes=16, metrics=metrics)
        server, client = socket.socketpair()
        with client:
            client.sendall(b"x" * 100 + b"\n")
            responder.handle(server)
            payload = json.loads(_recv_all(client))
        assert payload["status"] == "ok"

    def test_connection_closed_on_success(self, responder):
        server, client = socket.socketpair()
        with client:
            client.sendall(b"ping\n")
            responder.handle(server)
        assert server.fileno() == -1
