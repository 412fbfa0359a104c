"""Background TCP listener for health checks.

One daemon thread runs a non-blocking accept loop; each accepted connection is handed to
ConnectionResponder on its own daemon thread (fire-and-forget, no concurrency limit).
"""

import logging
import socket
import threading
import time
from typing import Any, Dict, Optional

from keepalive.config.settings import get_health_config
from keepalive.core.logging_utils import log_listener_transition
from keepalive.core.metrics import Metrics, get_metrics
from keepalive.health.responder import ConnectionResponder
from keepalive.health.state_machine import ListenerState, ListenerStateMachine

logger = logging.getLogger(__name__)

_DEFAULT_HOST = "0.0.0.0"
_DEFAULT_POLL_INTERVAL = 0.1


class HealthListener:
    """Owns the listening socket, the running flag and the accept thread."""

    def __init__(
        self,
        responder: ConnectionResponder,
        host: str = _DEFAULT_HOST,
        poll_interval: float = _DEFAULT_POLL_INTERVAL,
        metrics: Optional[Metrics] = None,
    ):
        self.host = host
        self.poll_interval = poll_interval
        self._responder = responder
        self._metrics = metrics or get_metrics()
        self._lock = threading.Lock()
        self._fsm = ListenerStateMachine(on_transition=self._on_transition)
        self._sock: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._bound_port: Optional[int] = None
        self._running = False

    @classmethod
    def from_config(cls, config: Dict[str, Any], version: str, metrics: Optional[Metrics] = None) -> "HealthListener":
        """Build listener + responder from the health section of config."""
        cfg = get_health_config(config)
        metrics = metrics or get_metrics()
        responder = ConnectionResponder(
            version,
            read_timeout=cfg["read_timeout_sec"],
            max_request_bytes=cfg["max_request_bytes"],
            metrics=metrics,
        )
        return cls(responder, host=cfg["host"] or _DEFAULT_HOST, poll_interval=cfg["poll_interval_sec"], metrics=metrics)

    @property
    def state(self) -> ListenerState:
        return self._fsm.current

    @property
    def bound_port(self) -> Optional[int]:
        """Actual listening port while running (resolves port 0), else None."""
        return self._bound_port

    @property
    def is_running(self) -> bool:
        return self._running

    def _on_transition(self, from_state: ListenerState, to_state: ListenerState) -> None:
        log_listener_transition(from_state.value, to_state.value, port=self._bound_port)

    def start(self, port: int) -> bool:
        """Bind on (host, port) and start the accept thread. Returns False on bind failure; no retry."""
        with self._lock:
            if not self._fsm.is_stopped():
                logger.warning("Health listener already %s; start(%s) ignored", self._fsm.current.value, port)
                return False
            self._fsm.transition(ListenerState.STARTING)
            sock: Optional[socket.socket] = None
            try:
                sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((self.host, port))
                sock.listen()
                sock.setblocking(False)
            except OSError as e:
                logger.error("Health server could not bind %s:%s: %s", self.host, port, e)
                if sock is not None:
                    sock.close()
                self._fsm.transition(ListenerState.STOPPED)
                return False
            self._sock = sock
            self._bound_port = sock.getsockname()[1]
            self._running = True
            self._fsm.transition(ListenerState.ACCEPTING)
            self._thread = threading.Thread(
                target=self._accept_loop,
                args=(sock,),
                name="keepalive-health-listener",
                daemon=True,
            )
            self._thread.start()
        logger.info("TCP health server started on %s:%s", self.host, self._bound_port)
        return True

    def _accept_loop(self, sock: socket.socket) -> None:
        """Poll for a pending connection; accept and dispatch it, or sleep poll_interval."""
        try:
            while self._running:
                try:
                    conn, addr = sock.accept()
                except BlockingIOError:
                    time.sleep(self.poll_interval)
                    continue
                # Responder relies on settimeout; never inherit non-blocking mode
                conn.setblocking(True)
                self._metrics.inc_connections_accepted()
                self._dispatch(conn, addr)
        except Exception as e:
            if self._running:
                logger.error("Health server error; listener stopping: %s", e)
                self._stop_after_failure(sock)

    def _dispatch(self, conn: socket.socket, addr: Any) -> None:
        """Hand one connection to a new worker thread. The accept loop does not track it."""
        try:
            worker = threading.Thread(
                target=self._responder.handle,
                args=(conn, addr),
                name="keepalive-health-client",
                daemon=True,
            )
            worker.start()
        except RuntimeError as e:
            self._metrics.inc_handler_errors()
            logger.warning("Could not start handler for %s: %s", addr, e)
            conn.close()

    def _stop_after_failure(self, sock: socket.socket) -> None:
        """Accept loop died while running: degrade to STOPPED unless stop() already owns teardown."""
        with self._lock:
            if self._sock is not sock or not self._fsm.is_accepting():
                return
            self._running = False
            self._fsm.transition(ListenerState.STOPPING)
            self._close_socket()
            self._thread = None
            self._fsm.transition(ListenerState.STOPPED)

    def _close_socket(self) -> None:
        sock, self._sock = self._sock, None
        self._bound_port = None
        if sock is not None:
            try:
                sock.close()
            except OSError as e:
                logger.debug("Listener close: %s", e)

    def stop(self) -> None:
        """Stop accepting and release the port. No-op when not accepting (never started, or stopped twice)."""
        with self._lock:
            if not self._fsm.is_accepting():
                return
            self._running = False
            self._fsm.transition(ListenerState.STOPPING)
            thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            # Loop exits on its next iteration: at most one poll_interval
            thread.join(timeout=max(1.0, self.poll_interval * 10))
            if thread.is_alive():
                logger.warning("Accept thread did not exit in time; closing socket anyway")
        with self._lock:
            self._close_socket()
            self._thread = None
            self._fsm.transition(ListenerState.STOPPED)
        logger.info("TCP health server stopped")
