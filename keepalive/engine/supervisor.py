"""Supervisor: start the health listener, then block in a keep-alive loop until the shutdown marker appears.

Flow:
    init() -> on_load callback -> log environment -> HealthListener.start(port) -> keep-alive loop
    keep-alive loop: every poll_interval check SignalStore.exists(); on True stop listener,
    clear marker, exit(0).
    shutdown() (any process): SignalStore.raise_signal(); the running loop notices on its next poll.
"""

import logging
import sys
import time
from typing import Any, Callable, Dict, Optional

from keepalive.config.settings import get_health_config, get_supervisor_config, read_config
from keepalive.core.logging_utils import log_environment
from keepalive.core.metrics import Metrics, get_metrics
from keepalive.engine.environment import HostEnvironment, detect_environment
from keepalive.health.listener import HealthListener
from keepalive.signals.signal_store import SignalStore

logger = logging.getLogger(__name__)

# External tooling waits for this line before talking to the host
READY_LINE = "Unity-MCP-Ready"

_EXIT_OK = 0
_EXIT_BIND_FAILED = 1


class Supervisor:
    """Single orchestration entry point; init() is called once per process and does not return."""

    def __init__(
        self,
        config: Dict[str, Any],
        listener: Optional[HealthListener] = None,
        signal_store: Optional[SignalStore] = None,
        environment: Optional[HostEnvironment] = None,
        on_load: Optional[Callable[[], None]] = None,
        exit_func: Callable[[int], Any] = sys.exit,
        metrics: Optional[Metrics] = None,
    ):
        self.config = config
        sup_cfg = get_supervisor_config(config)
        self.port = get_health_config(config)["port"]
        self.poll_interval = sup_cfg["poll_interval_sec"]
        self.abort_on_bind_failure = sup_cfg["abort_on_bind_failure"]
        self.environment = environment or detect_environment(config)
        self._metrics = metrics or get_metrics()
        self.signal_store = signal_store or SignalStore(sup_cfg["signal_path"])
        self.listener = listener or HealthListener.from_config(config, self.environment.version, metrics=self._metrics)
        self._on_load = on_load
        self._exit = exit_func
        self._initialized = False

    def _run_on_load(self) -> None:
        """Optional host-load hook. Failures are logged; startup continues."""
        if self._on_load is None:
            return
        try:
            self._on_load()
        except Exception as e:
            logger.warning("on_load callback failed: %s", e)

    def init(self) -> None:
        """Start health serving and block in the keep-alive loop until shutdown is signalled."""
        if self._initialized:
            raise RuntimeError("Supervisor.init() may only be called once")
        self._initialized = True
        self._run_on_load()

        logger.info("init() called; host version=%s", self.environment.version)
        log_environment(self.environment)

        if not self.start_health_server() and self.abort_on_bind_failure:
            logger.error("Health server unavailable and abort_on_bind_failure=true; exiting")
            self._exit(_EXIT_BIND_FAILED)
            return

        logger.info(READY_LINE)
        logger.info(
            "Entering keep-alive loop (poll=%.1fs, signal=%s)",
            self.poll_interval,
            self.signal_store.path,
        )
        self.run_keep_alive()

    def start_health_server(self) -> bool:
        """Start the listener. Bind failure degrades to 'no health checks' rather than stopping the host."""
        if self.listener.start(self.port):
            logger.info("Health server listening on port %s", self.listener.bound_port)
            return True
        logger.warning("Health server failed to start on port %s; continuing without health checks", self.port)
        return False

    def run_keep_alive(self) -> None:
        """Poll the shutdown marker every poll_interval. Returns only if the exit function returns."""
        while True:
            if self.check_once():
                return
            time.sleep(self.poll_interval)

    def check_once(self) -> bool:
        """One keep-alive iteration. True if the marker was seen and shutdown ran."""
        if not self.signal_store.exists():
            return False
        logger.info("Shutdown signal detected. Exiting...")
        self.terminate()
        return True

    def terminate(self) -> None:
        """Shutdown sequence: stop listener, clear marker, exit with success."""
        self.listener.stop()
        self.signal_store.clear()
        self._metrics.log_snapshot()
        self._exit(_EXIT_OK)

    def shutdown(self) -> None:
        """Request shutdown. Only raises the marker; the keep-alive loop performs the stop."""
        request_shutdown(self.signal_store)


def request_shutdown(signal_store: SignalStore) -> None:
    """Raise the shutdown marker. The one place a stop is requested, in-process or from another invocation."""
    logger.info("shutdown() called")
    signal_store.raise_signal()


def init(config_path: Optional[str] = None, on_load: Optional[Callable[[], None]] = None) -> None:
    """Process entry: load config and run the Supervisor (blocks until shutdown)."""
    config, resolved_path = read_config(config_path)
    logger.info("Config loaded from %s", resolved_path)
    Supervisor(config, on_load=on_load).init()


def shutdown(config_path: Optional[str] = None) -> None:
    """Process entry from another invocation: signal the running Supervisor to stop."""
    config, _ = read_config(config_path)
    request_shutdown(SignalStore(get_supervisor_config(config)["signal_path"]))
