#!/usr/bin/env python3
"""Entry point: keep the host alive and serve TCP health checks until the shutdown marker appears.

Usage: python scripts/run_supervisor.py [config.yaml] [--debug]
SIGTERM/SIGINT raise the shutdown marker; the keep-alive loop then stops cleanly on its next poll.
"""

import logging
import os
import signal
import sys
from typing import Any

# Project root: always resolve relative to script location, not cwd
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)

logger = logging.getLogger("keepalive.run_supervisor")

# ANSI color codes
_RESET = "\033[0m"
_BOLD = "\033[1m"
_GRAY = "\033[90m"
_YELLOW = "\033[33m"
_RED = "\033[31m"
_CYAN = "\033[36m"

_LEVEL_COLORS = {
    logging.DEBUG: _GRAY,
    logging.INFO: _CYAN,
    logging.WARNING: _YELLOW,
    logging.ERROR: _RED + _BOLD,
    logging.CRITICAL: _RED + _BOLD,
}


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors per log level."""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, _RESET)
        record.levelname = f"{color}[{record.levelname}]{_RESET}"
        return super().format(record)


def setup_logging(debug: bool = False) -> None:
    """Configure colorful logging with distinct styles per level."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        ColoredFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logging.root.handlers.clear()
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG if debug else logging.INFO)


def _install_stop_signals(supervisor: Any) -> None:
    """SIGTERM/SIGINT go through the same marker as external shutdown requests."""

    def _on_stop_signal(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s; requesting shutdown", signum)
        try:
            supervisor.shutdown()
        except OSError:
            logger.error("Shutdown marker unavailable; terminating directly")
            supervisor.terminate()

    signal.signal(signal.SIGTERM, _on_stop_signal)
    signal.signal(signal.SIGINT, _on_stop_signal)


def main() -> None:
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    setup_logging(debug="--debug" in sys.argv)

    from keepalive.config.settings import read_config
    from keepalive.engine.supervisor import Supervisor

    config_path = args[0] if args else None
    if config_path and not os.path.isabs(config_path):
        config_path = os.path.join(_PROJECT_ROOT, config_path)
    config, resolved_path = read_config(config_path)
    logger.info("Config loaded from %s", resolved_path)

    supervisor = Supervisor(config)
    _install_stop_signals(supervisor)
    supervisor.init()


if __name__ == "__main__":
    main()
