"""Pytest fixtures for keepalive tests."""

import socket
import sys
import time
from pathlib import Path
from typing import Callable

import pytest
import yaml

# Ensure project root is in path for keepalive imports
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))


def _project_root() -> Path:
    return Path(__file__).resolve().parent.parent


@pytest.fixture
def project_root() -> Path:
    return _project_root()


@pytest.fixture
def example_config_path(project_root: Path) -> Path:
    return project_root / "keepalive" / "config" / "config.yaml.example"


@pytest.fixture
def example_config(example_config_path: Path) -> dict:
    """Load the example config dict from YAML."""
    with open(example_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@pytest.fixture
def signal_path(tmp_path: Path) -> Path:
    """Per-test shutdown marker location (absent at start)."""
    return tmp_path / "shutdown-signal"


@pytest.fixture
def fast_config(signal_path: Path) -> dict:
    """Ephemeral port, short intervals, per-test marker."""
    return {
        "health": {"host": "127.0.0.1", "port": 0, "poll_interval_sec": 0.01, "read_timeout_sec": 1.0},
        "supervisor": {"poll_interval_sec": 0.05, "signal_path": str(signal_path)},
        "host": {"version": "2022.3.10f1", "project_path": "/work/project"},
    }


@pytest.fixture
def occupied_port():
    """A port with a live listener on it, for bind-failure tests."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen()
    try:
        yield sock.getsockname()[1]
    finally:
        sock.close()


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Poll predicate until true or timeout; returns the final predicate value."""

    def _wait(predicate: Callable[[], bool], timeout: float = 3.0, interval: float = 0.01) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait
