"""keepalive: keep a headless host process alive and expose a TCP health probe."""

__version__ = "0.1.0"

from keepalive.engine.supervisor import init, shutdown  # noqa: E402

__all__ = ["__version__", "init", "shutdown"]
