"""Keep-alive engine: host environment, supervisor loop, init/shutdown entry points."""

from .environment import HostEnvironment, detect_environment
from .supervisor import Supervisor, init, request_shutdown, shutdown

__all__ = ["HostEnvironment", "detect_environment", "Supervisor", "init", "shutdown", "request_shutdown"]
