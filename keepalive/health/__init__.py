"""TCP health endpoint: listener, per-connection responder, probe client."""

from keepalive.health.client import HealthProbeError, is_healthy, probe
from keepalive.health.listener import HealthListener
from keepalive.health.responder import ConnectionResponder, HealthResponse, build_health_response
from keepalive.health.state_machine import ListenerState, ListenerStateMachine

__all__ = [
    "HealthListener",
    "ConnectionResponder",
    "HealthResponse",
    "build_health_response",
    "ListenerState",
    "ListenerStateMachine",
    "probe",
    "is_healthy",
    "HealthProbeError",
]
