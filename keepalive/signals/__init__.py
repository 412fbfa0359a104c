"""Shutdown coordination via a marker file."""

from keepalive.signals.signal_store import SignalStore

__all__ = ["SignalStore"]
