from keepalive.core.metrics import Metrics, get_metrics

__all__ = ["Metrics", "get_metrics"]
