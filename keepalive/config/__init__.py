"""Config loading: YAML file merged over the packaged config.yaml.example."""

from keepalive.config.settings import (
    get_health_config,
    get_host_config,
    get_supervisor_config,
    read_config,
)

__all__ = ["read_config", "get_health_config", "get_supervisor_config", "get_host_config"]
