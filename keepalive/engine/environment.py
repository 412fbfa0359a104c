"""Host environment identification logged at init and reported as the health version."""

import os
import platform
from dataclasses import dataclass
from typing import Any, Dict, Optional

from keepalive.config.settings import get_host_config


@dataclass(frozen=True)
class HostEnvironment:
    version: str
    project_path: str
    platform: str


def detect_environment(config: Optional[Dict[str, Any]] = None) -> HostEnvironment:
    """Config values win; otherwise package version, cwd and platform.platform()."""
    from keepalive import __version__

    host_cfg = get_host_config(config)
    return HostEnvironment(
        version=str(host_cfg["version"] or __version__),
        project_path=str(host_cfg["project_path"] or os.getcwd()),
        platform=platform.platform(),
    )
