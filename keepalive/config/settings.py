"""Unified config: health endpoint, supervisor loop, host identification.

Defaults: loaded from the packaged keepalive/config/config.yaml.example (single source of truth, no code-level defaults).
User config is deep-merged over the example; KEEPALIVE_* env vars override the merged result.
"""

import logging
import os
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

_EXAMPLE_RESOURCE = resources.files("keepalive.config") / "config.yaml.example"
_DEFAULT_CONFIG_PATH = "config/config.yaml"

# Lazy-loaded example config (single source of truth for defaults)
_EXAMPLE_CONFIG: Optional[Dict[str, Any]] = None


def _load_example_config() -> Dict[str, Any]:
    """Load config.yaml.example as defaults. No code-level defaults."""
    global _EXAMPLE_CONFIG
    if _EXAMPLE_CONFIG is None:
        _EXAMPLE_CONFIG = yaml.safe_load(_EXAMPLE_RESOURCE.read_text(encoding="utf-8")) or {}
    return _EXAMPLE_CONFIG


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into base. Override values take precedence."""
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _merged_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Merge config with example so missing keys come from config file."""
    return _deep_merge(_load_example_config(), cfg)


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """KEEPALIVE_HEALTH_PORT and KEEPALIVE_SIGNAL_PATH win over file values."""
    port = os.environ.get("KEEPALIVE_HEALTH_PORT")
    if port:
        cfg = _deep_merge(cfg, {"health": {"port": int(port)}})
    signal_path = os.environ.get("KEEPALIVE_SIGNAL_PATH")
    if signal_path:
        cfg = _deep_merge(cfg, {"supervisor": {"signal_path": signal_path}})
    return cfg


def read_config(config_path: Optional[str] = None) -> tuple[dict, str]:
    """Load YAML config with env overrides. Returns (config, resolved_path).

    Resolution: explicit path, then $KEEPALIVE_CONFIG, then config/config.yaml (relative to cwd);
    any of those missing on disk falls back to the packaged config.yaml.example.
    """
    config_path = config_path or os.environ.get("KEEPALIVE_CONFIG", _DEFAULT_CONFIG_PATH)
    if not Path(config_path).exists():
        logger.debug("Config %s not found; using packaged defaults", config_path)
        config = yaml.safe_load(_EXAMPLE_RESOURCE.read_text(encoding="utf-8")) or {}
        return _apply_env_overrides(config), str(_EXAMPLE_RESOURCE)
    config_path = str(Path(config_path).resolve())
    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    return _apply_env_overrides(config), config_path


def get_health_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return health listener config (host, port, poll_interval_sec, read_timeout_sec, max_request_bytes)."""
    merged = _merged_config(config or {})
    h = merged.get("health") or {}
    return {
        "host": h.get("host"),
        "port": int(h["port"]),
        "poll_interval_sec": float(h["poll_interval_sec"]),
        "read_timeout_sec": float(h["read_timeout_sec"]),
        "max_request_bytes": int(h["max_request_bytes"]),
    }


def get_supervisor_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return keep-alive loop config (poll_interval_sec, signal_path, abort_on_bind_failure)."""
    merged = _merged_config(config or {})
    s = merged.get("supervisor") or {}
    return {
        "poll_interval_sec": float(s["poll_interval_sec"]),
        "signal_path": str(s["signal_path"]),
        "abort_on_bind_failure": bool(s.get("abort_on_bind_failure")),
    }


def get_host_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return host identification overrides. None values mean 'detect at runtime'."""
    merged = _merged_config(config or {})
    h = merged.get("host") or {}
    return {
        "version": h.get("version"),
        "project_path": h.get("project_path"),
    }
