#!/usr/bin/env python3
"""Probe the TCP health endpoint. Exit 0 when status is ok, 1 otherwise (usable as a container healthcheck).

Usage: python scripts/check_health.py [--host HOST] [--port PORT] [--timeout SEC] [config.yaml]
Port defaults to health.port from config.
"""

import argparse
import json
import os
import sys

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)


def main() -> int:
    from keepalive.config.settings import get_health_config, read_config
    from keepalive.health.client import HealthProbeError, probe

    parser = argparse.ArgumentParser(description="Query the keepalive health endpoint")
    parser.add_argument("config", nargs="?", default=None, help="config YAML (default: config/config.yaml)")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--timeout", type=float, default=2.0)
    args = parser.parse_args()

    port = args.port
    if port is None:
        config, _ = read_config(args.config)
        port = get_health_config(config)["port"]

    try:
        payload = probe(args.host, port, timeout=args.timeout)
    except (OSError, HealthProbeError) as e:
        print(f"unhealthy: {args.host}:{port}: {e}", file=sys.stderr)
        return 1
    print(json.dumps(payload))
    return 0 if payload.get("status") == "ok" else 1


if __name__ == "__main__":
    sys.exit(main())
