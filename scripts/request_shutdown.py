#!/usr/bin/env python3
"""Ask a running supervisor to stop: writes the shutdown marker named in config and returns.

The supervisor notices the marker on its next keep-alive poll (default within 1s).
"""

import logging
import os
import sys

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)

logging.basicConfig(
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    level=logging.INFO,
)


def main() -> int:
    from keepalive.engine.supervisor import shutdown

    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    config_path = args[0] if args else None
    if config_path and not os.path.isabs(config_path):
        config_path = os.path.join(_PROJECT_ROOT, config_path)
    try:
        shutdown(config_path)
    except OSError as e:
        print(f"Failed to write shutdown signal: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
