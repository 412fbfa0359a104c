"""Shutdown marker file: presence means 'terminate on next keep-alive poll'."""

import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

_MARKER_CONTENT = "shutdown"


class SignalStore:
    """Read/raise/clear a single marker file used to coordinate shutdown across processes.

    Content is written for humans only; readers look at presence alone.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        """True if the marker is present. Storage errors read as False (keep running, retry next poll)."""
        try:
            return self._path.is_file()
        except OSError as e:
            logger.debug("Signal check failed for %s: %s", self._path, e)
            return False

    def raise_signal(self) -> None:
        """Create the marker. Raising twice leaves one marker; write errors propagate."""
        try:
            self._path.write_text(_MARKER_CONTENT, encoding="utf-8")
        except OSError as e:
            logger.error("Could not write shutdown signal %s: %s", self._path, e)
            raise
        logger.info("Shutdown signal raised at %s", self._path)

    def clear(self) -> bool:
        """Delete the marker. Missing marker is fine; other failures are logged and reported as False."""
        try:
            self._path.unlink()
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning("Could not clear shutdown signal %s: %s", self._path, e)
            return False
        return True
