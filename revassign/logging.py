"""Logging setup for the service.

The root logger gets a single stream handler and stays at WARNING, so
third-party libraries only report problems. The configured level applies to
the ``revassign`` logger tree:

- DEBUG shows lookups that change nothing (for example repeated merges)
- INFO shows every reviewer mutation and startup
- WARNING shows refused operations
- ERROR shows storage failures only

The HTTP access log goes to ``revassign.api.access``. It is written at INFO
when ``logging.access_log`` is enabled and silenced otherwise, whatever the
package level is.
"""

import logging

from revassign.config import LoggingConfig

PACKAGE_LOGGER = "revassign"
ACCESS_LOGGER = "revassign.api.access"

_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR")


def level_from_name(name: str) -> int:
    """Numeric level for DEBUG/INFO/WARNING/ERROR, any other name gives INFO."""
    key = (name or "").strip().upper()
    if key not in _LEVEL_NAMES:
        return logging.INFO
    return getattr(logging, key)


class AppLogging:
    """Applies LoggingConfig (YAML + env LOGGING_*) to the service loggers."""

    def __init__(self, config: LoggingConfig) -> None:
        self.level = level_from_name(config.level)
        self.access_log = config.access_log
        self._format = config.format or LoggingConfig.model_fields["format"].default

    def setup(self) -> None:
        logging.basicConfig(level=logging.WARNING, format=self._format, force=True)
        logging.getLogger(PACKAGE_LOGGER).setLevel(self.level)
        access_level = logging.INFO if self.access_log else logging.CRITICAL + 1
        logging.getLogger(ACCESS_LOGGER).setLevel(access_level)
