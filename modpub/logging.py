"""Console logging for a publish run.

One line per stage step goes to stderr, e.g.::

    2024-01-01 12:00:00,000 - modpub.branch - INFO - Branch already exists

The HTTP client libraries log every connection at DEBUG; they are held at
WARNING unless the run itself is at DEBUG.

Level and format come from config.yaml (logging.level, logging.format) or
env (LOGGING_LEVEL, LOGGING_FORMAT).
"""

import logging

from modpub.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

HTTP_LOGGERS = ("urllib3", "requests")


def _resolve_level(level: str) -> int:
    """Level name to logging constant; unknown names mean INFO."""
    return LEVELS.get(level.upper().strip(), logging.INFO)


class ModpubLogging:
    """Applies LoggingConfig to the root logger and the HTTP client loggers."""

    def __init__(self, config: LoggingConfig) -> None:
        self.level = _resolve_level(config.level)
        self.format = config.format or DEFAULT_FORMAT

    @property
    def http_level(self) -> int:
        return logging.DEBUG if self.level <= logging.DEBUG else logging.WARNING

    def setup(self) -> None:
        logging.basicConfig(level=self.level, format=self.format, force=True)
        for name in HTTP_LOGGERS:
            logging.getLogger(name).setLevel(self.http_level)
