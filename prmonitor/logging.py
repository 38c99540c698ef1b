"""Root logger setup for prmonitor.

What each level shows:
- ERROR: fatal errors and crashed notifiers
- WARNING: failed refreshes, gh unavailable, undeliverable notifications
- INFO: one line per refresh, watch changes, completed builds
- DEBUG: every gh command line and watch store save

Set logging.level / logging.format in config.yaml, or LOGGING_LEVEL /
LOGGING_FORMAT in the environment. ``prmonitor --verbose`` forces DEBUG.
"""

import logging

from prmonitor.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers kept at WARNING unless running at DEBUG
QUIET_LOGGERS = ("urllib3",)


def _resolve_level(level: str) -> int:
    """Level name to logging constant; INFO for anything unrecognised."""
    return LEVELS.get(level.strip().upper(), LEVELS[DEFAULT_LEVEL])


class PRMonitorLogging:
    """Applies LoggingConfig to the root logger."""

    def __init__(self, config: LoggingConfig, verbose: bool = False) -> None:
        self.level = logging.DEBUG if verbose else _resolve_level(config.level)
        self.format = config.format or DEFAULT_FORMAT

    def setup(self) -> None:
        logging.basicConfig(level=self.level, format=self.format, force=True)
        quiet_level = logging.DEBUG if self.level == logging.DEBUG else logging.WARNING
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(quiet_level)

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)
