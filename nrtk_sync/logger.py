"""Process-wide logging for **nrtk-sync**.

Highlights
----------
* One named logger for every module::

      from nrtk_sync.logger import logger
      logger.info("Sync cycle started")
* Console output plus an optional rotating log file, set up once by the CLI
  through :func:`init_logging`.
* Secrets registered with :func:`register_secret` (the API token) are masked
  in every record, whatever module logged it.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Set, Union

# --------------------------------------------------------------------------- #
# Constants & basic types                                                     #
# --------------------------------------------------------------------------- #

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "nrtk-sync"
_LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def mask_secret(value: str, visible: int = 4) -> str:
    """Return *value* with everything except the last ``visible`` chars hidden."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]


class SecretFilter(logging.Filter):
    """Replaces registered secrets in the rendered message with their masked form."""

    def __init__(self) -> None:
        super().__init__()
        self.secrets: Set[str] = set()

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        # longest first, so a secret containing another one is masked whole
        for secret in sorted(self.secrets, key=len, reverse=True):
            masked = masked.replace(secret, mask_secret(secret))
        if masked != message:
            record.msg, record.args = masked, None
        return True


_secret_filter = SecretFilter()


# --------------------------------------------------------------------------- #
# Helper builders                                                             #
# --------------------------------------------------------------------------- #


def _with_format(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(_secret_filter)
    return handler


def _handlers(log_file: str | Path | None, fmt: str) -> list[logging.Handler]:
    handlers = [_with_format(logging.StreamHandler(sys.stdout), fmt)]
    if log_file is not None:
        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=_LOG_FILE_MAX_BYTES,
            backupCount=_LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        handlers.append(_with_format(file_handler, fmt))
    return handlers


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """(Re)configure the project logger, replacing its handlers.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Path to a logfile, rotated at 5 MiB with 3 backups. *None* → console only.
    log_format
        Format string for :class:`logging.Formatter`.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)
    for handler in list(lg.handlers):
        lg.removeHandler(handler)
        handler.close()
    for handler in _handlers(log_file, log_format):
        lg.addHandler(handler)
    lg.propagate = False
    return lg


def register_secret(value: str) -> None:
    """Mask *value* in every subsequent log record. Empty values are ignored."""
    if value:
        _secret_filter.secrets.add(value)


# --------------------------------------------------------------------------- #
# Ready-to-use instance                                                       #
# --------------------------------------------------------------------------- #

logger: logging.Logger = init_logging()

__all__ = ["logger", "init_logging", "register_secret", "mask_secret", "SecretFilter"]
