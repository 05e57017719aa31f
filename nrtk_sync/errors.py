"""Exception hierarchy shared by every stage of a sync cycle."""
from __future__ import annotations

from pathlib import Path
from typing import Union


class SyncError(Exception):
    """Base class for nrtk-sync failures."""


class ConfigMissing(SyncError):
    """Required configuration is absent; the process cannot do useful work."""


class SourceUnavailable(SyncError):
    """The payload could not be obtained from the remote API or the local file."""


class PayloadMalformed(SyncError):
    """The payload is not a JSON document of the expected shape."""


class DirSetupFailed(SyncError):
    """Application directories could not be created."""


class WriteFailed(SyncError):
    """A single file of a generation could not be written."""

    def __init__(self, path: Union[str, Path], reason: str = "") -> None:
        self.path = Path(path)
        self.reason = reason
        message = f"unable to write {self.path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


__all__ = [
    "SyncError",
    "ConfigMissing",
    "SourceUnavailable",
    "PayloadMalformed",
    "DirSetupFailed",
    "WriteFailed",
]
