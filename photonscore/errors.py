"""Error taxonomy for the scoring client.

TransportError      remote call failed (network, timeout, non-2xx, bad body)
NormalizationError  response did not match the expected schema
StorageError        local persistence failed a write or a batch remove

Every error carries a human-readable message suitable for display; none of
them are retried automatically.
"""

from __future__ import annotations

from typing import Any, Sequence


class PhotonError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class TransportError(PhotonError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NormalizationError(PhotonError):
    def __init__(self, message: str, fields: Sequence[str] = ()):
        super().__init__(message)
        self.fields = tuple(fields)


class StorageError(PhotonError):
    """A local write failed.

    When raised after a successful remote fetch, ``snapshot`` holds the freshly
    fetched data so the caller can still show it.
    """

    def __init__(self, message: str, key: str | None = None, snapshot: Any = None):
        super().__init__(message)
        self.key = key
        self.snapshot = snapshot
