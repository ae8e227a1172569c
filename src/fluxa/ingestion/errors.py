"""Exceptions raised by the ingestion layer.

Budget exhaustion is not an error: the ledger reports it as ``False``.
Store failures surface as ``sqlite3.Error`` unchanged.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for ingestion failures."""


class ConfigurationError(IngestionError):
    """A required setting, usually an API credential, is missing."""


class UpstreamRequestError(IngestionError):
    """An upstream API answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AdapterNotFound(IngestionError, LookupError):
    """No adapter is registered for the requested source key."""

    def __init__(self, source_key: str) -> None:
        super().__init__(f"Adapter not found for source key: {source_key}")
        self.source_key = source_key


class AdapterExpired(IngestionError):
    """The source key was retired and must not be retried."""

    def __init__(self, source_key: str, replacement: str | None = None) -> None:
        message = f"Adapter for source key '{source_key}' has been retired"
        if replacement:
            message += f"; use '{replacement}' instead"
        super().__init__(message)
        self.source_key = source_key
        self.replacement = replacement
