"""Exception taxonomy raised by the reconciliation engine and its providers."""

from __future__ import annotations


class ReconcileError(Exception):
    """Base class for every error raised by reelsync."""


class NotFound(ReconcileError):
    """The canonical metadata for a title is missing or unusable."""

    def __init__(self, slug: str, reason: str | None = None):
        self.slug = slug
        self.reason = reason
        message = f"Could not find any data with slug: '{slug}'"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ProviderError(ReconcileError):
    """An upstream metadata or artwork provider failed."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: int | None = None,
    ):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class TransientProviderError(ProviderError):
    """Network failure, server error or unexpected response from a provider."""


class ProviderNotFound(ProviderError):
    """The provider has no data for the requested identifier."""


class ProviderRateLimited(ProviderError):
    """The provider refused the request because of quota or credentials."""


class MissingIdentifier(ReconcileError):
    """A provider lookup was requested without the identifier it needs."""

    def __init__(self, provider: str, identifier: str):
        self.provider = provider
        self.identifier = identifier
        super().__init__(f"{provider}: missing '{identifier}' identifier")


class PersistenceError(ReconcileError):
    """Reading from or writing to the content store failed."""
