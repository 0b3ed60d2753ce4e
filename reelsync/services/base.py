"""Shared plumbing for the upstream provider clients."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

import httpx

from ..config import Settings
from ..errors import ProviderNotFound, ProviderRateLimited, TransientProviderError

logger = logging.getLogger(__name__)

PREFERRED_LANGUAGES: frozenset[str | None] = frozenset({"en", None, "", "00"})


def pick_localized(
    entries: Iterable[Any], *, language_key: str = "iso_639_1"
) -> dict[str, Any] | None:
    """Return the first entry tagged English or carrying no language at all."""

    for entry in entries or []:
        if isinstance(entry, dict) and entry.get(language_key) in PREFERRED_LANGUAGES:
            return entry
    return None


class ProviderClient:
    """Base class mapping HTTP outcomes onto the provider error taxonomy.

    Retries and timeouts belong to the ``httpx.AsyncClient`` handed in by the
    caller; a client only issues single requests.
    """

    name = "provider"

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        *,
        log: logging.Logger | None = None,
    ):
        self._settings = settings
        self._client = http_client
        self._logger = log or logger

    async def _get_json(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._client.get(path, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise TransientProviderError(
                self.name, f"request to {path} failed: {exc.__class__.__name__}"
            ) from exc

        status = response.status_code
        if status == 404:
            raise ProviderNotFound(self.name, f"nothing found at {path}", status_code=status)
        if status in (401, 429):
            raise ProviderRateLimited(
                self.name, f"request to {path} was refused", status_code=status
            )
        if status >= 400:
            raise TransientProviderError(
                self.name, f"{path} answered {status}: {response.text}", status_code=status
            )

        try:
            return response.json()
        except ValueError as exc:
            raise TransientProviderError(
                self.name, f"unexpected non-JSON response from {path}", status_code=status
            ) from exc
