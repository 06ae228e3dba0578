"""
Provider adapter contract and helpers shared by the adapters.

Every adapter converts one platform's native payloads into ``Sponsorship``
records. Adapters own their HTTP calls and pagination but not the client:
the orchestrator passes one ``httpx.AsyncClient`` to every provider so that
connection pooling (and ``httpx.MockTransport`` in tests) is shared.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Optional
from urllib.parse import urlsplit, urlunsplit

import httpx

from sponsorwall.errors import ProviderError

if TYPE_CHECKING:
    from sponsorwall.config import AppConfig
    from sponsorwall.models.sponsor import Sponsorship

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class SponsorProvider(ABC):
    """Abstract base for all provider adapters.

    Subclasses set ``name`` and implement ``fetch_sponsors``.
    """

    name: ClassVar[str]

    @abstractmethod
    async def fetch_sponsors(
        self,
        config: "AppConfig",
        client: httpx.AsyncClient,
    ) -> list["Sponsorship"]:
        """Fetch every sponsorship visible to the configured account.

        Raises:
            ConfigurationError: If required credentials are missing.
            ProviderError: If the platform reports an error.
            httpx.HTTPStatusError: On non-2xx responses.
        """
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"

    async def _post_graphql(
        self,
        client: httpx.AsyncClient,
        url: str,
        query: str,
        headers: dict[str, str],
    ) -> dict[str, Any]:
        """POST a GraphQL query and return ``data``, raising on error arrays."""
        resp = await client.post(
            url,
            json={"query": query},
            headers={**headers, "Content-Type": "application/json"},
            timeout=DEFAULT_TIMEOUT,
        )
        resp.raise_for_status()
        payload = resp.json()
        if not payload:
            raise ProviderError(self.name, f"Got no response on requesting {url}")
        errors = payload.get("errors")
        if errors:
            raise ProviderError(self.name, f"GraphQL API error: {errors}", detail=errors)
        return payload.get("data") or {}


def normalize_url(url: Optional[str]) -> Optional[str]:
    """Normalise a user-supplied website URL.

    Adds ``https://`` when no scheme is given, lowercases the host, drops a
    leading ``www.`` and a trailing slash. Empty input maps to ``None``.

    ``"Example.com/"`` → ``"https://example.com"``
    """
    if not url or not url.strip():
        return None
    url = url.strip()
    if url.startswith("//"):
        url = "https:" + url
    elif "://" not in url:
        url = "https://" + url

    parts = urlsplit(url)
    host = parts.netloc.lower()
    if host.startswith("www."):
        host = host[4:]
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), host, path, parts.query, parts.fragment))
