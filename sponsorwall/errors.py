"""
Exception types raised across sponsorwall.

``ConfigurationError`` is fatal and never retried: bad credentials, bad tier
layout, unknown provider, malformed filter. ``ProviderError`` means a remote
platform answered with an error payload; it is fatal for that provider's fetch
and for the run.
"""

from __future__ import annotations

from typing import Any


class ConfigurationError(ValueError):
    """Raised when the configuration cannot produce a valid run."""


class ProviderError(RuntimeError):
    """Raised when a provider API reports an error.

    Attributes:
        provider: Provider name (``"github"``, ``"polar"``, ...).
        detail:   Raw error detail returned by the API, if any.
    """

    def __init__(self, provider: str, message: str, detail: Any = None) -> None:
        self.provider = provider
        self.detail = detail
        super().__init__(f"[{provider}] {message}")


class UnknownAccountTypeError(ProviderError):
    """Raised when a provider returns an account type with no ``SponsorKind`` mapping."""

    def __init__(self, provider: str, account_type: Any) -> None:
        self.account_type = account_type
        super().__init__(provider, f"Unknown account type: {account_type}", detail=account_type)
