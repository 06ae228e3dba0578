"""
Sponsor and sponsorship models — the canonical shape every provider maps into.

Two-level design:
  1. ``Sponsor``     — identity of a funder on one platform (login, name,
                       avatar, links, cross-platform handles).
  2. ``Sponsorship`` — one funding relationship: a ``Sponsor`` plus how much
                       they give per month, since when, and through which
                       provider(s).

Monetary convention
-------------------
``Sponsorship.monthly_dollars`` is either a non-negative monthly USD amount or
exactly ``PAST_SPONSOR`` (-1), the sentinel for a lapsed relationship. Any
other negative value is rejected at construction time.

Both models are frozen. Stages that change a record (merge, avatar
resolution, link replacement) produce a new instance with ``model_copy``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sponsorwall.taxonomy.sponsor_taxonomy import SponsorKind, Visibility

PAST_SPONSOR: float = -1


class Sponsor(BaseModel):
    """Identity of a funder as reported by one platform.

    Attributes:
        kind: Individual or organization.
        login: Platform-scoped handle (unique per provider, not globally).
        name: Human-readable name; may be empty.
        avatar_url: Remote avatar location, if the provider exposes one.
        avatar_bytes: Resolved, resized avatar image (set by avatar resolution).
        website_url: The sponsor's own website, normalized to ``https``.
        link_url: Profile link on the platform, or a configured override.
        social_logins: ``provider name -> handle`` cross references used by
            auto-merge.
    """

    model_config = ConfigDict(
        frozen=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    kind: SponsorKind = SponsorKind.INDIVIDUAL
    login: str = ""
    name: str = ""
    avatar_url: Optional[str] = None
    avatar_bytes: Optional[bytes] = Field(default=None, repr=False)
    website_url: Optional[str] = None
    link_url: Optional[str] = None
    social_logins: dict[str, str] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """``name`` when set, otherwise ``login``."""
        return (self.name or self.login).strip()

    @property
    def href(self) -> Optional[str]:
        """Outbound link for a badge: website first, platform link second."""
        return self.website_url or self.link_url


class Sponsorship(BaseModel):
    """One normalized funding relationship.

    Attributes:
        sponsor: The funder.
        monthly_dollars: Monthly USD amount, or ``PAST_SPONSOR`` (-1).
        visibility: Public or private.
        tier_name: Free-text tier label from the source platform.
        created_at: When the relationship started (UTC).
        expires_at: When a one-time purchase stops counting (UTC).
        is_one_time: ``True`` for non-recurring contributions.
        provider: Provider tag, or a ``+``-joined list after a merge.
        raw: Untouched provider payload; never read past the adapter.
    """

    model_config = ConfigDict(
        frozen=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    sponsor: Sponsor
    monthly_dollars: float = 0.0
    visibility: Visibility = Visibility.PUBLIC
    tier_name: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_one_time: bool = False
    provider: str = ""
    raw: Any = Field(default=None, repr=False)

    @field_validator("monthly_dollars")
    @classmethod
    def validate_monthly_dollars(cls, v: float) -> float:
        if v != PAST_SPONSOR and v < 0:
            raise ValueError(
                f"monthly_dollars must be >= 0 or exactly {PAST_SPONSOR} (past sponsor), got {v}."
            )
        return v

    @field_validator("created_at", "expires_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def is_past(self) -> bool:
        return self.monthly_dollars == PAST_SPONSOR

    @property
    def is_private(self) -> bool:
        return self.visibility == Visibility.PRIVATE

    @property
    def providers(self) -> list[str]:
        """Individual provider tags making up ``provider``."""
        return [p for p in self.provider.split("+") if p]

    def label(self) -> str:
        """Short ``@login(provider)`` tag for log lines."""
        return f"@{self.sponsor.login or self.sponsor.name}({self.provider})"
