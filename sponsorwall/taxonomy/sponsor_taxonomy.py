"""
Sponsorship taxonomy — the closed vocabularies shared by every layer.

Four orthogonal dimensions:
  - ``ProviderName``  — which funding platform produced a record.
  - ``SponsorKind``   — who is paying: a person or an organization.
  - ``Visibility``    — whether the sponsor agreed to be shown publicly.
  - ``OutputFormat`` / ``RendererName`` — what a render pass produces and how.

Usage example::

    from sponsorwall.taxonomy.sponsor_taxonomy import ProviderName, SponsorKind

    provider = ProviderName.GITHUB
    kind     = SponsorKind.ORGANIZATION

This module has NO imports from any other ``sponsorwall`` package.
"""

from enum import StrEnum


class ProviderName(StrEnum):
    """Funding platforms with a built-in adapter."""

    GITHUB = "github"
    """GitHub Sponsors (GraphQL ``sponsorshipsAsMaintainer``)."""

    PATREON = "patreon"
    """Patreon campaign members (OAuth2 v2 API)."""

    OPENCOLLECTIVE = "opencollective"
    """OpenCollective orders and credit transactions (GraphQL v2)."""

    AFDIAN = "afdian"
    """Afdian sponsor list (signed open API, amounts in CNY)."""

    POLAR = "polar"
    """Polar subscriptions (REST v1)."""


class SponsorKind(StrEnum):
    """Account type of the funder, normalized across providers."""

    INDIVIDUAL = "User"
    """A person. Rendered as a full circle."""

    ORGANIZATION = "Organization"
    """A company, collective or fund. Rendered as a slightly rounded square."""


class Visibility(StrEnum):
    """Whether the funder may be displayed."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class OutputFormat(StrEnum):
    """Artifacts a render pass can write."""

    JSON = "json"
    SVG = "svg"
    PNG = "png"


class ImageFormat(StrEnum):
    """Encodings used for avatars embedded in the SVG."""

    WEBP = "webp"
    PNG = "png"


class RendererName(StrEnum):
    """Built-in layouts."""

    TIERS = "tiers"
    """Titled rows of badges, one block per tier."""

    CIRCLES = "circles"
    """Packed circles sized by contribution."""
