"""
Shared pytest fixtures for the sponsorwall test suite.

Provides:
  - ``make_sponsorship``: factory for ``Sponsorship`` records with sensible
    defaults; any field can be overridden by keyword.
  - ``tiny_png``: a 4x4 red PNG built with Pillow, for avatar tests.
  - ``app_config``: an ``AppConfig`` writing into ``tmp_path``.
"""

from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Any, Callable

import pytest
from PIL import Image

from sponsorwall.config import AppConfig, AvatarsConfig
from sponsorwall.models.sponsor import Sponsor, Sponsorship
from sponsorwall.taxonomy.sponsor_taxonomy import SponsorKind, Visibility


def build_sponsorship(
    login: str = "alice",
    monthly_dollars: float = 5,
    provider: str = "github",
    kind: SponsorKind = SponsorKind.INDIVIDUAL,
    name: str = "",
    created_at: datetime | None = None,
    visibility: Visibility = Visibility.PUBLIC,
    avatar_url: str | None = None,
    social_logins: dict[str, str] | None = None,
    **overrides: Any,
) -> Sponsorship:
    sponsor = Sponsor(
        kind=kind,
        login=login,
        name=name,
        avatar_url=avatar_url,
        link_url=f"https://example.com/{login}",
        social_logins=social_logins or {},
    )
    return Sponsorship(
        sponsor=sponsor,
        monthly_dollars=monthly_dollars,
        provider=provider,
        visibility=visibility,
        created_at=created_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
        **overrides,
    )


@pytest.fixture
def make_sponsorship() -> Callable[..., Sponsorship]:
    """Factory for ``Sponsorship`` records."""
    return build_sponsorship


def _png_bytes(size: int = 4, color: tuple[int, int, int] = (255, 0, 0)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (size, size), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def tiny_png() -> bytes:
    """A 4x4 red PNG."""
    return _png_bytes()


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Default config writing into ``tmp_path``, with the builtin fallback avatar."""
    return AppConfig(
        output_dir=str(tmp_path / "out"),
        avatars=AvatarsConfig(fallback="builtin"),
    )
