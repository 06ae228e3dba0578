"""
Polar adapter.

API:  https://api.polar.sh/v1
Flow: ``GET /organizations?slug=`` → organization id →
      ``GET /subscriptions?organization_id=&page=`` until ``pagination.max_page``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from sponsorwall.errors import ConfigurationError, ProviderError
from sponsorwall.ingestion.base import DEFAULT_TIMEOUT, SponsorProvider
from sponsorwall.models.sponsor import PAST_SPONSOR, Sponsor, Sponsorship
from sponsorwall.taxonomy.sponsor_taxonomy import ProviderName, SponsorKind, Visibility
from sponsorwall.utils.time_utils import parse_timestamp

if TYPE_CHECKING:
    from sponsorwall.config import AppConfig

logger = logging.getLogger(__name__)


class PolarProvider(SponsorProvider):
    """Fetches subscriptions from Polar."""

    name: ClassVar[str] = ProviderName.POLAR.value
    BASE_URL: ClassVar[str] = "https://api.polar.sh/v1"

    async def fetch_sponsors(
        self,
        config: "AppConfig",
        client: httpx.AsyncClient,
    ) -> list[Sponsorship]:
        polar = config.polar
        if not polar.token:
            raise ConfigurationError("Polar token is required (SPONSORWALL_POLAR_TOKEN).")
        if not polar.organization:
            raise ConfigurationError(
                "Polar organization is required (SPONSORWALL_POLAR_ORGANIZATION)."
            )
        headers = {"Authorization": f"Bearer {polar.token}"}

        resp = await client.get(
            f"{self.BASE_URL}/organizations",
            params={"slug": polar.organization},
            headers=headers,
            timeout=DEFAULT_TIMEOUT,
        )
        resp.raise_for_status()
        items = resp.json().get("items") or []
        org_id = items[0].get("id") if items else None
        if not org_id:
            raise ProviderError(self.name, f'Polar organization "{polar.organization}" not found')

        subscriptions: list[dict[str, Any]] = []
        page, pages = 1, 1
        while page <= pages:
            resp = await client.get(
                f"{self.BASE_URL}/subscriptions",
                params={"organization_id": org_id, "page": page},
                headers=headers,
                timeout=DEFAULT_TIMEOUT,
            )
            resp.raise_for_status()
            data = resp.json()
            subscriptions.extend(data.get("items") or [])
            pages = (data.get("pagination") or {}).get("max_page", 1)
            page += 1

        return [self._parse_subscription(sub) for sub in subscriptions if sub.get("price")]

    def _parse_subscription(self, sub: dict[str, Any]) -> Sponsorship:
        user = sub.get("user") or {}
        product = sub.get("product") or {}
        is_active = sub.get("status") == "active"
        github = user.get("github_username")
        return Sponsorship(
            sponsor=Sponsor(
                kind=(
                    SponsorKind.INDIVIDUAL if product.get("type") == "individual"
                    else SponsorKind.ORGANIZATION
                ),
                login=github or "",
                name=user.get("public_name") or "",
                avatar_url=user.get("avatar_url"),
                social_logins={ProviderName.GITHUB.value: github} if github else {},
            ),
            monthly_dollars=sub["price"]["price_amount"] / 100 if is_active else PAST_SPONSOR,
            visibility=Visibility.PUBLIC,
            tier_name=product.get("name") if is_active else None,
            created_at=parse_timestamp(sub.get("created_at")),
            is_one_time=False,
            provider=self.name,
            raw=sub,
        )
