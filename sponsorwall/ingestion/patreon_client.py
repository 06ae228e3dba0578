"""
Patreon adapter.

API:  https://www.patreon.com/api/oauth2/
Flow: ``current_user/campaigns`` → first campaign id → ``v2/campaigns/{id}/members``
      with the patron user sideloaded, following ``links.next`` until exhausted.

Patreon only has individual, public, recurring members. Amounts are whole
dollars (``currently_entitled_amount_cents`` floored to the dollar).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, Optional

import httpx

from sponsorwall.errors import ConfigurationError, ProviderError
from sponsorwall.ingestion.base import DEFAULT_TIMEOUT, SponsorProvider
from sponsorwall.models.sponsor import PAST_SPONSOR, Sponsor, Sponsorship
from sponsorwall.taxonomy.sponsor_taxonomy import ProviderName, SponsorKind, Visibility
from sponsorwall.utils.time_utils import parse_timestamp

if TYPE_CHECKING:
    from sponsorwall.config import AppConfig

logger = logging.getLogger(__name__)

_PAST_STATUSES = frozenset({"former_patron", "declined_patron"})


class PatreonProvider(SponsorProvider):
    """Fetches campaign members from Patreon."""

    name: ClassVar[str] = ProviderName.PATREON.value
    CAMPAIGNS_URL: ClassVar[str] = (
        "https://www.patreon.com/api/oauth2/api/current_user/campaigns?include=null"
    )
    MEMBERS_URL_TEMPLATE: ClassVar[str] = (
        "https://www.patreon.com/api/oauth2/v2/campaigns/{campaign_id}/members"
        "?include=user"
        "&fields%5Bmember%5D=currently_entitled_amount_cents,patron_status,"
        "pledge_relationship_start,lifetime_support_cents"
        "&fields%5Buser%5D=image_url,url,first_name,full_name"
        "&page%5Bcount%5D=100"
    )

    async def fetch_sponsors(
        self,
        config: "AppConfig",
        client: httpx.AsyncClient,
    ) -> list[Sponsorship]:
        token = config.patreon.token
        if not token:
            raise ConfigurationError("Patreon token is required (SPONSORWALL_PATREON_TOKEN).")
        headers = {"Authorization": f"bearer {token}", "Content-Type": "application/json"}

        resp = await client.get(self.CAMPAIGNS_URL, headers=headers, timeout=DEFAULT_TIMEOUT)
        resp.raise_for_status()
        campaigns = resp.json().get("data") or []
        if not campaigns:
            raise ProviderError(self.name, "No campaign found for this token")
        campaign_id = campaigns[0]["id"]

        sponsorships: list[Sponsorship] = []
        url: Optional[str] = self.MEMBERS_URL_TEMPLATE.format(campaign_id=campaign_id)
        while url:
            resp = await client.get(url, headers=headers, timeout=DEFAULT_TIMEOUT)
            resp.raise_for_status()
            page = resp.json()
            sponsorships.extend(self._parse_members(page))
            url = (page.get("links") or {}).get("next")
        return sponsorships

    def _parse_members(self, page: dict[str, Any]) -> list[Sponsorship]:
        """Pair each member with its sideloaded user and normalise it."""
        users = {u["id"]: u for u in page.get("included") or []}
        result = []
        for membership in page.get("data") or []:
            attrs = membership["attributes"]
            if attrs.get("patron_status") is None:
                continue
            user_id = membership["relationships"]["user"]["data"]["id"]
            patron = users.get(user_id)
            if patron is None:
                logger.warning("Patreon member %s has no sideloaded user; skipped", user_id)
                continue
            result.append(self._parse_member(membership, patron))
        return result

    def _parse_member(self, membership: dict[str, Any], patron: dict[str, Any]) -> Sponsorship:
        attrs = membership["attributes"]
        user = patron["attributes"]
        if attrs["patron_status"] in _PAST_STATUSES:
            monthly: float = PAST_SPONSOR
        else:
            monthly = (attrs.get("currently_entitled_amount_cents") or 0) // 100
        return Sponsorship(
            sponsor=Sponsor(
                kind=SponsorKind.INDIVIDUAL,
                login=user.get("first_name") or "",
                name=user.get("full_name") or "",
                avatar_url=user.get("image_url"),
                link_url=user.get("url"),
            ),
            monthly_dollars=monthly,
            visibility=Visibility.PUBLIC,
            tier_name="Patreon",
            created_at=parse_timestamp(attrs.get("pledge_relationship_start")),
            is_one_time=False,
            provider=self.name,
            raw={"membership": membership, "patron": patron},
        )
