"""
GitHub Sponsors adapter.

API:   https://api.github.com/graphql
Query: ``<user|organization>(login:).sponsorshipsAsMaintainer``, 100 per
       page, cursor-paginated.

The token needs the ``read:user`` scope (``read:org`` for organizations).

Normalisation:
  - Sponsorships without a tier (custom amounts hidden from the maintainer)
    are dropped.
  - Inactive sponsorships become past sponsors (-1), except one-time ones
    when proration is enabled: those are credited with the tier their payment
    still covers (see ``prorate.current_month_tier``).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Optional

import httpx

from sponsorwall.errors import ConfigurationError, ProviderError, UnknownAccountTypeError
from sponsorwall.ingestion.base import DEFAULT_TIMEOUT, SponsorProvider, normalize_url
from sponsorwall.ingestion.prorate import current_month_tier
from sponsorwall.models.sponsor import PAST_SPONSOR, Sponsor, Sponsorship
from sponsorwall.taxonomy.sponsor_taxonomy import ProviderName, SponsorKind, Visibility
from sponsorwall.utils.time_utils import parse_timestamp, utcnow

if TYPE_CHECKING:
    from sponsorwall.config import AppConfig

logger = logging.getLogger(__name__)


class GitHubProvider(SponsorProvider):
    """Fetches sponsorships from GitHub Sponsors."""

    name: ClassVar[str] = ProviderName.GITHUB.value
    API_URL: ClassVar[str] = "https://api.github.com/graphql"
    PAGE_SIZE: ClassVar[int] = 100

    async def fetch_sponsors(
        self,
        config: "AppConfig",
        client: httpx.AsyncClient,
    ) -> list[Sponsorship]:
        gh = config.github
        if not gh.token:
            raise ConfigurationError("GitHub token is required (SPONSORWALL_GITHUB_TOKEN).")
        if not gh.login:
            raise ConfigurationError("GitHub login is required (SPONSORWALL_GITHUB_LOGIN).")

        nodes: list[dict[str, Any]] = []
        cursor: Optional[str] = None
        while True:
            query = build_query(gh.login, gh.type, not config.include_past_sponsors, cursor)
            resp = await client.post(
                self.API_URL,
                json={"query": query},
                headers={
                    "Authorization": f"bearer {gh.token}",
                    "Content-Type": "application/json",
                },
                timeout=DEFAULT_TIMEOUT,
            )
            resp.raise_for_status()
            connection = self._parse_page(resp.json(), gh.type)
            nodes.extend(connection.get("nodes") or [])
            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                break
            cursor = page_info.get("endCursor")

        thresholds = [t.threshold for t in config.tiers if t.threshold > 0]
        prorate = config.prorate_onetime or gh.prorate_onetime
        now = utcnow()
        sponsorships = [
            self._parse_node(raw, thresholds, prorate, now)
            for raw in nodes
            if raw.get("tier")
        ]
        logger.debug("GitHub returned %d nodes, %d with a tier", len(nodes), len(sponsorships))
        return sponsorships

    def _parse_page(self, payload: Optional[dict[str, Any]], account_type: str) -> dict[str, Any]:
        """Extract the ``sponsorshipsAsMaintainer`` connection from one response."""
        if not payload:
            raise ProviderError(self.name, f"Got no response on requesting {self.API_URL}")
        errors = payload.get("errors") or []
        if errors and errors[0].get("type") == "INSUFFICIENT_SCOPES":
            raise ProviderError(
                self.name,
                "Token is missing the `read:user` and/or `read:org` scopes",
                detail=errors,
            )
        if errors:
            raise ProviderError(self.name, f"GitHub API error: {errors}", detail=errors)
        account = (payload.get("data") or {}).get(account_type)
        if account is None:
            raise ProviderError(self.name, f"No {account_type} found for the configured login")
        return account["sponsorshipsAsMaintainer"]

    def _parse_node(
        self,
        raw: dict[str, Any],
        thresholds: list[float],
        prorate: bool,
        now: datetime,
    ) -> Sponsorship:
        tier = raw["tier"]
        entity = raw["sponsorEntity"]
        created_at = parse_timestamp(raw.get("createdAt"))

        monthly: float = tier["monthlyPriceInDollars"]
        if not raw.get("isActive", True):
            if thresholds and tier.get("isOneTime") and prorate and created_at is not None:
                monthly = current_month_tier(now, created_at, thresholds, monthly)
            else:
                monthly = PAST_SPONSOR

        typename = entity.get("__typename")
        try:
            kind = SponsorKind(typename)
        except ValueError:
            raise UnknownAccountTypeError(self.name, typename) from None

        login = entity.get("login") or ""
        return Sponsorship(
            sponsor=Sponsor(
                kind=kind,
                login=login,
                name=entity.get("name") or "",
                avatar_url=entity.get("avatarUrl"),
                website_url=normalize_url(entity.get("websiteUrl")),
                link_url=f"https://github.com/{login}",
            ),
            monthly_dollars=monthly,
            visibility=Visibility(raw.get("privacyLevel") or Visibility.PUBLIC),
            tier_name=tier.get("name"),
            created_at=created_at,
            is_one_time=bool(tier.get("isOneTime")),
            provider=self.name,
            raw=raw,
        )


def build_query(login: str, account_type: str, active_only: bool, cursor: Optional[str]) -> str:
    """GraphQL document for one page of sponsorships."""
    after = f' after: "{cursor}"' if cursor else ""
    return f"""{{
  {account_type}(login: "{login}") {{
    sponsorshipsAsMaintainer(activeOnly: {str(active_only).lower()}, first: {GitHubProvider.PAGE_SIZE}{after}) {{
      totalCount
      pageInfo {{
        endCursor
        hasNextPage
      }}
      nodes {{
        createdAt
        privacyLevel
        isActive
        tier {{
          name
          isOneTime
          monthlyPriceInCents
          monthlyPriceInDollars
        }}
        sponsorEntity {{
          __typename
          ...on Organization {{
            login
            name
            avatarUrl
            websiteUrl
          }}
          ...on User {{
            login
            name
            avatarUrl
            websiteUrl
          }}
        }}
      }}
    }}
  }}
}}"""
