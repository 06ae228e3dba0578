"""
OpenCollective adapter.

API:  https://api.opencollective.com/graphql/v2/
Auth: ``Api-Key`` header (personal token).

Two listings are fetched for the collective (selected by id, slug or GitHub
handle, in that order of preference):

  1. Orders (subscriptions), 1000 per page, offset-paginated. Only active
     subscriptions unless past sponsors are included.
  2. Incoming credit transactions, same paging. Limited to the current month
     unless past sponsors are included.

Reconciliation:
  - Transactions that belong to an already-fetched order are dropped.
  - Orders: the most recent order per account wins.
  - Transactions: the most recent transaction per account wins; an older one
    from the same calendar month as the kept one adds to its amount.
  - The ``github-sponsors`` account (GitHub Sponsors payouts) is skipped;
    those sponsors come from the GitHub adapter.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Optional

import httpx

from sponsorwall.errors import ConfigurationError, ProviderError, UnknownAccountTypeError
from sponsorwall.ingestion.base import SponsorProvider, normalize_url
from sponsorwall.models.sponsor import PAST_SPONSOR, Sponsor, Sponsorship
from sponsorwall.taxonomy.sponsor_taxonomy import ProviderName, SponsorKind, Visibility
from sponsorwall.utils.time_utils import (
    first_day_of_month,
    parse_timestamp,
    same_month,
    utcnow,
)

if TYPE_CHECKING:
    from sponsorwall.config import AppConfig

logger = logging.getLogger(__name__)

GITHUB_SPONSORS_SLUG = "github-sponsors"

_ACCOUNT_KINDS: dict[str, SponsorKind] = {
    "INDIVIDUAL":   SponsorKind.INDIVIDUAL,
    "ORGANIZATION": SponsorKind.ORGANIZATION,
    "COLLECTIVE":   SponsorKind.ORGANIZATION,
    "FUND":         SponsorKind.ORGANIZATION,
    "PROJECT":      SponsorKind.ORGANIZATION,
    "EVENT":        SponsorKind.ORGANIZATION,
    "VENDOR":       SponsorKind.ORGANIZATION,
    "BOT":          SponsorKind.ORGANIZATION,
}

# Social link types usable as a sponsor's website, in no particular priority;
# the first matching link in the account's own order wins.
_WEBSITE_LINK_TYPES = frozenset({
    "WEBSITE", "GITHUB", "GITLAB", "TWITTER", "FACEBOOK",
    "YOUTUBE", "INSTAGRAM", "LINKEDIN", "DISCORD", "TUMBLR",
})

_GITHUB_LOGIN_RE = re.compile(r"github\.com/([^/]*)")

_ACCOUNT_FIELDS = """
          fromAccount {
            name
            id
            slug
            type
            socialLinks {
              url
              type
            }
            isIncognito
            imageUrl(height: 460, format: png)
          }"""


class OpenCollectiveProvider(SponsorProvider):
    """Fetches orders and credit transactions from OpenCollective."""

    name: ClassVar[str] = ProviderName.OPENCOLLECTIVE.value
    API_URL: ClassVar[str] = "https://api.opencollective.com/graphql/v2/"
    PAGE_SIZE: ClassVar[int] = 1000

    async def fetch_sponsors(
        self,
        config: "AppConfig",
        client: httpx.AsyncClient,
    ) -> list[Sponsorship]:
        oc = config.opencollective
        if not oc.key:
            raise ConfigurationError(
                "OpenCollective api key is required (SPONSORWALL_OPENCOLLECTIVE_KEY)."
            )
        selector = account_selector(oc.id, oc.slug, oc.github_handle)
        headers = {"Api-Key": oc.key}
        include_past = config.include_past_sponsors
        now = utcnow()

        orders = await self._fetch_all(
            client, headers, "orders",
            lambda offset: subscriptions_query(selector, offset, active_only=not include_past),
        )
        date_from = None if include_past else first_day_of_month(now)
        transactions = await self._fetch_all(
            client, headers, "transactions",
            lambda offset: transactions_query(selector, offset, date_from),
        )
        logger.debug(
            "OpenCollective returned %d orders, %d transactions", len(orders), len(transactions)
        )

        order_entries = [
            entry for entry in (self._parse_order(o) for o in orders) if entry is not None
        ]
        order_ids = {sponsorship.raw["id"] for _, sponsorship in order_entries}
        transaction_entries = [
            entry
            for entry in (self._parse_transaction(t, order_ids, now) for t in transactions)
            if entry is not None
        ]
        return reconcile_orders(order_entries) + reconcile_transactions(transaction_entries)

    async def _fetch_all(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        connection: str,
        make_query,
    ) -> list[dict[str, Any]]:
        """Offset-paginate one ``account.<connection>`` listing."""
        nodes: list[dict[str, Any]] = []
        offset = 0
        while True:
            data = await self._post_graphql(client, self.API_URL, make_query(offset), headers)
            account = data.get("account")
            if account is None:
                raise ProviderError(self.name, "Collective not found for the configured selector")
            page = account[connection]
            page_nodes = page.get("nodes") or []
            nodes.extend(page_nodes)
            if not page_nodes or page.get("totalCount", 0) <= offset + len(page_nodes):
                break
            offset += len(page_nodes)
        return nodes

    def _parse_order(self, order: dict[str, Any]) -> Optional[tuple[str, Sponsorship]]:
        account = order["fromAccount"]
        if account.get("slug") == GITHUB_SPONSORS_SLUG:
            return None
        value = order["amount"]["value"]
        frequency = order.get("frequency")
        if order.get("status") != "ACTIVE":
            monthly = PAST_SPONSOR
        elif frequency == "YEARLY":
            monthly = value / 12
        else:
            monthly = value
        sponsorship = Sponsorship(
            sponsor=self._parse_account(account),
            monthly_dollars=monthly,
            visibility=Visibility.PRIVATE if account.get("isIncognito") else Visibility.PUBLIC,
            tier_name=(order.get("tier") or {}).get("name"),
            created_at=parse_timestamp(order.get("createdAt")),
            is_one_time=frequency == "ONETIME",
            provider=self.name,
            raw=order,
        )
        return account["id"], sponsorship

    def _parse_transaction(
        self,
        transaction: dict[str, Any],
        order_ids: set[str],
        now: datetime,
    ) -> Optional[tuple[str, Sponsorship]]:
        account = transaction["fromAccount"]
        if account.get("slug") == GITHUB_SPONSORS_SLUG:
            return None
        order = transaction.get("order") or {}
        if order.get("id") is not None and order["id"] in order_ids:
            return None

        created_at = parse_timestamp(transaction.get("createdAt"))
        frequency = order.get("frequency")
        monthly = transaction["amount"]["value"]
        if order.get("status") != "ACTIVE":
            if created_at is not None and created_at < first_day_of_month(now):
                monthly = PAST_SPONSOR
        elif frequency == "MONTHLY":
            monthly = order["amount"]["value"]
        elif frequency == "YEARLY":
            monthly = order["amount"]["value"] / 12

        if frequency != "ONETIME" and order.get("createdAt"):
            created_at = parse_timestamp(order["createdAt"])

        sponsorship = Sponsorship(
            sponsor=self._parse_account(account),
            monthly_dollars=monthly,
            visibility=Visibility.PRIVATE if account.get("isIncognito") else Visibility.PUBLIC,
            tier_name=(order.get("tier") or {}).get("name"),
            created_at=created_at,
            is_one_time=frequency == "ONETIME",
            provider=self.name,
            raw=transaction,
        )
        return account["id"], sponsorship

    def _parse_account(self, account: dict[str, Any]) -> Sponsor:
        slug = account.get("slug") or ""
        links = account.get("socialLinks") or []
        return Sponsor(
            kind=self._account_kind(account.get("type")),
            login=slug,
            name=account.get("name") or "",
            avatar_url=account.get("imageUrl"),
            website_url=normalize_url(best_website(links)),
            link_url=f"https://opencollective.com/{slug}",
            social_logins=social_logins(links, slug),
        )

    def _account_kind(self, account_type: Any) -> SponsorKind:
        try:
            return _ACCOUNT_KINDS[account_type]
        except KeyError:
            raise UnknownAccountTypeError(self.name, account_type) from None


# ── Reconciliation ─────────────────────────────────────────────────────────────

def _is_newer(candidate: Sponsorship, existing: Sponsorship) -> bool:
    if candidate.created_at is None:
        return existing.created_at is None
    if existing.created_at is None:
        return True
    return candidate.created_at >= existing.created_at


def reconcile_orders(entries: list[tuple[str, Sponsorship]]) -> list[Sponsorship]:
    """Keep the most recent order per account, in first-seen account order."""
    by_account: dict[str, Sponsorship] = {}
    for account_id, sponsorship in entries:
        existing = by_account.get(account_id)
        if existing is None or _is_newer(sponsorship, existing):
            by_account[account_id] = sponsorship
    return list(by_account.values())


def reconcile_transactions(entries: list[tuple[str, Sponsorship]]) -> list[Sponsorship]:
    """Keep the most recent transaction per account.

    Transactions from the same calendar month add up, whatever order they
    arrive in; the newer record keeps its other fields. Past-sponsor markers
    never add: two lapsed records stay lapsed, and a lapsed record does not
    reduce an active amount.
    """
    by_account: dict[str, Sponsorship] = {}
    for account_id, sponsorship in entries:
        existing = by_account.get(account_id)
        if existing is None:
            by_account[account_id] = sponsorship
            continue
        newer = _is_newer(sponsorship, existing)
        if (
            existing.created_at is not None
            and sponsorship.created_at is not None
            and same_month(existing.created_at, sponsorship.created_at)
        ):
            amounts = [s.monthly_dollars for s in (existing, sponsorship) if not s.is_past]
            total = sum(amounts) if amounts else PAST_SPONSOR
            kept = sponsorship if newer else existing
            by_account[account_id] = kept.model_copy(update={"monthly_dollars": total})
        elif newer:
            by_account[account_id] = sponsorship
    return list(by_account.values())


# ── Helpers ────────────────────────────────────────────────────────────────────

def best_website(links: list[dict[str, Any]]) -> Optional[str]:
    """First social link usable as a website, or ``None``."""
    for link in links:
        if link.get("type") in _WEBSITE_LINK_TYPES:
            return link.get("url")
    return None


def social_logins(links: list[dict[str, Any]], slug: Optional[str]) -> dict[str, str]:
    """Cross-platform handles: GitHub from social links, plus the OpenCollective slug."""
    logins: dict[str, str] = {}
    for link in links:
        if link.get("type") == "GITHUB":
            match = _GITHUB_LOGIN_RE.search(link.get("url") or "")
            if match and match.group(1):
                logins[ProviderName.GITHUB.value] = match.group(1)
    if slug:
        logins[ProviderName.OPENCOLLECTIVE.value] = slug
    return logins


def account_selector(
    collective_id: Optional[str],
    slug: Optional[str],
    github_handle: Optional[str],
) -> str:
    """GraphQL argument selecting the collective.

    Raises:
        ConfigurationError: If none of the three is set.
    """
    if collective_id:
        return f'id: "{collective_id}"'
    if slug:
        return f'slug: "{slug}"'
    if github_handle:
        return f'githubHandle: "{github_handle}"'
    raise ConfigurationError(
        "OpenCollective collective id or slug or GitHub handle is required."
    )


def subscriptions_query(selector: str, offset: int, active_only: bool) -> str:
    scope = "onlyActiveSubscriptions: true" if active_only else "onlySubscriptions: true"
    return f"""{{
    account({selector}) {{
      orders(limit: {OpenCollectiveProvider.PAGE_SIZE}, offset: {offset}, {scope}, filter: INCOMING) {{
        totalCount
        nodes {{
          id
          createdAt
          frequency
          status
          tier {{
            name
          }}
          amount {{
            value
          }}
          totalDonations {{
            value
          }}{_ACCOUNT_FIELDS}
        }}
      }}
    }}
  }}"""


def transactions_query(selector: str, offset: int, date_from: Optional[datetime]) -> str:
    date_param = f', dateFrom: "{date_from.isoformat()}"' if date_from else ""
    return f"""{{
    account({selector}) {{
      transactions(limit: {OpenCollectiveProvider.PAGE_SIZE}, offset: {offset}, type: CREDIT{date_param}) {{
        offset
        limit
        totalCount
        nodes {{
          type
          kind
          id
          order {{
            id
            status
            frequency
            createdAt
            tier {{
              name
            }}
            amount {{
              value
            }}
          }}
          createdAt
          amount {{
            value
          }}{_ACCOUNT_FIELDS}
        }}
      }}
    }}
  }}"""
