"""
Afdian adapter.

API:  POST https://afdian.com/api/open/query-sponsor
Auth: every request is signed with
      ``md5(token + "params" + params + "ts" + ts + "user_id" + user_id)``
      where ``params`` is the JSON-encoded page request and ``ts`` Unix seconds.

Amounts are cumulative CNY (``all_sum_amount``) converted with the configured
exchange rate. One-off purchases (``product_type != 0``) count for
``purchase_effectivity_days`` after their last update and can be excluded
entirely with ``include_purchases = false``.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from typing import TYPE_CHECKING, Any, ClassVar

import httpx

from sponsorwall.errors import ConfigurationError, ProviderError
from sponsorwall.ingestion.base import DEFAULT_TIMEOUT, SponsorProvider
from sponsorwall.models.sponsor import PAST_SPONSOR, Sponsor, Sponsorship
from sponsorwall.taxonomy.sponsor_taxonomy import ProviderName, SponsorKind, Visibility
from sponsorwall.utils.time_utils import parse_timestamp

if TYPE_CHECKING:
    from sponsorwall.config import AfdianConfig, AppConfig

logger = logging.getLogger(__name__)

# Afdian assigns this prefix to users who never set a display name.
DEFAULT_NAME_PREFIX = "爱发电用户_"
_SECONDS_PER_DAY = 24 * 3600


def sign_request(token: str, params: str, ts: int, user_id: str) -> str:
    """Request signature expected by the Afdian open API."""
    return hashlib.md5(f"{token}params{params}ts{ts}user_id{user_id}".encode()).hexdigest()


def _is_purchase(plan: dict[str, Any]) -> bool:
    return bool(plan) and plan.get("product_type", 0) != 0


class AfdianProvider(SponsorProvider):
    """Fetches sponsors from Afdian."""

    name: ClassVar[str] = ProviderName.AFDIAN.value
    API_URL: ClassVar[str] = "https://afdian.com/api/open/query-sponsor"

    async def fetch_sponsors(
        self,
        config: "AppConfig",
        client: httpx.AsyncClient,
    ) -> list[Sponsorship]:
        """Page through the sponsor list.

        Raises:
            ConfigurationError: If the user id or token is missing.
            ProviderError: If any page answers with an ``ec`` other than 200.
        """
        af = config.afdian
        if not af.user_id or not af.token:
            raise ConfigurationError(
                "Afdian user id and token are required "
                "(SPONSORWALL_AFDIAN_USER_ID, SPONSORWALL_AFDIAN_TOKEN)."
            )

        raw_sponsors: list[dict[str, Any]] = []
        page, pages = 1, 1
        while page <= pages:
            params = json.dumps({"page": page})
            ts = int(time.time())
            resp = await client.post(
                self.API_URL,
                json={
                    "user_id": af.user_id,
                    "params": params,
                    "ts": ts,
                    "sign": sign_request(af.token, params, ts, af.user_id),
                },
                timeout=DEFAULT_TIMEOUT,
            )
            resp.raise_for_status()
            payload = resp.json() or {}
            if payload.get("ec") != 200:
                raise ProviderError(
                    self.name,
                    f"API error on page {page}: ec={payload.get('ec')} "
                    f"em={payload.get('em') or 'no message'}",
                    detail=payload,
                )
            data = payload["data"]
            pages = data.get("total_page", 1)
            logger.debug("Afdian page %d/%s: %d sponsors", page, pages, len(data.get("list") or []))
            raw_sponsors.extend(self._apply_purchase_rules(data.get("list") or [], af))
            page += 1

        now = time.time()
        return [self._parse_sponsor(raw, af.exchange_rate, now) for raw in raw_sponsors]

    def _apply_purchase_rules(
        self,
        sponsors: list[dict[str, Any]],
        af: "AfdianConfig",
    ) -> list[dict[str, Any]]:
        """Drop or expire one-off purchases according to config."""
        if not af.include_purchases:
            sponsors = [s for s in sponsors if not _is_purchase(s.get("current_plan") or {})]
        if af.purchase_effectivity_days > 0:
            for sponsor in sponsors:
                plan = sponsor.get("current_plan") or {}
                if _is_purchase(plan):
                    plan["expire_time"] = (
                        plan.get("update_time", 0)
                        + af.purchase_effectivity_days * _SECONDS_PER_DAY
                    )
        return sponsors

    def _parse_sponsor(self, raw: dict[str, Any], exchange_rate: float, now: float) -> Sponsorship:
        plan = raw.get("current_plan") or {}
        user = raw["user"]
        expire_time = plan.get("expire_time")
        is_expired = expire_time < now if expire_time else True

        name = user.get("name") or ""
        if name.startswith(DEFAULT_NAME_PREFIX):
            name = user["user_id"][:5]

        return Sponsorship(
            sponsor=Sponsor(
                kind=SponsorKind.INDIVIDUAL,
                login=user["user_id"],
                name=name,
                avatar_url=user.get("avatar"),
                link_url=f"https://afdian.com/u/{user['user_id']}",
            ),
            monthly_dollars=(
                PAST_SPONSOR if is_expired
                else float(raw.get("all_sum_amount") or 0) / exchange_rate
            ),
            visibility=Visibility.PUBLIC,
            tier_name="Afdian",
            created_at=parse_timestamp(raw.get("first_pay_time")),
            expires_at=parse_timestamp(expire_time) if expire_time else None,
            is_one_time=not plan.get("name") or _is_purchase(plan),
            provider=self.name,
            raw=raw,
        )
