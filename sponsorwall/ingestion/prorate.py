"""
Tier credit for lapsed one-time contributions.

A one-time sponsor who paid $50 against tiers of $25 and $5 is treated as
having funded two months at $25. If those two months have not yet elapsed
since the payment, the sponsor still counts at $25 this month; once the
credit is spent they become a past sponsor.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from sponsorwall.models.sponsor import PAST_SPONSOR
from sponsorwall.utils.time_utils import month_difference


def current_month_tier(
    now: datetime,
    sponsored_at: datetime,
    thresholds: Iterable[float],
    total_dollars: float,
) -> float:
    """Return the tier amount a one-time contribution still pays for this month.

    Walks the positive thresholds from highest to lowest. At each tier the
    remaining balance buys ``floor(balance / tier)`` whole months; tiers it
    cannot afford are skipped. The first tier whose months reach past the
    current month is the answer.

    Args:
        now: Reference date (usually ``utcnow()``).
        sponsored_at: When the contribution was made.
        thresholds: Configured tier thresholds; non-positive values are ignored.
        total_dollars: Total amount contributed.

    Returns:
        The matching tier threshold, or ``PAST_SPONSOR`` when the balance is
        exhausted before the current month.
    """
    elapsed = month_difference(sponsored_at, now)
    remaining = total_dollars
    months = 0
    for tier in sorted((t for t in thresholds if t > 0), reverse=True):
        months_at_tier = int(remaining // tier)
        if months_at_tier == 0:
            continue
        if months + months_at_tier > elapsed:
            return tier
        remaining -= months_at_tier * tier
        months += months_at_tier
    return PAST_SPONSOR
