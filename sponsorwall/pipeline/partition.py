"""
Tier partitioner — bucket a sorted sponsor list into dollar tiers.

Exactly one tier must be the base bucket (threshold 0 or unset). Sponsors are
ordered oldest first inside each bucket; buckets are ordered by threshold,
highest first.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from sponsorwall.errors import ConfigurationError
from sponsorwall.models.sponsor import Sponsorship
from sponsorwall.models.tier import Tier, TierBucket

logger = logging.getLogger(__name__)

_UNDATED = datetime.max.replace(tzinfo=timezone.utc)


def partition_tiers(
    sponsors: Sequence[Sponsorship],
    tiers: Sequence[Tier],
    include_past: bool = False,
) -> list[TierBucket]:
    """Assign every sponsor to exactly one tier.

    Args:
        sponsors: Sponsor list (any order).
        tiers: Configured tiers (any order).
        include_past: Keep sponsors with ``monthly_dollars <= 0``.

    Returns:
        One ``TierBucket`` per tier, descending by threshold. A sponsor lands
        in the highest tier whose threshold does not exceed its amount, or in
        the base tier when none does. Undated sponsors sort last.

    Raises:
        ConfigurationError: Unless exactly one tier has threshold 0.
    """
    base_tiers = [t for t in tiers if t.threshold == 0]
    if len(base_tiers) != 1:
        raise ConfigurationError(
            f"Exactly one tier must have a threshold of 0 (the base tier), "
            f"found {len(base_tiers)}: {[t.title for t in base_tiers]}."
        )
    base = base_tiers[0]

    ordered = sorted(tiers, key=lambda t: t.threshold, reverse=True)
    buckets: dict[int, list[Sponsorship]] = {id(t): [] for t in ordered}

    included = [s for s in sponsors if s.monthly_dollars > 0 or include_past]
    included.sort(key=lambda s: s.created_at or _UNDATED)

    for ship in included:
        tier = next((t for t in ordered if ship.monthly_dollars >= t.threshold), base)
        buckets[id(tier)].append(ship)

    logger.debug(
        "Partitioned %d of %d sponsors into %d tiers",
        len(included), len(sponsors), len(ordered),
    )
    return [TierBucket(tier=t, sponsors=tuple(buckets[id(t)])) for t in ordered]
