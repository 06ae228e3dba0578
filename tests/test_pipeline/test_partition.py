"""Tests for the tier partitioner."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from sponsorwall.errors import ConfigurationError
from sponsorwall.models.tier import Tier
from sponsorwall.pipeline.partition import partition_tiers
from sponsorwall.render.presets import default_tiers


def _tiers():
    return [
        Tier(title="Backers"),
        Tier(title="Sponsors", monthly_dollars=10),
        Tier(title="Gold", monthly_dollars=100),
    ]


class TestPartitionErrors:
    def test_no_base_tier(self):
        with pytest.raises(ConfigurationError):
            partition_tiers([], [Tier(title="Gold", monthly_dollars=100)])

    def test_two_base_tiers(self):
        with pytest.raises(ConfigurationError):
            partition_tiers([], [Tier(title="A"), Tier(title="B", monthly_dollars=0)])


class TestPartition:
    def test_buckets_descending(self):
        buckets = partition_tiers([], _tiers())
        assert [b.tier.title for b in buckets] == ["Gold", "Sponsors", "Backers"]

    def test_assignment_by_threshold(self, make_sponsorship):
        ships = [
            make_sponsorship(login="a", monthly_dollars=150),
            make_sponsorship(login="b", monthly_dollars=100),
            make_sponsorship(login="c", monthly_dollars=99.99),
            make_sponsorship(login="d", monthly_dollars=1),
        ]
        by_title = {b.tier.title: [s.sponsor.login for s in b.sponsors]
                    for b in partition_tiers(ships, _tiers())}
        assert by_title == {"Gold": ["a", "b"], "Sponsors": ["c"], "Backers": ["d"]}

    def test_strict_partition(self, make_sponsorship):
        ships = [make_sponsorship(login=f"s{i}", monthly_dollars=amt)
                 for i, amt in enumerate([1, 5, 10, 20, 50, 100, 250, -1, 0])]
        buckets = partition_tiers(ships, default_tiers(), include_past=True)
        assigned = [s for b in buckets for s in b.sponsors]
        assert len(assigned) == len(ships)
        assert {s.sponsor.login for s in assigned} == {s.sponsor.login for s in ships}

    def test_past_and_zero_excluded_by_default(self, make_sponsorship):
        ships = [make_sponsorship(login="past", monthly_dollars=-1),
                 make_sponsorship(login="zero", monthly_dollars=0),
                 make_sponsorship(login="paid", monthly_dollars=3)]
        assigned = [s.sponsor.login for b in partition_tiers(ships, _tiers()) for s in b.sponsors]
        assert assigned == ["paid"]

    def test_past_sponsors_land_in_past_tier(self, make_sponsorship):
        buckets = partition_tiers([make_sponsorship(monthly_dollars=-1)], default_tiers(), True)
        past = next(b for b in buckets if b.tier.title == "Past Sponsors")
        assert len(past.sponsors) == 1

    def test_below_every_threshold_falls_back_to_base(self, make_sponsorship):
        tiers = [Tier(title="Base"), Tier(title="Big", monthly_dollars=10)]
        buckets = partition_tiers([make_sponsorship(monthly_dollars=-1)], tiers, include_past=True)
        assert [b.tier.title for b in buckets if b.sponsors] == ["Base"]

    def test_oldest_first_undated_last(self, make_sponsorship):
        ships = [
            make_sponsorship(login="new", created_at=datetime(2024, 6, 1, tzinfo=timezone.utc)),
            make_sponsorship(login="undated").model_copy(update={"created_at": None}),
            make_sponsorship(login="old", created_at=datetime(2020, 6, 1, tzinfo=timezone.utc)),
        ]
        [backers] = [b for b in partition_tiers(ships, _tiers()) if b.sponsors]
        assert [s.sponsor.login for s in backers.sponsors] == ["old", "new", "undated"]
