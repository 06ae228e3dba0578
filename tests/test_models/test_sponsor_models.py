"""Tests for Sponsor, Sponsorship and Tier models."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from sponsorwall.models.sponsor import PAST_SPONSOR, Sponsor, Sponsorship
from sponsorwall.models.tier import Tier
from sponsorwall.render.presets import MEDIUM, XS
from sponsorwall.taxonomy.sponsor_taxonomy import SponsorKind, Visibility


class TestSponsorship:
    def test_valid_amount(self, make_sponsorship):
        assert make_sponsorship(monthly_dollars=12.5).monthly_dollars == 12.5

    def test_zero_amount_allowed(self, make_sponsorship):
        assert make_sponsorship(monthly_dollars=0).monthly_dollars == 0

    def test_past_sentinel_allowed(self, make_sponsorship):
        ship = make_sponsorship(monthly_dollars=PAST_SPONSOR)
        assert ship.is_past is True

    @pytest.mark.parametrize("amount", [-0.5, -2, -100])
    def test_other_negative_amounts_rejected(self, make_sponsorship, amount):
        with pytest.raises(ValidationError):
            make_sponsorship(monthly_dollars=amount)

    def test_frozen(self, make_sponsorship):
        ship = make_sponsorship()
        with pytest.raises(ValidationError):
            ship.monthly_dollars = 100  # type: ignore[misc]

    def test_naive_timestamps_become_utc(self):
        ship = Sponsorship(
            sponsor=Sponsor(login="bob"),
            created_at=datetime(2024, 5, 1, 12, 0),
        )
        assert ship.created_at.tzinfo == timezone.utc

    def test_providers_split_merged_tag(self, make_sponsorship):
        ship = make_sponsorship(provider="github+patreon")
        assert ship.providers == ["github", "patreon"]

    def test_private_flag(self, make_sponsorship):
        assert make_sponsorship(visibility=Visibility.PRIVATE).is_private is True
        assert make_sponsorship().is_private is False

    def test_label(self, make_sponsorship):
        assert make_sponsorship(login="alice", provider="github").label() == "@alice(github)"


class TestSponsor:
    def test_display_name_prefers_name(self):
        assert Sponsor(login="ali", name="Alice A").display_name == "Alice A"

    def test_display_name_falls_back_to_login(self):
        assert Sponsor(login="ali").display_name == "ali"

    def test_href_prefers_website(self):
        sponsor = Sponsor(login="ali", website_url="https://ali.dev", link_url="https://github.com/ali")
        assert sponsor.href == "https://ali.dev"

    def test_href_none_without_links(self):
        assert Sponsor(login="ali").href is None

    def test_default_kind_is_individual(self):
        assert Sponsor().kind == SponsorKind.INDIVIDUAL

    def test_avatar_bytes_round_trip_json(self):
        ship = Sponsorship(sponsor=Sponsor(login="ali", avatar_bytes=b"\x89PNG\x00\xff"))
        restored = Sponsorship.model_validate_json(ship.model_dump_json())
        assert restored.sponsor.avatar_bytes == b"\x89PNG\x00\xff"

    def test_avatar_bytes_serialized_as_base64(self):
        ship = Sponsorship(sponsor=Sponsor(login="ali", avatar_bytes=b"sponsor wall"))
        payload = json.loads(ship.model_dump_json())
        assert payload["sponsor"]["avatar_bytes"] == "c3BvbnNvciB3YWxs"
        assert Sponsorship.model_validate_json(json.dumps(payload)).sponsor.avatar_bytes == b"sponsor wall"


class TestTier:
    def test_preset_by_name(self):
        assert Tier(title="Sponsors", monthly_dollars=10, preset="medium").preset == MEDIUM

    def test_unknown_preset_rejected(self):
        with pytest.raises(ValidationError):
            Tier(title="X", preset="gigantic")

    def test_threshold_defaults_to_zero(self):
        assert Tier(title="Backers").threshold == 0

    def test_threshold_negative(self):
        assert Tier(title="Past", monthly_dollars=-1, preset=XS).threshold == -1

    def test_padding_defaults(self):
        tier = Tier(title="T")
        assert tier.padding_top == 20
        assert tier.padding_bottom == 10
