"""Tests for render-pass filters and link/avatar replacements."""

from __future__ import annotations

import pytest

from sponsorwall.errors import ConfigurationError
from sponsorwall.pipeline.filters import apply_filter, parse_filter
from sponsorwall.pipeline.replace import apply_replacements


class TestParseFilter:
    @pytest.mark.parametrize("expr, amount, expected", [
        (">=10", 10, True),
        (">=10", 9.99, False),
        (">10", 10, False),
        ("<5", 4, True),
        ("<=5", 5, True),
        (" < 5 ", 5, False),
    ])
    def test_operators(self, make_sponsorship, expr, amount, expected):
        assert parse_filter(expr)(make_sponsorship(monthly_dollars=amount), []) is expected

    @pytest.mark.parametrize("expr", ["==5", "=5", "5", ">=ten", "", "abc>5"])
    def test_malformed(self, expr):
        with pytest.raises(ConfigurationError):
            parse_filter(expr)


class TestApplyFilter:
    def test_none_keeps_everything(self, make_sponsorship):
        ships = [make_sponsorship(), make_sponsorship(login="b")]
        assert apply_filter(ships, None) == ships

    def test_expression(self, make_sponsorship):
        ships = [make_sponsorship(login="a", monthly_dollars=1),
                 make_sponsorship(login="b", monthly_dollars=20)]
        assert [s.sponsor.login for s in apply_filter(ships, ">=10")] == ["b"]

    def test_callable_drops_only_on_false(self, make_sponsorship):
        ships = [make_sponsorship(login="a"), make_sponsorship(login="b")]
        predicate = lambda ship, _all: False if ship.sponsor.login == "a" else None
        assert [s.sponsor.login for s in apply_filter(ships, predicate)] == ["b"]


class TestReplacements:
    def test_link_map(self, make_sponsorship):
        ship = make_sponsorship(login="alice")
        [out] = apply_replacements([ship], links=[{"https://example.com/alice": "https://alice.dev"}])
        assert out.sponsor.link_url == "https://alice.dev"

    def test_avatar_callable(self, make_sponsorship):
        ship = make_sponsorship(login="alice", avatar_url="https://old/a.png")
        [out] = apply_replacements(
            [ship], avatars=[lambda s: "https://new/a.png" if s.sponsor.login == "alice" else None]
        )
        assert out.sponsor.avatar_url == "https://new/a.png"

    def test_first_hit_wins(self, make_sponsorship):
        ship = make_sponsorship(login="alice")
        [out] = apply_replacements([ship], links=[
            lambda s: None,
            {"https://example.com/alice": "https://first"},
            {"https://example.com/alice": "https://second"},
        ])
        assert out.sponsor.link_url == "https://first"

    def test_untouched_when_nothing_matches(self, make_sponsorship):
        ship = make_sponsorship(login="bob")
        assert apply_replacements([ship], links=[{"https://x": "https://y"}]) == [ship]
