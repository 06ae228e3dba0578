"""Tests for the SVG composer and grid layout."""

from __future__ import annotations

import pytest

from sponsorwall.config import AppConfig
from sponsorwall.models.sponsor import Sponsor
from sponsorwall.models.tier import BadgePreset
from sponsorwall.render.composer import LINE_HEIGHT, SvgComposer
from sponsorwall.render.images import ImageProcessor


def _composer(width=800) -> SvgComposer:
    return SvgComposer(AppConfig(width=width), ImageProcessor(8))


class TestComposerState:
    def test_span_advances_height(self):
        composer = _composer().add_span(20).add_span(5)
        assert composer.height == 25

    def test_negative_span_rejected(self):
        with pytest.raises(ValueError):
            _composer().add_span(-1)

    def test_text_advances_one_line(self):
        composer = _composer().add_text("Hello & welcome")
        assert composer.height == LINE_HEIGHT
        assert "Hello &amp; welcome" in composer.body

    def test_title_class(self):
        assert 'class="sponsorwall-tier-title"' in _composer().add_title("Gold").body

    def test_raw_does_not_move(self):
        composer = _composer().add_raw("<g/>")
        assert composer.height == 0
        assert composer.body == "<g/>"

    def test_extend_to_never_shrinks(self):
        composer = _composer().add_span(100).extend_to(50)
        assert composer.height == 100

    def test_document(self):
        svg = _composer(640).add_span(30).generate_svg()
        assert 'viewBox="0 0 640 30"' in svg
        assert 'width="640" height="30"' in svg
        assert "<style>" in svg


class TestGrid:
    def test_rows_of_ten(self, make_sponsorship):
        preset = BadgePreset(avatar_size=60, box_width=80, box_height=100, side_padding=0)
        composer = _composer(800)
        sponsors = [make_sponsorship(login=f"s{i}") for i in range(21)]
        assert composer.per_line(preset) == 10
        composer.add_sponsor_grid(sponsors, preset)
        assert composer.height == 300  # three rows
        assert composer.body.count("<a ") == 21

    def test_single_badge_centered(self, make_sponsorship, tiny_png):
        preset = BadgePreset(avatar_size=80, box_width=80, box_height=80, side_padding=0)
        ship = make_sponsorship().model_copy(
            update={"sponsor": Sponsor(login="solo", avatar_bytes=tiny_png)}
        )
        composer = _composer(800).add_sponsor_grid([ship], preset)
        assert '<image x="360" y="0"' in composer.body
        assert composer.height == 80

    def test_per_line_at_least_one(self):
        preset = BadgePreset(avatar_size=900, box_width=1000, box_height=1000, side_padding=0)
        assert _composer(800).per_line(preset) == 1

    def test_zero_box_width(self):
        preset = BadgePreset(avatar_size=0, box_width=0, box_height=0)
        assert _composer().per_line(preset) == 1

    def test_unique_clip_ids(self, make_sponsorship, tiny_png):
        ships = [
            make_sponsorship(login=f"s{i}").model_copy(
                update={"sponsor": Sponsor(login=f"s{i}", avatar_bytes=tiny_png)}
            )
            for i in range(3)
        ]
        preset = BadgePreset(avatar_size=40, box_width=48, box_height=48)
        body = _composer().add_sponsor_grid(ships, preset).body
        assert all(f'id="c{i}"' in body for i in range(3))
