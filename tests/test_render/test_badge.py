"""Tests for the badge generator."""

from __future__ import annotations

import pytest

from sponsorwall.models.sponsor import Sponsor
from sponsorwall.models.tier import BadgePreset
from sponsorwall.render.badge import (
    INDIVIDUAL_RADIUS,
    ORGANIZATION_RADIUS,
    avatar_resolution,
    corner_radius,
    escape_text,
    fmt_number,
    generate_badge,
    truncate_name,
)
from sponsorwall.render.images import ImageProcessor
from sponsorwall.render.presets import BASE, MEDIUM
from sponsorwall.taxonomy.sponsor_taxonomy import ImageFormat, SponsorKind


def _badge(sponsor: Sponsor, preset: BadgePreset = MEDIUM, x=10, y=20) -> str:
    return generate_badge(
        x, y, sponsor, preset, corner_radius(sponsor.kind),
        ImageFormat.WEBP, ImageProcessor(8), "c0",
    )


class TestTruncateName:
    def test_keeps_first_word(self):
        assert truncate_name("Christopher Anderson", 10) == "Christopher"

    def test_cuts_with_ellipsis(self):
        result = truncate_name("Supercalifragilistic", 10)
        assert len(result) == 10
        assert result.endswith("...")

    def test_short_names_untouched(self):
        assert truncate_name("Ann", 10) == "Ann"

    def test_no_limit(self):
        assert truncate_name("A very long name indeed", None) == "A very long name indeed"


class TestCornerRadius:
    def test_organization(self):
        assert corner_radius(SponsorKind.ORGANIZATION) == ORGANIZATION_RADIUS == 0.1

    def test_individual(self):
        assert corner_radius(SponsorKind.INDIVIDUAL) == INDIVIDUAL_RADIUS == 0.5


class TestHelpers:
    @pytest.mark.parametrize("value, expected", [(10.0, "10"), (2.5, "2.5"), (1 / 3, "0.333")])
    def test_fmt_number(self, value, expected):
        assert fmt_number(value) == expected

    def test_escape(self):
        assert escape_text('<b>"A&B"</b>') == "&lt;b&gt;&quot;A&amp;B&quot;&lt;/b&gt;"

    @pytest.mark.parametrize("size, fmt, expected", [
        (25, ImageFormat.WEBP, 50),
        (70, ImageFormat.WEBP, 80),
        (90, ImageFormat.WEBP, None),
        (90, ImageFormat.PNG, 120),
    ])
    def test_avatar_resolution(self, size, fmt, expected):
        assert avatar_resolution(size, fmt) == expected


class TestGenerateBadge:
    def test_link_wrapper(self):
        svg = _badge(Sponsor(login="alice", link_url="https://github.com/alice"))
        assert svg.startswith('<a href="https://github.com/alice" class="sponsorwall-link" '
                              'target="_blank" id="alice">')
        assert svg.endswith("</a>")

    def test_no_href_without_links(self):
        assert "href" not in _badge(Sponsor(login="alice"))

    def test_name_label_position(self):
        svg = _badge(Sponsor(login="alice", name="Alice"), MEDIUM, x=10, y=20)
        # x + size/2, y + size + 18 with avatar size 50
        assert '<text x="35" y="88"' in svg
        assert ">Alice</text>" in svg

    def test_name_hidden_for_small_presets(self):
        assert "<text" not in _badge(Sponsor(login="alice", name="Alice"), BASE)

    def test_name_escaped(self):
        svg = _badge(Sponsor(login="x", name="<Evil & Co>"))
        assert "&lt;Evil" in svg
        assert "<Evil" not in svg

    def test_image_clipped_with_radius(self, tiny_png):
        svg = _badge(Sponsor(login="acme", kind=SponsorKind.ORGANIZATION, avatar_bytes=tiny_png))
        assert '<clipPath id="c0">' in svg
        assert 'rx="5"' in svg  # 50 * 0.1
        assert 'href="data:image/webp;base64,' in svg
        assert 'clip-path="url(#c0)"' in svg

    def test_missing_avatar_renders_without_image(self):
        svg = _badge(Sponsor(login="alice"))
        assert "<image" not in svg
