"""Tests for the renderer registry and artifact writers."""

from __future__ import annotations

import json

import pytest

from sponsorwall.errors import ConfigurationError
from sponsorwall.render.circles import CirclesRenderer
from sponsorwall.render.output import artifact_path, write_json, write_png, write_svg
from sponsorwall.render.renderers import RENDERERS, get_renderer
from sponsorwall.render.tiers import TiersRenderer

SVG = '<svg xmlns="http://www.w3.org/2000/svg" width="20" height="10"></svg>'


class TestRendererRegistry:
    def test_builtin_renderers(self):
        assert set(RENDERERS) == {"tiers", "circles"}
        assert isinstance(get_renderer("tiers"), TiersRenderer)
        assert isinstance(get_renderer("circles"), CirclesRenderer)

    def test_unknown_renderer(self):
        with pytest.raises(ConfigurationError, match="Unknown renderer"):
            get_renderer("hexagons")


class TestArtifacts:
    def test_artifact_path(self, tmp_path):
        assert artifact_path(tmp_path, "sponsors.wide", "svg") == tmp_path / "sponsors.wide.svg"

    def test_write_json_strips_binary_fields(self, tmp_path, make_sponsorship, tiny_png):
        ship = make_sponsorship(login="alice", raw={"secret": 1})
        ship = ship.model_copy(update={
            "sponsor": ship.sponsor.model_copy(update={"avatar_bytes": tiny_png}),
        })
        path = write_json([ship], tmp_path / "nested" / "sponsors.json")

        records = json.loads(path.read_text(encoding="utf-8"))
        assert len(records) == 1
        assert records[0]["sponsor"]["login"] == "alice"
        assert "avatar_bytes" not in records[0]["sponsor"]
        assert "raw" not in records[0]
        assert records[0]["monthly_dollars"] == 5

    def test_write_svg(self, tmp_path):
        path = write_svg(SVG, tmp_path / "a" / "sponsors.svg")
        assert path.read_text(encoding="utf-8") == SVG

    def test_write_png(self, tmp_path):
        path = write_png(SVG, tmp_path / "sponsors.png", density=72)
        assert path.read_bytes().startswith(b"\x89PNG")
