"""Tests for the sponsor snapshot cache."""

from __future__ import annotations

import json

import pytest

from sponsorwall.ingestion.cache import compute_hash, load_cache, save_cache
from sponsorwall.models.sponsor import Sponsor, Sponsorship


class TestSnapshotCache:
    def test_round_trip_keeps_avatar_bytes(self, tmp_path, tiny_png):
        ship = Sponsorship(
            sponsor=Sponsor(login="alice", avatar_bytes=tiny_png),
            monthly_dollars=5,
            provider="github+patreon",
        )
        path = tmp_path / "nested" / ".cache.json"
        save_cache(path, [ship])
        [restored] = load_cache(path)
        assert restored.sponsor.avatar_bytes == tiny_png
        assert restored.provider == "github+patreon"
        assert restored.monthly_dollars == 5

    def test_meta_written(self, tmp_path, make_sponsorship):
        path = tmp_path / ".cache.json"
        content_hash = save_cache(path, [make_sponsorship()], {"run_slug": "abc"})
        meta = json.loads(path.read_text(encoding="utf-8"))["_meta"]
        assert meta["record_count"] == 1
        assert meta["run_slug"] == "abc"
        assert meta["content_hash"] == content_hash

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_cache(tmp_path / "absent.json")


class TestComputeHash:
    def test_key_order_independent(self):
        assert compute_hash({"a": 1, "b": 2}) == compute_hash({"b": 2, "a": 1})

    def test_differs_on_content(self):
        assert compute_hash([1]) != compute_hash([2])
