"""Tests for the sponsorwall command-line interface."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
from typer.testing import CliRunner

from sponsorwall import cli
from sponsorwall.errors import ConfigurationError
from sponsorwall.pipeline import orchestrator
from sponsorwall.pipeline.orchestrator import GenerationResult, RenderResult

VALID_TOML = """
[github]
login = "octo"
token = "ghp_test"

[[tiers]]
title = "Backers"

[[tiers]]
title = "Sponsors"
monthly_dollars = 10
preset = "medium"
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "sponsorwall.toml"
    path.write_text(VALID_TOML, encoding="utf-8")
    return path


class _FakeOrchestrator:
    """Stands in for ``SponsorOrchestrator``; records the config it was given."""

    configs: list = []
    error: Exception | None = None

    def __init__(self, config):
        type(self).configs.append(config)
        self.config = config

    def run(self):
        if self.error is not None:
            raise self.error
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        out = Path(self.config.output_dir)
        return GenerationResult(
            run_slug="test",
            started_at=now,
            finished_at=now,
            from_cache=True,
            sponsorships=[],
            renders=[RenderResult(name="sponsors", renderer="tiers", files=[out / "sponsors.svg"])],
        )


@pytest.fixture
def fake_orchestrator(monkeypatch):
    _FakeOrchestrator.configs = []
    _FakeOrchestrator.error = None
    monkeypatch.setattr(orchestrator, "SponsorOrchestrator", _FakeOrchestrator)
    monkeypatch.setattr(cli, "_configure_logging", lambda config: None)
    return _FakeOrchestrator


class TestPresets:
    def test_lists_every_preset(self, runner):
        result = runner.invoke(cli.app, ["presets"])
        assert result.exit_code == 0
        for key in ("none", "xs", "small", "base", "medium", "large", "xl"):
            assert key in result.output


class TestValidateConfig:
    def test_valid(self, runner, config_file):
        result = runner.invoke(cli.app, ["validate-config", "--config", str(config_file)])
        assert result.exit_code == 0, result.output
        assert "github" in result.output
        assert "Backers" in result.output
        assert "[OK] Config valid." in result.output

    def test_full_dump(self, runner, config_file):
        result = runner.invoke(cli.app, ["validate-config", "--config", str(config_file), "--full"])
        assert result.exit_code == 0, result.output
        assert '"width": 800' in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli.app, ["validate-config", "--config", str(tmp_path / "nope.toml")])
        assert result.exit_code == 1
        assert "[ERROR]" in result.output

    def test_invalid_value(self, runner, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("width = -5\n", encoding="utf-8")
        result = runner.invoke(cli.app, ["validate-config", "--config", str(path)])
        assert result.exit_code == 1
        assert "Config validation failed" in result.output

    def test_missing_base_tier(self, runner, tmp_path):
        path = tmp_path / "tiers.toml"
        path.write_text('[[tiers]]\ntitle = "Gold"\nmonthly_dollars = 50\n', encoding="utf-8")
        result = runner.invoke(cli.app, ["validate-config", "--config", str(path)])
        assert result.exit_code == 1
        assert "base tier" in result.output


class TestGenerate:
    def test_overrides_reach_orchestrator(self, runner, config_file, fake_orchestrator, tmp_path):
        out = tmp_path / "public"
        result = runner.invoke(cli.app, [
            "generate", str(out),
            "--config", str(config_file),
            "--width", "640",
            "--name", "wall",
            "--filter", ">=5",
            "--fallback-avatar", "",
            "--force",
        ])
        assert result.exit_code == 0, result.output
        (config,) = fake_orchestrator.configs
        assert config.output_dir == str(out)
        assert config.width == 640
        assert config.name == "wall"
        assert config.filter == ">=5"
        assert config.force is True
        assert config.avatars.fallback == ""
        assert "from cache" in result.output
        assert "[OK] Sponsor wall generated." in result.output

    def test_pipeline_error_exits_1(self, runner, config_file, fake_orchestrator):
        fake_orchestrator.error = ConfigurationError("Invalid filter: '~5'.")
        result = runner.invoke(cli.app, ["generate", "--config", str(config_file)])
        assert result.exit_code == 1
        assert "[ERROR] Invalid filter" in result.output
