"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``sponsorwall.toml``        — project config in the working directory
  2. ``sponsorwall.local.toml``  — optional local overrides (gitignored)
  3. ``.env``                    — local secrets (gitignored)
  4. Environment variables       — ``SPONSORWALL_*`` prefix, with the bare
                                   legacy names (``GITHUB_TOKEN``, ...) as
                                   fallback. They only fill provider fields
                                   the TOML layers left unset.

Entry point: ``load_config(config_path=None) -> AppConfig``

All pipeline stages and CLI commands receive an ``AppConfig`` instance —
never raw dicts or individual env var lookups scattered through the codebase.
Programmatic callers may also build ``AppConfig(...)`` directly; that is the
only way to attach callables (function merge rules, per-tier compose hooks,
replacement functions, filter predicates).
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Callable, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from sponsorwall.models.tier import Tier
from sponsorwall.render.presets import DEFAULT_INLINE_CSS, default_tiers
from sponsorwall.taxonomy.sponsor_taxonomy import (
    ImageFormat,
    OutputFormat,
    RendererName,
    SponsorKind,
)

CONFIG_FILENAME = "sponsorwall.toml"
LOCAL_CONFIG_FILENAME = "sponsorwall.local.toml"

# ── Provider sections ─────────────────────────────────────────────────────────


class GitHubConfig(BaseModel):
    """GitHub Sponsors credentials and account."""

    model_config = ConfigDict(frozen=True)

    login: Optional[str] = None
    token: Optional[str] = None
    type: str = "user"
    prorate_onetime: bool = False

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in ("user", "organization"):
            raise ValueError(f"GitHub type must be either 'user' or 'organization', got '{v}'.")
        return v


class PatreonConfig(BaseModel):
    """Patreon creator access token."""

    model_config = ConfigDict(frozen=True)

    token: Optional[str] = None


class OpenCollectiveConfig(BaseModel):
    """OpenCollective personal token and collective selector (id, slug or GitHub handle)."""

    model_config = ConfigDict(frozen=True)

    key: Optional[str] = None
    id: Optional[str] = None
    slug: Optional[str] = None
    github_handle: Optional[str] = None
    type: Optional[str] = None


class AfdianConfig(BaseModel):
    """Afdian open-API credentials and CNY conversion."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    token: Optional[str] = None
    exchange_rate: float = 6.5
    include_purchases: bool = True
    purchase_effectivity_days: int = 30

    @field_validator("exchange_rate")
    @classmethod
    def validate_exchange_rate(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"exchange_rate must be positive, got {v}.")
        return v


class PolarConfig(BaseModel):
    """Polar access token and organization slug."""

    model_config = ConfigDict(frozen=True)

    token: Optional[str] = None
    organization: Optional[str] = None


# ── Ambient sections ──────────────────────────────────────────────────────────


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AvatarsConfig(BaseModel):
    """Avatar download and resize settings.

    ``fallback`` is ``"builtin"`` (bundled silhouette), a URL, a local file
    path, or ``""`` to disable the fallback entirely (fetch errors then abort
    the run).
    """

    model_config = ConfigDict(frozen=True)

    fallback: str = "builtin"
    concurrency: int = 15
    cache_size: int = 512
    size: int = 120
    user_agent: str = "Mozilla/5.0 Chrome/124.0.0.0 Safari/537.36 Sponsorwall/0.1.0"

    @field_validator("concurrency", "cache_size", "size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}.")
        return v


class CirclesConfig(BaseModel):
    """Circle-packing renderer parameters."""

    model_config = ConfigDict(frozen=True)

    radius_max: float = 300
    radius_min: float = 10
    radius_past: float = 5
    weight_exponent: float = 0.9


class SponsorMatcher(BaseModel):
    """One clause of a merge group; unset fields match anything."""

    model_config = ConfigDict(frozen=True)

    provider: Optional[str] = None
    login: Optional[str] = None
    name: Optional[str] = None
    type: Optional[SponsorKind] = None


MergeRule = Union[list[SponsorMatcher], Callable[..., Any]]
Replacement = Union[dict[str, str], Callable[..., Any]]


class RenderConfig(BaseModel):
    """Overrides for one named render pass. Unset fields inherit from ``AppConfig``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = "sponsors"
    renderer: Optional[RendererName] = None
    formats: Optional[list[OutputFormat]] = None
    width: Optional[int] = None
    tiers: Optional[list[Tier]] = None
    filter: Optional[Union[str, Callable[..., Any]]] = None
    include_private: Optional[bool] = None
    include_past_sponsors: Optional[bool] = None
    image_format: Optional[ImageFormat] = None


# ── Root ──────────────────────────────────────────────────────────────────────


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    All pipeline stages and CLI commands receive an ``AppConfig`` instance.
    It is constructed by ``load_config()`` which merges TOML + .env + env vars.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    github: GitHubConfig = GitHubConfig()
    patreon: PatreonConfig = PatreonConfig()
    opencollective: OpenCollectiveConfig = OpenCollectiveConfig()
    afdian: AfdianConfig = AfdianConfig()
    polar: PolarConfig = PolarConfig()
    logging: LoggingConfig = LoggingConfig()
    avatars: AvatarsConfig = AvatarsConfig()
    circles: CirclesConfig = CirclesConfig()

    providers: Optional[list[str]] = None
    width: int = 800
    output_dir: str = "./sponsorkit"
    cache_file: str = ".cache.json"
    formats: list[OutputFormat] = [OutputFormat.JSON, OutputFormat.SVG, OutputFormat.PNG]
    name: str = "sponsors"
    renderer: RendererName = RendererName.TIERS
    image_format: ImageFormat = ImageFormat.WEBP
    include_private: bool = False
    include_past_sponsors: bool = False
    prorate_onetime: bool = False
    sponsors_auto_merge: bool = False
    merge_sponsors: list[MergeRule] = Field(default_factory=list)
    replace_links: list[Replacement] = Field(default_factory=list)
    replace_avatars: list[Replacement] = Field(default_factory=list)
    padding_top: float = 20
    padding_bottom: float = 20
    svg_inline_css: str = DEFAULT_INLINE_CSS
    png_density: int = 150
    tiers: list[Tier] = Field(default_factory=default_tiers)
    renders: list[RenderConfig] = Field(default_factory=list)
    filter: Optional[Union[str, Callable[..., Any]]] = None
    force: bool = False
    debug: bool = False

    @field_validator("replace_links", "replace_avatars", mode="before")
    @classmethod
    def wrap_single_replacement(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, dict) or callable(v):
            return [v]
        return v

    @field_validator("width")
    @classmethod
    def validate_width(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"width must be positive, got {v}.")
        return v

    @property
    def cache_path(self) -> Path:
        return Path(self.output_dir) / self.cache_file

    def render_passes(self) -> list["AppConfig"]:
        """One effective config per render pass.

        With no ``renders`` configured the config itself is the single pass.
        Otherwise each ``RenderConfig`` is layered over this config.
        """
        if not self.renders:
            return [self]
        passes = []
        for render in self.renders:
            overrides = {
                key: value
                for key, value in render
                if value is not None
            }
            passes.append(self.model_copy(update=overrides))
        return passes


# ── Loader ────────────────────────────────────────────────────────────────────

# (section, field) → env var names, first hit wins
_ENV_PROVIDER_FIELDS: dict[tuple[str, str], tuple[str, ...]] = {
    ("github", "login"): ("SPONSORWALL_GITHUB_LOGIN", "GITHUB_LOGIN"),
    ("github", "token"): ("SPONSORWALL_GITHUB_TOKEN", "GITHUB_TOKEN"),
    ("github", "type"): ("SPONSORWALL_GITHUB_TYPE", "GITHUB_TYPE"),
    ("patreon", "token"): ("SPONSORWALL_PATREON_TOKEN", "PATREON_TOKEN"),
    ("opencollective", "key"): ("SPONSORWALL_OPENCOLLECTIVE_KEY", "OPENCOLLECTIVE_KEY"),
    ("opencollective", "id"): ("SPONSORWALL_OPENCOLLECTIVE_ID", "OPENCOLLECTIVE_ID"),
    ("opencollective", "slug"): ("SPONSORWALL_OPENCOLLECTIVE_SLUG", "OPENCOLLECTIVE_SLUG"),
    ("opencollective", "github_handle"): (
        "SPONSORWALL_OPENCOLLECTIVE_GH_HANDLE", "OPENCOLLECTIVE_GH_HANDLE",
    ),
    ("opencollective", "type"): ("SPONSORWALL_OPENCOLLECTIVE_TYPE", "OPENCOLLECTIVE_TYPE"),
    ("afdian", "user_id"): ("SPONSORWALL_AFDIAN_USER_ID", "AFDIAN_USER_ID"),
    ("afdian", "token"): ("SPONSORWALL_AFDIAN_TOKEN", "AFDIAN_TOKEN"),
    ("afdian", "exchange_rate"): ("SPONSORWALL_AFDIAN_EXCHANGE_RATE", "AFDIAN_EXCHANGE_RATE"),
    ("polar", "token"): ("SPONSORWALL_POLAR_TOKEN", "POLAR_TOKEN"),
    ("polar", "organization"): ("SPONSORWALL_POLAR_ORGANIZATION", "POLAR_ORGANIZATION"),
}


def load_config(
    config_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<cwd>/sponsorwall.toml``; a missing default file is not an error.
        cwd: Directory searched for the default files and ``.env``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = Path(cwd) if cwd is not None else Path.cwd()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    raw: dict[str, Any] = {}
    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        config_path = root / CONFIG_FILENAME

    if config_path.exists():
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)

    local_config_path = config_path.parent / LOCAL_CONFIG_FILENAME
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Fill unset provider fields from env vars and apply global overrides.

    Global overrides:
      SPONSORWALL_DIR        → raw["output_dir"]
      SPONSORWALL_LOG_LEVEL  → raw["logging"]["level"]
    """
    for (section, key), names in _ENV_PROVIDER_FIELDS.items():
        if raw.get(section, {}).get(key) is not None:
            continue
        for name in names:
            if value := os.environ.get(name):
                raw.setdefault(section, {})[key] = value
                break

    if output_dir := os.environ.get("SPONSORWALL_DIR"):
        raw["output_dir"] = output_dir

    if log_level := os.environ.get("SPONSORWALL_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map the raw TOML dict to the ``AppConfig`` model structure.

    Past sponsors are included automatically when the configured tiers
    contain a negative threshold, unless the key is set explicitly.
    """
    raw = dict(raw)
    tiers = raw.get("tiers")
    if tiers and "include_past_sponsors" not in raw:
        raw["include_past_sponsors"] = any(
            t.get("monthly_dollars") is not None and t["monthly_dollars"] < 0
            for t in tiers
        )
    raw["merge_sponsors"] = [
        [SponsorMatcher(**matcher) for matcher in group]
        for group in raw.get("merge_sponsors", [])
    ]
    return AppConfig(**raw)
