"""
sponsorwall — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Apply command-line overrides.
  3. Configure logging.
  4. Execute action (generation run, validation, listing).
  5. Report result to stdout.

Install and run::

    pip install -e .
    sponsorwall --help
    sponsorwall generate
    sponsorwall generate ./public --width 600 --force
    sponsorwall validate-config
    sponsorwall presets
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import httpx
import typer
from pydantic import ValidationError

from sponsorwall.errors import ConfigurationError, ProviderError

app = typer.Typer(
    name="sponsorwall",
    help="Generate sponsor walls (SVG / PNG / JSON) from your sponsorship platforms.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from sponsorwall.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from sponsorwall.utils.logging import configure_logging
    configure_logging(config.logging, debug=config.debug)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("generate")
def generate(
    output_dir: Optional[str] = typer.Argument(
        None,
        help="Directory for the cache and artifacts (default: config output_dir).",
    ),
    width: Optional[int] = typer.Option(
        None,
        "--width",
        help="SVG width in px.",
    ),
    fallback_avatar: Optional[str] = typer.Option(
        None,
        "--fallback-avatar",
        help="Fallback avatar: 'builtin', a URL, a file path, or '' to disable.",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Ignore the sponsor cache and fetch from every provider.",
    ),
    name: Optional[str] = typer.Option(
        None,
        "--name",
        help="Base name of the written artifacts (<name>.svg, ...).",
    ),
    filter_expr: Optional[str] = typer.Option(
        None,
        "--filter",
        help="Keep sponsors whose monthly amount matches, e.g. '>=10' or '<5'.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Log at DEBUG level.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: ./sponsorwall.toml).",
    ),
) -> None:
    """Fetch sponsors, merge them, and write the configured artifacts.

    \b
    Steps:
      1. FetchStage   — every configured provider, concurrently.
      2. MergeStage   — merge rules, auto-merge, link/avatar replacements.
      3. AvatarStage  — download and normalise avatars (skipped on cache hit).
      4. RenderStage  — one per render pass: <name>.json, .svg, .png.

    \b
    Credential setup (.env, gitignored):
      SPONSORWALL_GITHUB_LOGIN=...   SPONSORWALL_GITHUB_TOKEN=...
      SPONSORWALL_PATREON_TOKEN=...  SPONSORWALL_POLAR_TOKEN=...
    """
    from sponsorwall.pipeline.orchestrator import SponsorOrchestrator

    config = _load_config_or_exit(config_path)

    overrides: dict[str, Any] = {}
    if output_dir is not None:
        overrides["output_dir"] = output_dir
    if width is not None:
        overrides["width"] = width
    if name is not None:
        overrides["name"] = name
    if filter_expr is not None:
        overrides["filter"] = filter_expr
    if force:
        overrides["force"] = True
    if debug:
        overrides["debug"] = True
    if fallback_avatar is not None:
        overrides["avatars"] = config.avatars.model_copy(update={"fallback": fallback_avatar})
    if overrides:
        config = config.model_copy(update=overrides)

    _configure_logging(config)
    typer.echo(f"generate | output_dir={config.output_dir} | renderer={config.renderer}")

    try:
        result = SponsorOrchestrator(config).run()
    except (ConfigurationError, ProviderError, httpx.HTTPError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    source = "cache" if result.from_cache else "providers"
    typer.echo(f"  Sponsors: {len(result.sponsorships)} (from {source})")
    for render in result.renders:
        typer.echo(f"  [{render.name}] {render.renderer}")
        for path in render.files:
            typer.echo(f"    → {path}")
    typer.echo("")
    typer.echo("[OK] Sponsor wall generated.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: ./sponsorwall.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    from sponsorwall.ingestion.providers import providers_for
    from sponsorwall.pipeline.partition import partition_tiers

    config = _load_config_or_exit(config_path)

    try:
        providers = providers_for(config)
        for pass_config in config.render_passes():
            partition_tiers([], pass_config.tiers, pass_config.include_past_sponsors)
    except ConfigurationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Providers:        {', '.join(p.name for p in providers)}")
    typer.echo(f"  Output dir:       {config.output_dir}")
    typer.echo(f"  Renderer:         {config.renderer}")
    typer.echo(f"  Width:            {config.width}")
    typer.echo(f"  Formats:          {', '.join(str(f) for f in config.formats)}")
    typer.echo(f"  Tiers:            {', '.join(t.title or '-' for t in config.tiers)}")
    typer.echo(f"  Render passes:    {', '.join(p.name for p in config.render_passes())}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        dumped = config.model_dump(
            mode="json",
            exclude={"merge_sponsors", "replace_links", "replace_avatars", "filter", "renders"},
        )
        typer.echo(json.dumps(dumped, indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("presets")
def presets() -> None:
    """List the built-in badge presets."""
    from sponsorwall.render.presets import TIER_PRESETS

    typer.echo(f"{'preset':<8} {'avatar':>6} {'box':>9} {'padding':>7}  name")
    for key, preset in TIER_PRESETS.items():
        box = f"{preset.box_width:g}x{preset.box_height:g}"
        shows = f"max {preset.name_max_length}" if preset.show_name else "-"
        typer.echo(
            f"{key:<8} {preset.avatar_size:>6g} {box:>9} {preset.side_padding:>7g}  {shows}"
        )


if __name__ == "__main__":
    app()
