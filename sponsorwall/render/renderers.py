"""Name → renderer registry."""

from __future__ import annotations

from sponsorwall.errors import ConfigurationError
from sponsorwall.render.base import Renderer
from sponsorwall.render.circles import CirclesRenderer
from sponsorwall.render.tiers import TiersRenderer

RENDERERS: dict[str, Renderer] = {
    renderer.name: renderer
    for renderer in (TiersRenderer(), CirclesRenderer())
}


def get_renderer(name: str) -> Renderer:
    """Look up a renderer by name.

    Raises:
        ConfigurationError: If no renderer is registered under ``name``.
    """
    renderer = RENDERERS.get(str(name))
    if renderer is None:
        raise ConfigurationError(
            f"Unknown renderer: '{name}'. Must be one of {sorted(RENDERERS)}."
        )
    return renderer
