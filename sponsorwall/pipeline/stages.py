"""
Concrete pipeline stages of one generation run.

  FetchStage   — concurrent fan-out over provider adapters, provider tagging,
                 ``post_fetch_provider`` / ``post_fetch_all`` hooks
  MergeStage   — merge engine, then link and avatar replacements
  AvatarStage  — avatar download + normalisation with fallback
  RenderStage  — one named render pass: json, filter, svg, png

Each stage returns its output from ``_execute()``; ``PipelineStage.run()``
stores it on ``stage.output``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Sequence

import httpx

from sponsorwall.ingestion.avatars import load_fallback_avatar, resolve_avatars
from sponsorwall.ingestion.base import SponsorProvider
from sponsorwall.models.meta import RunMetadata
from sponsorwall.models.sponsor import Sponsorship
from sponsorwall.pipeline.base import PipelineStage
from sponsorwall.pipeline.filters import apply_filter
from sponsorwall.pipeline.hooks import PipelineHooks
from sponsorwall.pipeline.merge import merge_sponsorships
from sponsorwall.pipeline.replace import apply_replacements
from sponsorwall.render.images import ImageProcessor
from sponsorwall.render.output import artifact_path, write_json, write_png, write_svg
from sponsorwall.render.renderers import get_renderer
from sponsorwall.taxonomy.sponsor_taxonomy import OutputFormat

logger = logging.getLogger(__name__)


class FetchStage(PipelineStage):
    """Fetch every provider concurrently and concatenate in provider order."""

    stage_name = "fetch"

    async def _execute(
        self,
        run: RunMetadata,
        providers: Sequence[SponsorProvider] = (),
        client: httpx.AsyncClient | None = None,
        hooks: PipelineHooks | None = None,
        **kwargs: Any,
    ) -> list[Sponsorship]:
        hooks = hooks or PipelineHooks()

        async def _fetch_one(provider: SponsorProvider) -> list[Sponsorship]:
            logger.info("Fetching sponsorships from %s ...", provider.name)
            ships = await provider.fetch_sponsors(self.config, client)
            ships = [s.model_copy(update={"provider": provider.name}) for s in ships]
            ships = await hooks.on_provider_fetched(ships, provider.name)
            logger.info("%d sponsorships fetched from %s", len(ships), provider.name)
            return ships

        per_provider = await asyncio.gather(*(_fetch_one(p) for p in providers))
        ships = [ship for batch in per_provider for ship in batch]
        return await hooks.on_all_fetched(ships)


class MergeStage(PipelineStage):
    stage_name = "merge"

    async def _execute(
        self,
        run: RunMetadata,
        sponsorships: list[Sponsorship] | None = None,
        **kwargs: Any,
    ) -> list[Sponsorship]:
        merged = merge_sponsorships(
            sponsorships or [],
            self.config.merge_sponsors,
            self.config.sponsors_auto_merge,
        )
        return apply_replacements(
            merged, self.config.replace_links, self.config.replace_avatars
        )


class AvatarStage(PipelineStage):
    stage_name = "avatars"

    async def _execute(
        self,
        run: RunMetadata,
        sponsorships: list[Sponsorship] | None = None,
        client: httpx.AsyncClient | None = None,
        images: ImageProcessor | None = None,
        **kwargs: Any,
    ) -> list[Sponsorship]:
        avatars = self.config.avatars
        logger.info("Resolving avatars for %d sponsors ...", len(sponsorships or []))
        fallback = await load_fallback_avatar(avatars.fallback, client, avatars.user_agent)
        return await resolve_avatars(
            sponsorships or [],
            client,
            images or ImageProcessor(avatars.cache_size),
            avatars,
            fallback,
        )


class RenderStage(PipelineStage):
    """One render pass. ``self.config`` is the effective config of the pass.

    Order: ``before_render`` hook, ``<name>.json`` (unfiltered), filter
    expression, private sponsors dropped unless ``include_private``, SVG
    composition, ``post_svg`` hook, ``<name>.svg``, ``<name>.png``.

    Output is the list of written paths.
    """

    stage_name = "render"

    async def _execute(
        self,
        run: RunMetadata,
        sponsorships: list[Sponsorship] | None = None,
        images: ImageProcessor | None = None,
        hooks: PipelineHooks | None = None,
        **kwargs: Any,
    ) -> list[Path]:
        config = self.config
        hooks = hooks or PipelineHooks()
        images = images or ImageProcessor(config.avatars.cache_size)
        formats = {OutputFormat(f) for f in config.formats}
        written: list[Path] = []

        ships = await hooks.on_before_render(list(sponsorships or []))

        if OutputFormat.JSON in formats:
            written.append(write_json(ships, artifact_path(config.output_dir, config.name, "json")))

        ships = apply_filter(ships, config.filter)
        if not config.include_private:
            ships = [s for s in ships if not s.is_private]

        if not formats & {OutputFormat.SVG, OutputFormat.PNG}:
            return written

        renderer = get_renderer(config.renderer)
        logger.info(
            "Rendering '%s' with %s renderer (%d sponsors)", config.name, renderer.name, len(ships)
        )
        svg = await asyncio.to_thread(renderer.render_svg, config, ships, images)
        svg = await hooks.on_svg(svg)

        if OutputFormat.SVG in formats:
            written.append(write_svg(svg, artifact_path(config.output_dir, config.name, "svg")))
        if OutputFormat.PNG in formats:
            path = artifact_path(config.output_dir, config.name, "png")
            written.append(await asyncio.to_thread(write_png, svg, path, config.png_density))
        return written
