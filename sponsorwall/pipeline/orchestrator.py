"""
Generation run orchestration for sponsorwall.

The ``SponsorOrchestrator`` coordinates one full run in a deterministic,
testable sequence:

  Step 1 — Collect:   Load the snapshot cache, or (when missing or ``force``)
                      fetch every provider, merge, apply replacements,
                      resolve avatars and write the cache.
  Step 2 — Sort:      Monthly amount desc, then ``created_at`` desc, then
                      login/name asc.
  Step 3 — Ready:     ``pre_render`` hook.
  Step 4 — Render:    One ``RenderStage`` per render pass, run concurrently.
                      Each pass gets its own copy of the list.

Failure semantics
-----------------
Unlike a best-effort batch job, a generation run is all-or-nothing: any
stage failure propagates to the caller after being recorded on the stage's
``RunMetadata``. Duplicate render names are rejected before anything is
fetched.

Usage::

    config = load_config()
    result = SponsorOrchestrator(config).run()
    for render in result.renders:
        print(render.name, render.files)
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence
from uuid import uuid4

import httpx

from sponsorwall.config import AppConfig
from sponsorwall.errors import ConfigurationError
from sponsorwall.ingestion.base import DEFAULT_TIMEOUT, SponsorProvider
from sponsorwall.ingestion.cache import load_cache, save_cache
from sponsorwall.ingestion.providers import providers_for, resolve_providers
from sponsorwall.models.meta import RunMetadata
from sponsorwall.models.sponsor import Sponsorship
from sponsorwall.pipeline.hooks import PipelineHooks
from sponsorwall.pipeline.stages import AvatarStage, FetchStage, MergeStage, RenderStage
from sponsorwall.render.images import ImageProcessor
from sponsorwall.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# ── Result types ──────────────────────────────────────────────────────────────

@dataclass
class RenderResult:
    """Outcome of one render pass.

    Attributes:
        name:     Render pass name (artifact base name).
        renderer: Renderer used.
        files:    Artifacts written, in write order.
    """

    name:     str
    renderer: str
    files:    list[Path] = field(default_factory=list)


@dataclass
class GenerationResult:
    """Complete result of one generation run.

    Attributes:
        run_slug:     Identifier shared by every stage record of the run.
        started_at:   UTC datetime when the run started.
        finished_at:  UTC datetime when the run finished.
        from_cache:   True if sponsorships were read from the snapshot cache.
        sponsorships: Sorted sponsor list handed to the render passes.
        renders:      Per-pass outcomes, in configured order.
        stage_runs:   Every ``RunMetadata`` produced, oldest first.
    """

    run_slug:     str
    started_at:   Optional[datetime]     = None
    finished_at:  Optional[datetime]     = None
    from_cache:   bool                   = False
    sponsorships: list[Sponsorship]      = field(default_factory=list)
    renders:      list[RenderResult]     = field(default_factory=list)
    stage_runs:   list[RunMetadata]      = field(default_factory=list)


def sort_sponsorships(sponsorships: Sequence[Sponsorship]) -> list[Sponsorship]:
    """Amount desc, then ``created_at`` desc (missing last), then login/name asc."""
    ships = sorted(sponsorships, key=lambda s: (s.sponsor.login or s.sponsor.name).lower())
    ships.sort(key=lambda s: s.created_at or _EPOCH, reverse=True)
    ships.sort(key=lambda s: s.monthly_dollars, reverse=True)
    return ships


# ── Orchestrator ──────────────────────────────────────────────────────────────

class SponsorOrchestrator:
    """Coordinates fetch, merge, avatar resolution and rendering.

    Args:
        config:    AppConfig for this run.
        hooks:     Transform callables per pipeline checkpoint.
        client:    HTTP client to use; one is created (and closed) per run
                   when omitted.
        images:    Resize cache shared by avatar resolution and every render
                   pass; defaults to a fresh ``ImageProcessor``.
        providers: Adapter instances or names overriding ``config.providers``.
    """

    def __init__(
        self,
        config: AppConfig,
        hooks: Optional[PipelineHooks] = None,
        client: Optional[httpx.AsyncClient] = None,
        images: Optional[ImageProcessor] = None,
        providers: Optional[Sequence[SponsorProvider | str]] = None,
    ) -> None:
        self.config = config
        self.hooks = hooks or PipelineHooks()
        self.client = client
        self.images = images or ImageProcessor(config.avatars.cache_size)
        self.providers = (
            resolve_providers(providers) if providers is not None else providers_for(config)
        )

    def run(self) -> GenerationResult:
        """Synchronous entry point; see ``generate()``."""
        return asyncio.run(self.generate())

    async def generate(self) -> GenerationResult:
        """Execute the full generation run.

        Returns:
            GenerationResult summarising all stages.

        Raises:
            ConfigurationError: On duplicate render names or invalid settings.
            ProviderError: If a provider reports an API error.
            httpx.HTTPError: On transport errors without a fallback.
        """
        passes = self.config.render_passes()
        self._check_render_names(passes)

        result = GenerationResult(run_slug=str(uuid4()), started_at=utcnow())
        logger.info(
            "SponsorOrchestrator | run_slug=%s | providers=%s | renders=%s",
            result.run_slug, [p.name for p in self.providers], [p.name for p in passes],
        )

        if self.client is not None:
            await self._generate(result, passes, self.client)
        else:
            async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as client:
                await self._generate(result, passes, client)

        result.finished_at = utcnow()
        logger.info(
            "SponsorOrchestrator finished | sponsors=%d | files=%d | cache=%s",
            len(result.sponsorships),
            sum(len(r.files) for r in result.renders),
            "hit" if result.from_cache else "miss",
        )
        return result

    async def collect(
        self,
        client: httpx.AsyncClient,
        result: Optional[GenerationResult] = None,
    ) -> list[Sponsorship]:
        """Sponsorships from the cache, or freshly fetched, merged and resolved."""
        result = result or GenerationResult(run_slug=str(uuid4()))
        cache_path = self.config.cache_path

        if not self.config.force and cache_path.exists():
            result.from_cache = True
            return load_cache(cache_path)

        logger.info("[1/3] FetchStage ...")
        fetch = FetchStage(self.config, result.run_slug)
        result.stage_runs.append(
            await fetch.run(providers=self.providers, client=client, hooks=self.hooks)
        )

        logger.info("[2/3] MergeStage ...")
        merge = MergeStage(self.config, result.run_slug)
        result.stage_runs.append(await merge.run(sponsorships=fetch.output))

        logger.info("[3/3] AvatarStage ...")
        avatars = AvatarStage(self.config, result.run_slug)
        result.stage_runs.append(
            await avatars.run(sponsorships=merge.output, client=client, images=self.images)
        )

        save_cache(
            cache_path,
            avatars.output,
            {"run_slug": result.run_slug, "providers": [p.name for p in self.providers]},
        )
        return avatars.output

    # ── Private helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _check_render_names(passes: list[AppConfig]) -> None:
        duplicates = [name for name, n in Counter(p.name for p in passes).items() if n > 1]
        if duplicates:
            raise ConfigurationError(f"Duplicate render names: {sorted(duplicates)}.")

    async def _generate(
        self,
        result: GenerationResult,
        passes: list[AppConfig],
        client: httpx.AsyncClient,
    ) -> None:
        ships = await self.collect(client, result)
        ships = sort_sponsorships(ships)
        ships = await self.hooks.on_ready(ships)
        result.sponsorships = ships

        stages = [RenderStage(pass_config, result.run_slug) for pass_config in passes]
        runs = await asyncio.gather(*(
            stage.run(
                sponsorships=list(ships),
                images=self.images,
                hooks=self.hooks,
                render_name=stage.config.name,
            )
            for stage in stages
        ))
        result.stage_runs.extend(runs)
        result.renders = [
            RenderResult(
                name=stage.config.name,
                renderer=str(stage.config.renderer),
                files=list(stage.output),
            )
            for stage in stages
        ]
