"""
Tiers renderer — one titled block of badges per dollar tier.

Layout, top to bottom:
  - ``padding_top`` of the document
  - per tier (highest threshold first): ``compose_before`` hook, then either
    the tier's own ``compose`` hook or the default block (``padding_top``,
    title, 5px, badge grid, ``padding_bottom``), then ``compose_after``.
    The default block is skipped for empty tiers and zero-size presets.
  - ``padding_bottom`` of the document
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from sponsorwall.models.sponsor import Sponsorship
from sponsorwall.pipeline.partition import partition_tiers
from sponsorwall.render.base import Renderer
from sponsorwall.render.composer import SvgComposer
from sponsorwall.render.images import ImageProcessor
from sponsorwall.render.presets import BASE
from sponsorwall.taxonomy.sponsor_taxonomy import RendererName

if TYPE_CHECKING:
    from sponsorwall.config import AppConfig

TITLE_GAP = 5


def compose_tiers(composer: SvgComposer, sponsors: list[Sponsorship], config: "AppConfig") -> None:
    """Append every tier block of ``sponsors`` to ``composer``."""
    buckets = partition_tiers(sponsors, config.tiers, config.include_past_sponsors)
    composer.add_span(config.padding_top)

    for bucket in buckets:
        tier, members = bucket.tier, list(bucket.sponsors)
        if tier.compose_before is not None:
            tier.compose_before(composer, members, config)

        if tier.compose is not None:
            tier.compose(composer, members, config)
        else:
            preset = tier.preset or BASE
            if members and preset.avatar_size:
                composer.add_span(tier.padding_top)
                if tier.title:
                    composer.add_title(tier.title).add_span(TITLE_GAP)
                composer.add_sponsor_grid(members, preset)
                composer.add_span(tier.padding_bottom)

        if tier.compose_after is not None:
            tier.compose_after(composer, members, config)

    composer.add_span(config.padding_bottom)


class TiersRenderer(Renderer):
    name: ClassVar[str] = RendererName.TIERS.value

    def render_svg(
        self,
        config: "AppConfig",
        sponsors: list[Sponsorship],
        images: ImageProcessor,
    ) -> str:
        composer = SvgComposer(config, images)
        compose_tiers(composer, sponsors, config)
        return composer.generate_svg()
