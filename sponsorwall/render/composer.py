"""
SVG composer — an append-only document accumulator.

State is a running ``height`` (the next free y coordinate) and the
accumulated ``body`` markup. Every ``add_*`` call appends; nothing shrinks
``height`` or rewrites earlier markup. ``generate_svg()`` wraps the body in a
sized ``<svg>`` document with the configured inline CSS.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Sequence

from sponsorwall.models.sponsor import Sponsorship
from sponsorwall.models.tier import BadgePreset
from sponsorwall.render.badge import corner_radius, escape_text, fmt_number, generate_badge
from sponsorwall.render.images import ImageProcessor
from sponsorwall.taxonomy.sponsor_taxonomy import ImageFormat

if TYPE_CHECKING:
    from sponsorwall.config import AppConfig

LINE_HEIGHT = 20


class SvgComposer:
    """Accumulates SVG fragments for one render pass.

    Attributes:
        config: Effective config of the render pass (width, CSS, image format).
        images: Shared resize cache used by every badge.
        height: Running vertical offset in px.
        body: Markup appended so far.
    """

    def __init__(self, config: "AppConfig", images: ImageProcessor) -> None:
        self.config = config
        self.images = images
        self.height: float = 0
        self.body = ""
        self._clip_seq = 0

    @property
    def width(self) -> float:
        return self.config.width

    @property
    def image_format(self) -> ImageFormat:
        return ImageFormat(self.config.image_format)

    def next_clip_id(self) -> str:
        clip_id = f"c{self._clip_seq}"
        self._clip_seq += 1
        return clip_id

    def add_span(self, height: float = 0) -> "SvgComposer":
        """Advance ``height`` by ``height`` px of blank space."""
        if height < 0:
            raise ValueError(f"Span height must be >= 0, got {height}.")
        self.height += height
        return self

    def extend_to(self, height: float) -> "SvgComposer":
        """Grow the document to at least ``height`` px."""
        self.height = max(self.height, height)
        return self

    def add_text(self, text: str, classes: str = "text") -> "SvgComposer":
        """Centered text line at the current height, then one line height down."""
        self.body += (
            f'<text x="{fmt_number(self.width / 2)}" y="{fmt_number(self.height)}" '
            f'text-anchor="middle" class="{classes}">{escape_text(text)}</text>'
        )
        self.height += LINE_HEIGHT
        return self

    def add_title(self, text: str, classes: str = "sponsorwall-tier-title") -> "SvgComposer":
        return self.add_text(text, classes)

    def add_raw(self, svg: str) -> "SvgComposer":
        """Append markup without moving ``height``."""
        self.body += svg
        return self

    def add_badge(
        self,
        x: float,
        y: float,
        ship: Sponsorship,
        preset: BadgePreset,
        radius: float | None = None,
    ) -> "SvgComposer":
        """Append one badge at an explicit position."""
        if radius is None:
            radius = corner_radius(ship.sponsor.kind)
        return self.add_raw(generate_badge(
            x, y, ship.sponsor, preset, radius,
            self.image_format, self.images, self.next_clip_id(),
        ))

    def add_sponsor_line(self, sponsors: Sequence[Sponsorship], preset: BadgePreset) -> "SvgComposer":
        """One horizontally centered row of badges, then ``box_height`` down."""
        offset_x = (
            (self.width - len(sponsors) * preset.box_width) / 2
            + (preset.box_width - preset.avatar_size) / 2
        )
        badges = [
            generate_badge(
                offset_x + preset.box_width * i,
                self.height,
                ship.sponsor,
                preset,
                corner_radius(ship.sponsor.kind),
                self.image_format,
                self.images,
                self.next_clip_id(),
            )
            for i, ship in enumerate(sponsors)
        ]
        self.body += "\n".join(badges)
        self.height += preset.box_height
        return self

    def per_line(self, preset: BadgePreset) -> int:
        """Badges that fit in one row; never less than one."""
        if preset.box_width <= 0:
            return 1
        available = self.width - preset.side_padding * 2
        return max(1, math.floor(available / preset.box_width))

    def add_sponsor_grid(self, sponsors: Sequence[Sponsorship], preset: BadgePreset) -> "SvgComposer":
        """Row-major grid of badges, left to right, top to bottom."""
        per_line = self.per_line(preset)
        for start in range(0, len(sponsors), per_line):
            self.add_sponsor_line(sponsors[start:start + per_line], preset)
        return self

    def generate_svg(self) -> str:
        width, height = fmt_number(self.width), fmt_number(self.height)
        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" '
            f'viewBox="0 0 {width} {height}" width="{width}" height="{height}">\n'
            f"<!-- Generated by sponsorwall -->\n"
            f"<style>{self.config.svg_inline_css}</style>\n"
            f"{self.body}\n"
            f"</svg>\n"
        )
