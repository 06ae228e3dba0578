"""Renderer contract shared by the built-in layouts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar

from sponsorwall.models.sponsor import Sponsorship
from sponsorwall.render.images import ImageProcessor

if TYPE_CHECKING:
    from sponsorwall.config import AppConfig


class Renderer(ABC):
    """Turns a filtered, sorted sponsor list into an SVG document."""

    name: ClassVar[str]

    @abstractmethod
    def render_svg(
        self,
        config: "AppConfig",
        sponsors: list[Sponsorship],
        images: ImageProcessor,
    ) -> str:
        ...
