"""
Tier and badge-preset models.

``BadgePreset`` describes one grid cell: the box a badge occupies, the avatar
drawn inside it, and whether (and how long) a name label is printed under it.

``Tier`` is a configured dollar threshold with display metadata. Exactly one
tier per configuration acts as the catch-all base bucket (threshold ``0`` or
unset); ``partition_tiers`` enforces this.

``TierBucket`` pairs a tier with the sponsors assigned to it. A full partition
is an ordered ``list[TierBucket]``, descending by threshold.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sponsorwall.models.sponsor import Sponsorship


class BadgePreset(BaseModel):
    """Layout metadata for one badge cell.

    Attributes:
        avatar_size: Edge length of the avatar square, in px. ``0`` hides the tier.
        box_width: Horizontal room reserved per badge.
        box_height: Vertical room reserved per badge row.
        side_padding: Horizontal margin on each side of the container.
        show_name: Whether a name label is drawn below the avatar.
        name_max_length: Truncate labels longer than this.
        name_color: ``fill`` of the label text.
        name_classes: CSS class of the label text.
        classes: CSS class of the clickable wrapper.
    """

    model_config = ConfigDict(frozen=True)

    avatar_size: float
    box_width: float
    box_height: float
    side_padding: float = 0
    show_name: bool = False
    name_max_length: Optional[int] = None
    name_color: str = "currentColor"
    name_classes: str = "sponsorwall-name"
    classes: str = "sponsorwall-link"


class Tier(BaseModel):
    """A dollar threshold with display metadata.

    ``preset`` accepts either a ``BadgePreset`` or the name of a built-in
    preset (``"xs"``, ``"medium"``, ...), which is how TOML config refers to it.

    The optional ``compose_before`` / ``compose`` / ``compose_after`` callables
    receive ``(composer, sponsors, config)``. ``compose`` replaces the default
    title-plus-grid block for this tier.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    title: str = ""
    monthly_dollars: Optional[float] = None
    preset: Optional[BadgePreset] = None
    padding_top: float = 20
    padding_bottom: float = 10
    compose_before: Optional[Callable[..., Any]] = Field(default=None, exclude=True)
    compose: Optional[Callable[..., Any]] = Field(default=None, exclude=True)
    compose_after: Optional[Callable[..., Any]] = Field(default=None, exclude=True)

    @field_validator("preset", mode="before")
    @classmethod
    def resolve_preset_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            from sponsorwall.render.presets import TIER_PRESETS

            if v not in TIER_PRESETS:
                raise ValueError(
                    f"Unknown preset '{v}'. Must be one of {sorted(TIER_PRESETS)}."
                )
            return TIER_PRESETS[v]
        return v

    @property
    def threshold(self) -> float:
        """Effective threshold; an unset ``monthly_dollars`` counts as 0."""
        return self.monthly_dollars if self.monthly_dollars is not None else 0


class TierBucket(BaseModel):
    """One tier paired with the sponsors it received, oldest first."""

    model_config = ConfigDict(frozen=True)

    tier: Tier
    sponsors: tuple[Sponsorship, ...] = ()

    @property
    def threshold(self) -> float:
        return self.tier.threshold
