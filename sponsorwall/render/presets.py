"""
Built-in badge presets, default tier ladder and default inline CSS.

Presets are immutable and shared; a tier refers to one by object or by name.
"""

from __future__ import annotations

from sponsorwall.models.tier import BadgePreset, Tier

NONE = BadgePreset(avatar_size=0, box_width=0, box_height=0, side_padding=0)
XS = BadgePreset(avatar_size=25, box_width=30, box_height=30, side_padding=30)
SMALL = BadgePreset(avatar_size=35, box_width=38, box_height=38, side_padding=30)
BASE = BadgePreset(avatar_size=40, box_width=48, box_height=48, side_padding=30)
MEDIUM = BadgePreset(
    avatar_size=50, box_width=80, box_height=90, side_padding=20,
    show_name=True, name_max_length=10,
)
LARGE = BadgePreset(
    avatar_size=70, box_width=95, box_height=115, side_padding=20,
    show_name=True, name_max_length=16,
)
XL = BadgePreset(
    avatar_size=90, box_width=120, box_height=130, side_padding=20,
    show_name=True, name_max_length=20,
)

TIER_PRESETS: dict[str, BadgePreset] = {
    "none":   NONE,
    "xs":     XS,
    "small":  SMALL,
    "base":   BASE,
    "medium": MEDIUM,
    "large":  LARGE,
    "xl":     XL,
}


def default_tiers() -> list[Tier]:
    """The five-step ladder used when no tiers are configured."""
    return [
        Tier(title="Past Sponsors", monthly_dollars=-1, preset=XS),
        Tier(title="Backers", preset=BASE),
        Tier(title="Sponsors", monthly_dollars=10, preset=MEDIUM),
        Tier(title="Silver Sponsors", monthly_dollars=50, preset=LARGE),
        Tier(title="Gold Sponsors", monthly_dollars=100, preset=XL),
    ]


DEFAULT_INLINE_CSS = """
text {
  font-weight: 300;
  font-size: 14px;
  fill: #777777;
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, Cantarell, 'Open Sans', 'Helvetica Neue', sans-serif;
}
.sponsorwall-link {
  cursor: pointer;
}
.sponsorwall-tier-title {
  font-weight: 500;
  font-size: 20px;
}
"""
