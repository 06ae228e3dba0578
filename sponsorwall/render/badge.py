"""
Badge generator — one sponsor as a positioned SVG fragment.

A badge is a clickable ``<a>`` wrapper holding an optional name label and
the avatar image clipped to a rounded rectangle. Individuals are clipped to
a circle, organizations to a slightly rounded square.

The avatar is re-encoded at the smallest of 50 / 80 / 120 px that covers the
drawn size, so small tiers do not embed full-size images.
"""

from __future__ import annotations

import base64
import html
from typing import Optional

from sponsorwall.models.sponsor import Sponsor
from sponsorwall.models.tier import BadgePreset
from sponsorwall.render.images import ImageProcessor
from sponsorwall.taxonomy.sponsor_taxonomy import ImageFormat, SponsorKind

ORGANIZATION_RADIUS = 0.1
INDIVIDUAL_RADIUS = 0.5
ELLIPSIS = "..."


def fmt_number(value: float) -> str:
    """Compact SVG coordinate: ``10`` rather than ``10.0``, at most 3 decimals."""
    value = round(float(value), 3)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def escape_text(text: str) -> str:
    """Escape ``& < > " '`` for embedding in SVG text or attributes."""
    return html.escape(str(text), quote=True)


def corner_radius(kind: SponsorKind) -> float:
    """Clip-rectangle corner radius as a fraction of the avatar size."""
    return ORGANIZATION_RADIUS if kind == SponsorKind.ORGANIZATION else INDIVIDUAL_RADIUS


def truncate_name(name: str, max_length: Optional[int]) -> str:
    """Shorten ``name`` to fit a badge label.

    Names longer than ``max_length`` keep their first word when they contain
    a space; otherwise they are cut to ``max_length - 3`` characters plus
    ``"..."``.

    ``truncate_name("Christopher Anderson", 10)`` → ``"Christopher"``
    ``truncate_name("Supercalifragilistic", 10)`` → ``"Superca..."``
    """
    if not max_length or len(name) <= max_length:
        return name
    if " " in name:
        return name.split(" ")[0]
    return name[: max(max_length - len(ELLIPSIS), 0)] + ELLIPSIS


def avatar_resolution(size: float, image_format: ImageFormat) -> Optional[int]:
    """Pixel size to re-encode an avatar drawn at ``size``, or ``None`` to embed as stored."""
    if size < 50:
        return 50
    if size < 80:
        return 80
    if image_format == ImageFormat.PNG:
        return 120
    return None


def svg_image(
    x: float,
    y: float,
    size: float,
    radius: float,
    data: bytes,
    image_format: ImageFormat,
    clip_id: str,
) -> str:
    """Clip path plus base64-embedded ``<image>``."""
    rx = fmt_number(size * radius)
    x_s, y_s, size_s = fmt_number(x), fmt_number(y), fmt_number(size)
    encoded = base64.b64encode(data).decode("ascii")
    return (
        f'  <clipPath id="{clip_id}">\n'
        f'    <rect x="{x_s}" y="{y_s}" width="{size_s}" height="{size_s}" rx="{rx}" ry="{rx}" />\n'
        f"  </clipPath>\n"
        f'  <image x="{x_s}" y="{y_s}" width="{size_s}" height="{size_s}" '
        f'href="data:image/{image_format.value};base64,{encoded}" clip-path="url(#{clip_id})"/>'
    )


def generate_badge(
    x: float,
    y: float,
    sponsor: Sponsor,
    preset: BadgePreset,
    radius: float,
    image_format: ImageFormat,
    images: ImageProcessor,
    clip_id: str,
) -> str:
    """Render one sponsor at ``(x, y)`` (top-left corner of the avatar).

    Args:
        x: Left edge of the avatar.
        y: Top edge of the avatar.
        sponsor: The sponsor; ``avatar_bytes`` should already be resolved.
        preset: Layout of the cell.
        radius: Corner radius fraction (see ``corner_radius``).
        image_format: Encoding of the embedded avatar.
        images: Shared resize cache.
        clip_id: Document-unique id for the clip path.

    Returns:
        SVG markup. Sponsors without avatar bytes get the wrapper and label only.
    """
    image_format = ImageFormat(image_format)
    size = preset.avatar_size
    url = sponsor.href
    href = f'href="{escape_text(url)}" ' if url else ""

    lines = [
        f'<a {href}class="{preset.classes}" target="_blank" id="{escape_text(sponsor.login)}">'
    ]
    if preset.show_name:
        name = truncate_name(sponsor.display_name, preset.name_max_length)
        lines.append(
            f'  <text x="{fmt_number(x + size / 2)}" y="{fmt_number(y + size + 18)}" '
            f'text-anchor="middle" class="{preset.name_classes}" '
            f'fill="{preset.name_color}">{escape_text(name)}</text>'
        )

    avatar = sponsor.avatar_bytes
    if avatar is not None:
        target = avatar_resolution(size, image_format)
        if target is not None:
            avatar = images.resize(avatar, target, image_format)
        lines.append(svg_image(x, y, size, radius, avatar, image_format, clip_id))

    lines.append("</a>")
    return "\n".join(lines)
