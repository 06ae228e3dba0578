"""
Artifact writers for one render pass.

All functions write to disk and return the written ``Path``; parent
directories are created when missing. File names are ``<name>.<format>``
inside the output directory.

JSON artifacts hold the sponsor list exactly as the render pass received it
(before filtering), without avatar bytes and without provider payloads, so
the file stays small enough to commit next to the SVG.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from sponsorwall.models.sponsor import Sponsorship
from sponsorwall.render.images import svg_to_png
from sponsorwall.taxonomy.sponsor_taxonomy import OutputFormat

logger = logging.getLogger(__name__)


def artifact_path(output_dir: Path | str, name: str, fmt: OutputFormat | str) -> Path:
    return Path(output_dir) / f"{name}.{OutputFormat(fmt).value}"


def sponsors_to_records(sponsorships: list[Sponsorship]) -> list[dict]:
    """Serialisable dicts for ``sponsorships``, minus avatar bytes and raw payloads."""
    return [
        ship.model_dump(
            mode="json",
            exclude={"raw": True, "sponsor": {"avatar_bytes"}},
        )
        for ship in sponsorships
    ]


def write_json(sponsorships: list[Sponsorship], path: Path) -> Path:
    """Write the sponsor list as pretty-printed JSON.

    Args:
        sponsorships: Sponsors of the render pass.
        path: Destination file path (parent dirs created if missing).

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(sponsors_to_records(sponsorships), indent=2, ensure_ascii=False, default=str),
        encoding="utf-8",
    )
    logger.info("Wrote %s (%d sponsors)", path, len(sponsorships))
    return path


def write_svg(svg: str, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(svg, encoding="utf-8")
    logger.info("Wrote %s", path)
    return path


def write_png(svg: str, path: Path, density: int = 150) -> Path:
    """Rasterize ``svg`` at ``density`` DPI and write the PNG."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(svg_to_png(svg, density))
    logger.info("Wrote %s", path)
    return path
