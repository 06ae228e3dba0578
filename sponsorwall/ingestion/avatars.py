"""
Avatar resolution: download every sponsor's avatar and normalise it.

Downloads run concurrently on one ``httpx.AsyncClient``, bounded by an
``asyncio.Semaphore`` (``[avatars] concurrency``, default 15). Each avatar is
cover-cropped to ``[avatars] size`` px and re-encoded as webp through the
shared ``ImageProcessor``; the bytes are stored on the sponsor so the
snapshot cache and every render pass can reuse them offline.

Private sponsors and sponsors without an avatar URL get the fallback avatar.
A failed download also falls back; with no fallback configured it aborts the
run.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import httpx
from PIL import UnidentifiedImageError

from sponsorwall.models.sponsor import Sponsorship
from sponsorwall.render.images import ImageProcessor, builtin_fallback_avatar
from sponsorwall.taxonomy.sponsor_taxonomy import ImageFormat

if TYPE_CHECKING:
    from sponsorwall.config import AvatarsConfig

logger = logging.getLogger(__name__)

BUILTIN_FALLBACK = "builtin"


async def fetch_image(client: httpx.AsyncClient, url: str, user_agent: str) -> bytes:
    """GET ``url`` and return the body.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx responses.
    """
    resp = await client.get(
        url,
        headers={"User-Agent": user_agent},
        follow_redirects=True,
        timeout=15.0,
    )
    resp.raise_for_status()
    return resp.content


async def load_fallback_avatar(
    setting: Optional[str],
    client: httpx.AsyncClient,
    user_agent: str,
) -> Optional[bytes]:
    """Resolve the ``[avatars] fallback`` setting to raw image bytes.

    ``"builtin"`` → bundled silhouette; ``http(s)://`` → downloaded; any other
    non-empty value → read from disk; empty → ``None`` (no fallback).
    """
    if not setting:
        return None
    if setting == BUILTIN_FALLBACK:
        return builtin_fallback_avatar()
    if setting.startswith(("http://", "https://")):
        return await fetch_image(client, setting, user_agent)
    return Path(setting).read_bytes()


async def resolve_avatars(
    sponsorships: list[Sponsorship],
    client: httpx.AsyncClient,
    images: ImageProcessor,
    config: "AvatarsConfig",
    fallback: Optional[bytes] = None,
) -> list[Sponsorship]:
    """Return a copy of ``sponsorships`` with ``sponsor.avatar_bytes`` set.

    Order is preserved.

    Args:
        sponsorships: Merged sponsorships.
        client: Shared HTTP client.
        images: Resize cache shared with the render passes.
        config: ``[avatars]`` section.
        fallback: Raw fallback avatar bytes, or ``None`` to disable falling back.

    Raises:
        httpx.HTTPError: If an avatar cannot be downloaded and there is no fallback.
            Pending fetches are cancelled first.
    """
    semaphore = asyncio.Semaphore(config.concurrency)
    fallback_avatar = (
        await asyncio.to_thread(images.resize, fallback, config.size, ImageFormat.WEBP)
        if fallback is not None else None
    )

    async def _resolve_one(ship: Sponsorship) -> Sponsorship:
        sponsor = ship.sponsor
        if ship.is_private or not sponsor.avatar_url:
            avatar = fallback_avatar
        else:
            async with semaphore:
                try:
                    data = await fetch_image(client, sponsor.avatar_url, config.user_agent)
                    avatar = await asyncio.to_thread(
                        images.resize, data, config.size, ImageFormat.WEBP
                    )
                except (httpx.HTTPError, UnidentifiedImageError) as exc:
                    logger.error(
                        "Failed to fetch avatar for %s [%s]: %s",
                        sponsor.login or sponsor.name, sponsor.avatar_url, exc,
                    )
                    if fallback_avatar is None:
                        raise
                    avatar = fallback_avatar
        return ship.model_copy(
            update={"sponsor": sponsor.model_copy(update={"avatar_bytes": avatar})}
        )

    # First unrecovered failure cancels the pending fetches.
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(_resolve_one(ship)) for ship in sponsorships]
    except ExceptionGroup as failures:
        raise failures.exceptions[0] from None
    resolved = [task.result() for task in tasks]
    logger.info(
        "Resolved %d avatars | cache hits=%d misses=%d",
        len(resolved), images.hits, images.misses,
    )
    return list(resolved)
