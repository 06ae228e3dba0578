"""
Snapshot cache — the resolved sponsor list persisted between runs.

The cache is written once per full fetch (after merge, replacements and
avatar resolution) and read back on later runs unless ``force`` is set, so
layout tweaks can be iterated on without hitting any provider API.

File layout (``<output_dir>/<cache_file>``)::

    {
      "_meta": {
        "run_slug": "...",
        "providers": ["github", "patreon"],
        "record_count": 42,
        "written_at": "2026-02-24T15:00:00Z"
      },
      "data": [ <Sponsorship>, ... ]
    }

Avatar bytes are stored base64-encoded inside each sponsor.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sponsorwall.models.sponsor import Sponsorship
from sponsorwall.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class SponsorSnapshot(BaseModel):
    """On-disk envelope of the cache file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    meta: dict[str, Any] = Field(default_factory=dict, alias="_meta")
    data: list[Sponsorship] = Field(default_factory=list)


def compute_hash(payload: Any) -> str:
    """SHA-256 of a JSON-serializable payload, key-order independent."""
    serialized = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def save_cache(
    path: Path,
    sponsorships: list[Sponsorship],
    metadata: dict[str, Any] | None = None,
) -> str:
    """Write ``sponsorships`` to ``path``, creating parent directories.

    Returns:
        SHA-256 of the ``data`` section.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = [ship.model_dump(mode="json") for ship in sponsorships]

    meta = dict(metadata or {})
    meta["record_count"] = len(data)
    meta["written_at"] = utcnow().strftime("%Y-%m-%dT%H:%M:%SZ")
    content_hash = compute_hash(data)
    meta["content_hash"] = content_hash

    with open(path, "w", encoding="utf-8") as f:
        json.dump({"_meta": meta, "data": data}, f, indent=2, ensure_ascii=False)

    logger.info(
        "Sponsor cache written: %s | records=%d | hash=%s…",
        path, len(data), content_hash[:12],
    )
    return content_hash


def load_cache(path: Path) -> list[Sponsorship]:
    """Read sponsorships back from a cache file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        pydantic.ValidationError: If the file does not hold a valid snapshot.
    """
    snapshot = SponsorSnapshot.model_validate_json(Path(path).read_text(encoding="utf-8"))
    logger.info(
        "Loaded %d sponsorships from cache %s (written %s)",
        len(snapshot.data), path, snapshot.meta.get("written_at", "?"),
    )
    return snapshot.data
