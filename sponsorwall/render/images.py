"""
Image capability: avatar resize/re-encode and SVG rasterization.

``ImageProcessor`` owns a bounded LRU cache of resize results keyed by
``(sha256(source bytes), size, format)``. One processor is created per run
and handed to avatar resolution and every render pass.

SVG input (the bundled fallback avatar, or a remote avatar served as SVG) is
rasterized with cairosvg before Pillow touches it.
"""

from __future__ import annotations

import hashlib
import io
import logging
import threading
from collections import OrderedDict

import cairosvg
from PIL import Image, ImageOps

from sponsorwall.taxonomy.sponsor_taxonomy import ImageFormat

logger = logging.getLogger(__name__)

FALLBACK_AVATAR_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="512" height="512" viewBox="0 0 135.47 135.47">
    <path fill="#2d333b" stroke="#000" stroke-linejoin="round" stroke-width=".32" d="M.16.16h135.15v135.15H.16z" paint-order="stroke markers fill"/>
    <path fill="#636e7b" fill-rule="evenodd" d="M81.85 53.56a14.13 14.13 0 1 1-28.25 0 14.13 14.13 0 0 1 28.25 0zm.35 17.36a22.6 22.6 0 1 0-28.95 0 33.92 33.92 0 0 0-19.38 29.05 4.24 4.24 0 0 0 8.46.4 25.43 25.43 0 0 1 50.8 0 4.24 4.24 0 1 0 8.46-.4 33.93 33.93 0 0 0-19.4-29.05z"/>
</svg>
"""


def is_svg(data: bytes) -> bool:
    head = data[:256].lstrip().lower()
    return head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in data[:1024].lower())


def svg_to_png(svg: str | bytes, density: int = 150) -> bytes:
    """Rasterize an SVG document to PNG at ``density`` DPI (72 = 1:1)."""
    data = svg.encode("utf-8") if isinstance(svg, str) else svg
    return cairosvg.svg2png(bytestring=data, scale=density / 72)


def builtin_fallback_avatar() -> bytes:
    """The bundled silhouette as PNG bytes."""
    return cairosvg.svg2png(bytestring=FALLBACK_AVATAR_SVG.encode("utf-8"))


class ImageProcessor:
    """Resizes avatars to square thumbnails with a bounded LRU cache.

    Attributes:
        max_entries: Cache capacity; the least recently used entry is evicted
            once it is exceeded.
        hits: Cache hits since construction.
        misses: Cache misses since construction.
    """

    def __init__(self, max_entries: int = 512) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}.")
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self._cache: OrderedDict[tuple[str, int, str], bytes] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._cache)

    def resize(self, data: bytes, size: int, fmt: ImageFormat | str) -> bytes:
        """Cover-crop ``data`` to ``size`` × ``size`` and encode as ``fmt``.

        Args:
            data: Source image bytes in any Pillow-readable format, or SVG.
            size: Edge length of the output square, in px.
            fmt: ``webp`` or ``png``.

        Returns:
            Encoded image bytes.

        Raises:
            PIL.UnidentifiedImageError: If ``data`` is not a readable image.
        """
        fmt = ImageFormat(fmt)
        key = (hashlib.sha256(data).hexdigest(), size, fmt.value)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                self.hits += 1
                return cached
            self.misses += 1

        result = self._encode(data, size, fmt)

        with self._lock:
            self._cache[key] = result
            self._cache.move_to_end(key)
            while len(self._cache) > self.max_entries:
                self._cache.popitem(last=False)
        return result

    def _encode(self, data: bytes, size: int, fmt: ImageFormat) -> bytes:
        if is_svg(data):
            data = cairosvg.svg2png(bytestring=data, output_width=size, output_height=size)
        with Image.open(io.BytesIO(data)) as img:
            img = img.convert("RGBA")
            thumb = ImageOps.fit(img, (size, size), method=Image.Resampling.LANCZOS)
        buf = io.BytesIO()
        if fmt == ImageFormat.WEBP:
            thumb.save(buf, format="WEBP", quality=80)
        else:
            thumb.save(buf, format="PNG", optimize=True, compress_level=8)
        return buf.getvalue()
