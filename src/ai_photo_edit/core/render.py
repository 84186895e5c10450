"""
Render Engine - Preview and bake rendering of a filter vector.

Two modes share one FilterChain:
- Preview: the chain is applied to a cached, downscaled proxy in memory.
  Nothing is decoded or encoded per update, so slider drags stay cheap.
- Bake: the chain is applied once at the image's natural size and the
  result is encoded as PNG, for export and for the AI round-trip.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from ai_photo_edit.core.data_types import ImageData
from ai_photo_edit.core.filter_state import FilterVector
from ai_photo_edit.errors import SurfaceUnavailable
from ai_photo_edit.filters.rasterizer import Rasterizer

logger = logging.getLogger(__name__)


def render(image: ImageData, vector: FilterVector) -> ImageData:
    """Apply a filter vector to an image at its natural size."""
    chain = vector.to_filter_chain()
    if chain.is_identity:
        return image
    try:
        pixels = Rasterizer().apply(image.pixels, chain)
    except MemoryError as e:
        raise SurfaceUnavailable(
            f"Not enough memory to render a {image.width}x{image.height} image"
        ) from e
    return image.with_pixels(pixels)


def bake(base_image: ImageData, vector: FilterVector) -> bytes:
    """
    Bake a filter vector into the pixels of an image.

    Works at the image's natural dimensions, never the display size.

    Returns:
        PNG-encoded bytes of the rendered view
    """
    start = time.perf_counter()
    rendered = render(base_image, vector)
    data = rendered.to_png_bytes()
    logger.debug(
        "Baked %dx%d image in %.1f ms (%s)",
        base_image.width,
        base_image.height,
        (time.perf_counter() - start) * 1000,
        vector.to_filter_chain().css(),
    )
    return data


def export_filename(prefix: str = "ai-photo-edit", now_ms: int | None = None) -> str:
    """Deterministic export name: ``<prefix>-<epoch-millis>.png``."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{prefix}-{int(now_ms)}.png"


def export_image(
    base_image: ImageData,
    vector: FilterVector,
    directory: str | Path,
    prefix: str = "ai-photo-edit",
    now_ms: int | None = None,
) -> Path:
    """
    Bake and write the rendered view as a PNG file.

    Args:
        base_image: Filter-free source image
        vector: Adjustments to bake in
        directory: Output directory, created if missing
        prefix: File name prefix
        now_ms: Timestamp for the file name (defaults to now)

    Returns:
        Path of the written file
    """
    output_dir = Path(directory).expanduser()
    output_dir.mkdir(parents=True, exist_ok=True)

    save_path = output_dir / export_filename(prefix, now_ms)
    save_path.write_bytes(bake(base_image, vector))

    logger.info("Exported %s", save_path)
    return save_path


class PreviewRenderer:
    """
    Interactive renderer for one base image.

    The base image is decoded by the caller once; the renderer keeps a
    proxy no larger than ``max_edge`` and re-applies the chain to it on
    every update. Blur radii are scaled by the proxy scale so the preview
    matches the baked output.

    Usage:
        preview = PreviewRenderer(base_image)
        frame = preview.render(vector)
    """

    def __init__(self, base_image: ImageData, max_edge: int = 1600):
        self.base_image = base_image
        self.max_edge = max_edge
        self._proxy = base_image.thumbnail(max_edge)
        self._scale = self._proxy.width / base_image.width
        self._rasterizer = Rasterizer(blur_scale=self._scale)
        self._last: tuple[FilterVector, ImageData] | None = None

    @property
    def proxy(self) -> ImageData:
        return self._proxy

    @property
    def scale(self) -> float:
        """Proxy width divided by natural width."""
        return self._scale

    def render(self, vector: FilterVector) -> ImageData:
        """Render the proxy with the given adjustments."""
        if self._last is not None and self._last[0] == vector:
            return self._last[1]

        chain = vector.to_filter_chain()
        if chain.is_identity:
            frame = self._proxy
        else:
            frame = self._proxy.with_pixels(self._rasterizer.apply(self._proxy.pixels, chain))

        self._last = (vector, frame)
        return frame

    @staticmethod
    def css(vector: FilterVector) -> str:
        """Declarative effect list for compositors that take CSS filters."""
        return vector.to_filter_chain().css()
