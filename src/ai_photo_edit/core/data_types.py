"""
Image container shared by the renderer, the session and the UI.

Pixels live in a read-only float32 array (H, W, C) in [0, 1] with three or
four channels. Decoding raises DecodeFailure, UnsupportedFormat or
SurfaceUnavailable; nothing past this module has to deal with Pillow errors.
"""

from __future__ import annotations

import base64
import binascii
import dataclasses
import re
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray
from PIL import Image, ImageOps, UnidentifiedImageError

from ai_photo_edit.errors import DecodeFailure, SurfaceUnavailable, UnsupportedFormat


# Pillow format names accepted on input
SUPPORTED_FORMATS = frozenset({"PNG", "JPEG", "WEBP", "GIF", "BMP", "TIFF"})

_DATA_URL_RE = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


def strip_data_url(data: str) -> str:
    return _DATA_URL_RE.sub("", data.strip(), count=1)


# Single-channel modes wider than 8 bits, and the value that maps to white
_HIGH_BIT_DEPTH_WHITE = {
    "I;16": 65535.0,
    "I;16L": 65535.0,
    "I;16B": 65535.0,
    "I;16N": 65535.0,
    "I": 65535.0,
    "F": 1.0,
}


def _to_float(image: Image.Image) -> NDArray[np.float32]:
    """RGB or RGBA float pixels for a decoded Pillow image."""
    try:
        white = _HIGH_BIT_DEPTH_WHITE.get(image.mode)
        if white is not None:
            # convert("RGB") would clip these instead of rescaling
            gray = np.clip(np.asarray(image, dtype=np.float32) / white, 0.0, 1.0)
            return np.repeat(gray[..., None], 3, axis=2)

        wants_alpha = "A" in image.getbands() or "transparency" in image.info
        mode = "RGBA" if wants_alpha else "RGB"
        if image.mode != mode:
            image = image.convert(mode)
        return np.asarray(image, dtype=np.float32) / 255.0
    except MemoryError as e:
        raise SurfaceUnavailable(f"Not enough memory for a {image.width}x{image.height} image") from e


@dataclass
class ImageMetadata:
    source_path: Path | None = None
    format: str | None = None
    # Filled in for images returned by an AI edit
    prompt: str | None = None
    model: str | None = None
    original_width: int | None = None
    original_height: int | None = None
    custom: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> ImageMetadata:
        return dataclasses.replace(self, custom=dict(self.custom))


@dataclass
class ImageData:
    """
    A decoded image.

    Construction freezes ``pixels``; derive new images with
    ``with_pixels`` instead of writing into the array.
    """
    pixels: NDArray[np.float32]
    metadata: ImageMetadata = field(default_factory=ImageMetadata)

    def __post_init__(self) -> None:
        shape = self.pixels.shape
        if self.pixels.ndim != 3 or shape[2] not in (3, 4):
            raise ValueError(f"Expected HxWx3 or HxWx4 pixels, got shape {shape}")
        if 0 in shape[:2]:
            raise SurfaceUnavailable(f"Cannot create a surface for a {shape[1]}x{shape[0]} image")
        self.pixels.flags.writeable = False

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_numpy(cls, array: NDArray, metadata: ImageMetadata | None = None) -> ImageData:
        """
        Wrap a copy of ``array``.

        uint8 and uint16 input is scaled to [0, 1], other dtypes are cast
        to float32,
        and a 2-D array is treated as grayscale.
        """
        array = np.asarray(array)
        if array.dtype == np.uint8:
            pixels = array.astype(np.float32) / 255.0
        elif array.dtype == np.uint16:
            pixels = array.astype(np.float32) / 65535.0
        else:
            pixels = np.array(array, dtype=np.float32, copy=True)
        if pixels.ndim == 2:
            pixels = np.repeat(pixels[..., None], 3, axis=2)
        return cls(pixels=pixels, metadata=metadata or ImageMetadata())

    @classmethod
    def from_bytes(cls, data: bytes, metadata: ImageMetadata | None = None) -> ImageData:
        """
        Decode PNG, JPEG, WEBP, GIF, BMP or TIFF bytes.

        The EXIF orientation is applied, so pixels come out the way a
        viewer would show them.

        Raises:
            DecodeFailure: Empty, truncated or unrecognised data
            UnsupportedFormat: A readable image in a format we do not accept
            SurfaceUnavailable: The image is empty or too large to hold
        """
        if not data:
            raise DecodeFailure("Image data is empty")

        try:
            image = Image.open(BytesIO(data))
            if image.format not in SUPPORTED_FORMATS:
                raise UnsupportedFormat(f"Unsupported image format: {image.format or 'unknown'}")
            fmt = image.format
            image.load()
            image = ImageOps.exif_transpose(image)
        except UnidentifiedImageError as e:
            raise DecodeFailure("Data is not a recognised image") from e
        except Image.DecompressionBombError as e:
            raise SurfaceUnavailable(str(e)) from e
        except MemoryError as e:
            raise SurfaceUnavailable("Not enough memory to decode image") from e
        except (OSError, SyntaxError, ValueError) as e:
            raise DecodeFailure(f"Failed to decode image: {e}") from e

        meta = metadata or ImageMetadata()
        meta.format = fmt
        meta.original_width, meta.original_height = image.size
        return cls(pixels=_to_float(image), metadata=meta)

    @classmethod
    def from_data_url(cls, data_url: str, metadata: ImageMetadata | None = None) -> ImageData:
        """Decode base64 image text; a ``data:image/...;base64,`` prefix is optional."""
        try:
            raw = base64.b64decode(strip_data_url(data_url), validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeFailure("Image data is not valid base64") from e
        return cls.from_bytes(raw, metadata)

    @classmethod
    def from_file(cls, path: str | Path, metadata: ImageMetadata | None = None) -> ImageData:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image file not found: {path}")
        meta = metadata or ImageMetadata()
        meta.source_path = path
        return cls.from_bytes(path.read_bytes(), meta)

    # -------------------------------------------------------------------------
    # Geometry
    # -------------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def channels(self) -> int:
        return self.pixels.shape[2]

    @property
    def size(self) -> tuple[int, int]:
        """(width, height)"""
        return (self.width, self.height)

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def to_numpy(self, dtype: np.dtype = np.float32) -> NDArray:
        """A writable copy; uint8 output is rounded to the nearest level."""
        if dtype == np.uint8:
            return np.clip(np.rint(self.pixels * 255.0), 0, 255).astype(np.uint8)
        return self.pixels.astype(dtype)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.to_numpy(np.uint8), mode="RGBA" if self.has_alpha else "RGB")

    def to_png_bytes(self) -> bytes:
        buf = BytesIO()
        self.to_pil().save(buf, format="PNG")
        return buf.getvalue()

    def to_data_url(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.to_png_bytes()).decode("ascii")

    def with_pixels(self, pixels: NDArray) -> ImageData:
        return ImageData(pixels=pixels, metadata=self.metadata.copy())

    def copy(self) -> ImageData:
        return self.with_pixels(self.pixels.copy())

    def thumbnail(self, max_size: int = 256) -> ImageData:
        """A copy scaled down (never up) so the longer edge is at most ``max_size``."""
        if max(self.size) <= max_size:
            return self.copy()
        small = self.to_pil()
        small.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
        return self.with_pixels(np.asarray(small, dtype=np.float32) / 255.0)
