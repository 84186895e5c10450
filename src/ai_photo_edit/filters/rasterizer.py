"""
Rasterizer - Applies a FilterChain to pixel data.

This module provides the Rasterizer class which handles:
- Color-matrix and transfer-function operations (brightness, contrast,
  saturate, grayscale, sepia, hue-rotate)
- Gaussian blur on premultiplied alpha with transparent edges (Pillow)
- Clamping after every primitive, the way a browser compositor does

Pixels are float32 HWC arrays in [0, 1] with 3 (RGB) or 4 (RGBA) channels.
Matrices follow the CSS Filter Effects definitions, applied in sRGB.
"""

from __future__ import annotations

import logging
import math
from typing import Callable

import numpy as np
from numpy.typing import NDArray
from PIL import Image, ImageFilter

from ai_photo_edit.filters.chain import FilterChain, FilterOp

logger = logging.getLogger(__name__)

# Luminance coefficients used by the CSS color matrices
_LUM_R, _LUM_G, _LUM_B = 0.2126, 0.7152, 0.0722

def saturate_matrix(amount: float) -> NDArray[np.float32]:
    s = amount
    return np.array([
        [0.213 + 0.787 * s, 0.715 - 0.715 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 + 0.285 * s, 0.072 - 0.072 * s],
        [0.213 - 0.213 * s, 0.715 - 0.715 * s, 0.072 + 0.928 * s],
    ], dtype=np.float32)

def grayscale_matrix(amount: float) -> NDArray[np.float32]:
    a = 1.0 - min(max(amount, 0.0), 1.0)
    return np.array([
        [_LUM_R + (1 - _LUM_R) * a, _LUM_G - _LUM_G * a, _LUM_B - _LUM_B * a],
        [_LUM_R - _LUM_R * a, _LUM_G + (1 - _LUM_G) * a, _LUM_B - _LUM_B * a],
        [_LUM_R - _LUM_R * a, _LUM_G - _LUM_G * a, _LUM_B + (1 - _LUM_B) * a],
    ], dtype=np.float32)

def sepia_matrix(amount: float) -> NDArray[np.float32]:
    a = 1.0 - min(max(amount, 0.0), 1.0)
    return np.array([
        [0.393 + 0.607 * a, 0.769 - 0.769 * a, 0.189 - 0.189 * a],
        [0.349 - 0.349 * a, 0.686 + 0.314 * a, 0.168 - 0.168 * a],
        [0.272 - 0.272 * a, 0.534 - 0.534 * a, 0.131 + 0.869 * a],
    ], dtype=np.float32)

def hue_rotate_matrix(degrees: float) -> NDArray[np.float32]:
    rad = math.radians(degrees)
    c, s = math.cos(rad), math.sin(rad)
    return np.array([
        [0.213 + c * 0.787 - s * 0.213, 0.715 - c * 0.715 - s * 0.715, 0.072 - c * 0.072 + s * 0.928],
        [0.213 - c * 0.213 + s * 0.143, 0.715 + c * 0.285 + s * 0.140, 0.072 - c * 0.072 - s * 0.283],
        [0.213 - c * 0.213 - s * 0.787, 0.715 - c * 0.715 + s * 0.715, 0.072 + c * 0.928 + s * 0.072],
    ], dtype=np.float32)

class Rasterizer:
    """
    Offline renderer for a FilterChain.

    Usage:
        rasterizer = Rasterizer()
        pixels = rasterizer.apply(pixels, vector.to_filter_chain())

    Args:
        blur_scale: Multiplier for blur radii, used when rendering a
            downscaled proxy so the blur matches the full-size result.
    """

    def __init__(self, blur_scale: float = 1.0):
        self.blur_scale = blur_scale
        self._ops: dict[str, Callable[[NDArray, float], NDArray]] = {
            "brightness": self._brightness,
            "contrast": self._contrast,
            "saturate": self._saturate,
            "grayscale": self._grayscale,
            "sepia": self._sepia,
            "blur": self._blur,
            "hue-rotate": self._hue_rotate,
        }

    def apply(self, pixels: NDArray, chain: FilterChain) -> NDArray[np.float32]:
        """
        Apply every operation of the chain in order.

        Identity operations are skipped so the identity chain returns the
        input pixels unchanged. The input array is never modified.
        """
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError(f"Expected HxWx3 or HxWx4 pixels, got shape {pixels.shape}")

        out = pixels.astype(np.float32, copy=True)
        for op in chain:
            if op.is_identity:
                continue
            logger.debug("Applying %s", op.css())
            out = self.apply_op(out, op)
        return out

    def apply_op(self, pixels: NDArray, op: FilterOp) -> NDArray[np.float32]:
        """Apply a single operation."""
        try:
            handler = self._ops[op.operation]
        except KeyError:
            raise ValueError(f"Unknown filter operation: {op.operation}") from None
        return handler(pixels, op.magnitude)

    # -------------------------------------------------------------------------
    # Operations (magnitudes in chain units: percent, px, deg)
    # -------------------------------------------------------------------------

    def _brightness(self, pixels: NDArray, percent: float) -> NDArray:
        return self._transfer(pixels, slope=percent / 100.0, intercept=0.0)

    def _contrast(self, pixels: NDArray, percent: float) -> NDArray:
        c = percent / 100.0
        return self._transfer(pixels, slope=c, intercept=0.5 - 0.5 * c)

    def _saturate(self, pixels: NDArray, percent: float) -> NDArray:
        return self._color_matrix(pixels, saturate_matrix(percent / 100.0))

    def _grayscale(self, pixels: NDArray, percent: float) -> NDArray:
        return self._color_matrix(pixels, grayscale_matrix(percent / 100.0))

    def _sepia(self, pixels: NDArray, percent: float) -> NDArray:
        return self._color_matrix(pixels, sepia_matrix(percent / 100.0))

    def _hue_rotate(self, pixels: NDArray, degrees: float) -> NDArray:
        return self._color_matrix(pixels, hue_rotate_matrix(degrees))

    def _blur(self, pixels: NDArray, px: float) -> NDArray:
        sigma = px * self.blur_scale
        if sigma <= 0:
            return pixels

        height, width = pixels.shape[:2]
        if pixels.shape[2] == 4:
            alpha = pixels[:, :, 3:4]
            premultiplied = np.concatenate([pixels[:, :, :3] * alpha, alpha], axis=-1)
        else:
            # Opaque image: alpha is implicitly 1 and fades at the edges
            alpha = np.ones((height, width, 1), dtype=np.float32)
            premultiplied = np.concatenate([pixels, alpha], axis=-1)

        # Pillow repeats edge pixels; a transparent margin makes the edges fade
        margin = int(math.ceil(sigma * 3.0)) + 1
        padded = np.pad(premultiplied, ((margin, margin), (margin, margin), (0, 0)))
        image = Image.fromarray(np.rint(padded * 255.0).astype(np.uint8))
        blurred = image.filter(ImageFilter.GaussianBlur(sigma))
        work = np.asarray(blurred, dtype=np.float32)[margin:margin + height, margin:margin + width] / 255.0

        out_alpha = work[:, :, 3:4]
        visible = out_alpha > 0
        rgb = np.where(visible, work[:, :, :3] / np.where(visible, out_alpha, 1.0), 0.0)
        out = np.concatenate([rgb, out_alpha], axis=-1)
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    @staticmethod
    def _transfer(pixels: NDArray, slope: float, intercept: float) -> NDArray:
        out = pixels.copy()
        out[:, :, :3] = np.clip(pixels[:, :, :3] * slope + intercept, 0.0, 1.0)
        return out

    @staticmethod
    def _color_matrix(pixels: NDArray, matrix: NDArray) -> NDArray:
        out = pixels.copy()
        rgb = pixels[:, :, :3] @ matrix.T
        out[:, :, :3] = np.clip(rgb, 0.0, 1.0)
        return out

def apply_filter_chain(
    pixels: NDArray,
    chain: FilterChain,
    blur_scale: float = 1.0,
) -> NDArray[np.float32]:
    """Convenience wrapper around Rasterizer.apply."""
    return Rasterizer(blur_scale=blur_scale).apply(pixels, chain)
