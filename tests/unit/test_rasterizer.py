"""
Tests for the offline rasterizer.

Expected values follow the CSS Filter Effects formulas in sRGB with a
clamp after every primitive.
"""

import time

import numpy as np
import pytest

from ai_photo_edit.core.filter_state import FilterVector
from ai_photo_edit.filters.chain import FilterOp
from ai_photo_edit.filters.rasterizer import (
    Rasterizer,
    apply_filter_chain,
    grayscale_matrix,
    hue_rotate_matrix,
    sepia_matrix,
)


def _pixels(values):
    return np.array(values, dtype=np.float32) / 255.0


def _apply(pixels, **channels):
    return Rasterizer().apply(pixels, FilterVector(**channels).to_filter_chain())


class TestTransferFunctions:

    def test_brightness_150_on_2x2(self):
        src = _pixels([
            [[100, 50, 0], [200, 120, 255]],
            [[10, 20, 30], [170, 0, 84]],
        ])
        out = _apply(src, brightness=150)
        as_bytes = np.rint(out * 255).astype(np.uint8)
        expected = np.array([
            [[150, 75, 0], [255, 180, 255]],
            [[15, 30, 45], [255, 0, 126]],
        ], dtype=np.uint8)
        assert np.array_equal(as_bytes, expected)

    def test_brightness_zero_is_black_keeps_alpha(self):
        src = np.full((2, 2, 4), 0.6, dtype=np.float32)
        out = _apply(src, brightness=0)
        assert np.allclose(out[:, :, :3], 0.0)
        assert np.allclose(out[:, :, 3], 0.6)

    def test_contrast_zero_is_mid_gray(self):
        src = _pixels([[[0, 128, 255]]])
        out = _apply(src, contrast=0)
        assert np.allclose(out, 0.5)

    def test_contrast_200_clamps(self):
        src = _pixels([[[0, 255, 64]]])
        out = _apply(src, contrast=200)
        assert out[0, 0, 0] == 0.0
        assert out[0, 0, 1] == 1.0

    def test_input_not_modified(self):
        src = _pixels([[[100, 100, 100]]])
        before = src.copy()
        _apply(src, brightness=180, sepia=40)
        assert np.array_equal(src, before)


class TestColorMatrices:

    def test_identity_chain_returns_same_values(self):
        src = np.random.default_rng(0).random((4, 5, 3), dtype=np.float32)
        out = _apply(src)
        assert np.array_equal(out, src)
        assert out is not src

    def test_grayscale_full(self):
        out = _apply(_pixels([[[255, 0, 0]]]), grayscale=100)
        assert np.allclose(out[0, 0], [0.2126, 0.2126, 0.2126], atol=1e-5)

    def test_grayscale_zero_matrix_is_identity(self):
        assert np.allclose(grayscale_matrix(0.0), np.eye(3), atol=1e-6)

    def test_sepia_on_white(self):
        out = _apply(np.ones((1, 1, 3), dtype=np.float32), sepia=100)
        assert np.allclose(out[0, 0], [1.0, 1.0, 0.937], atol=1e-5)

    def test_sepia_amount_clamped(self):
        assert np.allclose(sepia_matrix(2.0), sepia_matrix(1.0))

    def test_saturate_zero_on_gray_is_unchanged(self):
        src = np.full((1, 1, 3), 0.4, dtype=np.float32)
        out = _apply(src, saturation=0)
        assert np.allclose(out, 0.4, atol=1e-5)

    def test_hue_rotate_zero_and_full_turn(self):
        assert np.allclose(hue_rotate_matrix(0), np.eye(3), atol=1e-6)
        assert np.allclose(hue_rotate_matrix(360), np.eye(3), atol=1e-5)

    def test_hue_rotate_changes_color(self):
        src = _pixels([[[255, 0, 0]]])
        out = _apply(src, hue_rotate=180)
        assert out[0, 0, 0] < 0.5
        assert out[0, 0, 1] > 0.0

    def test_alpha_preserved(self):
        src = np.zeros((1, 1, 4), dtype=np.float32)
        src[0, 0] = [1.0, 0.0, 0.0, 0.25]
        out = _apply(src, grayscale=100, hue_rotate=45)
        assert out[0, 0, 3] == pytest.approx(0.25)


class TestBlur:

    def test_rgb_input_gains_alpha_with_soft_edges(self):
        src = np.zeros((9, 9, 3), dtype=np.float32)
        src[:, :, 0] = 1.0
        out = _apply(src, blur=1)
        assert out.shape == (9, 9, 4)
        assert out[0, 0, 3] < out[4, 4, 3]
        assert out[4, 4, 3] > 0.99
        # Colour is unpremultiplied, so it stays pure red everywhere
        assert np.allclose(out[:, :, :3], [1.0, 0.0, 0.0], atol=1e-4)

    def test_transparent_pixels_do_not_bleed_color(self):
        src = np.zeros((1, 7, 4), dtype=np.float32)
        src[0, 3] = [0.0, 1.0, 0.0, 1.0]
        # Transparent neighbours carry red, which must not leak in
        src[0, :3, 0] = 1.0
        out = _apply(src, blur=1)
        assert np.allclose(out[0, 3, :3], [0.0, 1.0, 0.0], atol=1e-4)
        assert out[0, 3, 3] < 1.0

    def test_edges_fade_even_on_large_images(self):
        src = np.ones((40, 60, 3), dtype=np.float32)
        out = _apply(src, blur=4)
        assert out[0, 0, 3] < 0.5
        assert out[20, 30, 3] > 0.99

    def test_proxy_sized_blur_is_interactive(self):
        src = np.random.default_rng(1).random((1200, 1600, 3), dtype=np.float32)
        chain = FilterVector(blur=20, hue_rotate=30).to_filter_chain()
        started = time.perf_counter()
        out = Rasterizer().apply(src, chain)
        elapsed = time.perf_counter() - started
        assert out.shape == (1200, 1600, 4)
        assert elapsed < 1.0

    def test_blur_scale_zero_disables_blur(self):
        src = np.ones((3, 3, 3), dtype=np.float32)
        chain = FilterVector(blur=4).to_filter_chain()
        out = apply_filter_chain(src, chain, blur_scale=0.0)
        assert out.shape == (3, 3, 3)
        assert np.array_equal(out, src)


class TestRasterizerErrors:

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            Rasterizer().apply(np.zeros((4, 4), dtype=np.float32), FilterVector().to_filter_chain())

    def test_unknown_operation(self):
        op = FilterOp(operation="invert", magnitude=100, unit="%", identity=0)
        with pytest.raises(ValueError):
            Rasterizer().apply_op(np.zeros((1, 1, 3), dtype=np.float32), op)
