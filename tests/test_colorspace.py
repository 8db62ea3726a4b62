# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""Tests for color space conversions (sRGB → CIELAB) and CIEDE2000."""

import numpy as np
import pytest

from beadgrid.schema import Color
from beadgrid.pattern.colorspace import (
    delta_e_2000,
    delta_e_2000_matrix,
    distance,
    euclidean_distance,
    srgb_to_lab,
    srgb_to_linear,
    srgb_uint8_to_lab,
)


def _random_colors(n, seed=7):
    rng = np.random.default_rng(seed)
    return [Color(*map(int, rgb)) for rgb in rng.integers(0, 256, size=(n, 3))]


class TestSRGBToLinear:

    def test_gamma_threshold(self):
        """Values below 0.04045 use linear segment."""
        val = 0.03
        linear = srgb_to_linear(np.array([val]))
        assert float(linear[0]) == pytest.approx(val / 12.92, abs=1e-10)

    def test_endpoints(self):
        np.testing.assert_allclose(srgb_to_linear(np.array([0.0, 1.0])), [0.0, 1.0], atol=1e-12)

    def test_monotonic(self):
        values = np.linspace(0, 1, 256)
        assert np.all(np.diff(srgb_to_linear(values)) > 0)


class TestLab:

    def test_white(self):
        lab = srgb_to_lab(np.array([1.0, 1.0, 1.0]))
        np.testing.assert_allclose(lab, [100.0, 0.0, 0.0], atol=0.01)

    def test_black(self):
        lab = srgb_uint8_to_lab(np.array([0, 0, 0], dtype=np.uint8))
        np.testing.assert_allclose(lab, [0.0, 0.0, 0.0], atol=1e-9)

    def test_red(self):
        lab = srgb_uint8_to_lab(np.array([255, 0, 0], dtype=np.uint8))
        np.testing.assert_allclose(lab, [53.24, 80.09, 67.20], atol=0.05)

    def test_grays_have_no_chroma(self):
        grays = np.repeat(np.arange(0, 256, 15, dtype=np.uint8)[:, np.newaxis], 3, axis=1)
        lab = srgb_uint8_to_lab(grays)
        np.testing.assert_allclose(lab[:, 1:], 0.0, atol=1e-6)

    def test_white_point_is_neutral(self):
        lab = srgb_uint8_to_lab(np.array([255, 255, 255], dtype=np.uint8))
        np.testing.assert_allclose(lab, [100.0, 0.0, 0.0], atol=1e-9)

    def test_batch_shape(self):
        pixels = np.zeros((4, 5, 3), dtype=np.uint8)
        assert srgb_uint8_to_lab(pixels).shape == (4, 5, 3)

    def test_color_lab_property(self):
        lab = Color(255, 0, 0).lab
        expected = srgb_uint8_to_lab(np.array([255, 0, 0], dtype=np.uint8))
        np.testing.assert_allclose(lab, expected)


class TestDeltaE2000:
    """Reference pairs from Sharma, Wu & Dalal (2005)."""

    @pytest.mark.parametrize("lab1, lab2, expected", [
        ((50.0, 2.6772, -79.7751), (50.0, 0.0, -82.7485), 2.0425),
        ((50.0, 3.1571, -77.2803), (50.0, 0.0, -82.7485), 2.8615),
        ((50.0, 2.8361, -74.0200), (50.0, 0.0, -82.7485), 3.4412),
        ((50.0, 0.0, 0.0), (50.0, -1.0, 2.0), 2.3669),
        ((50.0, 2.5, 0.0), (73.0, 25.0, -18.0), 27.1492),
        ((50.0, 2.5, 0.0), (61.0, -5.0, 29.0), 22.8977),
        ((60.2574, -34.0099, 36.2677), (60.4626, -34.1751, 39.4387), 1.2644),
    ])
    def test_reference_pairs(self, lab1, lab2, expected):
        result = float(delta_e_2000(np.array(lab1), np.array(lab2)))
        assert result == pytest.approx(expected, abs=1e-4)

    def test_identical_is_zero(self):
        lab = np.array([42.0, 12.5, -30.0])
        assert float(delta_e_2000(lab, lab)) == pytest.approx(0.0, abs=1e-12)

    def test_matrix_matches_elementwise(self):
        rng = np.random.default_rng(3)
        a = srgb_uint8_to_lab(rng.integers(0, 256, size=(20, 3)).astype(np.uint8))
        b = srgb_uint8_to_lab(rng.integers(0, 256, size=(7, 3)).astype(np.uint8))
        matrix = delta_e_2000_matrix(a, b)
        assert matrix.shape == (20, 7)
        for i in range(20):
            for j in range(7):
                assert matrix[i, j] == pytest.approx(float(delta_e_2000(a[i], b[j])), abs=1e-9)

    def test_matrix_chunking(self):
        rng = np.random.default_rng(4)
        a = srgb_uint8_to_lab(rng.integers(0, 256, size=(50, 3)).astype(np.uint8))
        b = srgb_uint8_to_lab(rng.integers(0, 256, size=(5, 3)).astype(np.uint8))
        np.testing.assert_allclose(
            delta_e_2000_matrix(a, b, chunk_size=7),
            delta_e_2000_matrix(a, b),
        )


class TestDistance:

    def test_identity(self):
        for color in _random_colors(25):
            assert distance(color, color) == 0.0

    def test_symmetry(self):
        colors = _random_colors(20)
        for a, b in zip(colors, colors[1:]):
            assert distance(a, b) == pytest.approx(distance(b, a), abs=1e-9)

    def test_gray_is_pure_lightness(self):
        """For grays, CIEDE2000 reduces to |ΔL| / S_L."""
        for v1, v2 in [(0, 255), (40, 90), (128, 140), (200, 250)]:
            a, b = Color(v1, v1, v1), Color(v2, v2, v2)
            L1, L2 = a.lab[0], b.lab[0]
            L_bar = (L1 + L2) / 2
            S_L = 1 + 0.015 * (L_bar - 50) ** 2 / np.sqrt(20 + (L_bar - 50) ** 2)
            assert distance(a, b) == pytest.approx(abs(L2 - L1) / S_L, rel=1e-6, abs=1e-6)

    def test_small_differences_rank_below_large(self):
        base = Color(120, 60, 60)
        assert distance(base, Color(122, 60, 60)) < distance(base, Color(160, 60, 60))

    def test_euclidean(self):
        assert euclidean_distance(Color(0, 0, 0), Color(3, 4, 0)) == pytest.approx(5.0)
        assert euclidean_distance(Color(10, 20, 30), Color(10, 20, 30)) == 0.0
