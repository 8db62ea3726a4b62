# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""Tests for grid configuration and quantization."""

import numpy as np
import pytest

from beadgrid.errors import InvalidInput
from beadgrid.schema import BeadSpec, BeadType, Color, GridConfig
from beadgrid.pattern.grid import bead_spec, grid_config, quantize_grid


def _solid_image(r, g, b, height=100, width=100):
    """Create a solid-color image."""
    return np.full((height, width, 3), [r, g, b], dtype=np.uint8)


def _config(columns, rows):
    bead = BeadSpec(BeadType.SQUARE, 2.5)
    return GridConfig(
        target_width=columns / 4,
        target_height=rows / 4,
        columns=columns,
        rows=rows,
        bead=bead,
        actual_width=columns / 4,
        actual_height=rows / 4,
    )


class TestBeadSpec:

    def test_circular_default(self):
        bead = bead_spec()
        assert bead.bead_type == BeadType.CIRCULAR
        assert bead.size_mm == 2.8

    def test_square_default(self):
        assert bead_spec(BeadType.SQUARE).size_mm == 2.6

    def test_custom_size(self):
        bead = bead_spec(BeadType.SQUARE, 5.0)
        assert bead.cells_per_cm == pytest.approx(2.0)

    def test_non_positive_size_rejected(self):
        with pytest.raises(InvalidInput):
            bead_spec(BeadType.CIRCULAR, 0.0)


class TestGridConfig:

    def test_columns_follow_width(self):
        config = grid_config(10.0, 100, 50, bead_spec())
        # 10 cm at 2.8 mm per bead = 35.7 → 36
        assert config.columns == 36
        assert config.rows == 18
        assert config.total_cells == 36 * 18

    def test_height_follows_aspect(self):
        config = grid_config(12.0, 300, 200, bead_spec())
        assert config.target_height == pytest.approx(8.0)

    @pytest.mark.parametrize("width, img_w, img_h", [
        (10.0, 100, 50),
        (7.3, 640, 480),
        (25.0, 1920, 1080),
        (3.1, 17, 91),
    ])
    def test_actual_size_is_grid_aligned(self, width, img_w, img_h):
        bead = bead_spec(BeadType.SQUARE)
        config = grid_config(width, img_w, img_h, bead)
        assert round(config.columns / bead.cells_per_cm, 2) == config.actual_width
        assert round(config.rows / bead.cells_per_cm, 2) == config.actual_height

    def test_tiny_target_clamps_to_one_cell(self):
        config = grid_config(0.01, 100, 100, bead_spec())
        assert config.columns == 1
        assert config.rows == 1

    @pytest.mark.parametrize("width", [0.0, -5.0])
    def test_non_positive_width_rejected(self, width):
        with pytest.raises(InvalidInput):
            grid_config(width, 100, 100)

    @pytest.mark.parametrize("width", [float("inf"), float("nan")])
    def test_non_finite_width_rejected(self, width):
        with pytest.raises(InvalidInput, match="finite"):
            grid_config(width, 100, 100)

    @pytest.mark.parametrize("img_w, img_h", [(0, 100), (100, 0), (0, 0)])
    def test_zero_image_rejected(self, img_w, img_h):
        with pytest.raises(InvalidInput):
            grid_config(10.0, img_w, img_h)


class TestQuantizeGrid:

    def test_cell_count(self):
        config = grid_config(10.0, 100, 50, bead_spec())
        grid = quantize_grid(_solid_image(0, 0, 0, height=50, width=100), config)
        assert len(grid.cells) == config.columns * config.rows

    def test_row_major_order(self):
        grid = quantize_grid(_solid_image(5, 5, 5, 30, 40), _config(4, 3))
        positions = [(c.x, c.y) for c in grid.cells]
        assert positions == [(x, y) for y in range(3) for x in range(4)]

    def test_solid_image(self):
        grid = quantize_grid(_solid_image(200, 30, 40), _config(10, 10))
        for cell in grid.cells:
            assert cell.color == Color(200, 30, 40)
            assert cell.average_color == Color(200, 30, 40)

    def test_two_tone_split(self):
        img = np.zeros((10, 20, 3), dtype=np.uint8)
        img[:, 10:] = [255, 255, 255]
        grid = quantize_grid(img, _config(2, 1))
        assert grid.cell_at(0, 0).average_color == Color(0, 0, 0)
        assert grid.cell_at(1, 0).average_color == Color(255, 255, 255)

    def test_average_rounds_half_up(self):
        img = np.array([[[0, 0, 0], [1, 3, 255]]], dtype=np.uint8)
        grid = quantize_grid(img, _config(1, 1))
        assert grid.cells[0].average_color == Color(1, 2, 128)

    def test_centre_pixel(self):
        img = np.zeros((1, 4, 3), dtype=np.uint8)
        img[0, :, 0] = [10, 20, 30, 40]
        grid = quantize_grid(img, _config(1, 1))
        # footprint [0, 4) → centre index 2
        assert grid.cells[0].color == Color(30, 0, 0)
        assert grid.cells[0].average_color == Color(25, 0, 0)

    def test_grid_finer_than_image(self):
        img = np.zeros((2, 2, 3), dtype=np.uint8)
        img[0, 0] = [255, 0, 0]
        grid = quantize_grid(img, _config(4, 4))
        assert len(grid.cells) == 16
        assert grid.cell_at(0, 0).average_color == Color(255, 0, 0)
        assert grid.cell_at(3, 3).average_color == Color(0, 0, 0)

    def test_alpha_ignored(self):
        img = np.zeros((4, 4, 4), dtype=np.uint8)
        img[..., 0] = 90
        img[..., 3] = 17
        grid = quantize_grid(img, _config(2, 2))
        assert all(c.average_color == Color(90, 0, 0) for c in grid.cells)

    def test_average_rgb_array(self):
        grid = quantize_grid(_solid_image(1, 2, 3, 8, 8), _config(2, 2))
        rgb = grid.average_rgb()
        assert rgb.shape == (4, 3)
        assert rgb.dtype == np.uint8
        np.testing.assert_array_equal(rgb, [[1, 2, 3]] * 4)

    def test_float_image_rejected(self):
        with pytest.raises(InvalidInput):
            quantize_grid(np.zeros((4, 4, 3), dtype=np.float64), _config(2, 2))

    def test_grayscale_image_rejected(self):
        with pytest.raises(InvalidInput):
            quantize_grid(np.zeros((4, 4), dtype=np.uint8), _config(2, 2))

    def test_empty_image_rejected(self):
        with pytest.raises(InvalidInput):
            quantize_grid(np.zeros((0, 4, 3), dtype=np.uint8), _config(2, 2))

    def test_cell_at_bounds(self):
        grid = quantize_grid(_solid_image(0, 0, 0, 4, 4), _config(2, 2))
        with pytest.raises(IndexError):
            grid.cell_at(2, 0)
