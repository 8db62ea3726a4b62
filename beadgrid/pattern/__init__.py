# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Pattern core: color metric, grid quantization, palette selection and
matching.
"""

from beadgrid.pattern.colorspace import (
    delta_e_2000,
    delta_e_2000_matrix,
    distance,
    euclidean_distance,
    srgb_uint8_to_lab,
)
from beadgrid.pattern.grid import bead_spec, grid_config, quantize_grid
from beadgrid.pattern.palette import (
    analyze_color_usage,
    recommend_color_counts,
    reduce_colors,
    select_palette,
    select_palette_explicit,
    select_palette_kmeans,
    select_palette_reduction,
)
from beadgrid.pattern.matching import match_cells
from beadgrid.pattern.build import build_pattern

__all__ = [
    # Color metric
    "srgb_uint8_to_lab",
    "delta_e_2000",
    "delta_e_2000_matrix",
    "distance",
    "euclidean_distance",
    # Grid
    "bead_spec",
    "grid_config",
    "quantize_grid",
    # Palette
    "select_palette",
    "select_palette_kmeans",
    "select_palette_explicit",
    "select_palette_reduction",
    "analyze_color_usage",
    "reduce_colors",
    "recommend_color_counts",
    # Matching
    "match_cells",
    # Pipeline
    "build_pattern",
]
