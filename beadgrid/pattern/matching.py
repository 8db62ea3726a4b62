# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Constrained matching: bind every grid cell to its nearest palette color.

Palettes are small (at most the catalog size), so a full distance
matrix against every cell is computed in chunks; no spatial index is
needed. This stage is deterministic: ties go to the earlier palette
entry.
"""

from __future__ import annotations

import logging

import numpy as np

from beadgrid.errors import EmptyPalette, InvalidInput
from beadgrid.schema import (
    ColorUsage,
    MatchedCell,
    Palette,
    PatternStatistics,
    QuantizedGrid,
)
from beadgrid.pattern.colorspace import delta_e_2000_matrix, srgb_uint8_to_lab

logger = logging.getLogger(__name__)


def match_cells(
    grid: QuantizedGrid,
    palette: Palette,
    *,
    quality_scale: float = 30.0,
) -> tuple[tuple[MatchedCell, ...], PatternStatistics]:
    """
    Match each cell's averaged color to the closest palette entry.

    Args:
        grid: Quantized grid
        palette: Palette to match against
        quality_scale: Average CIEDE2000 at which quality reaches zero

    Returns:
        (matched cells in grid order, statistics)

    Raises:
        EmptyPalette: Palette has no colors
    """
    if len(palette) == 0:
        raise EmptyPalette("Cannot match cells against an empty palette")
    if quality_scale <= 0:
        raise InvalidInput(f"quality_scale must be positive, got {quality_scale}")

    cell_lab = srgb_uint8_to_lab(grid.average_rgb())
    palette_lab = srgb_uint8_to_lab(
        np.array([c.color.rgb for c in palette.colors], dtype=np.uint8)
    )
    dists = delta_e_2000_matrix(cell_lab, palette_lab)

    # argmin returns the first minimum, so ties resolve to palette order
    best = np.argmin(dists, axis=1)
    best_dist = dists[np.arange(len(best)), best]

    matched = tuple(
        MatchedCell(cell=cell, reference=palette.colors[j], distance=float(d))
        for cell, j, d in zip(grid.cells, best, best_dist)
    )

    total = len(matched)
    counts = np.bincount(best, minlength=len(palette))
    dist_sums = np.bincount(best, weights=best_dist, minlength=len(palette))

    usage = [
        ColorUsage(
            reference=palette.colors[j],
            count=int(counts[j]),
            percentage=100.0 * counts[j] / total,
            average_distance=float(dist_sums[j] / counts[j]),
        )
        for j in range(len(palette))
        if counts[j] > 0
    ]
    usage.sort(key=lambda u: (-u.count, u.reference.code))

    average = float(best_dist.mean())
    statistics = PatternStatistics(
        total_cells=total,
        colors_used=len(usage),
        average_distance=average,
        quality_score=max(0.0, 1.0 - average / quality_scale),
        usage=tuple(usage),
    )

    logger.debug(
        "Matched %d cells to %d of %d palette colors, average distance %.2f",
        total, len(usage), len(palette), average,
    )
    return matched, statistics
