# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Grid quantization: downsample an image into bead cells.

The grid size follows the requested physical width and the bead pitch.
Cell counts are integers, so the actual physical size is recomputed
from them and may differ slightly from the request.

Each cell records two colors:
- the source pixel at the centre of its footprint
- the rounded mean of every source pixel in its footprint
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from beadgrid.errors import InvalidInput
from beadgrid.schema import (
    DEFAULT_BEAD_SIZES_MM,
    BeadSpec,
    BeadType,
    Color,
    GridCell,
    GridConfig,
    QuantizedGrid,
)

logger = logging.getLogger(__name__)


def bead_spec(
    bead_type: BeadType = BeadType.CIRCULAR,
    size_mm: Optional[float] = None,
) -> BeadSpec:
    """
    Build a bead specification, filling in the conventional size.

    Args:
        bead_type: Bead shape
        size_mm: Bead pitch in mm (None for the shape's default)
    """
    if size_mm is None:
        size_mm = DEFAULT_BEAD_SIZES_MM[bead_type]
    return BeadSpec(bead_type=bead_type, size_mm=size_mm)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def grid_config(
    target_width: float,
    image_width: int,
    image_height: int,
    bead: Optional[BeadSpec] = None,
) -> GridConfig:
    """
    Resolve grid dimensions for a physical target width.

    Height follows the image aspect ratio. Both cell counts are at
    least 1.

    Args:
        target_width: Requested width in cm
        image_width: Source width in pixels
        image_height: Source height in pixels
        bead: Bead specification (default circular 2.8 mm)

    Returns:
        GridConfig with grid-aligned actual dimensions

    Raises:
        InvalidInput: Non-positive width or zero image dimensions
    """
    if bead is None:
        bead = bead_spec()
    if not (target_width > 0 and math.isfinite(target_width)):
        raise InvalidInput(f"Target width must be a positive finite number, got {target_width}")
    if image_width <= 0 or image_height <= 0:
        raise InvalidInput(
            f"Image dimensions must be positive, got {image_width}x{image_height}"
        )

    target_height = target_width * image_height / image_width
    per_cm = bead.cells_per_cm

    columns = max(1, _round_half_up(target_width * per_cm))
    rows = max(1, _round_half_up(target_height * per_cm))

    return GridConfig(
        target_width=target_width,
        target_height=target_height,
        columns=columns,
        rows=rows,
        bead=bead,
        actual_width=round(columns / per_cm, 2),
        actual_height=round(rows / per_cm, 2),
    )


def validate_pixels(pixels: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """
    Check an image array and drop any alpha channel.

    Returns:
        (H, W, 3) uint8 view of the input

    Raises:
        InvalidInput: Wrong shape, dtype, or an empty image
    """
    if not isinstance(pixels, np.ndarray):
        raise InvalidInput(f"Expected numpy array, got {type(pixels).__name__}")
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise InvalidInput(f"Expected (H, W, 3) or (H, W, 4) array, got shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise InvalidInput(f"Expected uint8 array, got {pixels.dtype}")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise InvalidInput(f"Image is empty ({pixels.shape[1]}x{pixels.shape[0]})")
    return pixels[..., :3]


def _cell_bounds(cells: int, pixels: int) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
    """
    Pixel footprint [start, end) of each cell along one axis.

    Footprints are widened to at least one pixel so every cell has a
    color even when the grid is finer than the image.
    """
    scale = pixels / cells
    index = np.arange(cells, dtype=np.float64)
    starts = np.floor(index * scale).astype(np.int64)
    ends = np.floor((index + 1) * scale).astype(np.int64)
    starts = np.minimum(starts, pixels - 1)
    ends = np.clip(ends, starts + 1, pixels)
    return starts, ends


def quantize_grid(
    pixels: NDArray[np.uint8],
    config: GridConfig,
) -> QuantizedGrid:
    """
    Downsample an image into the configured grid.

    Region means are computed from a summed-area table, so the cost is
    one pass over the image regardless of the cell count.

    Args:
        pixels: (H, W, 3) or (H, W, 4) uint8 sRGB image (alpha ignored)
        config: Grid configuration from grid_config()

    Returns:
        QuantizedGrid with row-major cells
    """
    rgb = validate_pixels(pixels)
    height, width = rgb.shape[:2]

    ys, ye = _cell_bounds(config.rows, height)
    xs, xe = _cell_bounds(config.columns, width)

    # Summed-area table with a zero row/column in front
    sat = np.zeros((height + 1, width + 1, 3), dtype=np.int64)
    sat[1:, 1:] = rgb.astype(np.int64).cumsum(axis=0).cumsum(axis=1)

    y0, y1 = ys[:, np.newaxis], ye[:, np.newaxis]
    x0, x1 = xs[np.newaxis, :], xe[np.newaxis, :]
    sums = sat[y1, x1] - sat[y0, x1] - sat[y1, x0] + sat[y0, x0]
    counts = ((ye - ys)[:, np.newaxis] * (xe - xs)[np.newaxis, :])[..., np.newaxis]

    # Integer half-up rounding of sums / counts
    averages = (2 * sums + counts) // (2 * counts)

    centres = rgb[((ys + ye) // 2)[:, np.newaxis], ((xs + xe) // 2)[np.newaxis, :]]

    cells = []
    for y in range(config.rows):
        for x in range(config.columns):
            cr, cg, cb = centres[y, x]
            ar, ag, ab = averages[y, x]
            cells.append(GridCell(
                x=x,
                y=y,
                color=Color(int(cr), int(cg), int(cb)),
                average_color=Color(int(ar), int(ag), int(ab)),
            ))

    logger.debug(
        "Quantized %dx%d image into %dx%d grid",
        width, height, config.columns, config.rows,
    )
    return QuantizedGrid(config=config, cells=tuple(cells))
