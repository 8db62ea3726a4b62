# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Pattern pipeline: image → grid → palette → matched pattern.

This is the primary entry point for pattern generation. Stages run in
sequence, each consuming the complete output of the previous one.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray

from beadgrid.data import load_catalog
from beadgrid.errors import InvalidInput
from beadgrid.schema import Pattern, PatternRequest, ReferenceCatalog
from beadgrid.pattern.grid import grid_config, quantize_grid, validate_pixels
from beadgrid.pattern.matching import match_cells
from beadgrid.pattern.palette import select_palette

logger = logging.getLogger(__name__)


def build_pattern(
    image: Union[str, Path, NDArray[np.uint8]],
    request: PatternRequest,
    *,
    catalog: Optional[ReferenceCatalog] = None,
) -> Pattern:
    """
    Convert an image into a bead pattern.

    Args:
        image: One of:
            - Path to an image file (str or Path). Embedded ICC profiles
              are converted to sRGB.
            - NumPy array of shape (H, W, 3) or (H, W, 4) with uint8 sRGB
              values. Alpha is ignored.
        request: Target width, bead and palette strategy
        catalog: Reference catalog (default: bundled DMC table)

    Returns:
        Pattern with one matched cell per grid position

    Raises:
        InvalidInput: Degenerate image or request
        UnknownReferenceCode: Explicit palette names unknown codes
        EmptyPalette: Clustering produced no colors
    """
    if catalog is None:
        catalog = load_catalog()

    pixels = _load_image(image)
    height, width = pixels.shape[:2]

    config = grid_config(request.target_width, width, height, request.bead)
    logger.debug(
        "Grid %dx%d for %.2fcm target (actual %.2fx%.2fcm)",
        config.columns, config.rows, request.target_width,
        config.actual_width, config.actual_height,
    )

    grid = quantize_grid(pixels, config)
    palette = select_palette(grid, request.strategy, catalog)
    logger.debug("Palette: %d colors via %s", len(palette), palette.strategy)

    cells, statistics = match_cells(grid, palette)

    logger.info(
        "Built %dx%d pattern: %d of %d palette colors used, quality %.3f",
        config.columns, config.rows, statistics.colors_used, len(palette),
        statistics.quality_score,
    )
    return Pattern(config=config, palette=palette, cells=cells, statistics=statistics)


def _load_image(
    image: Union[str, Path, NDArray[np.uint8]],
) -> NDArray[np.uint8]:
    """
    Load image from file or validate array.

    Applies ICC profile conversion to sRGB if the file has an embedded
    color profile, so cell colors match what color pickers show.

    Returns:
        (H, W, 3) uint8 pixels
    """
    if isinstance(image, (str, Path)):
        from PIL import Image, ImageCms

        with Image.open(image) as img:
            img.load()
            if img.mode != "RGB":
                converted = img.convert("RGB")
            else:
                converted = img.copy()

            icc = img.info.get("icc_profile")
            if icc:
                try:
                    converted = ImageCms.profileToProfile(
                        converted,
                        ImageCms.ImageCmsProfile(io.BytesIO(icc)),
                        ImageCms.createProfile("sRGB"),
                    )
                except (OSError, ImageCms.PyCMSError) as exc:
                    logger.debug("ICC conversion failed for %s: %s", image, exc)

        pixels = np.asarray(converted, dtype=np.uint8)
        if pixels.size == 0:
            raise InvalidInput(f"Image {image} is empty")
        return pixels

    if isinstance(image, np.ndarray):
        return validate_pixels(image)

    raise TypeError(f"Expected file path or numpy array, got {type(image)}")
