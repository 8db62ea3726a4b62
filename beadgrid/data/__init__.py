# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Reference color catalog.

The bundled table is the DMC six-strand floss range with sRGB swatch
values. It is plain CSV (code, name, red, green, blue) so the catalog
can be updated or replaced without touching code.
"""

from __future__ import annotations

import csv
import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Optional, TextIO, Union

from beadgrid.errors import InvalidInput
from beadgrid.schema import Color, ReferenceCatalog, ReferenceColor

logger = logging.getLogger(__name__)

CATALOG_FILENAME = "dmc_colors.csv"
_FIELDS = ("code", "name", "red", "green", "blue")


def _parse_rows(handle: TextIO, source: str) -> ReferenceCatalog:
    reader = csv.DictReader(handle)
    if reader.fieldnames is None or any(f not in reader.fieldnames for f in _FIELDS):
        raise InvalidInput(
            f"{source}: expected columns {', '.join(_FIELDS)}, got {reader.fieldnames}"
        )

    entries = []
    for line, row in enumerate(reader, start=2):
        try:
            color = Color(int(row["red"]), int(row["green"]), int(row["blue"]))
        except (TypeError, ValueError) as exc:
            raise InvalidInput(f"{source}:{line}: bad color value ({exc})") from exc
        code = (row["code"] or "").strip()
        if not code:
            raise InvalidInput(f"{source}:{line}: empty code")
        entries.append(ReferenceColor(code=code, name=(row["name"] or "").strip(), color=color))

    if not entries:
        raise InvalidInput(f"{source}: catalog is empty")
    return ReferenceCatalog(entries)


@lru_cache(maxsize=1)
def _bundled_catalog() -> ReferenceCatalog:
    text = resources.files(__package__).joinpath(CATALOG_FILENAME)
    with text.open("r", encoding="utf-8", newline="") as handle:
        catalog = _parse_rows(handle, CATALOG_FILENAME)
    logger.debug("Loaded bundled catalog: %d colors", len(catalog))
    return catalog


def load_catalog(path: Optional[Union[str, Path]] = None) -> ReferenceCatalog:
    """
    Load the reference color catalog.

    Args:
        path: CSV file to load. None loads the bundled DMC table, which
            is parsed once per process and shared.

    Returns:
        Immutable ReferenceCatalog

    Raises:
        InvalidInput: Missing columns, bad channel values, empty file
    """
    if path is None:
        return _bundled_catalog()

    path = Path(path)
    with path.open("r", encoding="utf-8", newline="") as handle:
        catalog = _parse_rows(handle, str(path))
    logger.debug("Loaded catalog %s: %d colors", path, len(catalog))
    return catalog


__all__ = ["CATALOG_FILENAME", "load_catalog"]
