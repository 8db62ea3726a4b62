# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Pattern document serializer for downstream renderers.

Formats a Pattern (and optionally its SymbolAssignment) as one JSON
document: grid configuration, palette, usage statistics, the code grid
and the symbol legend. Renderers read this; they never write back.
"""

from __future__ import annotations

from typing import Optional

from beadgrid.runtime.serializers.base import SerializerFormat, dump_json
from beadgrid.schema import Pattern, SymbolAssignment


def to_json(
    pattern: Pattern,
    assignment: Optional[SymbolAssignment] = None,
    *,
    format: SerializerFormat = SerializerFormat.JSON,
    include_grid: bool = True,
) -> str:
    """Serialize a pattern as a JSON document.

    Args:
        pattern: The pattern to serialize.
        assignment: Symbol assignment for the legend (omitted if None).
        format: JSON or JSON_PRETTY.
        include_grid: Include the row-major code grid.

    Returns:
        JSON string.

    Example (JSON_PRETTY, abridged)::

        {
          "grid": {"columns": 36, "rows": 24, "actual_width": 10.08, ...},
          "palette": {"strategy": "explicit", "quality_score": 1.0, ...},
          "statistics": {"total_cells": 864, "colors_used": 4, ...},
          "legend": [
            {"code": "310", "name": "Black", "hex": "#000000",
             "glyph": "1", "count": 412}
          ],
          "cells": [["310", "310", "666", ...], ...]
        }
    """
    return dump_json(build_document(pattern, assignment, include_grid=include_grid), format)


def build_document(
    pattern: Pattern,
    assignment: Optional[SymbolAssignment] = None,
    *,
    include_grid: bool = True,
) -> dict:
    """Build the document as a plain dictionary."""
    config = pattern.config
    result: dict = {
        "grid": {
            "columns": config.columns,
            "rows": config.rows,
            "total_cells": config.total_cells,
            "target_width": round(config.target_width, 2),
            "target_height": round(config.target_height, 2),
            "actual_width": config.actual_width,
            "actual_height": config.actual_height,
            "bead": config.bead.to_dict(),
        },
        "palette": pattern.palette.to_dict(),
        "statistics": pattern.statistics.to_dict(),
    }

    legend = []
    for usage in pattern.statistics.usage:
        ref = usage.reference
        entry = {
            "code": ref.code,
            "name": ref.name,
            "hex": ref.color.hex,
            "count": usage.count,
        }
        if assignment is not None and ref.code in assignment:
            sym = assignment[ref.code]
            entry["glyph"] = sym.glyph
            if sym.size_hint is not None:
                entry["size_hint"] = sym.size_hint
        legend.append(entry)
    result["legend"] = legend

    if assignment is not None and assignment.degraded:
        result["symbols_degraded"] = True

    if include_grid:
        result["cells"] = pattern.code_grid()

    return result
