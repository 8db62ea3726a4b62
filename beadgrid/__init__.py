# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Beadgrid -- Image to bead / cross-stitch pattern converter.

Reduces an image to a palette drawn from the DMC floss catalog, matches
every grid cell to its perceptually nearest palette color (CIEDE2000),
and assigns each color a glyph that is never confusable with its
neighbours.

Quick start::

    from beadgrid import build_pattern, assign_symbols
    from beadgrid import PatternRequest, ClusteringStrategy

    pattern = build_pattern(
        "photo.png",
        PatternRequest(target_width=20.0, strategy=ClusteringStrategy(24)),
    )
    symbols = assign_symbols(pattern)
"""

from __future__ import annotations

__version__ = "1.0.0"

from beadgrid.data import load_catalog
from beadgrid.errors import (
    EmptyPalette,
    InvalidInput,
    PatternError,
    SymbolInventoryExhausted,
    UnknownReferenceCode,
)
from beadgrid.pattern import build_pattern
from beadgrid.schema import (
    AnalysisQuality,
    BeadSpec,
    BeadType,
    ClusteringStrategy,
    Color,
    DegradedAssignment,
    ExplicitStrategy,
    Palette,
    Pattern,
    PatternRequest,
    ReductionStrategy,
    ReferenceColor,
    Symbol,
    SymbolAssignment,
)
from beadgrid.symbols import assign_symbols

__all__ = [
    # Core API
    "build_pattern",
    "assign_symbols",
    "load_catalog",
    # Request types
    "PatternRequest",
    "ClusteringStrategy",
    "ExplicitStrategy",
    "ReductionStrategy",
    "AnalysisQuality",
    "BeadSpec",
    "BeadType",
    # Result types
    "Color",
    "ReferenceColor",
    "Palette",
    "Pattern",
    "Symbol",
    "SymbolAssignment",
    "DegradedAssignment",
    # Errors
    "PatternError",
    "InvalidInput",
    "UnknownReferenceCode",
    "EmptyPalette",
    "SymbolInventoryExhausted",
    # Version
    "__version__",
]
