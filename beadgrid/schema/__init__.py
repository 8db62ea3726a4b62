# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Schema definitions for bead patterns.

All types in this module are immutable (frozen dataclasses).
Once a pattern is produced, downstream renderers only read it.
"""

from beadgrid.schema.pattern import (
    DEFAULT_BEAD_SIZES_MM,
    MIN_TARGET_COLORS,
    AnalysisQuality,
    BeadSpec,
    BeadType,
    ClusteringStrategy,
    Color,
    ColorCountAdvice,
    ColorImportance,
    ColorUsage,
    ExplicitStrategy,
    GridCell,
    GridConfig,
    MatchedCell,
    Palette,
    PaletteAnalysis,
    PaletteStrategy,
    Pattern,
    PatternRequest,
    PatternStatistics,
    QuantizedGrid,
    ReductionAnalysis,
    ReductionStrategy,
    ReferenceCatalog,
    ReferenceColor,
)
from beadgrid.schema.symbols import (
    AssignmentStats,
    AssignmentValidation,
    Conflict,
    DegradedAssignment,
    Symbol,
    SymbolAssignment,
    SymbolKind,
    SymbolPriority,
)

__all__ = [
    # Colors and catalog
    "Color",
    "ReferenceColor",
    "ReferenceCatalog",
    # Grid
    "BeadType",
    "BeadSpec",
    "DEFAULT_BEAD_SIZES_MM",
    "GridConfig",
    "GridCell",
    "QuantizedGrid",
    # Request
    "AnalysisQuality",
    "ClusteringStrategy",
    "ExplicitStrategy",
    "ReductionStrategy",
    "PaletteStrategy",
    "PatternRequest",
    "MIN_TARGET_COLORS",
    # Palette
    "Palette",
    "PaletteAnalysis",
    "ReductionAnalysis",
    "ColorImportance",
    "ColorCountAdvice",
    # Pattern
    "MatchedCell",
    "ColorUsage",
    "PatternStatistics",
    "Pattern",
    # Symbols
    "SymbolKind",
    "SymbolPriority",
    "Symbol",
    "SymbolAssignment",
    "DegradedAssignment",
    "Conflict",
    "AssignmentValidation",
    "AssignmentStats",
]
