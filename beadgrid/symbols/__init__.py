# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Symbol assignment: inventory, similarity scoring and greedy placement.
"""

from beadgrid.symbols.inventory import (
    default_symbol_inventory,
    dump_symbol_inventory,
    load_symbol_inventory,
)
from beadgrid.symbols.similarity import (
    DEFAULT_SIMILARITY,
    SimilarityConfig,
    similarity_matrix,
    symbol_similarity,
    too_similar,
)
from beadgrid.symbols.placement import (
    DEFAULT_CACHE,
    DEFAULT_SCORING,
    AssignmentCache,
    ScoringConfig,
    adjacency_counts,
    assign_symbols,
    assign_symbols_to_grid,
    assignment_stats,
    validate_assignment,
)

__all__ = [
    # Inventory
    "default_symbol_inventory",
    "load_symbol_inventory",
    "dump_symbol_inventory",
    # Similarity
    "SimilarityConfig",
    "DEFAULT_SIMILARITY",
    "symbol_similarity",
    "too_similar",
    "similarity_matrix",
    # Placement
    "ScoringConfig",
    "DEFAULT_SCORING",
    "AssignmentCache",
    "DEFAULT_CACHE",
    "adjacency_counts",
    "assign_symbols",
    "assign_symbols_to_grid",
    "validate_assignment",
    "assignment_stats",
]
