# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Symbol placement: give every color in a pattern a distinct, legible glyph.

Assignment is greedy:
1. Colors are processed most-used first, so frequent colors get the
   clearest symbols.
2. Candidates are tried in (priority, complexity) order.
3. Each candidate is scored; the lowest unused score wins.

Score (lower is better):
    conflict_penalty × conflicts
    + priority_weight × priority
    + complexity_weight × complexity
    - usage / usage_scale × usage_bonus[priority]

A conflict is one (cell, 8-connected neighbour) pair where the
neighbour's color already holds a symbol that is too similar to the
candidate. Neighbour counts per color pair are computed once per grid.

The result is locally greedy, not globally optimal.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections.abc import MutableMapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray

from beadgrid.errors import InvalidInput, SymbolInventoryExhausted
from beadgrid.schema import (
    AssignmentStats,
    AssignmentValidation,
    Conflict,
    DegradedAssignment,
    Pattern,
    Symbol,
    SymbolAssignment,
    SymbolPriority,
)
from beadgrid.symbols.inventory import default_symbol_inventory
from beadgrid.symbols.similarity import (
    DEFAULT_SIMILARITY,
    SimilarityConfig,
    symbol_similarity,
    too_similar_matrix,
)

logger = logging.getLogger(__name__)

CodeGrid = Sequence[Sequence[str]]

# 8-connected neighbourhood as (dy, dx)
NEIGHBOR_OFFSETS = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1), (0, 1),
    (1, -1), (1, 0), (1, 1),
)

# Half of the neighbourhood, so each unordered cell pair is visited once
_FORWARD_OFFSETS = ((0, 1), (1, -1), (1, 0), (1, 1))


@dataclass(frozen=True)
class ScoringConfig:
    """Weights for the greedy assignment score."""

    # Per conflicting (cell, neighbour) pair
    conflict_penalty: float = 100.0

    # Tie-breakers favouring legible, simple glyphs
    priority_weight: float = 10.0
    complexity_weight: float = 5.0

    # Usage bonus: usage / usage_scale × bonus for the candidate's priority
    usage_scale: float = 10.0
    usage_bonus: tuple[tuple[int, float], ...] = (
        (SymbolPriority.NUMERAL, 20.0),
        (SymbolPriority.SHAPE, 10.0),
        (SymbolPriority.LETTER, 5.0),
        (SymbolPriority.COMBINATION, 0.0),
    )

    def bonus_for(self, priority: int) -> float:
        for p, bonus in self.usage_bonus:
            if p == priority:
                return bonus
        return 0.0

    def fingerprint(self) -> str:
        """Stable text form, used in assignment cache keys."""
        bonus = ",".join(f"{int(p)}:{b}" for p, b in self.usage_bonus)
        return (
            f"c{self.conflict_penalty}p{self.priority_weight}"
            f"x{self.complexity_weight}u{self.usage_scale}[{bonus}]"
        )


DEFAULT_SCORING = ScoringConfig()


# =============================================================================
# Cache
# =============================================================================


class AssignmentCache:
    """
    Memoizes assignments by palette and grid shape.

    Identical sorted codes on an identically sized grid, with the same
    inventory and weights, reuse the stored assignment. Storage is any
    MutableMapping (a plain dict by default); all access goes through one
    lock. Stored assignments are immutable and returned as-is.

    Attributes:
        hits: Lookups answered from storage
        misses: Lookups that found nothing
    """

    def __init__(self, storage: Optional[MutableMapping[str, SymbolAssignment]] = None) -> None:
        self._storage: MutableMapping[str, SymbolAssignment] = {} if storage is None else storage
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(codes: Sequence[str], columns: int, rows: int, fingerprint: str = "") -> str:
        key = f"{','.join(sorted(codes))}|{columns}x{rows}"
        if fingerprint:
            key = f"{key}|{fingerprint}"
        return key

    def get(self, key: str) -> Optional[SymbolAssignment]:
        with self._lock:
            value = self._storage.get(key)
            if value is None:
                self.misses += 1
            else:
                self.hits += 1
            return value

    def put(self, key: str, assignment: SymbolAssignment) -> None:
        with self._lock:
            self._storage[key] = assignment

    def clear(self) -> None:
        with self._lock:
            self._storage.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._storage)

    def stats(self) -> dict:
        with self._lock:
            return {"size": len(self._storage), "hits": self.hits, "misses": self.misses}


# Process-wide cache used when callers do not pass one
DEFAULT_CACHE = AssignmentCache()

_USE_DEFAULT_CACHE = object()


@lru_cache(maxsize=8)
def _inventory_fingerprint(inventory: tuple[Symbol, ...]) -> str:
    payload = json.dumps([s.to_dict() for s in inventory], sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


# =============================================================================
# Grid helpers
# =============================================================================


def _code_grid(source: Union[Pattern, CodeGrid]) -> list[list[str]]:
    """Extract and check a rectangular code grid."""
    rows = source.code_grid() if isinstance(source, Pattern) else [list(r) for r in source]
    if not rows or not rows[0]:
        raise InvalidInput("Code grid is empty")
    width = len(rows[0])
    for y, row in enumerate(rows):
        if len(row) != width:
            raise InvalidInput(f"Code grid row {y} has {len(row)} cells, expected {width}")
    return rows


def adjacency_counts(index_grid: NDArray[np.int64], n_colors: int) -> NDArray[np.int64]:
    """
    Count 8-connected neighbour pairs per color pair.

    Args:
        index_grid: (rows, columns) array of color indices
        n_colors: Number of distinct colors K

    Returns:
        (K, K) symmetric array; [i, j] counts (cell of color i,
        neighbouring cell of color j) pairs
    """
    rows, cols = index_grid.shape
    adj = np.zeros((n_colors, n_colors), dtype=np.int64)
    for dy, dx in NEIGHBOR_OFFSETS:
        src = index_grid[max(0, -dy):rows - max(0, dy), max(0, -dx):cols - max(0, dx)]
        dst = index_grid[max(0, dy):rows - max(0, -dy), max(0, dx):cols - max(0, -dx)]
        np.add.at(adj, (src.ravel(), dst.ravel()), 1)
    return adj


# =============================================================================
# Assignment
# =============================================================================


def assign_symbols(
    pattern: Pattern,
    *,
    inventory: Optional[Sequence[Symbol]] = None,
    similarity: Optional[SimilarityConfig] = None,
    scoring: Optional[ScoringConfig] = None,
    cache: Union[AssignmentCache, None, object] = _USE_DEFAULT_CACHE,
    strict: bool = False,
) -> SymbolAssignment:
    """
    Assign a symbol to every reference code used in a pattern.

    See assign_symbols_to_grid() for arguments and behaviour.
    """
    return assign_symbols_to_grid(
        pattern.code_grid(),
        inventory=inventory,
        similarity=similarity,
        scoring=scoring,
        cache=cache,
        strict=strict,
    )


def assign_symbols_to_grid(
    grid: CodeGrid,
    *,
    inventory: Optional[Sequence[Symbol]] = None,
    similarity: Optional[SimilarityConfig] = None,
    scoring: Optional[ScoringConfig] = None,
    cache: Union[AssignmentCache, None, object] = _USE_DEFAULT_CACHE,
    strict: bool = False,
) -> SymbolAssignment:
    """
    Assign a symbol to every reference code in a code grid.

    Args:
        grid: Rows of reference codes
        inventory: Available symbols (default: built-in inventory)
        similarity: Similarity weights and threshold
        scoring: Assignment score weights
        cache: AssignmentCache to use, None to disable caching, or
            omitted for the process-wide cache
        strict: Raise instead of reusing symbols when the inventory
            runs out

    Returns:
        SymbolAssignment, or DegradedAssignment when symbols had to be
        reused

    Raises:
        InvalidInput: Empty or ragged grid, empty inventory
        SymbolInventoryExhausted: strict=True and more colors than symbols
    """
    rows = _code_grid(grid)
    inventory = tuple(default_symbol_inventory() if inventory is None else inventory)
    if not inventory:
        raise InvalidInput("Symbol inventory is empty")
    if similarity is None:
        similarity = DEFAULT_SIMILARITY
    if scoring is None:
        scoring = DEFAULT_SCORING
    if cache is _USE_DEFAULT_CACHE:
        cache = DEFAULT_CACHE

    n_rows, n_cols = len(rows), len(rows[0])
    flat = [code for row in rows for code in row]
    codes, inverse, usage = np.unique(np.array(flat), return_inverse=True, return_counts=True)
    codes = [str(c) for c in codes]

    if strict and len(codes) > len(inventory):
        raise SymbolInventoryExhausted(len(codes), len(inventory))

    key = None
    if cache is not None:
        fingerprint = "|".join((
            _inventory_fingerprint(inventory),
            similarity.fingerprint(),
            scoring.fingerprint(),
        ))
        key = AssignmentCache.make_key(codes, n_cols, n_rows, fingerprint)
        cached = cache.get(key)
        if cached is not None:
            logger.debug("Assignment cache hit for %d colors", len(codes))
            return cached

    index_grid = inverse.reshape(n_rows, n_cols)
    adj = adjacency_counts(index_grid, len(codes))
    assignment = _greedy_assign(codes, usage, adj, n_cols, n_rows, inventory, similarity, scoring)

    if cache is not None:
        cache.put(key, assignment)
    return assignment


def _greedy_assign(
    codes: list[str],
    usage: NDArray[np.int64],
    adj: NDArray[np.int64],
    columns: int,
    rows: int,
    inventory: tuple[Symbol, ...],
    similarity: SimilarityConfig,
    scoring: ScoringConfig,
) -> SymbolAssignment:
    # Candidates: (priority, complexity), stable on inventory order
    candidates = sorted(inventory, key=lambda s: (int(s.priority), s.complexity))
    confusable = too_similar_matrix(candidates, similarity).astype(np.float64)

    priority = np.array([int(s.priority) for s in candidates], dtype=np.float64)
    complexity = np.array([s.complexity for s in candidates], dtype=np.float64)
    base = scoring.priority_weight * priority + scoring.complexity_weight * complexity
    bonus_rate = np.array([scoring.bonus_for(int(s.priority)) for s in candidates])

    # Most used first, ties by code
    order = sorted(range(len(codes)), key=lambda i: (-int(usage[i]), codes[i]))

    chosen = np.full(len(codes), -1, dtype=np.int64)
    used = np.zeros(len(candidates), dtype=bool)
    reused: list[str] = []

    for i in order:
        neighbours = np.flatnonzero((chosen >= 0) & (adj[i] > 0))
        if neighbours.size:
            conflicts = confusable[:, chosen[neighbours]] @ adj[i, neighbours].astype(np.float64)
        else:
            conflicts = np.zeros(len(candidates), dtype=np.float64)

        score = (
            scoring.conflict_penalty * conflicts
            + base
            - usage[i] / scoring.usage_scale * bonus_rate
        )

        if used.all():
            best = int(np.argmin(score))
            reused.append(codes[i])
        else:
            best = int(np.argmin(np.where(used, np.inf, score)))
            used[best] = True
        chosen[i] = best

    symbols = {codes[i]: candidates[chosen[i]] for i in order}

    if reused:
        logger.warning(
            "Symbol inventory exhausted: %d colors for %d symbols, reused symbols for %s",
            len(codes), len(candidates), ", ".join(reused),
        )
        return DegradedAssignment(
            symbols=symbols, columns=columns, rows=rows, reused_codes=tuple(reused)
        )

    logger.debug("Assigned %d symbols on %dx%d grid", len(symbols), columns, rows)
    return SymbolAssignment(symbols=symbols, columns=columns, rows=rows)


# =============================================================================
# Validation & statistics
# =============================================================================


def validate_assignment(
    assignment: SymbolAssignment,
    source: Union[Pattern, CodeGrid],
    *,
    similarity: Optional[SimilarityConfig] = None,
) -> AssignmentValidation:
    """
    Re-scan a grid for neighbouring cells with confusable symbols.

    Each unordered pair of 8-connected cells is checked once. Cells
    with the same code, or codes missing from the assignment, are
    skipped.
    """
    if similarity is None:
        similarity = DEFAULT_SIMILARITY
    rows = _code_grid(source)
    n_rows, n_cols = len(rows), len(rows[0])

    pair_scores: dict[tuple[str, str], float] = {}
    conflicts = []

    for y in range(n_rows):
        for x in range(n_cols):
            code = rows[y][x]
            if code not in assignment:
                continue
            for dy, dx in _FORWARD_OFFSETS:
                ny, nx = y + dy, x + dx
                if not (0 <= ny < n_rows and 0 <= nx < n_cols):
                    continue
                other = rows[ny][nx]
                if other == code or other not in assignment:
                    continue

                pair = (code, other)
                if pair not in pair_scores:
                    pair_scores[pair] = symbol_similarity(
                        assignment[code], assignment[other], similarity
                    )
                score = pair_scores[pair]
                if score > similarity.threshold:
                    conflicts.append(Conflict(
                        position=(x, y),
                        neighbor=(nx, ny),
                        code=code,
                        neighbor_code=other,
                        similarity=score,
                    ))

    return AssignmentValidation(conflicts=tuple(conflicts))


def assignment_stats(
    assignment: SymbolAssignment,
    source: Union[Pattern, CodeGrid],
    *,
    similarity: Optional[SimilarityConfig] = None,
    validation: Optional[AssignmentValidation] = None,
) -> AssignmentStats:
    """
    Summarize an assignment: symbol mix, complexity and conflicts.

    Pass validation when the caller already validated the assignment
    against source; otherwise it is validated here.
    """
    if validation is None:
        validation = validate_assignment(assignment, source, similarity=similarity)
    symbols = list(assignment.symbols.values())

    kinds: dict[str, int] = {}
    priorities: dict[str, int] = {}
    for sym in symbols:
        kinds[sym.kind.value] = kinds.get(sym.kind.value, 0) + 1
        name = SymbolPriority(sym.priority).name.lower()
        priorities[name] = priorities.get(name, 0) + 1

    average = sum(s.complexity for s in symbols) / len(symbols) if symbols else 0.0

    return AssignmentStats(
        total_symbols=len(symbols),
        average_complexity=average,
        kind_distribution=kinds,
        priority_distribution=priorities,
        conflict_count=validation.conflict_count,
        degraded=assignment.degraded,
    )
