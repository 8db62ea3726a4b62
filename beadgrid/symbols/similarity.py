# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Symbol similarity: how easily two glyphs are confused at a glance.

The score adds up shared traits (category, kind, priority class, close
complexity) plus a bonus for curated lookalike glyph pairs, capped at
1.0. Symbols scoring above the threshold must not sit next to each
other on the grid.

The weights and the threshold are empirical. They are configuration,
not constants, and nothing here assumes they are optimal.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from beadgrid.schema import Symbol


# (glyph, glyph, weight). Glyphs compare case-insensitively.
DEFAULT_CONFUSABLE_PAIRS: tuple[tuple[str, str, float], ...] = (
    # Digits and their letter lookalikes
    ("0", "8", 0.4),
    ("6", "9", 0.4),
    ("0", "O", 0.8),
    ("1", "I", 0.8),
    ("5", "S", 0.8),
    ("1", "l", 0.4),
    ("B", "8", 0.4),
    ("G", "6", 0.4),
    # Shapes
    ("×", "X", 0.3),
    ("×", "+", 0.3),
    ("✓", "√", 0.3),
    ("◆", "◇", 0.3),
    ("◉", "◎", 0.3),
    ("←", "→", 0.3),
    # Two-digit numerals
    ("10", "16", 0.2),
    ("11", "17", 0.2),
    ("18", "19", 0.2),
    ("20", "28", 0.2),
    ("22", "33", 0.2),
    ("25", "35", 0.2),
    ("38", "39", 0.2),
    ("44", "49", 0.2),
    ("46", "48", 0.2),
    ("13", "31", 0.2),
)


@dataclass(frozen=True)
class SimilarityConfig:
    """Weights for symbol similarity scoring."""

    # Same confusability group ("round_num", "two_digit_2x", ...)
    category_weight: float = 0.6

    # Same glyph family (number / letter / shape)
    kind_weight: float = 0.3

    # Same legibility class
    priority_weight: float = 0.1

    # Complexity ranks within complexity_window of each other
    complexity_weight: float = 0.15
    complexity_window: int = 1

    # Curated lookalike pairs; weights add when a pair is listed twice
    confusable_pairs: tuple[tuple[str, str, float], ...] = DEFAULT_CONFUSABLE_PAIRS

    # Scores strictly above this are "too similar"
    threshold: float = 0.6

    def fingerprint(self) -> str:
        """Stable text form, used in assignment cache keys."""
        pairs = ";".join(f"{a}/{b}={w}" for a, b, w in self.confusable_pairs)
        return (
            f"c{self.category_weight}k{self.kind_weight}p{self.priority_weight}"
            f"x{self.complexity_weight}w{self.complexity_window}t{self.threshold}|{pairs}"
        )


DEFAULT_SIMILARITY = SimilarityConfig()


@lru_cache(maxsize=8)
def _pair_weights(pairs: tuple[tuple[str, str, float], ...]) -> dict[frozenset, float]:
    weights: dict[frozenset, float] = {}
    for a, b, w in pairs:
        key = frozenset((a.casefold(), b.casefold()))
        weights[key] = weights.get(key, 0.0) + w
    return weights


def _glyph_bonus(a: str, b: str, config: SimilarityConfig) -> float:
    key = frozenset((a.casefold(), b.casefold()))
    if len(key) < 2:
        return 0.0
    return _pair_weights(config.confusable_pairs).get(key, 0.0)


def symbol_similarity(
    a: Symbol,
    b: Symbol,
    config: Optional[SimilarityConfig] = None,
) -> float:
    """
    Similarity of two symbols in [0, 1].

    "0" and "8" share a category and are a listed lookalike pair, so
    they score 1.0. "0" and "1" only share kind, priority and nearby
    complexity, so they stay below the default threshold.
    """
    if config is None:
        config = DEFAULT_SIMILARITY

    score = 0.0
    if a.category == b.category:
        score += config.category_weight
    if a.kind == b.kind:
        score += config.kind_weight
    if a.priority == b.priority:
        score += config.priority_weight
    if abs(a.complexity - b.complexity) <= config.complexity_window:
        score += config.complexity_weight
    score += _glyph_bonus(a.glyph, b.glyph, config)

    return min(score, 1.0)


def too_similar(
    a: Symbol,
    b: Symbol,
    config: Optional[SimilarityConfig] = None,
) -> bool:
    """True when two symbols should not be 8-connected neighbours."""
    if config is None:
        config = DEFAULT_SIMILARITY
    return symbol_similarity(a, b, config) > config.threshold


def similarity_matrix(
    symbols: Sequence[Symbol],
    config: Optional[SimilarityConfig] = None,
) -> NDArray[np.float64]:
    """
    Pairwise similarity for a whole inventory.

    Same values as symbol_similarity(), computed with broadcasting.

    Returns:
        (S, S) array, symmetric
    """
    if config is None:
        config = DEFAULT_SIMILARITY

    def codes(values: list[str]) -> NDArray[np.int64]:
        _, inverse = np.unique(np.array(values), return_inverse=True)
        return inverse.reshape(-1)

    category = codes([s.category for s in symbols])
    kind = codes([s.kind.value for s in symbols])
    priority = np.array([int(s.priority) for s in symbols], dtype=np.int64)
    complexity = np.array([s.complexity for s in symbols], dtype=np.int64)

    def same(v: NDArray[np.int64]) -> NDArray[np.bool_]:
        return v[:, np.newaxis] == v[np.newaxis, :]

    sim = (
        config.category_weight * same(category)
        + config.kind_weight * same(kind)
        + config.priority_weight * same(priority)
        + config.complexity_weight
        * (np.abs(complexity[:, np.newaxis] - complexity[np.newaxis, :]) <= config.complexity_window)
    ).astype(np.float64)

    # Sparse lookalike bonus
    position: dict[str, list[int]] = {}
    for i, s in enumerate(symbols):
        position.setdefault(s.glyph.casefold(), []).append(i)
    for key, weight in _pair_weights(config.confusable_pairs).items():
        if len(key) < 2:
            continue
        a, b = tuple(key)
        for i in position.get(a, ()):
            for j in position.get(b, ()):
                sim[i, j] += weight
                sim[j, i] += weight

    return np.minimum(sim, 1.0)


def too_similar_matrix(
    symbols: Sequence[Symbol],
    config: Optional[SimilarityConfig] = None,
) -> NDArray[np.bool_]:
    """(S, S) boolean matrix of similarity above the threshold."""
    if config is None:
        config = DEFAULT_SIMILARITY
    return similarity_matrix(symbols, config) > config.threshold
