# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Symbol schema: glyphs printed in pattern cells and their assignment.

A symbol assignment maps every reference code used by a pattern to one
glyph so the pattern stays readable without color. Assignments are
immutable and may be shared through the assignment cache.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Optional


class SymbolKind(Enum):
    """Glyph family, used for confusability grouping."""
    NUMBER = "number"
    LETTER = "letter"
    SHAPE = "shape"


class SymbolPriority(IntEnum):
    """
    Legibility class. Lower values are preferred.

    Numerals are the most familiar, then simple shapes, then single
    letters, then multi-character letter combinations.
    """
    NUMERAL = 1
    SHAPE = 2
    LETTER = 3
    COMBINATION = 4


@dataclass(frozen=True, slots=True)
class Symbol:
    """
    One entry of the symbol inventory.

    Attributes:
        id: Stable identifier ("num_8", "let_b", "pair_ab")
        glyph: Text printed in the cell
        kind: Glyph family
        category: Confusability group ("round_num", "two_digit_2x", ...)
        complexity: Visual complexity 1-5, higher is busier
        priority: Legibility class
        size_hint: Font-size multiplier for multi-character glyphs
    """
    id: str
    glyph: str
    kind: SymbolKind
    category: str
    complexity: int
    priority: SymbolPriority
    size_hint: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.glyph:
            raise ValueError(f"Symbol {self.id!r} has an empty glyph")
        if not 1 <= self.complexity <= 5:
            raise ValueError(f"Complexity must be 1-5, got {self.complexity}")

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        result = {
            "id": self.id,
            "glyph": self.glyph,
            "kind": self.kind.value,
            "category": self.category,
            "complexity": self.complexity,
            "priority": int(self.priority),
        }
        if self.size_hint is not None:
            result["size_hint"] = self.size_hint
        return result

    @classmethod
    def from_dict(cls, data: dict) -> Symbol:
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            glyph=data["glyph"],
            kind=SymbolKind(data["kind"]),
            category=data["category"],
            complexity=int(data["complexity"]),
            priority=SymbolPriority(int(data["priority"])),
            size_hint=data.get("size_hint"),
        )


@dataclass(frozen=True, slots=True)
class SymbolAssignment:
    """
    Mapping from reference code to symbol for one pattern.

    No symbol id appears twice.

    Attributes:
        symbols: Code → Symbol, in assignment order (most used first)
        columns: Grid width the assignment was computed for
        rows: Grid height the assignment was computed for
    """
    symbols: Mapping[str, Symbol]
    columns: int
    rows: int

    def __post_init__(self) -> None:
        # Read-only view over a private copy
        object.__setattr__(self, "symbols", MappingProxyType(dict(self.symbols)))

    def __len__(self) -> int:
        return len(self.symbols)

    def __getitem__(self, code: str) -> Symbol:
        return self.symbols[code]

    def __contains__(self, code: object) -> bool:
        return code in self.symbols

    @property
    def degraded(self) -> bool:
        return False

    def glyph_for(self, code: str) -> str:
        return self.symbols[code].glyph

    def to_dict(self) -> dict:
        return {
            "columns": self.columns,
            "rows": self.rows,
            "degraded": self.degraded,
            "symbols": {code: sym.to_dict() for code, sym in self.symbols.items()},
        }


@dataclass(frozen=True, slots=True)
class DegradedAssignment(SymbolAssignment):
    """
    Assignment produced after the inventory ran out.

    Some symbols are shared between codes; the pattern is usable but
    ambiguous for those colors.

    Attributes:
        reused_codes: Codes that received an already-used symbol
    """
    reused_codes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def degraded(self) -> bool:
        return True

    def to_dict(self) -> dict:
        result = SymbolAssignment.to_dict(self)
        result["reused_codes"] = list(self.reused_codes)
        return result


# =============================================================================
# Validation & reporting
# =============================================================================


@dataclass(frozen=True, slots=True)
class Conflict:
    """
    Two 8-connected cells whose symbols are confusable.

    Attributes:
        position: (x, y) of the first cell
        neighbor: (x, y) of the adjacent cell
        code: Reference code at position
        neighbor_code: Reference code at neighbor
        similarity: Similarity score of the two symbols
    """
    position: tuple[int, int]
    neighbor: tuple[int, int]
    code: str
    neighbor_code: str
    similarity: float

    def describe(self, assignment: SymbolAssignment) -> str:
        a = assignment.glyph_for(self.code)
        b = assignment.glyph_for(self.neighbor_code)
        return (
            f"({self.position[0]},{self.position[1]}) {self.code}:{a} next to "
            f"({self.neighbor[0]},{self.neighbor[1]}) {self.neighbor_code}:{b} "
            f"similarity={self.similarity:.2f}"
        )


@dataclass(frozen=True, slots=True)
class AssignmentValidation:
    """
    Result of re-scanning a grid for residual adjacency conflicts.

    Each unordered neighbour pair is reported once.
    """
    conflicts: tuple[Conflict, ...]

    @property
    def valid(self) -> bool:
        return not self.conflicts

    @property
    def conflict_count(self) -> int:
        return len(self.conflicts)


@dataclass(frozen=True, slots=True)
class AssignmentStats:
    """
    Summary statistics for an assignment.

    Attributes:
        total_symbols: Codes with a symbol
        average_complexity: Mean symbol complexity
        kind_distribution: Kind value → count
        priority_distribution: Priority name → count
        conflict_count: Residual adjacency conflicts
        degraded: True when symbols were reused
    """
    total_symbols: int
    average_complexity: float
    kind_distribution: dict[str, int]
    priority_distribution: dict[str, int]
    conflict_count: int
    degraded: bool

    def to_dict(self) -> dict:
        return {
            "total_symbols": self.total_symbols,
            "average_complexity": round(self.average_complexity, 2),
            "kind_distribution": dict(self.kind_distribution),
            "priority_distribution": dict(self.priority_distribution),
            "conflict_count": self.conflict_count,
            "degraded": self.degraded,
        }
