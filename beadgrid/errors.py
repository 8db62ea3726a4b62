# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Error taxonomy for pattern generation.

Every failure is raised, never substituted with a default. Input errors
also subclass ValueError so callers that only know about built-in
exceptions still catch them.
"""

from __future__ import annotations

from collections.abc import Iterable


class PatternError(Exception):
    """Base class for all beadgrid errors."""


class InvalidInput(PatternError, ValueError):
    """Degenerate image, bad dimensions, out-of-range targets, malformed data."""


class UnknownReferenceCode(PatternError, ValueError):
    """
    An explicit palette named codes that are not in the reference catalog.

    The whole request is rejected; no partial palette is built.

    Attributes:
        codes: Every unknown code, in request order
    """

    def __init__(self, codes: Iterable[str]) -> None:
        self.codes: tuple[str, ...] = tuple(codes)
        listed = ", ".join(repr(c) for c in self.codes)
        super().__init__(f"Unknown reference code(s): {listed}")


class EmptyPalette(PatternError):
    """Clustering produced no usable colors."""


class SymbolInventoryExhausted(PatternError):
    """
    More distinct colors than symbols in the inventory.

    Only raised when assignment runs in strict mode; otherwise the
    assignment degrades to reusing symbols.
    """

    def __init__(self, colors: int, inventory_size: int) -> None:
        self.colors = colors
        self.inventory_size = inventory_size
        super().__init__(
            f"{colors} colors need symbols but the inventory holds {inventory_size}"
        )
