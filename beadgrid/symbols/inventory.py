# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Symbol inventory: the glyphs available for pattern legends.

The default inventory is generated from a small ruleset:
- digits 0-9 with a per-digit shape table
- numerals 10-99, grouped by tens digit
- simple geometric shapes
- letters a-z except "o" (too close to "0")
- letter pairs aa-zz, grouped by first letter

Multi-character glyphs carry a reduced size hint so they fit one cell.
An inventory can also be loaded from JSON so the table can be changed
without code changes.
"""

from __future__ import annotations

import json
import logging
import string
from functools import lru_cache
from pathlib import Path
from typing import Union

from beadgrid.errors import InvalidInput
from beadgrid.schema import Symbol, SymbolKind, SymbolPriority

logger = logging.getLogger(__name__)

# Font-size multiplier for multi-character glyphs
MULTI_CHAR_SIZE = 0.75

# Digit → (category, complexity)
_DIGITS = {
    "0": ("round_num", 2),
    "1": ("thin_num", 1),
    "2": ("curved_num", 3),
    "3": ("curved_num", 3),
    "4": ("angular_num", 3),
    "5": ("mixed_num", 3),
    "6": ("curved_num", 3),
    "7": ("angled_num", 2),
    "8": ("round_num", 4),
    "9": ("curved_num", 3),
}

# Teens whose complexity departs from the unit-digit rule
_TEEN_COMPLEXITY = {
    11: 3, 12: 4, 13: 4, 14: 4, 15: 4, 16: 4, 17: 3, 18: 5, 19: 4,
}

# (glyph, name, category, complexity)
_SHAPES = (
    ("●", "circle", "circle_shape", 1),
    ("■", "square", "square_shape", 1),
    ("▲", "triangle", "triangle_shape", 1),
    ("◆", "diamond", "diamond_shape", 1),
    ("×", "cross", "cross_shape", 1),
    ("+", "plus", "cross_shape", 1),
    ("○", "ring", "circle_shape", 2),
    ("□", "box", "square_shape", 2),
    ("△", "open_triangle", "triangle_shape", 2),
    ("◇", "open_diamond", "diamond_shape", 2),
    ("★", "star", "star_shape", 2),
    ("☆", "open_star", "star_shape", 3),
    ("◉", "bullseye", "circle_shape", 3),
    ("◎", "double_ring", "circle_shape", 3),
)

# Letter → (category, complexity); "o" is left out on purpose
_LETTERS = {
    "a": ("angular_letter", 3),
    "b": ("curved_letter", 4),
    "c": ("curved_letter", 2),
    "d": ("curved_letter", 3),
    "e": ("angular_letter", 3),
    "f": ("angular_letter", 3),
    "g": ("curved_letter", 4),
    "h": ("angular_letter", 3),
    "i": ("thin_letter", 1),
    "j": ("curved_letter", 2),
    "k": ("angular_letter", 4),
    "l": ("angular_letter", 2),
    "m": ("angular_letter", 4),
    "n": ("angular_letter", 3),
    "p": ("angular_letter", 3),
    "q": ("round_letter", 4),
    "r": ("angular_letter", 4),
    "s": ("curved_letter", 4),
    "t": ("angular_letter", 2),
    "u": ("curved_letter", 2),
    "v": ("angular_letter", 2),
    "w": ("angular_letter", 4),
    "x": ("angular_letter", 3),
    "y": ("angular_letter", 3),
    "z": ("angular_letter", 3),
}


def _numeral_complexity(n: int) -> int:
    if n in _TEEN_COMPLEXITY:
        return _TEEN_COMPLEXITY[n]
    return 4 if n % 10 in (0, 1, 7) else 5


def _generate() -> tuple[Symbol, ...]:
    symbols = []

    for glyph, (category, complexity) in _DIGITS.items():
        symbols.append(Symbol(
            id=f"num_{glyph}",
            glyph=glyph,
            kind=SymbolKind.NUMBER,
            category=category,
            complexity=complexity,
            priority=SymbolPriority.NUMERAL,
        ))

    for n in range(10, 100):
        symbols.append(Symbol(
            id=f"num_{n}",
            glyph=str(n),
            kind=SymbolKind.NUMBER,
            category=f"two_digit_{n // 10}x",
            complexity=_numeral_complexity(n),
            priority=SymbolPriority.NUMERAL,
            size_hint=MULTI_CHAR_SIZE,
        ))

    for glyph, name, category, complexity in _SHAPES:
        symbols.append(Symbol(
            id=f"shape_{name}",
            glyph=glyph,
            kind=SymbolKind.SHAPE,
            category=category,
            complexity=complexity,
            priority=SymbolPriority.SHAPE,
        ))

    for glyph, (category, complexity) in _LETTERS.items():
        symbols.append(Symbol(
            id=f"let_{glyph}",
            glyph=glyph,
            kind=SymbolKind.LETTER,
            category=category,
            complexity=complexity,
            priority=SymbolPriority.LETTER,
        ))

    for first in string.ascii_lowercase:
        for second in string.ascii_lowercase:
            symbols.append(Symbol(
                id=f"pair_{first}{second}",
                glyph=first + second,
                kind=SymbolKind.LETTER,
                category=f"two_letter_{first}",
                complexity=4,
                priority=SymbolPriority.COMBINATION,
                size_hint=MULTI_CHAR_SIZE,
            ))

    return tuple(symbols)


@lru_cache(maxsize=1)
def default_symbol_inventory() -> tuple[Symbol, ...]:
    """The built-in inventory, generated once per process."""
    inventory = _generate()
    _check_unique(inventory, "default inventory")
    return inventory


def _check_unique(symbols: tuple[Symbol, ...], source: str) -> None:
    for attr in ("id", "glyph"):
        seen = set()
        for sym in symbols:
            value = getattr(sym, attr)
            if value in seen:
                raise InvalidInput(f"{source}: duplicate symbol {attr} {value!r}")
            seen.add(value)


def load_symbol_inventory(path: Union[str, Path]) -> tuple[Symbol, ...]:
    """
    Load an inventory from a JSON file.

    The file holds either a list of symbol objects or an object with a
    "symbols" list. Each symbol object uses the keys of Symbol.to_dict().

    Raises:
        InvalidInput: Malformed file, bad fields, duplicate ids or glyphs
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidInput(f"{path}: not valid JSON ({exc})") from exc

    if isinstance(data, dict):
        data = data.get("symbols")
    if not isinstance(data, list) or not data:
        raise InvalidInput(f"{path}: expected a non-empty list of symbols")

    symbols = []
    for i, entry in enumerate(data):
        try:
            symbols.append(Symbol.from_dict(entry))
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidInput(f"{path}: symbol #{i} is invalid ({exc})") from exc

    inventory = tuple(symbols)
    _check_unique(inventory, str(path))
    logger.debug("Loaded %d symbols from %s", len(inventory), path)
    return inventory


def dump_symbol_inventory(symbols: tuple[Symbol, ...], path: Union[str, Path]) -> None:
    """Write an inventory as JSON readable by load_symbol_inventory()."""
    with Path(path).open("w", encoding="utf-8") as f:
        json.dump({"symbols": [s.to_dict() for s in symbols]}, f, ensure_ascii=False, indent=2)
