# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""Tests for the pattern document and assignment report serializers."""

import json

import numpy as np
import pytest

from beadgrid import BeadSpec, BeadType, ExplicitStrategy, PatternRequest, build_pattern
from beadgrid.runtime.serializers import SerializerFormat, build_document, to_json, to_report
from beadgrid.schema import (
    DegradedAssignment,
    Symbol,
    SymbolAssignment,
    SymbolKind,
    SymbolPriority,
)
from beadgrid.symbols import assign_symbols


@pytest.fixture(scope="module")
def two_tone_pattern():
    """Left half black, right half white, 8x4 cells."""
    img = np.zeros((4, 8, 3), dtype=np.uint8)
    img[:, 4:] = 255
    request = PatternRequest(
        target_width=2.0,
        strategy=ExplicitStrategy(["310", "B5200", "321"]),
        bead=BeadSpec(BeadType.SQUARE, 2.5),
    )
    return build_pattern(img, request)


@pytest.fixture(scope="module")
def assignment(two_tone_pattern):
    return assign_symbols(two_tone_pattern, cache=None)


def _symbol(glyph, category="round_num", complexity=2):
    return Symbol(
        id=f"s_{glyph}", glyph=glyph, kind=SymbolKind.NUMBER, category=category,
        complexity=complexity, priority=SymbolPriority.NUMERAL,
    )


class TestPatternDocument:

    def test_parses_as_json(self, two_tone_pattern):
        data = json.loads(to_json(two_tone_pattern))
        assert data["grid"]["columns"] == 8
        assert data["grid"]["rows"] == 4
        assert data["grid"]["bead"] == {"type": "square", "size_mm": 2.5}

    def test_compact_shorter_than_pretty(self, two_tone_pattern):
        compact = to_json(two_tone_pattern)
        pretty = to_json(two_tone_pattern, format=SerializerFormat.JSON_PRETTY)
        assert len(compact) < len(pretty)
        assert json.loads(compact) == json.loads(pretty)

    def test_palette_lists_every_entry(self, two_tone_pattern):
        data = build_document(two_tone_pattern)
        assert [c["code"] for c in data["palette"]["colors"]] == ["310", "B5200", "321"]

    def test_legend_only_used_colors(self, two_tone_pattern):
        legend = build_document(two_tone_pattern)["legend"]
        assert {e["code"] for e in legend} == {"310", "B5200"}
        assert sum(e["count"] for e in legend) == 32
        assert all("glyph" not in e for e in legend)

    def test_legend_with_symbols(self, two_tone_pattern, assignment):
        legend = build_document(two_tone_pattern, assignment)["legend"]
        for entry in legend:
            assert entry["glyph"] == assignment.glyph_for(entry["code"])
        assert "symbols_degraded" not in build_document(two_tone_pattern, assignment)

    def test_legend_hex(self, two_tone_pattern):
        legend = {e["code"]: e for e in build_document(two_tone_pattern)["legend"]}
        assert legend["310"]["hex"] == "#000000"
        assert legend["310"]["name"] == "Black"

    def test_cells(self, two_tone_pattern):
        cells = build_document(two_tone_pattern)["cells"]
        assert cells[0] == ["310"] * 4 + ["B5200"] * 4
        assert len(cells) == 4

    def test_cells_omitted(self, two_tone_pattern):
        assert "cells" not in build_document(two_tone_pattern, include_grid=False)

    def test_size_hint_in_legend(self, two_tone_pattern):
        pair = Symbol(
            id="pair_ab", glyph="ab", kind=SymbolKind.LETTER, category="two_letter_a",
            complexity=4, priority=SymbolPriority.COMBINATION, size_hint=0.75,
        )
        custom = SymbolAssignment(
            symbols={"310": pair, "B5200": _symbol("1", "thin_num", 1)}, columns=8, rows=4
        )
        legend = {e["code"]: e for e in build_document(two_tone_pattern, custom)["legend"]}
        assert legend["310"]["size_hint"] == 0.75
        assert "size_hint" not in legend["B5200"]

    def test_degraded_flag(self, two_tone_pattern):
        one = _symbol("1", "thin_num", 1)
        degraded = DegradedAssignment(
            symbols={"310": one, "B5200": one}, columns=8, rows=4, reused_codes=("B5200",)
        )
        assert build_document(two_tone_pattern, degraded)["symbols_degraded"] is True

    def test_unsupported_format(self, two_tone_pattern):
        with pytest.raises(ValueError):
            to_json(two_tone_pattern, format="yaml")


class TestAssignmentReport:

    def test_clean_report(self, two_tone_pattern, assignment):
        text = to_report(assignment, two_tone_pattern, inventory_size=815)
        assert text.startswith("Symbol Assignment Report")
        assert "  - Colors: 2" in text
        assert "  - Symbols used: 2/815" in text
        assert "  - number: 2" in text
        assert "No conflicts detected." in text

    def test_conflicts_listed(self, two_tone_pattern):
        confusable = SymbolAssignment(
            symbols={"310": _symbol("0"), "B5200": _symbol("8", complexity=4)},
            columns=8, rows=4,
        )
        text = to_report(confusable, two_tone_pattern)
        assert "Conflicts:" in text
        assert "310:0 next to" in text
        # 4 rows: 4 horizontal and 6 diagonal pairs along the seam
        assert "  - Conflicts: 10" in text
        assert "  ... and 5 more" in text

    def test_degraded_report(self, two_tone_pattern):
        one = _symbol("1", "thin_num", 1)
        degraded = DegradedAssignment(
            symbols={"310": one, "B5200": one}, columns=8, rows=4, reused_codes=("B5200",)
        )
        text = to_report(degraded, two_tone_pattern)
        assert "  - Reused symbols for: B5200" in text
        assert "  - Symbols used: 1" in text

    def test_validates_once(self, two_tone_pattern, assignment, monkeypatch):
        from beadgrid.runtime.serializers import report
        from beadgrid.symbols import placement

        calls = []
        original = placement.validate_assignment

        def counting(*args, **kwargs):
            calls.append(args)
            return original(*args, **kwargs)

        monkeypatch.setattr(report, "validate_assignment", counting)
        monkeypatch.setattr(placement, "validate_assignment", counting)
        to_report(assignment, two_tone_pattern)
        assert len(calls) == 1
