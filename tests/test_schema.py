# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""Tests for schema types and their validation."""

import dataclasses

import pytest

from beadgrid.errors import InvalidInput
from beadgrid.schema import (
    AnalysisQuality,
    AssignmentValidation,
    BeadSpec,
    BeadType,
    ClusteringStrategy,
    Color,
    Conflict,
    DegradedAssignment,
    ExplicitStrategy,
    GridCell,
    GridConfig,
    Palette,
    QuantizedGrid,
    ReductionStrategy,
    ReferenceCatalog,
    ReferenceColor,
    Symbol,
    SymbolAssignment,
    SymbolKind,
    SymbolPriority,
)


def _ref(code, r=0, g=0, b=0, name="test"):
    return ReferenceColor(code=code, name=name, color=Color(r, g, b))


def _symbol(glyph="1"):
    return Symbol(
        id=f"num_{glyph}", glyph=glyph, kind=SymbolKind.NUMBER,
        category="thin_num", complexity=1, priority=SymbolPriority.NUMERAL,
    )


class TestColor:

    def test_valid(self):
        c = Color(199, 43, 59)
        assert c.rgb == (199, 43, 59)

    @pytest.mark.parametrize("channels", [(-1, 0, 0), (0, 256, 0), (0, 0, 300)])
    def test_out_of_range(self, channels):
        with pytest.raises(ValueError, match="Channel"):
            Color(*channels)

    def test_hex(self):
        assert Color(199, 43, 59).hex == "#C72B3B"
        assert Color.from_hex("#c72b3b") == Color(199, 43, 59)
        assert Color.from_hex("C72B3B") == Color(199, 43, 59)

    def test_bad_hex(self):
        with pytest.raises(ValueError):
            Color.from_hex("#FFF")

    def test_lab(self):
        L, a, b = Color(255, 255, 255).lab
        assert L == pytest.approx(100.0, abs=0.01)
        assert a == pytest.approx(0.0, abs=0.05)
        assert b == pytest.approx(0.0, abs=0.05)

    def test_value_semantics(self):
        assert Color(1, 2, 3) == Color(1, 2, 3)
        assert len({Color(1, 2, 3), Color(1, 2, 3)}) == 1

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Color(1, 2, 3).r = 5


class TestReferenceCatalog:

    def test_lookup(self):
        catalog = ReferenceCatalog([_ref("310"), _ref("B5200", 255, 255, 255)])
        assert len(catalog) == 2
        assert "310" in catalog
        assert "999" not in catalog
        assert catalog.get("B5200").color == Color(255, 255, 255)
        assert catalog.get("999") is None
        assert catalog[1].code == "B5200"
        assert catalog.codes == ("310", "B5200")

    def test_duplicate_codes_rejected(self):
        with pytest.raises(InvalidInput):
            ReferenceCatalog([_ref("310"), _ref("310")])

    def test_lab_array_cached(self):
        catalog = ReferenceCatalog([_ref("310"), _ref("B5200", 255, 255, 255)])
        first = catalog.lab_array()
        assert first.shape == (2, 3)
        assert catalog.lab_array() is first

    def test_reference_color_dict(self):
        ref = _ref("321", 199, 43, 59, name="Red")
        assert ref.to_dict() == {"code": "321", "name": "Red", "hex": "#C72B3B"}
        assert ReferenceColor.from_dict(ref.to_dict()) == ref


class TestBeadSpec:

    def test_defaults(self):
        bead = BeadSpec()
        assert bead.bead_type == BeadType.CIRCULAR
        assert bead.size_mm == 2.8

    def test_cells_per_cm(self):
        assert BeadSpec(BeadType.SQUARE, 2.5).cells_per_cm == pytest.approx(4.0)

    @pytest.mark.parametrize("size", [0.0, -1.0])
    def test_non_positive_size(self, size):
        with pytest.raises(InvalidInput):
            BeadSpec(BeadType.SQUARE, size)


class TestQuantizedGrid:

    def _config(self, columns=2, rows=2):
        return GridConfig(
            target_width=1.0, target_height=1.0, columns=columns, rows=rows,
            bead=BeadSpec(), actual_width=1.0, actual_height=1.0,
        )

    def _cells(self, columns=2, rows=2):
        return tuple(
            GridCell(x=x, y=y, color=Color(x, y, 0), average_color=Color(x, y, 0))
            for y in range(rows) for x in range(columns)
        )

    def test_cell_at(self):
        grid = QuantizedGrid(config=self._config(), cells=self._cells())
        assert grid.cell_at(1, 0).color == Color(1, 0, 0)
        assert grid.cell_at(0, 1).color == Color(0, 1, 0)

    def test_out_of_bounds(self):
        grid = QuantizedGrid(config=self._config(), cells=self._cells())
        with pytest.raises(IndexError):
            grid.cell_at(2, 0)

    def test_cell_count_checked(self):
        with pytest.raises(ValueError):
            QuantizedGrid(config=self._config(3, 2), cells=self._cells())

    def test_average_rgb(self):
        grid = QuantizedGrid(config=self._config(), cells=self._cells())
        rgb = grid.average_rgb()
        assert rgb.shape == (4, 3)
        assert rgb[3].tolist() == [1, 1, 0]


class TestStrategies:

    def test_clustering_defaults(self):
        strategy = ClusteringStrategy(16)
        assert strategy.quality == AnalysisQuality.STANDARD
        assert strategy.seed == 42
        assert strategy.name == "clustering"

    def test_quality_caps(self):
        assert AnalysisQuality.FAST.sample_cap == 5000
        assert AnalysisQuality.STANDARD.sample_cap == 10000
        assert AnalysisQuality.HIGH.sample_cap == 20000
        assert AnalysisQuality.HIGH.label == "high"

    def test_explicit_coerces_codes(self):
        strategy = ExplicitStrategy([310, "B5200"])
        assert strategy.codes == ("310", "B5200")
        assert strategy.name == "explicit"

    def test_explicit_rejects_bare_string(self):
        with pytest.raises(InvalidInput, match="'310'"):
            ExplicitStrategy("310")

    def test_explicit_accepts_tuple(self):
        assert ExplicitStrategy(("310",)).codes == ("310",)

    def test_reduction_defaults(self):
        strategy = ReductionStrategy(16)
        assert strategy.min_usage == 0.005
        assert strategy.keep_importance == 0.7
        assert strategy.merge_distance == 12.0
        assert strategy.name == "reduction"


class TestPalette:

    def test_duplicate_entries_rejected(self):
        with pytest.raises(ValueError):
            Palette(colors=(_ref("310"), _ref("310")), strategy="explicit")

    def test_quality_range(self):
        with pytest.raises(ValueError):
            Palette(colors=(_ref("310"),), strategy="explicit", quality_score=1.5)

    def test_contains_code(self):
        palette = Palette(colors=(_ref("310"), _ref("666")), strategy="explicit")
        assert "666" in palette
        assert "700" not in palette
        assert palette.codes == ("310", "666")
        assert len(palette) == 2

    def test_to_dict_without_analysis(self):
        d = Palette(colors=(_ref("310"),), strategy="explicit").to_dict()
        assert d["strategy"] == "explicit"
        assert "analysis" not in d


class TestSymbol:

    def test_dict_roundtrip(self):
        sym = Symbol(
            id="pair_ab", glyph="ab", kind=SymbolKind.LETTER, category="two_letter_a",
            complexity=4, priority=SymbolPriority.COMBINATION, size_hint=0.75,
        )
        assert Symbol.from_dict(sym.to_dict()) == sym

    def test_size_hint_omitted(self):
        assert "size_hint" not in _symbol().to_dict()

    def test_empty_glyph(self):
        with pytest.raises(ValueError, match="glyph"):
            Symbol(id="x", glyph="", kind=SymbolKind.SHAPE, category="c",
                   complexity=1, priority=SymbolPriority.SHAPE)

    @pytest.mark.parametrize("complexity", [0, 6])
    def test_complexity_range(self, complexity):
        with pytest.raises(ValueError, match="Complexity"):
            Symbol(id="x", glyph="x", kind=SymbolKind.SHAPE, category="c",
                   complexity=complexity, priority=SymbolPriority.SHAPE)


class TestSymbolAssignment:

    def test_read_only(self):
        symbols = {"310": _symbol("1")}
        assignment = SymbolAssignment(symbols=symbols, columns=1, rows=1)
        symbols["666"] = _symbol("2")
        assert "666" not in assignment
        with pytest.raises(TypeError):
            assignment.symbols["666"] = _symbol("2")

    def test_accessors(self):
        assignment = SymbolAssignment(symbols={"310": _symbol("1")}, columns=1, rows=1)
        assert len(assignment) == 1
        assert assignment["310"].glyph == "1"
        assert assignment.glyph_for("310") == "1"
        assert not assignment.degraded

    def test_degraded_dict(self):
        assignment = DegradedAssignment(
            symbols={"310": _symbol("1"), "666": _symbol("1")},
            columns=2, rows=1, reused_codes=("666",),
        )
        d = assignment.to_dict()
        assert d["degraded"] is True
        assert d["reused_codes"] == ["666"]
        assert set(d["symbols"]) == {"310", "666"}

    def test_conflict_describe(self):
        assignment = SymbolAssignment(
            symbols={"a": _symbol("0"), "b": _symbol("8")}, columns=2, rows=1
        )
        conflict = Conflict(
            position=(0, 0), neighbor=(1, 0), code="a", neighbor_code="b", similarity=0.95
        )
        assert conflict.describe(assignment) == "(0,0) a:0 next to (1,0) b:8 similarity=0.95"

    def test_validation_flags(self):
        assert AssignmentValidation(conflicts=()).valid
        conflict = Conflict((0, 0), (1, 0), "a", "b", 1.0)
        validation = AssignmentValidation(conflicts=(conflict,))
        assert not validation.valid
        assert validation.conflict_count == 1
