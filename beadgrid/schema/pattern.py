# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Pattern schema: colors, grids, palettes and matched patterns.

Design principles:
- Immutable: All types are frozen dataclasses
- Deterministic: Same image and request → same pattern
- Serializable: JSON-ready dictionaries for downstream renderers

Physical units:
- Target and actual sizes are in centimetres
- Bead sizes are in millimetres
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

import numpy as np
from numpy.typing import NDArray

from beadgrid.errors import InvalidInput, UnknownReferenceCode


# =============================================================================
# Colors
# =============================================================================


@dataclass(frozen=True, slots=True)
class Color:
    """
    An sRGB color with 8-bit channels.

    Colors are value types: two colors with the same channels are equal.
    The CIELAB representation is derived on demand.

    Attributes:
        r: Red channel (0-255)
        g: Green channel (0-255)
        b: Blue channel (0-255)
    """
    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        """Validate channel values are 8-bit."""
        for name in ("r", "g", "b"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(f"Channel {name} must be 0-255, got {value}")

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)

    @property
    def lab(self) -> tuple[float, float, float]:
        """CIELAB (L*, a*, b*) under D65."""
        from beadgrid.pattern.colorspace import srgb_uint8_to_lab
        L, a, b = srgb_uint8_to_lab(np.array(self.rgb, dtype=np.uint8))
        return float(L), float(a), float(b)

    @property
    def hex(self) -> str:
        """Hex string like "#C72B3B"."""
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"

    @classmethod
    def from_hex(cls, hex_color: str) -> Color:
        """Parse "#C72B3B" or "C72B3B"."""
        hex_color = hex_color.lstrip("#")
        if len(hex_color) != 6:
            raise ValueError(f"Expected 6 hex digits, got {hex_color!r}")
        return cls(
            r=int(hex_color[0:2], 16),
            g=int(hex_color[2:4], 16),
            b=int(hex_color[4:6], 16),
        )


@dataclass(frozen=True, slots=True)
class ReferenceColor:
    """
    A named color from the reference catalog (e.g. a DMC floss).

    Attributes:
        code: Stable catalog code ("310", "B5200", "Ecru")
        name: Human-readable name ("Black")
        color: sRGB value of the reference swatch
    """
    code: str
    name: str
    color: Color

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {"code": self.code, "name": self.name, "hex": self.color.hex}

    @classmethod
    def from_dict(cls, data: dict) -> ReferenceColor:
        """Deserialize from dictionary."""
        return cls(
            code=str(data["code"]),
            name=data["name"],
            color=Color.from_hex(data["hex"]),
        )


class ReferenceCatalog:
    """
    Immutable, ordered collection of reference colors keyed by code.

    The catalog is loaded once and shared read-only. CIELAB values for
    every entry are computed lazily on first use and cached.
    """

    __slots__ = ("_entries", "_by_code", "_lab")

    def __init__(self, entries: Iterable[ReferenceColor]) -> None:
        self._entries: tuple[ReferenceColor, ...] = tuple(entries)
        self._by_code: dict[str, ReferenceColor] = {}
        for entry in self._entries:
            if entry.code in self._by_code:
                raise InvalidInput(f"Duplicate reference code {entry.code!r}")
            self._by_code[entry.code] = entry
        self._lab: Optional[NDArray[np.float64]] = None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ReferenceColor]:
        return iter(self._entries)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def __getitem__(self, index: int) -> ReferenceColor:
        return self._entries[index]

    def __repr__(self) -> str:
        return f"ReferenceCatalog({len(self._entries)} colors)"

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(e.code for e in self._entries)

    def get(self, code: str) -> Optional[ReferenceColor]:
        return self._by_code.get(code)

    def resolve(self, codes: Iterable[str]) -> tuple[ReferenceColor, ...]:
        """
        Look up every code, all-or-nothing.

        Raises:
            UnknownReferenceCode: listing every code missing from the catalog
        """
        codes = list(codes)
        unknown = [c for c in codes if c not in self._by_code]
        if unknown:
            raise UnknownReferenceCode(unknown)
        return tuple(self._by_code[c] for c in codes)

    def rgb_array(self) -> NDArray[np.uint8]:
        """(K, 3) uint8 array of catalog colors, in catalog order."""
        return np.array([e.color.rgb for e in self._entries], dtype=np.uint8).reshape(-1, 3)

    def lab_array(self) -> NDArray[np.float64]:
        """(K, 3) CIELAB array of catalog colors, in catalog order."""
        if self._lab is None:
            from beadgrid.pattern.colorspace import srgb_uint8_to_lab
            self._lab = srgb_uint8_to_lab(self.rgb_array())
        return self._lab


# =============================================================================
# Grid
# =============================================================================


class BeadType(Enum):
    """Physical bead shape. Each shape has a conventional default size."""
    CIRCULAR = "circular"
    SQUARE = "square"


# Default bead sizes in millimetres
DEFAULT_BEAD_SIZES_MM = {
    BeadType.CIRCULAR: 2.8,
    BeadType.SQUARE: 2.6,
}


@dataclass(frozen=True, slots=True)
class BeadSpec:
    """
    Physical bead (cell) specification.

    Attributes:
        bead_type: Bead shape
        size_mm: Bead pitch in millimetres
    """
    bead_type: BeadType = BeadType.CIRCULAR
    size_mm: float = DEFAULT_BEAD_SIZES_MM[BeadType.CIRCULAR]

    def __post_init__(self) -> None:
        if self.size_mm <= 0:
            raise InvalidInput(f"Bead size must be positive, got {self.size_mm}")

    @property
    def cells_per_cm(self) -> float:
        return 10.0 / self.size_mm

    def to_dict(self) -> dict:
        return {"type": self.bead_type.value, "size_mm": self.size_mm}


@dataclass(frozen=True, slots=True)
class GridConfig:
    """
    Resolved grid configuration.

    The actual physical size is derived from the integer cell counts,
    not from the requested size, so it always matches the grid.

    Attributes:
        target_width: Requested width (cm)
        target_height: Requested height derived from image aspect (cm)
        columns: Cells horizontally
        rows: Cells vertically
        bead: Bead specification used for the conversion
        actual_width: Grid-aligned width (cm, 2 decimals)
        actual_height: Grid-aligned height (cm, 2 decimals)
    """
    target_width: float
    target_height: float
    columns: int
    rows: int
    bead: BeadSpec
    actual_width: float
    actual_height: float

    @property
    def total_cells(self) -> int:
        return self.columns * self.rows

    def to_dict(self) -> dict:
        return {
            "target": {"width": self.target_width, "height": self.target_height},
            "grid": {"columns": self.columns, "rows": self.rows},
            "actual": {"width": self.actual_width, "height": self.actual_height},
            "bead": self.bead.to_dict(),
            "total_cells": self.total_cells,
        }


@dataclass(frozen=True, slots=True)
class GridCell:
    """
    One bead position in the output grid.

    Attributes:
        x: Column index
        y: Row index
        color: Source pixel at the centre of the cell footprint
        average_color: Mean of all source pixels in the cell footprint
    """
    x: int
    y: int
    color: Color
    average_color: Color


@dataclass(frozen=True, slots=True)
class QuantizedGrid:
    """
    The downsampled grid: configuration plus row-major cells.

    Attributes:
        config: Resolved grid configuration
        cells: Cells ordered by (y, x)
    """
    config: GridConfig
    cells: tuple[GridCell, ...]

    def __post_init__(self) -> None:
        if len(self.cells) != self.config.total_cells:
            raise ValueError(
                f"Expected {self.config.total_cells} cells, got {len(self.cells)}"
            )

    def cell_at(self, x: int, y: int) -> GridCell:
        if not (0 <= x < self.config.columns and 0 <= y < self.config.rows):
            raise IndexError(f"Coordinates ({x}, {y}) outside grid bounds")
        return self.cells[y * self.config.columns + x]

    def average_rgb(self) -> NDArray[np.uint8]:
        """(N, 3) uint8 array of averaged cell colors, row-major."""
        return np.array(
            [c.average_color.rgb for c in self.cells], dtype=np.uint8
        ).reshape(-1, 3)


# =============================================================================
# Palette request & result
# =============================================================================


class AnalysisQuality(Enum):
    """
    Clustering quality hint: trades sample size for accuracy.

    The value is the maximum number of grid cells sampled for k-means.
    """
    FAST = 5_000
    STANDARD = 10_000
    HIGH = 20_000

    @property
    def sample_cap(self) -> int:
        return self.value

    @property
    def label(self) -> str:
        return self.name.lower()


# Palette-size bounds for the clustering strategy
MIN_TARGET_COLORS = 8


@dataclass(frozen=True, slots=True)
class ClusteringStrategy:
    """
    Choose the palette by k-means over the grid's colors.

    Attributes:
        target_count: Palette size to aim for (8 to catalog size)
        quality: Sample-size hint
        seed: Random seed (None for nondeterministic sampling)
        max_iter: k-means iteration cap
    """
    target_count: int
    quality: AnalysisQuality = AnalysisQuality.STANDARD
    seed: Optional[int] = 42
    max_iter: int = 100

    def __post_init__(self) -> None:
        if self.max_iter < 1:
            raise InvalidInput(f"max_iter must be at least 1, got {self.max_iter}")

    @property
    def name(self) -> str:
        return "clustering"


@dataclass(frozen=True, slots=True)
class ExplicitStrategy:
    """
    Use exactly the given reference codes as the palette.

    Attributes:
        codes: Catalog codes; every code must exist
    """
    codes: tuple[str, ...]

    def __post_init__(self) -> None:
        # A bare string would otherwise be split into one code per character
        if isinstance(self.codes, str):
            raise InvalidInput(
                f"Explicit codes must be a list of codes, not a string: {self.codes!r}"
            )
        # Accept any iterable of codes but store a tuple
        object.__setattr__(self, "codes", tuple(str(c) for c in self.codes))

    @property
    def name(self) -> str:
        return "explicit"


@dataclass(frozen=True, slots=True)
class ReductionStrategy:
    """
    Match every cell against the whole catalog, then shrink the used set.

    Rarely used colors are dropped, similar colors are merged and the
    most important colors are kept, up to target_count.

    Attributes:
        target_count: Palette size to aim for (8 to catalog size)
        min_usage: Share of cells (0-1) below which a color may be dropped
        keep_importance: Importance above which a rare color is kept anyway
        merge_distance: CIEDE2000 at or below which two colors may merge
    """
    target_count: int
    min_usage: float = 0.005
    keep_importance: float = 0.7
    merge_distance: float = 12.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_usage <= 1.0:
            raise InvalidInput(f"min_usage must be 0-1, got {self.min_usage}")
        if not 0.0 <= self.keep_importance <= 1.0:
            raise InvalidInput(f"keep_importance must be 0-1, got {self.keep_importance}")
        if not self.merge_distance >= 0.0:
            raise InvalidInput(f"merge_distance must be >= 0, got {self.merge_distance}")

    @property
    def name(self) -> str:
        return "reduction"


PaletteStrategy = Union[ClusteringStrategy, ExplicitStrategy, ReductionStrategy]


@dataclass(frozen=True, slots=True)
class PatternRequest:
    """
    Everything needed to turn an image into a pattern.

    Attributes:
        target_width: Requested physical width (cm); height follows the
            image aspect ratio
        strategy: How the palette is chosen
        bead: Bead specification
    """
    target_width: float
    strategy: PaletteStrategy
    bead: BeadSpec = field(default_factory=BeadSpec)


@dataclass(frozen=True, slots=True)
class PaletteAnalysis:
    """
    Diagnostics from palette selection.

    Attributes:
        sampled_cells: Number of grid cells fed to clustering
        unique_colors: Distinct colors among the samples
        complexity: Unique-to-sampled ratio scaled to 0-1
        clusters: Clusters actually formed (k after capping)
        iterations: k-means iterations run
        reseeded_clusters: Empty clusters re-seeded during iteration
    """
    sampled_cells: int = 0
    unique_colors: int = 0
    complexity: float = 0.0
    clusters: int = 0
    iterations: int = 0
    reseeded_clusters: int = 0

    def to_dict(self) -> dict:
        return {
            "sampled_cells": self.sampled_cells,
            "unique_colors": self.unique_colors,
            "complexity": round(self.complexity, 4),
            "clusters": self.clusters,
            "iterations": self.iterations,
            "reseeded_clusters": self.reseeded_clusters,
        }


@dataclass(frozen=True, slots=True)
class ColorImportance:
    """
    How much one catalog color matters after full-catalog matching.

    Attributes:
        reference: Catalog color some cells matched
        cell_count: Cells whose nearest catalog color is this one
        share: cell_count over all cells (0-1)
        importance: 0-1 blend of usage, visual impact and match quality
        average_distance: Mean CIEDE2000 of the matched cells
        mergeable: Rare (< 2% of cells) or poorly matched (mean > 15)
    """
    reference: ReferenceColor
    cell_count: int
    share: float
    importance: float
    average_distance: float
    mergeable: bool

    def to_dict(self) -> dict:
        return {
            "code": self.reference.code,
            "cell_count": self.cell_count,
            "share": round(self.share, 4),
            "importance": round(self.importance, 4),
            "average_distance": round(self.average_distance, 2),
            "mergeable": self.mergeable,
        }


@dataclass(frozen=True, slots=True)
class ReductionAnalysis:
    """
    Diagnostics from the reduction strategy.

    Attributes:
        matched_colors: Distinct catalog colors before reduction
        dropped: Rare colors removed by the usage threshold
        merged: Colors folded into a similar, more important color
        steps: Reduction steps applied, in order
        usage: Importance of every kept color, most important first
    """
    matched_colors: int
    dropped: int = 0
    merged: int = 0
    steps: tuple[str, ...] = ()
    usage: tuple[ColorImportance, ...] = ()

    def to_dict(self) -> dict:
        return {
            "matched_colors": self.matched_colors,
            "dropped": self.dropped,
            "merged": self.merged,
            "steps": list(self.steps),
            "usage": [u.to_dict() for u in self.usage],
        }


@dataclass(frozen=True, slots=True)
class Palette:
    """
    The reference colors chosen to represent an image.

    Attributes:
        colors: Distinct reference colors, in selection order
        strategy: Human-readable description of how they were chosen
        quality_score: 0-1, how closely the catalog could represent the
            image's color clusters (1.0 for explicit palettes)
        analysis: Selection diagnostics (None for explicit palettes)
    """
    colors: tuple[ReferenceColor, ...]
    strategy: str
    quality_score: float = 1.0
    analysis: Optional[Union[PaletteAnalysis, ReductionAnalysis]] = None

    def __post_init__(self) -> None:
        codes = [c.code for c in self.colors]
        if len(set(codes)) != len(codes):
            raise ValueError("Palette entries must be unique")
        if not 0.0 <= self.quality_score <= 1.0:
            raise ValueError(f"Quality score must be 0-1, got {self.quality_score}")

    def __len__(self) -> int:
        return len(self.colors)

    def __contains__(self, code: object) -> bool:
        return any(c.code == code for c in self.colors)

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(c.code for c in self.colors)

    def to_dict(self) -> dict:
        result = {
            "strategy": self.strategy,
            "quality_score": round(self.quality_score, 4),
            "colors": [c.to_dict() for c in self.colors],
        }
        if self.analysis is not None:
            result["analysis"] = self.analysis.to_dict()
        return result


@dataclass(frozen=True, slots=True)
class ColorCountAdvice:
    """
    Advisory palette sizes for a grid. Never enforced.

    Attributes:
        optimal: Suggested palette size balancing fidelity and thread count
        maximum: Largest useful palette for this grid
        total_cells: Cells analysed
        unique_colors: Distinct averaged cell colors
        complexity: Normalized Shannon entropy of the cell colors (0-1)
        dominant_colors: Colors covering more than 2% of the grid
        pattern_density: Evenness of the color distribution (<= 1)
    """
    optimal: int
    maximum: int
    total_cells: int
    unique_colors: int
    complexity: float
    dominant_colors: int
    pattern_density: float


# =============================================================================
# Matched pattern
# =============================================================================


@dataclass(frozen=True, slots=True)
class MatchedCell:
    """
    A grid cell bound to its palette color.

    Attributes:
        cell: The source grid cell
        reference: Palette entry nearest to the cell's averaged color
        distance: CIEDE2000 between the averaged color and the reference
    """
    cell: GridCell
    reference: ReferenceColor
    distance: float

    @property
    def x(self) -> int:
        return self.cell.x

    @property
    def y(self) -> int:
        return self.cell.y

    @property
    def code(self) -> str:
        return self.reference.code


@dataclass(frozen=True, slots=True)
class ColorUsage:
    """
    How much of the pattern one palette color covers.

    Attributes:
        reference: The palette color
        count: Cells using it
        percentage: Share of all cells (0-100)
        average_distance: Mean match distance over those cells
    """
    reference: ReferenceColor
    count: int
    percentage: float
    average_distance: float

    def to_dict(self) -> dict:
        return {
            "code": self.reference.code,
            "count": self.count,
            "percentage": round(self.percentage, 2),
            "average_distance": round(self.average_distance, 3),
        }


@dataclass(frozen=True, slots=True)
class PatternStatistics:
    """
    Aggregate match statistics.

    Attributes:
        total_cells: Cells in the pattern
        colors_used: Palette colors that appear at least once
        average_distance: Mean CIEDE2000 over all cells
        quality_score: max(0, 1 - average_distance / scale)
        usage: Per-color usage, most used first
    """
    total_cells: int
    colors_used: int
    average_distance: float
    quality_score: float
    usage: tuple[ColorUsage, ...]

    def to_dict(self) -> dict:
        return {
            "total_cells": self.total_cells,
            "colors_used": self.colors_used,
            "average_distance": round(self.average_distance, 3),
            "quality_score": round(self.quality_score, 4),
            "usage": [u.to_dict() for u in self.usage],
        }


@dataclass(frozen=True, slots=True)
class Pattern:
    """
    The pipeline's terminal artifact.

    Downstream renderers read patterns; nothing mutates them.

    Attributes:
        config: Grid configuration
        palette: Palette the cells were matched against
        cells: One MatchedCell per grid cell, row-major
        statistics: Usage and quality statistics
    """
    config: GridConfig
    palette: Palette
    cells: tuple[MatchedCell, ...]
    statistics: PatternStatistics

    def code_grid(self) -> list[list[str]]:
        """Reference codes as rows of columns."""
        cols = self.config.columns
        return [
            [m.reference.code for m in self.cells[row * cols:(row + 1) * cols]]
            for row in range(self.config.rows)
        ]

    def used_codes(self) -> tuple[str, ...]:
        """Codes that appear in the grid, most used first."""
        return tuple(u.reference.code for u in self.statistics.usage)

    def to_dict(self) -> dict:
        return {
            "config": self.config.to_dict(),
            "palette": self.palette.to_dict(),
            "statistics": self.statistics.to_dict(),
            "grid": self.code_grid(),
        }
