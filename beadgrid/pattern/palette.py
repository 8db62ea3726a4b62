# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Palette selection: choose the reference colors that represent a grid.

Three strategies:
1. Clustering: k-means over cell colors, centroids snapped to the catalog
2. Explicit: exactly the caller's reference codes, all-or-error
3. Reduction: match every cell to the whole catalog, then drop, merge
   and rank the matched colors down to the target size

Clustering runs in raw RGB (Euclidean) because only relative ranking
matters inside the k-means loop. Snapping to the catalog uses CIEDE2000
because the snap distance feeds the palette quality score.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import replace

import numpy as np
from numpy.typing import NDArray

from beadgrid.errors import EmptyPalette, InvalidInput
from beadgrid.schema import (
    MIN_TARGET_COLORS,
    ClusteringStrategy,
    ColorCountAdvice,
    ColorImportance,
    ExplicitStrategy,
    Palette,
    PaletteAnalysis,
    PaletteStrategy,
    QuantizedGrid,
    ReductionAnalysis,
    ReductionStrategy,
    ReferenceCatalog,
)
from beadgrid.pattern.colorspace import delta_e_2000_matrix, srgb_uint8_to_lab

logger = logging.getLogger(__name__)

# Snap distance (CIEDE2000) at which palette quality reaches zero
PALETTE_QUALITY_SCALE = 30.0


def select_palette(
    grid: QuantizedGrid,
    strategy: PaletteStrategy,
    catalog: ReferenceCatalog,
) -> Palette:
    """
    Choose a palette for a grid using the requested strategy.

    Args:
        grid: Quantized grid
        strategy: ClusteringStrategy, ExplicitStrategy or ReductionStrategy
        catalog: Reference catalog the palette is drawn from

    Returns:
        Palette of distinct reference colors
    """
    if isinstance(strategy, ExplicitStrategy):
        return select_palette_explicit(strategy, catalog)
    if isinstance(strategy, ClusteringStrategy):
        return select_palette_kmeans(grid, strategy, catalog)
    if isinstance(strategy, ReductionStrategy):
        return select_palette_reduction(grid, strategy, catalog)
    raise TypeError(f"Unknown palette strategy: {type(strategy).__name__}")


# =============================================================================
# Explicit strategy
# =============================================================================


def select_palette_explicit(
    strategy: ExplicitStrategy,
    catalog: ReferenceCatalog,
) -> Palette:
    """
    Build a palette from explicit reference codes.

    Duplicates are collapsed, first occurrence wins. Unknown codes
    reject the whole request.

    Raises:
        InvalidInput: No codes given
        UnknownReferenceCode: Any code missing from the catalog
    """
    if not strategy.codes:
        raise InvalidInput("Explicit palette needs at least one reference code")

    codes = list(dict.fromkeys(strategy.codes))
    colors = catalog.resolve(codes)

    logger.debug("Explicit palette: %d colors", len(colors))
    return Palette(colors=colors, strategy="explicit", quality_score=1.0)


# =============================================================================
# Clustering strategy
# =============================================================================


def select_palette_kmeans(
    grid: QuantizedGrid,
    strategy: ClusteringStrategy,
    catalog: ReferenceCatalog,
) -> Palette:
    """
    Select a palette by clustering cell colors and snapping to the catalog.

    Cell average colors are sampled (capped by the quality hint),
    clustered with k-means, and each centroid is snapped to its nearest
    catalog entry not already taken. Larger clusters pick first.

    The palette has min(target_count, unique sampled colors) entries.

    Raises:
        InvalidInput: target_count outside [8, catalog size]
        EmptyPalette: No cells to sample
    """
    target = strategy.target_count
    if not MIN_TARGET_COLORS <= target <= len(catalog):
        raise InvalidInput(
            f"Palette size must be between {MIN_TARGET_COLORS} and "
            f"{len(catalog)}, got {target}"
        )

    rng = np.random.default_rng(strategy.seed)
    samples = _sample_cells(grid.average_rgb(), strategy.quality.sample_cap, rng)
    if len(samples) == 0:
        raise EmptyPalette("Grid has no cells to sample")

    n_unique = len(np.unique(samples, axis=0))
    centroids, labels, iterations, reseeded = _kmeans(
        samples.astype(np.float64),
        k=target,
        max_iter=strategy.max_iter,
        rng=rng,
    )
    k = len(centroids)
    if k == 0:
        raise EmptyPalette("Clustering produced no centroids")

    # Larger clusters snap first so they get their closest match
    sizes = np.bincount(labels, minlength=k)
    order = sorted(range(k), key=lambda i: (-sizes[i], i))

    centroid_rgb = np.clip(np.rint(centroids), 0, 255).astype(np.uint8)
    dists = delta_e_2000_matrix(srgb_uint8_to_lab(centroid_rgb), catalog.lab_array())

    taken = np.zeros(len(catalog), dtype=bool)
    chosen = []
    snap_distances = []
    for i in order:
        row = np.where(taken, np.inf, dists[i])
        j = int(np.argmin(row))
        taken[j] = True
        chosen.append(catalog[j])
        snap_distances.append(float(row[j]))

    mean_snap = float(np.mean(snap_distances))
    quality = max(0.0, 1.0 - mean_snap / PALETTE_QUALITY_SCALE)

    analysis = PaletteAnalysis(
        sampled_cells=len(samples),
        unique_colors=n_unique,
        complexity=min(n_unique / len(samples), 1.0),
        clusters=k,
        iterations=iterations,
        reseeded_clusters=reseeded,
    )
    logger.debug(
        "Clustered %d samples (%d unique) into %d colors in %d iterations, "
        "mean snap distance %.2f",
        len(samples), n_unique, k, iterations, mean_snap,
    )

    return Palette(
        colors=tuple(chosen),
        strategy=f"clustering (k={k}, quality={strategy.quality.label})",
        quality_score=quality,
        analysis=analysis,
    )


def _sample_cells(
    colors: NDArray[np.uint8],
    cap: int,
    rng: np.random.Generator,
) -> NDArray[np.uint8]:
    """Random subset of at most cap rows, kept in grid order."""
    if len(colors) <= cap:
        return colors
    idx = np.sort(rng.choice(len(colors), size=cap, replace=False))
    return colors[idx]


def _kmeans(
    data: NDArray[np.float64],
    k: int,
    max_iter: int,
    rng: np.random.Generator,
) -> tuple[NDArray[np.float64], NDArray[np.int64], int, int]:
    """
    Vectorized k-means with k-means++ seeding.

    k is capped at the number of unique points. A cluster that loses all
    its members is re-seeded with the point farthest from the surviving
    centroids, taken from a cluster that can spare it.

    Returns:
        (centroids, labels, iterations, reseeded) where centroids is
        (k, D), labels is (N,), and reseeded counts empty-cluster repairs
    """
    n, d = data.shape
    unique_data = np.unique(data, axis=0)
    n_unique = len(unique_data)
    k = min(k, n_unique)

    if k == 0:
        return np.empty((0, d), dtype=np.float64), np.zeros(n, dtype=np.int64), 0, 0

    # k-means++ initialization, tracking each point's distance to its
    # nearest centroid so far
    centroids = np.empty((k, d), dtype=np.float64)
    centroids[0] = unique_data[rng.integers(n_unique)]
    closest = np.sum((unique_data - centroids[0]) ** 2, axis=1)

    for i in range(1, k):
        total = closest.sum()
        if total == 0:
            centroids[i] = unique_data[rng.integers(n_unique)]
        else:
            centroids[i] = unique_data[rng.choice(n_unique, p=closest / total)]
        np.minimum(closest, np.sum((unique_data - centroids[i]) ** 2, axis=1), out=closest)

    labels = np.full(n, -1, dtype=np.int64)
    reseeded = 0
    iterations = 0
    data_sq = np.sum(data ** 2, axis=1)

    for iterations in range(1, max_iter + 1):
        dists = _squared_distances(data, data_sq, centroids)
        new_labels = np.argmin(dists, axis=1)
        counts = np.bincount(new_labels, minlength=k)

        empty = np.flatnonzero(counts == 0)
        if empty.size:
            nearest = np.min(dists[:, counts > 0], axis=1)
            for j in empty:
                # Never strip a cluster of its last member
                candidates = np.where(counts[new_labels] > 1, nearest, -1.0)
                far = int(np.argmax(candidates))
                counts[new_labels[far]] -= 1
                counts[j] += 1
                new_labels[far] = j
                nearest[far] = -1.0
                centroids[j] = data[far]
                reseeded += 1

        converged = not empty.size and np.array_equal(new_labels, labels)
        labels = new_labels
        if converged:
            break

        sums = np.zeros((k, d), dtype=np.float64)
        np.add.at(sums, labels, data)
        centroids = sums / counts[:, np.newaxis]

    return centroids, labels, iterations, reseeded


def _squared_distances(
    data: NDArray[np.float64],
    data_sq: NDArray[np.float64],
    centroids: NDArray[np.float64],
) -> NDArray[np.float64]:
    """(N, K) squared Euclidean distances via |x|^2 - 2 x.c + |c|^2."""
    dists = data_sq[:, np.newaxis] - 2.0 * (data @ centroids.T)
    dists += np.sum(centroids ** 2, axis=1)[np.newaxis, :]
    return np.maximum(dists, 0.0, out=dists)


# =============================================================================
# Reduction strategy
# =============================================================================


# Cells share below which a color counts as rare when deciding mergeability
MERGEABLE_SHARE = 0.02

# Mean match distance above which a color counts as poorly matched
MERGEABLE_DISTANCE = 15.0

# Mean match distance at which the match-quality term of importance reaches 0
IMPORTANCE_DISTANCE_SCALE = 50.0


def select_palette_reduction(
    grid: QuantizedGrid,
    strategy: ReductionStrategy,
    catalog: ReferenceCatalog,
) -> Palette:
    """
    Select a palette by matching every cell to the whole catalog and
    reducing the colors that come back.

    Every cell is matched first, so the palette holds only colors some
    cell actually chose. The palette has min(target_count, matched
    colors) entries, most important first. Cells whose color did not
    survive move to their nearest kept color when the pattern is matched.

    Quality is scored on the full-catalog match distances.

    Raises:
        InvalidInput: target_count outside [8, catalog size]
        EmptyPalette: Grid has no cells
    """
    target = strategy.target_count
    if not MIN_TARGET_COLORS <= target <= len(catalog):
        raise InvalidInput(
            f"Palette size must be between {MIN_TARGET_COLORS} and "
            f"{len(catalog)}, got {target}"
        )

    colors = grid.average_rgb()
    if len(colors) == 0:
        raise EmptyPalette("Grid has no cells to match")

    indices, distances = _match_catalog(colors, catalog)
    usage = analyze_color_usage(indices, distances, catalog)
    analysis = reduce_colors(
        usage,
        target,
        min_usage=strategy.min_usage,
        keep_importance=strategy.keep_importance,
        merge_distance=strategy.merge_distance,
    )

    mean_distance = float(np.mean(distances))
    quality = max(0.0, 1.0 - mean_distance / PALETTE_QUALITY_SCALE)

    logger.debug(
        "Reduced %d matched colors to %d (%s), mean match distance %.2f",
        analysis.matched_colors, len(analysis.usage),
        "; ".join(analysis.steps), mean_distance,
    )

    return Palette(
        colors=tuple(u.reference for u in analysis.usage),
        strategy=f"reduction ({analysis.matched_colors} to {len(analysis.usage)} colors)",
        quality_score=quality,
        analysis=analysis,
    )


def _match_catalog(
    colors: NDArray[np.uint8],
    catalog: ReferenceCatalog,
) -> tuple[NDArray[np.int64], NDArray[np.float64]]:
    """Nearest catalog index and CIEDE2000 for each (N, 3) color."""
    unique, inverse = np.unique(colors, axis=0, return_inverse=True)
    inverse = inverse.reshape(-1)
    dists = delta_e_2000_matrix(srgb_uint8_to_lab(unique), catalog.lab_array())
    nearest = np.argmin(dists, axis=1)
    best = dists[np.arange(len(unique)), nearest]
    return nearest[inverse], best[inverse]


def _visual_impact(rgb: NDArray[np.uint8]) -> NDArray[np.float64]:
    """
    0-1 visual weight of (N, 3) colors.

    Very dark or very light colors score through HSL contrast (weight
    0.6), vivid colors through HSL saturation (weight 0.4).
    """
    rgb = np.asarray(rgb, dtype=np.float64) / 255.0
    high = rgb.max(axis=1)
    low = rgb.min(axis=1)
    lightness = (high + low) / 2
    spread = high - low
    denom = 1.0 - np.abs(2.0 * lightness - 1.0)
    saturation = np.divide(spread, denom, out=np.zeros_like(spread), where=spread > 0)
    contrast = np.abs(lightness - 0.5) * 2
    return contrast * 0.6 + saturation * 0.4


def analyze_color_usage(
    indices: NDArray[np.int64],
    distances: NDArray[np.float64],
    catalog: ReferenceCatalog,
) -> tuple[ColorImportance, ...]:
    """
    Rate every catalog color that at least one cell matched.

    importance = 0.5 * usage + 0.3 * visual impact + 0.2 * match quality,
    where usage is min(10 * share, 1) and match quality is
    max(0, 1 - mean distance / 50).

    Args:
        indices: (N,) catalog index matched by each cell
        distances: (N,) CIEDE2000 of each cell to its match
        catalog: Catalog the indices point into

    Returns:
        One entry per used color, most important first (ties keep
        catalog order)
    """
    indices = np.asarray(indices, dtype=np.int64)
    distances = np.asarray(distances, dtype=np.float64)
    total = len(indices)
    if total == 0:
        return ()

    counts = np.bincount(indices, minlength=len(catalog))
    sums = np.bincount(indices, weights=distances, minlength=len(catalog))
    used = np.flatnonzero(counts)

    shares = counts[used] / total
    averages = sums[used] / counts[used]
    rgb = np.array([catalog[int(j)].color.rgb for j in used], dtype=np.uint8).reshape(-1, 3)

    usage_term = np.minimum(shares * 10, 1.0)
    quality_term = np.maximum(0.0, 1.0 - averages / IMPORTANCE_DISTANCE_SCALE)
    importance = usage_term * 0.5 + _visual_impact(rgb) * 0.3 + quality_term * 0.2

    entries = [
        ColorImportance(
            reference=catalog[int(j)],
            cell_count=int(counts[j]),
            share=float(share),
            importance=float(imp),
            average_distance=float(avg),
            mergeable=bool(share < MERGEABLE_SHARE or avg > MERGEABLE_DISTANCE),
        )
        for j, share, imp, avg in zip(used, shares, importance, averages)
    ]
    entries.sort(key=lambda e: -e.importance)
    return tuple(entries)


def reduce_colors(
    usage: Sequence[ColorImportance],
    target_count: int,
    *,
    min_usage: float = 0.005,
    keep_importance: float = 0.7,
    merge_distance: float = 12.0,
) -> ReductionAnalysis:
    """
    Cut a rated color list down to at most target_count colors.

    Steps, each applied only while too many colors remain:
    1. Drop colors under min_usage of the cells unless their importance
       exceeds keep_importance. Applied only when the survivors fit the
       target; the most important dropped colors then refill the
       palette up to the target.
    2. Merge the closest pair of mergeable colors within merge_distance
       into the more important one, repeatedly.
    3. Keep the target_count most important colors.

    Args:
        usage: Output of analyze_color_usage, most important first
        target_count: Maximum palette size

    Returns:
        ReductionAnalysis whose usage lists the kept colors, most
        important first
    """
    kept = list(usage)
    steps = []
    dropped = merged = 0

    if len(kept) <= target_count:
        steps.append(f"no reduction needed ({len(kept)} colors)")
    else:
        frequent = [u for u in kept if u.share >= min_usage or u.importance > keep_importance]
        if len(frequent) <= target_count:
            rare = [u for u in kept if u.share < min_usage and u.importance <= keep_importance]
            refill = rare[:target_count - len(frequent)]
            dropped = len(rare) - len(refill)
            survivors = {id(u) for u in frequent + refill}
            kept = [u for u in kept if id(u) in survivors]
            steps.append(f"dropped {dropped} colors under {min_usage:.1%} of cells")

        if len(kept) > target_count:
            kept, merged = _merge_similar(kept, target_count, merge_distance)
            if merged:
                steps.append(f"merged {merged} similar colors")

        if len(kept) > target_count:
            steps.append(f"kept top {target_count} of {len(kept)} by importance")
            kept = kept[:target_count]

    return ReductionAnalysis(
        matched_colors=len(usage),
        dropped=dropped,
        merged=merged,
        steps=tuple(steps),
        usage=tuple(kept),
    )


def _merge_similar(
    usage: list[ColorImportance],
    target_count: int,
    merge_distance: float,
) -> tuple[list[ColorImportance], int]:
    """
    Fold the closest mergeable pair within merge_distance into its more
    important member until target_count colors remain or no pair is
    left. The survivor takes over the other color's cells.
    """
    n = len(usage)
    rgb = np.array([u.reference.color.rgb for u in usage], dtype=np.uint8).reshape(-1, 3)
    labs = srgb_uint8_to_lab(rgb)
    dists = delta_e_2000_matrix(labs, labs)

    mergeable = np.array([u.mergeable for u in usage], dtype=bool)
    candidate = np.triu(dists <= merge_distance, k=1)
    candidate &= mergeable[:, np.newaxis] & mergeable[np.newaxis, :]

    entries = list(usage)
    alive = np.ones(n, dtype=bool)
    merged = 0

    while alive.sum() > target_count:
        pairs = candidate & alive[:, np.newaxis] & alive[np.newaxis, :]
        if not pairs.any():
            break
        i, j = np.unravel_index(np.argmin(np.where(pairs, dists, np.inf)), dists.shape)
        keep, fold = (i, j) if entries[i].importance >= entries[j].importance else (j, i)
        entries[keep] = replace(
            entries[keep],
            cell_count=entries[keep].cell_count + entries[fold].cell_count,
            share=entries[keep].share + entries[fold].share,
        )
        alive[fold] = False
        merged += 1

    return [e for e, a in zip(entries, alive) if a], merged


# =============================================================================
# Advisory color counts
# =============================================================================


# Share of cells above which a color counts as dominant
DOMINANT_SHARE = 0.02


def recommend_color_counts(
    grid: QuantizedGrid,
    catalog_size: int,
) -> ColorCountAdvice:
    """
    Suggest palette sizes for a grid.

    The advice is informational only; neither strategy reads it.

    - maximum: at least 4 cells per color, no more colors than the grid
      has distinct cell colors or the catalog holds
    - optimal: a heuristic that grows with color variety and grid size,
      clamped to 8-80

    The returned optimal is capped by the maximum, and the returned
    maximum is raised to the uncapped optimal.

    Args:
        grid: Quantized grid
        catalog_size: Number of reference colors available

    Returns:
        ColorCountAdvice
    """
    colors = grid.average_rgb()
    total = len(colors)
    _, counts = np.unique(colors, axis=0, return_counts=True)
    unique = len(counts)

    probabilities = counts / total
    entropy = float(-np.sum(probabilities * np.log2(probabilities)))
    max_entropy = math.log2(unique) if unique > 1 else 0.0
    normalized_entropy = entropy / max_entropy if max_entropy > 0 else 0.0

    dominant = int(np.sum(counts > total * DOMINANT_SHARE))

    mean_count = total / unique
    std = float(np.sqrt(np.mean((counts - mean_count) ** 2)))
    pattern_density = 1.0 - std / mean_count

    density_factor = min(total / 1000, 1.0)
    variety_factor = min(unique / 100, 1.0)
    optimal = int(math.floor(12 + unique * 0.3 + density_factor * 15 + variety_factor * 20 + 0.5))
    optimal = max(8, min(optimal, 80))

    maximum = max(1, min(total // 4, unique, catalog_size))

    return ColorCountAdvice(
        optimal=min(optimal, maximum),
        maximum=max(maximum, optimal),
        total_cells=total,
        unique_colors=unique,
        complexity=normalized_entropy,
        dominant_colors=dominant,
        pattern_density=pattern_density,
    )
