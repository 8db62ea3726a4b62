# Copyright (c) 2026 Beadgrid
# SPDX-License-Identifier: MIT

"""
Plain-text symbol assignment report.

Summarizes an assignment for review: symbol statistics, kind mix and the
first few residual conflicts.
"""

from __future__ import annotations

from typing import Optional

from beadgrid.schema import Pattern, SymbolAssignment
from beadgrid.symbols.placement import assignment_stats, validate_assignment
from beadgrid.symbols.similarity import SimilarityConfig

# Conflicts listed before the report truncates
MAX_LISTED_CONFLICTS = 5


def to_report(
    assignment: SymbolAssignment,
    pattern: Pattern,
    *,
    similarity: Optional[SimilarityConfig] = None,
    inventory_size: Optional[int] = None,
) -> str:
    """Render a human-readable assignment report.

    Args:
        assignment: The assignment to report on.
        pattern: Pattern the assignment was computed for.
        similarity: Similarity settings used to detect conflicts.
        inventory_size: Symbols available, shown next to symbols used.

    Returns:
        Multi-line string.

    Example::

        Symbol Assignment Report
        ========================

        Statistics:
          - Colors: 4
          - Symbols used: 4/815
          - Average complexity: 2.25
          - Conflicts: 0

        Kinds:
          - number: 4

        No conflicts detected.
    """
    validation = validate_assignment(assignment, pattern, similarity=similarity)
    stats = assignment_stats(assignment, pattern, validation=validation)

    distinct = len({s.id for s in assignment.symbols.values()})
    used = f"{distinct}/{inventory_size}" if inventory_size else str(distinct)

    lines = [
        "Symbol Assignment Report",
        "========================",
        "",
        "Statistics:",
        f"  - Colors: {stats.total_symbols}",
        f"  - Symbols used: {used}",
        f"  - Average complexity: {stats.average_complexity:.2f}",
        f"  - Conflicts: {stats.conflict_count}",
    ]
    if stats.degraded:
        lines.append(
            f"  - Reused symbols for: {', '.join(assignment.reused_codes)}"
        )

    lines.extend(["", "Kinds:"])
    for kind, count in stats.kind_distribution.items():
        lines.append(f"  - {kind}: {count}")

    lines.append("")
    if validation.conflicts:
        lines.append("Conflicts:")
        for conflict in validation.conflicts[:MAX_LISTED_CONFLICTS]:
            lines.append(f"  - {conflict.describe(assignment)}")
        remaining = validation.conflict_count - MAX_LISTED_CONFLICTS
        if remaining > 0:
            lines.append(f"  ... and {remaining} more")
    else:
        lines.append("No conflicts detected.")

    return "\n".join(lines)
