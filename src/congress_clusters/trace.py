"""Plain-text dumps of clustering state for trace mode.

Wide matrices wrap badly on a terminal, so the distance table is printed in
column blocks that fit within SCREEN_WIDTH.
"""

from __future__ import annotations

from collections.abc import Sequence

from congress_clusters.config import PARTY_BUCKETS, SCREEN_WIDTH, TRACE_CELL_WIDTH
from congress_clusters.distance_index import ClusterDistanceIndex
from congress_clusters.models import ClusterSummary, Legislator


def _columns_per_block(width: int = SCREEN_WIDTH) -> int:
    # Terminals often wrap at exactly the line width, so stay one short.
    # One column is reserved for the row numbers.
    return max((width - 1) // (TRACE_CELL_WIDTH + 1) - 1, 1)


def format_distance_table(index: ClusterDistanceIndex, width: int = SCREEN_WIDTH) -> str:
    """Render the lower triangle of the cluster distance table.

    Row r lists distances to clusters 0..r-1. Erased pairs print as 0.
    """
    n_slots = index.cluster_id_upper_bound()
    max_columns = n_slots - 1
    if max_columns < 1:
        return "  (no cluster distances)"

    per_block = _columns_per_block(width)
    cell = TRACE_CELL_WIDTH
    lines: list[str] = []
    for start in range(0, max_columns, per_block):
        end = min(start + per_block, max_columns)
        lines.append("")
        header = "".join(f"{c:>{cell}d} " for c in range(start, end))
        lines.append((" " * (cell + 1) + header).rstrip())
        for row in range(1, n_slots):
            cells = "".join(
                f"{index.distance(row, c):>{cell}d} " for c in range(start, min(end, row))
            )
            lines.append(f"{row:>{cell}d} {cells}".rstrip())
    return "\n".join(lines)


def legislator_label(index: int, legislators: Sequence[Legislator] | None) -> str:
    """Member label for dumps: '12[D:KS]' with metadata, '12' without."""
    if legislators is None or index >= len(legislators):
        return str(index)
    person = legislators[index]
    return f"{index}[{person.party_initial}:{person.state}]"


def format_cluster_list(
    groups: Sequence[set[int]],
    legislators: Sequence[Legislator] | None = None,
) -> str:
    """One line per cluster listing its members in ascending order."""
    lines = []
    for i, group in enumerate(groups):
        members = " ".join(legislator_label(m, legislators) for m in sorted(group))
        lines.append(f"{i}: {members}")
    return "\n".join(lines)


def format_cluster_summaries(summaries: Sequence[ClusterSummary]) -> str:
    """One line per cluster: members, non-zero party counts, non-zero region counts."""
    lines = []
    for i, summary in enumerate(summaries):
        parts = [str(m) for m in sorted(summary.members)]
        parts += [
            f"{party}:{n}" for party, n in zip(PARTY_BUCKETS, summary.parties) if n > 0
        ]
        regions = [f"{r}: {n}" for r, n in enumerate(summary.regions) if n > 0]
        lines.append(f"{i}: {' '.join(parts)} Regions: {' '.join(regions)}".rstrip())
    return "\n".join(lines)
