"""Summaries of a finished partition for layout and display.

The layout works on clusters, not members, so it needs the distance between
every pair of clusters and a description of who is in each one.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np
import polars as pl

from congress_clusters.config import PARTY_BUCKETS
from congress_clusters.matrix import DissimilarityMatrix
from congress_clusters.models import ClusterSummary, Legislator
from congress_clusters.regions import REGION_COUNT, region_for


def inter_cluster_distances(
    matrix: DissimilarityMatrix | np.ndarray,
    partition: Sequence[set[int]],
) -> np.ndarray:
    """Mean member-to-member distance for every pair of clusters.

    Rows and columns follow the order of ``partition``. Means are truncated to
    integers; with a sensible noise threshold clusters are large enough that
    the rounding is smaller than the noise already ignored. The diagonal is 0.
    """
    if not partition:
        print("  WARNING: Calculation of cluster distances failed, no clusters in list")
        return np.zeros((0, 0), dtype=np.int64)

    values = matrix.values if isinstance(matrix, DissimilarityMatrix) else np.asarray(matrix)
    k = len(partition)
    result = np.zeros((k, k), dtype=np.int64)
    if k == 1:
        return result

    members = [sorted(group) for group in partition]
    for i in range(k - 1):
        for j in range(i + 1, k):
            block = values[np.ix_(members[i], members[j])]
            mean = _truncated_mean(int(block.sum()), block.size)
            result[i, j] = mean
            result[j, i] = mean
    return result


def _truncated_mean(total: int, count: int) -> int:
    quotient = abs(total) // count
    return quotient if total >= 0 else -quotient


def party_bucket(party: str) -> int:
    """Index into PARTY_BUCKETS: Democrat, Republican, or anyone else."""
    initial = party[:1].upper() if party else ""
    if initial in PARTY_BUCKETS[:2]:
        return PARTY_BUCKETS.index(initial)
    return len(PARTY_BUCKETS) - 1


def demographic_summary(
    partition: Sequence[set[int]],
    legislators: Sequence[Legislator],
    region_of: Callable[[str], int] = region_for,
    region_count: int = REGION_COUNT,
) -> list[ClusterSummary]:
    """Count each cluster's members by party bucket and by region.

    ``region_of`` maps a state code to 1..region_count, or 0 when unknown.
    Members with no metadata are counted as other party, unknown region.
    """
    summaries: list[ClusterSummary] = []
    for group in partition:
        parties = [0] * len(PARTY_BUCKETS)
        regions = [0] * (region_count + 1)
        for member in group:
            if member >= len(legislators):
                print(f"  WARNING: No metadata for member {member}")
                parties[-1] += 1
                regions[0] += 1
                continue
            person = legislators[member]
            parties[party_bucket(person.party)] += 1
            region = region_of(person.state)
            regions[region if 0 <= region <= region_count else 0] += 1
        summaries.append(ClusterSummary(members=set(group), parties=parties, regions=regions))
    return summaries


def summary_frame(summaries: Sequence[ClusterSummary]) -> pl.DataFrame:
    """One row per cluster with member count, party mix, and region counts."""
    rows = []
    for cluster_id, summary in enumerate(summaries):
        n = summary.count
        n_d, n_r, n_other = summary.parties
        row = {
            "cluster": cluster_id,
            "n_legislators": n,
            "n_democrat": n_d,
            "n_republican": n_r,
            "n_other": n_other,
            "pct_republican": n_r / n * 100 if n > 0 else 0.0,
            "members": sorted(summary.members),
        }
        for region, count in enumerate(summary.regions):
            row[f"region_{region}"] = count
        rows.append(row)
    return pl.DataFrame(rows)
