"""Complete-link agglomerative clustering of legislators.

No two members vote identically on everything (absences alone guarantee
that), so small vote differences are noise. Members whose differences all
fall under a noise threshold are grouped and treated as one voting record.
Grouping also cuts the node count for the force-directed layout, whose cost
grows much faster than linearly with the number of nodes.

Complete link: the distance between two clusters is the largest distance
between any member of one and any member of the other. After each merge the
survivor's distance to every other cluster becomes the larger of the two old
distances, so no distance is ever recomputed from the member matrix.
"""

from __future__ import annotations

from collections.abc import Sequence

from congress_clusters.distance_index import ClusterDistanceIndex
from congress_clusters.models import ClusteringParams, ClusterResult, Legislator, MergeStep
from congress_clusters.trace import format_cluster_list, format_distance_table


class AgglomerativeClusterer:
    """Runs the merge loop for one parameter set.

    Each run builds and owns its own ClusterDistanceIndex. Problems found in
    the input are printed and recorded on the result; only an empty matrix
    stops a run, and even then the caller gets an empty result back.
    """

    def __init__(self, params: ClusteringParams | None = None, trace: bool = False) -> None:
        self.params = params or ClusteringParams()
        self.trace = trace

    def run(
        self,
        matrix: Sequence[Sequence[float]],
        legislators: Sequence[Legislator] | None = None,
    ) -> ClusterResult:
        """Group members whose complete-link distance stays within the noise threshold.

        Stops when the closest pair is farther apart than the threshold or when
        the number of groups reaches the minimum. Returns the non-empty groups
        in ascending order of their surviving slot.
        """
        result = ClusterResult()
        if len(matrix) == 0:
            _warn(result, "empty_input", "Grouping failed, matrix of vote differences is empty")
            return result

        groups: list[set[int]] = [{i} for i in range(len(matrix))]
        # A lone member has nothing to merge
        if len(groups) == 1:
            result.groups = groups
            return result

        index = ClusterDistanceIndex(matrix, diagnostics=result.diagnostics)
        if self.trace:
            print("Initial group distances")
            print(format_distance_table(index))

        min_groups = max(self.params.min_groups, 1)
        live = len(groups)
        while live > min_groups:
            pair = index.minimum_distance_pair()
            if pair is None:
                break
            merge_distance = index.distance(*pair)
            if merge_distance > self.params.noise_threshold:
                break

            survivor, absorbed = min(pair), max(pair)
            groups[survivor] |= groups[absorbed]
            groups[absorbed] = set()
            merge_cluster_distances(index, survivor, absorbed, result)
            result.merges.append(MergeStep(survivor, absorbed, merge_distance))
            live -= 1

            if self.trace:
                print(f"Merge cluster {survivor} and {absorbed} at distance {merge_distance}")
                print("New distances:")
                print(format_distance_table(index))

        # Absorbed slots are left empty
        result.groups = [group for group in groups if group]
        if self.trace:
            print("Final groups:")
            print(format_cluster_list(result.groups, legislators))
        return result


def merge_cluster_distances(
    index: ClusterDistanceIndex,
    survivor: int,
    absorbed: int,
    result: ClusterResult,
) -> None:
    """Fold the absorbed cluster's distances into the survivor's.

    For every other live cluster c, distance(survivor, c) becomes
    max(distance(survivor, c), distance(absorbed, c)) and the absorbed entry
    is erased. A pair with data on only one side means the table is already
    inconsistent; the leftover entry is erased and the problem reported.
    """
    index.erase(survivor, absorbed)
    for other in range(index.cluster_id_upper_bound()):
        if other == survivor or other == absorbed:
            continue
        has_survivor = index.has_distance(other, survivor)
        has_absorbed = index.has_distance(other, absorbed)

        if not has_survivor:
            if has_absorbed:
                _warn(
                    result,
                    "partial_data",
                    f"Clustering error. Distance exists for ({other},{absorbed}) "
                    f"but not ({other},{survivor})",
                )
                index.erase(other, absorbed)
        elif not has_absorbed:
            _warn(
                result,
                "partial_data",
                f"Clustering error. Distance exists for ({other},{survivor}) "
                f"but not ({other},{absorbed})",
            )
            index.erase(other, survivor)
        else:
            absorbed_distance = index.distance(absorbed, other)
            if index.distance(survivor, other) < absorbed_distance:
                index.update(survivor, other, absorbed_distance)
            index.erase(absorbed, other)


def form_clusters(
    matrix: Sequence[Sequence[float]],
    noise_threshold: int | None = None,
    min_groups: int | None = None,
    trace: bool = False,
    legislators: Sequence[Legislator] | None = None,
) -> ClusterResult:
    """Cluster with default parameters, overriding threshold and floor if given."""
    defaults = ClusteringParams()
    params = ClusteringParams(
        noise_threshold=defaults.noise_threshold if noise_threshold is None else noise_threshold,
        min_groups=defaults.min_groups if min_groups is None else min_groups,
    )
    return AgglomerativeClusterer(params, trace=trace).run(matrix, legislators)


def _warn(result: ClusterResult, kind: str, message: str) -> None:
    print(f"  WARNING: {message}")
    result.diagnostics.append((kind, message))
