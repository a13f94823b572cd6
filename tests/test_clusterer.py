"""
Tests for the complete-link merge loop in clusterer.py.

Covers the stopping rules (noise threshold, minimum group count), partition
invariants on random matrices, merge-distance monotonicity, diagnostics for
inconsistent input, trace output, and agreement with scipy's complete linkage.

Run: uv run pytest tests/test_clusterer.py -v
"""

import numpy as np
import pytest
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import squareform

from congress_clusters.clusterer import (
    AgglomerativeClusterer,
    form_clusters,
    merge_cluster_distances,
)
from congress_clusters.distance_index import ClusterDistanceIndex
from congress_clusters.matrix import DissimilarityMatrix
from congress_clusters.models import ClusteringParams, ClusterResult, Legislator

# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def four_members() -> list[list[int]]:
    """0-1 and 0-2 at 10, 1-2 at 50, member 3 at 90 from everyone."""
    return [[], [10], [10, 50], [90, 90, 90]]


def _as_sorted(groups: list[set[int]]) -> list[list[int]]:
    return sorted(sorted(g) for g in groups)


def _random_matrix(n: int, seed: int, high: int = 1000) -> np.ndarray:
    rng = np.random.default_rng(seed)
    upper = rng.integers(0, high, size=(n, n))
    full = np.triu(upper, k=1)
    return full + full.T


def _distinct_matrix(n: int, seed: int) -> np.ndarray:
    """Symmetric matrix whose off-diagonal distances are all different."""
    rng = np.random.default_rng(seed)
    condensed = rng.permutation(n * (n - 1) // 2) * 3 + 1
    return squareform(condensed).astype(np.int64)


# ── Scenarios ────────────────────────────────────────────────────────────────


class TestScenarios:
    """Small hand-checked inputs."""

    def test_close_pair_merges_far_member_stays(self, four_members: list[list[int]]) -> None:
        """Threshold 20: 0 and 1 merge first (tie with 0-2 goes to the lower pair).

        The merged {0,1} is then 50 from 2 (complete link), above the threshold.
        """
        result = form_clusters(four_members, noise_threshold=20, min_groups=1)
        assert _as_sorted(result.groups) == [[0, 1], [2], [3]]
        assert len(result.merges) == 1

    def test_threshold_at_complete_link_distance(self, four_members: list[list[int]]) -> None:
        """Raising the threshold to 50 lets member 2 join; 3 stays out."""
        result = form_clusters(four_members, noise_threshold=50)
        assert _as_sorted(result.groups) == [[0, 1, 2], [3]]
        assert result.merge_distances == [10, 50]

    def test_everything_merges_under_high_threshold(self, four_members: list[list[int]]) -> None:
        result = form_clusters(four_members, noise_threshold=1000)
        assert _as_sorted(result.groups) == [[0, 1, 2, 3]]
        assert result.merge_distances == [10, 50, 90]

    def test_two_members(self) -> None:
        result = form_clusters([[0, 5], [5, 0]], noise_threshold=100, min_groups=1)
        assert _as_sorted(result.groups) == [[0, 1]]

    def test_single_member(self) -> None:
        result = form_clusters([[0]])
        assert _as_sorted(result.groups) == [[0]]
        assert result.merges == []
        assert result.diagnostics == []

    def test_empty_matrix(self, capsys) -> None:
        """Empty input is the one hard stop: empty result, printed diagnostic."""
        result = form_clusters([])
        assert result.groups == []
        assert result.diagnostic_kinds() == ["empty_input"]
        assert "matrix of vote differences is empty" in capsys.readouterr().out

    def test_survivor_is_lower_id(self, four_members: list[list[int]]) -> None:
        result = form_clusters(four_members, noise_threshold=1000)
        for step in result.merges:
            assert step.survivor < step.absorbed

    def test_default_threshold(self) -> None:
        """Default noise threshold is 100."""
        matrix = [[0, 100, 101], [100, 0, 101], [101, 101, 0]]
        result = form_clusters(matrix)
        assert _as_sorted(result.groups) == [[0, 1], [2]]

    def test_accepts_dissimilarity_matrix(self, four_members: list[list[int]]) -> None:
        result = form_clusters(DissimilarityMatrix(four_members), noise_threshold=20)
        assert _as_sorted(result.groups) == [[0, 1], [2], [3]]

    def test_float_rows_match_wrapped_matrix(self) -> None:
        """Raw rows and a DissimilarityMatrix round fractional scores the same way."""
        rows = [[0, 10.6], [10.6, 0]]
        raw = form_clusters(rows, noise_threshold=10)
        wrapped = form_clusters(DissimilarityMatrix(rows), noise_threshold=10)
        assert _as_sorted(raw.groups) == [[0], [1]]
        assert _as_sorted(wrapped.groups) == _as_sorted(raw.groups)
        assert form_clusters(rows, noise_threshold=11).merge_distances == [11]


# ── Stopping rules ───────────────────────────────────────────────────────────


class TestStoppingRules:
    """Noise threshold and minimum group floor."""

    def test_threshold_below_minimum_keeps_singletons(self) -> None:
        matrix = _random_matrix(8, seed=1, high=500) + 200
        np.fill_diagonal(matrix, 0)
        result = form_clusters(matrix, noise_threshold=199)
        assert _as_sorted(result.groups) == [[i] for i in range(8)]
        assert result.merges == []

    @pytest.mark.parametrize("threshold", [0, 150, 400, 800])
    def test_no_merge_above_threshold(self, threshold: int) -> None:
        result = form_clusters(_random_matrix(15, seed=threshold), noise_threshold=threshold)
        assert all(d <= threshold for d in result.merge_distances)

    @pytest.mark.parametrize("floor", [2, 3, 5])
    def test_min_groups_floor(self, floor: int) -> None:
        """All-zero distances would collapse to one cluster without the floor."""
        zeros = np.zeros((10, 10), dtype=int)
        result = form_clusters(zeros, noise_threshold=100, min_groups=floor)
        assert len(result) == floor

    def test_floor_below_one_is_raised(self) -> None:
        result = form_clusters(np.zeros((4, 4), dtype=int), min_groups=0)
        assert len(result) == 1

    def test_floor_above_member_count(self) -> None:
        result = form_clusters(np.zeros((3, 3), dtype=int), min_groups=10)
        assert len(result) == 3


# ── Invariants ───────────────────────────────────────────────────────────────


class TestInvariants:
    """Properties that hold for any well-formed matrix."""

    @pytest.mark.parametrize("seed", range(6))
    def test_partition_covers_all_members(self, seed: int) -> None:
        n = 12 + seed
        result = form_clusters(_random_matrix(n, seed), noise_threshold=400)
        members = [m for group in result.groups for m in group]
        assert sorted(members) == list(range(n))
        assert all(group for group in result.groups)
        assert len(result.merges) <= n - 1
        assert len(result) == n - len(result.merges)

    @pytest.mark.parametrize("seed", range(6))
    def test_merge_distances_never_decrease(self, seed: int) -> None:
        result = form_clusters(_random_matrix(20, seed), noise_threshold=1000)
        distances = result.merge_distances
        assert distances == sorted(distances)

    @pytest.mark.parametrize("seed", range(4))
    def test_well_formed_input_has_no_diagnostics(self, seed: int) -> None:
        result = form_clusters(_random_matrix(15, seed), noise_threshold=1000)
        assert result.diagnostics == []

    @pytest.mark.parametrize("seed", range(3))
    def test_members_within_threshold(self, seed: int) -> None:
        """Complete link: every pair inside a cluster is within the threshold."""
        matrix = _random_matrix(18, seed)
        result = form_clusters(matrix, noise_threshold=300)
        for group in result.groups:
            members = sorted(group)
            for i in members:
                for j in members:
                    assert matrix[i, j] <= 300


# ── Reference implementation ─────────────────────────────────────────────────


class TestAgainstScipy:
    """With no tied distances, results match scipy complete linkage cut at T."""

    @pytest.mark.parametrize("seed,threshold", [(0, 40), (1, 100), (2, 180), (3, 250)])
    def test_same_partition(self, seed: int, threshold: int) -> None:
        matrix = _distinct_matrix(14, seed)
        result = form_clusters(matrix, noise_threshold=threshold)

        z = linkage(squareform(matrix.astype(float)), method="complete")
        labels = fcluster(z, t=threshold, criterion="distance")
        expected = {}
        for member, label in enumerate(labels):
            expected.setdefault(label, set()).add(member)

        assert _as_sorted(result.groups) == _as_sorted(list(expected.values()))

    def test_same_merge_heights(self) -> None:
        matrix = _distinct_matrix(10, seed=7)
        result = form_clusters(matrix, noise_threshold=10**6)
        z = linkage(squareform(matrix.astype(float)), method="complete")
        assert result.merge_distances == [int(h) for h in z[:, 2]]


# ── Inconsistent input ───────────────────────────────────────────────────────


class TestInconsistentInput:
    """Data problems are reported and repaired; the run still finishes."""

    def test_one_sided_pair_reported(self, capsys) -> None:
        """Row 2 lacks its 1-2 entry, so merging 0 and 1 finds one-sided data."""
        result = form_clusters([[], [1], [2]], noise_threshold=100)
        assert result.diagnostic_kinds() == ["ragged_row", "partial_data"]
        assert _as_sorted(result.groups) == [[0, 1], [2]]
        assert "Clustering error" in capsys.readouterr().out

    def test_one_sided_pair_on_absorbed_side(self) -> None:
        """Survivor lacks data for cluster 2; the absorbed side's leftover is erased."""
        index = ClusterDistanceIndex([[], [1], [5, 2]])
        index.erase(0, 2)
        result = ClusterResult()
        merge_cluster_distances(index, survivor=0, absorbed=1, result=result)
        assert result.diagnostic_kinds() == ["partial_data"]
        assert not index.has_distance(1, 2)
        assert index.minimum_distance_pair() is None

    def test_missing_on_both_sides_is_silent(self) -> None:
        """An empty row leaves member 2 with no data at all; nothing to reconcile."""
        result = form_clusters([[], [1], []], noise_threshold=100)
        assert _as_sorted(result.groups) == [[0, 1], [2]]
        assert result.diagnostic_kinds() == ["ragged_row"]


# ── Clusterer object and trace ───────────────────────────────────────────────


class TestClusterer:
    """AgglomerativeClusterer configuration and trace output."""

    def test_default_params(self) -> None:
        clusterer = AgglomerativeClusterer()
        assert clusterer.params == ClusteringParams()
        assert clusterer.params.noise_threshold == 100
        assert clusterer.params.min_groups == 1

    def test_params_are_frozen(self) -> None:
        params = ClusteringParams()
        with pytest.raises(AttributeError):
            params.noise_threshold = 5  # type: ignore[misc]

    def test_runs_are_independent(self, four_members: list[list[int]]) -> None:
        clusterer = AgglomerativeClusterer(ClusteringParams(noise_threshold=20))
        first = clusterer.run(four_members)
        second = clusterer.run(four_members)
        assert _as_sorted(first.groups) == _as_sorted(second.groups)

    def test_trace_output(self, four_members: list[list[int]], capsys) -> None:
        legislators = [
            Legislator("Ann", "Democrat", "KS"),
            Legislator("Bob", "Republican", "TX"),
            Legislator("Cy", "Republican", "OH"),
            Legislator("Di", "Independent", "VT"),
        ]
        AgglomerativeClusterer(ClusteringParams(noise_threshold=20), trace=True).run(
            four_members, legislators
        )
        out = capsys.readouterr().out
        assert "Initial group distances" in out
        assert "Merge cluster 0 and 1" in out
        assert "Final groups:" in out
        assert "0[D:KS] 1[R:TX]" in out

    def test_trace_off_is_quiet(self, four_members: list[list[int]], capsys) -> None:
        form_clusters(four_members, noise_threshold=20)
        assert capsys.readouterr().out == ""
