"""Distances between live clusters, indexed two ways at once.

The merge loop needs two very different queries against the same relation:
"what is the distance between clusters a and b" and "which pair is closest
overall". A lookup table answers the first in O(1) and a binary heap answers
the second in amortized O(1), so this class keeps both and updates them
together. Nothing outside this module touches either structure.

Heap entries are never removed in place. Each pair in the lookup table holds a
generation stamp naming its one live heap entry; erasing or updating a pair
drops or replaces the stamp, which turns the old heap entry stale without
affecting any other pair. Stale entries are discarded when they surface at the
top of the heap, and the heap is rebuilt when they outnumber live ones.

Cost per merge: at most N incident pairs are updated at O(log N) each, so N-1
merges cost O(N^2 log N), the known bound for complete-link clustering.
"""

from __future__ import annotations

import heapq
from collections.abc import Sequence

# Rebuild the heap when it holds this many times more entries than live pairs
_COMPACT_FACTOR = 3

ClusterPair = tuple[int, int]


def as_distance(value: float) -> int:
    """Round a raw score to the integer scale, half to even like np.rint."""
    return int(round(float(value)))


def canonical_pair(a: int, b: int) -> ClusterPair:
    """Order a pair so the lower cluster id comes first."""
    return (a, b) if a < b else (b, a)


class ClusterDistanceIndex:
    """Pairwise distances between clusters with a fast global minimum.

    Built from the initial member distance matrix, where every member is its
    own cluster. Only the lower triangle (row i, columns 0..i-1) is read.

    Ties on distance resolve to the lowest canonical pair: heap entries compare
    as (distance, low id, high id).

    Copying is refused; the generation stamps only make sense inside the
    instance that issued them.
    """

    def __init__(
        self,
        matrix: Sequence[Sequence[float]],
        diagnostics: list[tuple[str, str]] | None = None,
    ) -> None:
        self.diagnostics = diagnostics if diagnostics is not None else []
        self._heap: list[tuple[int, int, int, int]] = []
        self._handles: dict[ClusterPair, tuple[int, int]] = {}
        self._generation = 0
        self._upper_bound = 0

        n = len(matrix)
        if n < 2:
            self._warn("empty_input", "Cluster merge failed, initial distance data is empty")
            return

        self._upper_bound = n
        for high in range(1, n):
            row = matrix[high]
            width = min(len(row), high)
            for low in range(width):
                self._heap.append(self._insert((low, high), as_distance(row[low])))
            if width < high:
                self._warn(
                    "ragged_row",
                    f"Cluster distance setup: row {high} has only {width} of {high} columns",
                )
        heapq.heapify(self._heap)

    def __copy__(self):
        raise TypeError("ClusterDistanceIndex cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("ClusterDistanceIndex cannot be copied")

    def __len__(self) -> int:
        return len(self._handles)

    def __repr__(self) -> str:
        return (
            f"ClusterDistanceIndex(clusters={self._upper_bound}, "
            f"pairs={len(self._handles)})"
        )

    # ── Queries ──────────────────────────────────────────────────────────────

    def cluster_id_upper_bound(self) -> int:
        """Number of cluster slots ever allocated, emptied ones included."""
        return self._upper_bound

    def has_distance(self, a: int, b: int) -> bool:
        return canonical_pair(a, b) in self._handles

    def distance(self, a: int, b: int) -> int:
        """Stored distance for the pair, or 0 when there is no data."""
        handle = self._handles.get(canonical_pair(a, b))
        return handle[0] if handle is not None else 0

    def minimum_distance_pair(self) -> ClusterPair | None:
        """Closest live pair, or None once every pair has been erased."""
        heap = self._heap
        while heap:
            _, low, high, generation = heap[0]
            if self._is_live(low, high, generation):
                return (low, high)
            heapq.heappop(heap)
        return None

    # ── Mutations ────────────────────────────────────────────────────────────

    def erase(self, a: int, b: int) -> None:
        """Forget a pair's distance. Does nothing if the pair has no data."""
        if self._handles.pop(canonical_pair(a, b), None) is not None:
            self._maybe_compact()

    def update(self, a: int, b: int, distance: int) -> None:
        """Replace a pair's distance. Does nothing if the pair has no data.

        Complete-link distances can only grow as clusters merge, so a smaller
        value is reported as a warning. It is still applied.
        """
        pair = canonical_pair(a, b)
        handle = self._handles.get(pair)
        if handle is None:
            return
        distance = as_distance(distance)
        if distance < handle[0]:
            self._warn(
                "distance_shrink",
                f"Distance reduced to {distance} for cluster pair {pair} (was {handle[0]})",
            )
        heapq.heappush(self._heap, self._insert(pair, distance))
        self._maybe_compact()

    # ── Internals ────────────────────────────────────────────────────────────

    def _insert(self, pair: ClusterPair, distance: int) -> tuple[int, int, int, int]:
        self._generation += 1
        self._handles[pair] = (distance, self._generation)
        return (distance, pair[0], pair[1], self._generation)

    def _is_live(self, low: int, high: int, generation: int) -> bool:
        handle = self._handles.get((low, high))
        return handle is not None and handle[1] == generation

    def _maybe_compact(self) -> None:
        if len(self._heap) > _COMPACT_FACTOR * max(len(self._handles), 1):
            self._heap = [
                (d, low, high, gen) for (low, high), (d, gen) in self._handles.items()
            ]
            heapq.heapify(self._heap)

    def _warn(self, kind: str, message: str) -> None:
        print(f"  WARNING: {message}")
        self.diagnostics.append((kind, message))
