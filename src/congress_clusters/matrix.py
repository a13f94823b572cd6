"""Square dissimilarity matrix with its shape checked once at construction.

Vote-difference matrices arrive either as full N x N tables (parquet or CSV
exports) or as ragged lower-triangular rows, where row i holds distances to
members 0..i-1 only. Both are normalized here into a symmetric numpy array so
downstream code never has to bounds-check.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from congress_clusters.config import NO_LINK


class DissimilarityMatrix:
    """Symmetric integer matrix of pairwise vote differences.

    Only the lower triangle of the input is trusted. Short rows are padded with
    zeros and an asymmetric square input is mirrored from its lower triangle;
    both repairs are reported as diagnostics rather than errors, since the
    matrix is produced by our own vote tally.

    Attributes:
        values: N x N int64 array, symmetric, zero diagonal.
        labels: Optional per-row labels (legislator slugs).
        diagnostics: (kind, message) pairs recorded while normalizing.
    """

    def __init__(
        self,
        rows: np.ndarray | Sequence[Sequence[float]],
        labels: list[str] | None = None,
    ) -> None:
        self.diagnostics: list[tuple[str, str]] = []
        self.values = self._normalize(rows)
        if labels is not None and len(labels) != len(self.values):
            raise ValueError(
                f"Got {len(labels)} labels for a {len(self.values)}-row matrix"
            )
        self.labels = labels

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, index: int) -> np.ndarray:
        return self.values[index]

    def __repr__(self) -> str:
        return f"DissimilarityMatrix(n={len(self)})"

    def distance(self, a: int, b: int) -> int:
        return int(self.values[a, b])

    def _warn(self, kind: str, message: str) -> None:
        print(f"  WARNING: {message}")
        self.diagnostics.append((kind, message))

    def _normalize(self, rows: np.ndarray | Sequence[Sequence[float]]) -> np.ndarray:
        if isinstance(rows, np.ndarray):
            if rows.ndim != 2 and rows.size > 0:
                raise ValueError(f"Expected a 2D matrix, got {rows.ndim} dimensions")
            rows = [list(r) for r in rows] if rows.size > 0 else []

        n = len(rows)
        out = np.zeros((n, n), dtype=np.int64)
        if n == 0:
            return out

        square = all(len(row) == n for row in rows)
        for i in range(1, n):
            row = np.asarray(rows[i], dtype=float)
            if row.ndim != 1:
                raise ValueError(f"Row {i} is not one-dimensional")
            width = min(len(row), i)
            if width and not np.isfinite(row[:width]).all():
                raise ValueError(f"Row {i} contains non-finite distances")
            if width < i:
                self._warn(
                    "ragged_row",
                    f"Row {i} has {width} of {i} lower-triangle columns; missing set to 0",
                )
            out[i, :width] = np.rint(row[:width]).astype(np.int64)

        if square:
            full = np.rint(np.asarray(rows, dtype=float)).astype(np.int64)
            upper = full[np.triu_indices(n, k=1)]
            mirrored = full.T[np.triu_indices(n, k=1)]
            if not np.array_equal(upper, mirrored):
                self._warn(
                    "asymmetric",
                    "Matrix is not symmetric; using the lower triangle",
                )

        if (out < 0).any():
            self._warn("negative", "Matrix has negative distances")

        return out + out.T


def filter_large_mismatch(values: np.ndarray, threshold: int) -> np.ndarray:
    """Replace distances above threshold with NO_LINK.

    Large differences add layout work without changing the picture much, so
    they are dropped before layout and again before drawing links.
    """
    filtered = np.array(values, dtype=np.int64, copy=True)
    filtered[filtered > threshold] = NO_LINK
    return filtered
