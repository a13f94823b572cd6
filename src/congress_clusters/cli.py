"""Command-line interface for clustering legislators by vote differences.

Usage:
  congress-clusters MATRIX [--legislators CSV] [--noise-threshold INT]
      [--min-groups INT] [--difference-limit INT] [--trace]

Outputs (in <results-root>/<name>/clusters/<date>/):
  - data/:  Parquet files (cluster assignments, inter-cluster distances, summary)
  - run_info.json, run_log.txt
"""

from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np
import polars as pl

from congress_clusters.clusterer import AgglomerativeClusterer
from congress_clusters.config import (
    DEFAULT_MIN_GROUPS,
    DEFAULT_NOISE_THRESHOLD,
    MEANINGFUL_DIFFERENCE_LIMIT,
    STRONG_LINK_LIMIT,
)
from congress_clusters.matrix import DissimilarityMatrix, filter_large_mismatch
from congress_clusters.models import ClusteringParams, ClusterResult, Legislator
from congress_clusters.regions import REGION_NAMES
from congress_clusters.run_context import RunContext
from congress_clusters.summary import demographic_summary, inter_cluster_distances, summary_frame
from congress_clusters.trace import format_cluster_summaries

SLUG_COL = "legislator_slug"

CLUSTERS_PRIMER = """\
# Vote-Difference Clusters

## Purpose

Groups legislators whose voting records differ only by noise, using
complete-link agglomerative clustering on a pairwise vote-difference matrix.
Every pair of members inside a cluster differs by at most the noise
threshold. Fewer, larger nodes keep the force-directed layout tractable.

## Method

1. Every legislator starts as a cluster of one.
2. The two closest clusters merge. The new cluster's distance to every other
   cluster is the larger of the two old distances (complete link).
3. Repeat until the closest pair exceeds the noise threshold, or the number
   of clusters reaches the minimum group count.

## Outputs

| File | Description |
|------|-------------|
| `data/cluster_assignments.parquet` | Member index, slug, and cluster id |
| `data/cluster_distances.parquet` | Mean inter-cluster distance; -1 above the difference limit |
| `data/cluster_strong_links.parquet` | Same, keeping only links at or below the strong-link limit |
| `data/cluster_summary.parquet` | Party and region counts per cluster (needs `--legislators`) |
| `run_info.json` | Git commit, timestamps, parameters, outcome |
| `run_log.txt` | Console output, including clustering warnings |

## Interpretation Guide

- Distances are on the vote-difference scale (0-1000).
- Cluster ids follow output order, which carries no meaning.
- A warning about a shrinking distance or one-sided pair data means the input
  matrix was inconsistent; the run still completes.
"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="congress-clusters",
        description="Cluster legislators whose vote differences are below a noise threshold.",
    )
    parser.add_argument("matrix", type=Path, help="Vote-difference matrix (.parquet or .csv)")
    parser.add_argument(
        "--legislators",
        type=Path,
        default=None,
        help="Legislator CSV with name/full_name, party, state (and optional slug)",
    )
    parser.add_argument(
        "--noise-threshold",
        type=int,
        default=DEFAULT_NOISE_THRESHOLD,
        help=f"Largest distance still treated as noise (default: {DEFAULT_NOISE_THRESHOLD})",
    )
    parser.add_argument(
        "--min-groups",
        type=int,
        default=DEFAULT_MIN_GROUPS,
        help=f"Stop merging at this many clusters (default: {DEFAULT_MIN_GROUPS})",
    )
    parser.add_argument(
        "--difference-limit",
        type=int,
        default=MEANINGFUL_DIFFERENCE_LIMIT,
        help=(
            "Drop inter-cluster links above this distance "
            f"(default: {MEANINGFUL_DIFFERENCE_LIMIT})"
        ),
    )
    parser.add_argument(
        "--strong-link-limit",
        type=int,
        default=STRONG_LINK_LIMIT,
        help=(
            "Keep only links at or below this distance for display "
            f"(default: {STRONG_LINK_LIMIT})"
        ),
    )
    parser.add_argument("--trace", action="store_true", help="Dump distance tables per merge")
    parser.add_argument(
        "--results-root",
        type=Path,
        default=Path("results"),
        help="Root directory for outputs (default: results/)",
    )
    parser.add_argument(
        "--name",
        default=None,
        help="Dataset name for the output directory (default: matrix file stem)",
    )

    args = parser.parse_args(argv)
    if args.noise_threshold < 0:
        parser.error("--noise-threshold must be non-negative")
    if args.difference_limit < 0 or args.strong_link_limit < 0:
        parser.error("link limits must be non-negative")
    return args


def print_header(title: str) -> None:
    width = 80
    print(f"\n{'=' * width}")
    print(f"  {title}")
    print(f"{'=' * width}")


# ── Phase 1: Load Data ──────────────────────────────────────────────────────


def _read_table(path: Path) -> pl.DataFrame:
    if path.suffix == ".parquet":
        return pl.read_parquet(path)
    return pl.read_csv(path)


def load_matrix(path: Path) -> DissimilarityMatrix:
    """Load a vote-difference matrix, using the slug column (if any) as labels."""
    df = _read_table(path)
    labels = df[SLUG_COL].cast(pl.Utf8).to_list() if SLUG_COL in df.columns else None
    data = df.drop(SLUG_COL) if SLUG_COL in df.columns else df

    null_count = sum(data.null_count().row(0))
    if null_count > 0:
        print(f"  Filled {null_count} missing distances with 0")
        data = data.fill_null(0)

    return DissimilarityMatrix(data.to_numpy(), labels=labels)


def load_legislators(path: Path, slugs: list[str] | None = None) -> list[Legislator]:
    """Load legislator metadata in matrix row order.

    When both the matrix and the CSV carry slugs, rows are matched by slug;
    otherwise the CSV is assumed to already be in matrix order.
    """
    df = _read_table(path)
    name_col = "full_name" if "full_name" in df.columns else "name"
    people = [
        Legislator(
            name=str(row.get(name_col) or ""),
            party=str(row.get("party") or ""),
            state=str(row.get("state") or ""),
            slug=str(row.get("slug") or row.get(SLUG_COL) or ""),
        )
        for row in df.iter_rows(named=True)
    ]

    if slugs is None or not any(p.slug for p in people):
        return people

    by_slug = {p.slug: p for p in people}
    missing = [s for s in slugs if s not in by_slug]
    if missing:
        print(f"  WARNING: {len(missing)} matrix rows have no legislator metadata")
    return [by_slug.get(s, Legislator(name="", party="", state="", slug=s)) for s in slugs]


# ── Phase 3: Outputs ────────────────────────────────────────────────────────


def assignments_frame(result: ClusterResult, labels: list[str] | None) -> pl.DataFrame:
    rows = []
    for cluster_id, group in enumerate(result.groups):
        for member in sorted(group):
            rows.append(
                {
                    "member": member,
                    SLUG_COL: labels[member] if labels else str(member),
                    "cluster": cluster_id,
                }
            )
    if not rows:
        return pl.DataFrame(schema={"member": pl.Int64, SLUG_COL: pl.Utf8, "cluster": pl.Int64})
    return pl.DataFrame(rows).sort("member")


def distances_frame(distances: np.ndarray) -> pl.DataFrame:
    data = {"cluster": list(range(len(distances)))}
    for j in range(len(distances)):
        data[f"c{j}"] = distances[:, j].tolist()
    return pl.DataFrame(data)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    name = args.name or args.matrix.stem
    params = ClusteringParams(
        noise_threshold=args.noise_threshold,
        min_groups=args.min_groups,
        meaningful_difference_limit=args.difference_limit,
    )

    with RunContext(
        name=name,
        analysis_name="clusters",
        params=vars(args),
        results_root=args.results_root,
        primer=CLUSTERS_PRIMER,
    ) as ctx:
        print(f"Congress Vote Clustering — {name}")
        print(f"Matrix:    {args.matrix}")
        print(f"Output:    {ctx.run_dir}")

        print_header("PHASE 1: LOADING DATA")
        matrix = load_matrix(args.matrix)
        print(f"  Matrix: {len(matrix)} x {len(matrix)}")
        legislators = None
        if args.legislators is not None:
            legislators = load_legislators(args.legislators, matrix.labels)
            print(f"  Legislators: {len(legislators)}")

        print_header("PHASE 2: CLUSTERING")
        print(
            f"  Noise threshold: {params.noise_threshold}, "
            f"minimum groups: {params.min_groups}"
        )
        clusterer = AgglomerativeClusterer(params, trace=args.trace)
        result = clusterer.run(matrix, legislators)
        print(f"  {len(result.merges)} merges -> {len(result)} clusters")
        if result.merges:
            print(f"  Largest merge distance: {max(result.merge_distances)}")
        ctx.outcome["n_clusters"] = len(result)
        ctx.outcome["n_merges"] = len(result.merges)
        ctx.outcome["diagnostics"] = result.diagnostic_kinds() + [
            kind for kind, _ in matrix.diagnostics
        ]
        if not result.groups:
            print("  No clusters formed; nothing to write")
            return

        print_header("PHASE 3: CLUSTER SUMMARY")
        distances = inter_cluster_distances(matrix, result.groups)
        links = filter_large_mismatch(distances, params.meaningful_difference_limit)
        strong = filter_large_mismatch(distances, args.strong_link_limit)

        assignments = assignments_frame(result, matrix.labels)
        assignments.write_parquet(ctx.data_dir / "cluster_assignments.parquet")
        print("  Saved: cluster_assignments.parquet")
        distances_frame(links).write_parquet(ctx.data_dir / "cluster_distances.parquet")
        print("  Saved: cluster_distances.parquet")
        distances_frame(strong).write_parquet(ctx.data_dir / "cluster_strong_links.parquet")
        print("  Saved: cluster_strong_links.parquet")

        if legislators is not None:
            summaries = demographic_summary(result.groups, legislators)
            print(format_cluster_summaries(summaries))
            legend = ", ".join(f"{r}={n}" for r, n in REGION_NAMES.items())
            print(f"  Regions: {legend}")
            summary_frame(summaries).write_parquet(ctx.data_dir / "cluster_summary.parquet")
            print("  Saved: cluster_summary.parquet")

        print_header("DONE")
        print(f"  All outputs in: {ctx.run_dir}")
        print(f"  Parquet files:  {len(list(ctx.data_dir.glob('*.parquet')))}")
