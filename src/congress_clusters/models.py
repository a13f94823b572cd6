"""Data classes for clustering inputs and results."""

from dataclasses import dataclass, field

from congress_clusters.config import (
    DEFAULT_MIN_GROUPS,
    DEFAULT_NOISE_THRESHOLD,
    MEANINGFUL_DIFFERENCE_LIMIT,
)


@dataclass
class Legislator:
    """Display metadata for one member, indexed by matrix row."""
    name: str
    party: str  # Democrat, Republican, Independent, ...
    state: str  # two-letter postal code
    slug: str = ""

    @property
    def party_initial(self) -> str:
        return self.party[:1].upper() if self.party else "?"


@dataclass(frozen=True)
class ClusteringParams:
    """Tuning values shared by clustering and the downstream link filter."""
    noise_threshold: int = DEFAULT_NOISE_THRESHOLD
    min_groups: int = DEFAULT_MIN_GROUPS
    meaningful_difference_limit: int = MEANINGFUL_DIFFERENCE_LIMIT


@dataclass
class MergeStep:
    """One merge of the agglomerative loop."""
    survivor: int
    absorbed: int
    distance: int


@dataclass
class ClusterResult:
    """Partition of entity indices plus the merge history and diagnostics.

    Diagnostics are (kind, message) pairs. Kinds: empty_input, ragged_row,
    distance_shrink, partial_data.
    """
    groups: list[set[int]] = field(default_factory=list)
    merges: list[MergeStep] = field(default_factory=list)
    diagnostics: list[tuple[str, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.groups)

    def __iter__(self):
        return iter(self.groups)

    @property
    def merge_distances(self) -> list[int]:
        return [step.distance for step in self.merges]

    def diagnostic_kinds(self) -> list[str]:
        return [kind for kind, _ in self.diagnostics]


@dataclass
class ClusterSummary:
    """Party and region counts for one cluster."""
    members: set[int]
    parties: list[int]  # counts per PARTY_BUCKETS entry
    regions: list[int]  # counts per region, index 0 = unknown region

    @property
    def count(self) -> int:
        return len(self.members)
