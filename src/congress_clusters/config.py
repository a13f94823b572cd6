"""Configuration constants for congress vote clustering."""

DEFAULT_NOISE_THRESHOLD = 100  # vote differences at or below this are noise (scale 0-1000)
DEFAULT_MIN_GROUPS = 1

# Inter-cluster distances above this limit are too weak to affect the layout
MEANINGFUL_DIFFERENCE_LIMIT = 600
# Only links at or below this distance are kept for the final graph
STRONG_LINK_LIMIT = 350

NO_LINK = -1  # marks a filtered-out inter-cluster distance

SCREEN_WIDTH = 80  # terminal width for trace dumps
TRACE_CELL_WIDTH = 4

PARTY_BUCKETS = ("D", "R", "I")  # Democrat, Republican, everyone else
