"""Assign members to regions of the country by state."""

# Postal code -> region number. Region 0 is reserved for unknown codes.
STATE_REGIONS: dict[str, int] = {
    "AL": 2, "AK": 4, "AZ": 4, "AR": 2, "CA": 4, "CO": 3, "CT": 1, "DE": 1,
    "DC": 1, "FL": 2, "GA": 2, "HI": 4, "ID": 3, "IL": 1, "IN": 1, "IA": 3,
    "KS": 3, "KY": 2, "LA": 2, "ME": 1, "MD": 1, "MA": 1, "MI": 1, "MN": 3,
    "MS": 2, "MO": 3, "MT": 3, "NE": 3, "NV": 3, "NH": 1, "NJ": 1, "NM": 3,
    "NY": 1, "NC": 2, "ND": 3, "OH": 1, "OK": 3, "OR": 4, "PA": 1, "RI": 1,
    "SC": 2, "SD": 3, "TN": 2, "TX": 2, "UT": 3, "VT": 1, "VA": 2, "WA": 4,
    "WV": 1, "WI": 3, "WY": 3,
    # Territories
    "GU": 4, "VI": 2, "AS": 4, "PR": 2, "MP": 4,
}  # fmt: skip

REGION_NAMES = {
    0: "Unknown",
    1: "Northeast & Great Lakes",
    2: "South",
    3: "Plains & Mountain",
    4: "Pacific",
}

# Derived rather than hardcoded so edits to the table stay consistent
REGION_COUNT = max(STATE_REGIONS.values())


def region_for(state: str) -> int:
    """Region number for a postal code, or 0 if the code is unknown."""
    return STATE_REGIONS.get(state.strip().upper(), 0) if state else 0
