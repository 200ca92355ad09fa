"""Travel time services."""

from .matrix import (
    MatrixStats,
    NearestZone,
    TravelMatrix,
    build_from_entries,
    group_by_zone,
    most_common_zone,
    unique_zones,
)
from .source import (
    CsvTravelTimeSource,
    StaticTravelTimeSource,
    TravelTimeSource,
    build_travel_matrix,
)

__all__ = [
    "TravelMatrix",
    "MatrixStats",
    "NearestZone",
    "build_from_entries",
    "most_common_zone",
    "unique_zones",
    "group_by_zone",
    "TravelTimeSource",
    "CsvTravelTimeSource",
    "StaticTravelTimeSource",
    "build_travel_matrix",
]
