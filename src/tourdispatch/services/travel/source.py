"""Travel-time data sources used to build a pass's travel matrix."""

from __future__ import annotations

import csv
import logging
import math
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Protocol, Sequence

from ...config import settings
from ...models.domain import ZoneTravelTime
from .matrix import TravelMatrix, build_from_entries

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("from_zone_id", "to_zone_id", "estimated_minutes")


class TravelTimeSource(Protocol):
    def fetch(self, organization_id: str) -> Iterable[ZoneTravelTime]:
        ...


class StaticTravelTimeSource:
    """Serves a fixed list of entries regardless of organization."""

    def __init__(self, entries: Sequence[ZoneTravelTime]) -> None:
        self.entries = list(entries)

    def fetch(self, organization_id: str) -> Iterable[ZoneTravelTime]:
        return list(self.entries)


class CsvTravelTimeSource:
    """Reads zone travel times from a CSV export.

    Rows carrying an ``organization_id`` column are filtered to the requested
    organization; files without that column apply to every organization.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def fetch(self, organization_id: str) -> List[ZoneTravelTime]:
        with self.path.open("r", encoding="utf-8-sig", newline="") as handle:
            reader = csv.DictReader(handle)
            missing = [column for column in REQUIRED_COLUMNS if column not in (reader.fieldnames or [])]
            if missing:
                raise ValueError(f"Travel time file {self.path} is missing columns: {', '.join(missing)}")
            return list(self._parse_rows(reader, organization_id))

    def _parse_rows(self, reader: csv.DictReader, organization_id: str) -> Iterator[ZoneTravelTime]:
        for line_number, row in enumerate(reader, start=2):
            row_org = (row.get("organization_id") or "").strip()
            if row_org and row_org != organization_id:
                continue
            from_zone = (row.get("from_zone_id") or "").strip()
            to_zone = (row.get("to_zone_id") or "").strip()
            try:
                raw_minutes = float(row.get("estimated_minutes") or "")
                # Half-up to whole minutes; math.floor rejects inf and nan
                minutes = math.floor(raw_minutes + 0.5)
            except (ValueError, OverflowError):
                logger.warning(f"Skipping travel time row {line_number} in {self.path.name}: bad minutes value")
                continue
            if not from_zone or not to_zone or minutes < 0:
                logger.warning(f"Skipping travel time row {line_number} in {self.path.name}: incomplete row")
                continue
            yield ZoneTravelTime(from_zone_id=from_zone, to_zone_id=to_zone, estimated_minutes=minutes)


def default_source() -> Optional[TravelTimeSource]:
    if settings.travel_times_file is None:
        return None
    return CsvTravelTimeSource(settings.travel_times_file)


def build_travel_matrix(organization_id: str, source: Optional[TravelTimeSource] = None) -> TravelMatrix:
    """Load an organization's travel matrix, degrading to an empty one on failure."""

    source = source or default_source()
    if source is None:
        logger.info(f"No travel time source configured for organization {organization_id}; using defaults")
        return TravelMatrix.empty()
    try:
        entries = list(source.fetch(organization_id))
    except (OSError, ValueError, KeyError, csv.Error):
        logger.exception(f"Failed to build travel matrix for organization {organization_id}")
        return TravelMatrix.empty()
    matrix = build_from_entries(entries)
    logger.info(f"Loaded {len(matrix)} travel time entries for organization {organization_id}")
    return matrix
