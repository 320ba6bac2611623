"""Data models for the earthquake swarm and statistics engine.

Provides the value objects passed between the feed loader, the swarm
detector, the statistics helpers and the reporting layer. All of them are
immutable; every engine call returns freshly built instances.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

MS_PER_HOUR = 60 * 60 * 1000
MS_PER_DAY = 24 * MS_PER_HOUR


def ms_to_datetime(ms: int) -> datetime:
    """Convert epoch milliseconds to a timezone-aware UTC datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


class InvalidInputError(ValueError):
    """An earthquake record is missing a usable timestamp, magnitude or coordinate.

    Args:
        record_id: The offending record's id (or None if it has none).
        reason: Short description of what is wrong.
    """

    def __init__(self, record_id: str | None, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"invalid earthquake record {record_id!r}: {reason}")


@dataclass(frozen=True)
class EarthquakeRecord:
    """A single seismic event as normalised from the USGS feed.

    Args:
        id: Upstream event id (e.g. "nc75095651").
        magnitude: Magnitude; micro-events can be negative.
        place: Free-text location, e.g. "3km SE of San Ramon, CA".
        timestamp: Origin time in milliseconds since the epoch.
        latitude: Decimal degrees, or None when the feed has no location.
        longitude: Decimal degrees, or None when the feed has no location.
        depth: Depth in kilometres.
        felt: Number of "felt it" reports, or None when there is no data.
        significance: USGS significance score.
        url: Event page URL.
        region: Region key from ``quakewatch.regions``; "unknown" if outside
            every known box.
    """

    id: str
    magnitude: float
    place: str
    timestamp: int
    latitude: float | None
    longitude: float | None
    depth: float = 0.0
    felt: int | None = None
    significance: int = 0
    url: str = ""
    region: str = "unknown"

    @property
    def time(self) -> datetime:
        """Origin time as a UTC datetime."""
        return ms_to_datetime(self.timestamp)


@dataclass(frozen=True)
class SwarmEvent:
    """A cluster of temporally and spatially correlated earthquakes."""

    id: str
    start_time: int
    end_time: int
    earthquakes: tuple[EarthquakeRecord, ...]
    peak_magnitude: float
    total_count: int
    region: str
    center_lat: float
    center_lon: float

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time) / MS_PER_HOUR


@dataclass(frozen=True)
class SwarmParams:
    """Thresholds for swarm detection.

    Args:
        time_window_hours: Largest gap allowed between consecutive members
            of a cluster (default 24 h).
        distance_threshold_km: Largest great-circle distance between a
            candidate and the cluster centroid (default 10 km).
        min_cluster_size: Smallest cluster reported as a swarm (default 3,
            may not be lower).

    Raises:
        ValueError: On a non-positive threshold or a minimum size below 3.
    """

    time_window_hours: float = 24.0
    distance_threshold_km: float = 10.0
    min_cluster_size: int = 3

    def __post_init__(self):
        if self.time_window_hours <= 0:
            raise ValueError("time_window_hours must be positive")
        if self.distance_threshold_km <= 0:
            raise ValueError("distance_threshold_km must be positive")
        if self.min_cluster_size < 3:
            raise ValueError("min_cluster_size must be at least 3")

    @property
    def time_window_ms(self) -> int:
        return int(self.time_window_hours * MS_PER_HOUR)


@dataclass(frozen=True)
class RegionStats:
    """Aggregate statistics for one region.

    ``last_activity`` is None when the region has no earthquakes.
    """

    region_id: str
    total_count: int = 0
    avg_magnitude: float = 0.0
    max_magnitude: float = 0.0
    avg_depth: float = 0.0
    swarm_count: int = 0
    earthquakes_per_year: float = 0.0
    last_activity: int | None = None


@dataclass(frozen=True)
class MagnitudeBucket:
    """Histogram bucket; ``min``/``max`` are None for an open end."""

    range: str
    min: float | None
    max: float | None
    count: int = 0
    percentage: float = 0.0


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One bucket of the activity time series.

    ``energy`` is the seismic energy proxy released inside the bucket and
    ``cumulative_energy`` the running total up to and including it.
    """

    timestamp: int
    count: int
    max_magnitude: float
    avg_magnitude: float
    energy: float
    cumulative_energy: float

    @property
    def date(self) -> datetime:
        return ms_to_datetime(self.timestamp)


@dataclass(frozen=True)
class Region:
    """A named rectangular area used to group earthquakes for reporting."""

    id: str
    name: str
    description: str
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float
    color: str
    fault_line: str

    def contains(self, lat, lon) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lon <= lon <= self.max_lon
