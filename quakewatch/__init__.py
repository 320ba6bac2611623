"""quakewatch: Bay Area earthquake swarm detection and statistics.

Clusters earthquake records into swarms, derives regional, magnitude and
time-series statistics, and classifies magnitudes for display. Records
come from USGS GeoJSON snapshot files or the live summary feeds.

Example:
    >>> from quakewatch import detect_swarms, region_stats, load_snapshot_dir
    >>> records = load_snapshot_dir("data/")
    >>> swarms = detect_swarms(records)
    >>> region_stats(records, "san-ramon").swarm_count
"""

__version__ = "0.1.0"

from quakewatch.classify import magnitude_color, magnitude_label
from quakewatch.feed import load_snapshot_dir, records_from_geojson
from quakewatch.models import (
    EarthquakeRecord,
    InvalidInputError,
    MagnitudeBucket,
    RegionStats,
    SwarmEvent,
    SwarmParams,
    TimeSeriesPoint,
)
from quakewatch.regions import region_for_coordinates
from quakewatch.stats import all_region_stats, magnitude_histogram, region_stats, time_series
from quakewatch.swarms import detect_swarms, validate_records

__all__ = [
    # Models
    "EarthquakeRecord",
    "SwarmEvent",
    "SwarmParams",
    "RegionStats",
    "MagnitudeBucket",
    "TimeSeriesPoint",
    "InvalidInputError",
    # Engine
    "detect_swarms",
    "validate_records",
    "region_stats",
    "all_region_stats",
    "time_series",
    "magnitude_histogram",
    # Classification
    "magnitude_label",
    "magnitude_color",
    "region_for_coordinates",
    # Ingestion
    "load_snapshot_dir",
    "records_from_geojson",
]
