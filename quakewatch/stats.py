"""Regional and summary statistics over earthquake records.

Provides the aggregate views used by the dashboard and reports:
per-region statistics (count, magnitudes, depth, swarm count, annual
rate), an activity time series with cumulative seismic energy, and a
magnitude histogram.

Seismic energy uses the Gutenberg-Richter energy relation
``E = 10 ** (1.5 * M + 4.8)`` (joules), summed per bucket.

Usage::

    from quakewatch.stats import region_stats, time_series, magnitude_histogram

    rs = region_stats(records, "san-ramon")      # RegionStats(...)
    points = time_series(records)               # daily TimeSeriesPoint list
    buckets = magnitude_histogram(records)      # 6 MagnitudeBucket entries
"""

import logging
import math

import numpy as np

from quakewatch.models import (
    MS_PER_DAY,
    MagnitudeBucket,
    RegionStats,
    TimeSeriesPoint,
)
from quakewatch.regions import REGIONS
from quakewatch.swarms import detect_swarms, validate_records

logger = logging.getLogger(__name__)

MS_PER_YEAR = 365 * MS_PER_DAY

# (label, lower bound inclusive, upper bound exclusive); None = open end
MAGNITUDE_BUCKETS = (
    ("<1", None, 1.0),
    ("1-2", 1.0, 2.0),
    ("2-3", 2.0, 3.0),
    ("3-4", 3.0, 4.0),
    ("4-5", 4.0, 5.0),
    ("5+", 5.0, None),
)


def seismic_energy(magnitude):
    """Energy release proxy for a magnitude: 10^(1.5*M + 4.8)."""
    return 10 ** (1.5 * magnitude + 4.8)


def _usable(records, context):
    valid, errors = validate_records(records)
    for err in errors:
        logger.warning(f"Skipping record in {context}: {err}")
    return valid


def region_stats(records, region_key, params=None) -> RegionStats:
    """Compute statistics for the records assigned to one region.

    An empty selection (including an unknown region key) yields zeros and
    ``last_activity=None``.

    Args:
        records: Iterable of EarthquakeRecord.
        region_key: Region id to select on ``record.region``.
        params: Optional SwarmParams for the swarm count.

    Returns:
        RegionStats for the region.
    """
    selected = [r for r in _usable(records, "region stats") if r.region == region_key]
    if not selected:
        return RegionStats(region_id=region_key)

    mags = np.array([r.magnitude for r in selected], dtype=float)
    depths = np.array([r.depth for r in selected if r.depth is not None], dtype=float)
    times = [r.timestamp for r in selected]

    span_years = (max(times) - min(times)) / MS_PER_YEAR or 1.0

    return RegionStats(
        region_id=region_key,
        total_count=len(selected),
        avg_magnitude=float(np.mean(mags)),
        max_magnitude=float(np.max(mags)),
        avg_depth=float(np.mean(depths)) if len(depths) else 0.0,
        swarm_count=len(detect_swarms(selected, params)),
        earthquakes_per_year=len(selected) / span_years,
        last_activity=max(times),
    )


def all_region_stats(records, params=None):
    """RegionStats for every known region, in region table order."""
    records = list(records)
    return [region_stats(records, region.id, params) for region in REGIONS]


def time_series(records, interval_days=1):
    """Bucket earthquake activity into fixed intervals.

    Buckets start at UTC midnight of the earliest record's day and are
    ``interval_days`` wide. Every bucket between the first and last record
    is returned, including empty ones.

    Args:
        records: Iterable of EarthquakeRecord.
        interval_days: Bucket width in days (default 1, i.e. calendar days).

    Returns:
        List of TimeSeriesPoint in ascending time order. ``cumulative_energy``
        never decreases from one point to the next.

    Raises:
        ValueError: If ``interval_days`` is not finite or is shorter than
            one millisecond.
    """
    finite = interval_days > 0 and math.isfinite(interval_days)
    interval_ms = int(interval_days * MS_PER_DAY) if finite else 0
    if interval_ms < 1:
        raise ValueError("interval_days must be at least one millisecond")

    usable = _usable(records, "time series")
    if not usable:
        return []

    timestamps = np.array([r.timestamp for r in usable], dtype=np.int64)
    mags = np.array([r.magnitude for r in usable], dtype=float)

    origin = int(timestamps.min()) - int(timestamps.min()) % MS_PER_DAY
    idx = (timestamps - origin) // interval_ms
    n_buckets = int(idx.max()) + 1

    counts = np.bincount(idx, minlength=n_buckets)
    mag_sums = np.bincount(idx, weights=mags, minlength=n_buckets)
    energy = np.bincount(idx, weights=seismic_energy(mags), minlength=n_buckets)
    cumulative = np.cumsum(energy)

    max_mags = np.full(n_buckets, -np.inf)
    np.maximum.at(max_mags, idx, mags)

    points = []
    for i in range(n_buckets):
        count = int(counts[i])
        points.append(TimeSeriesPoint(
            timestamp=origin + i * interval_ms,
            count=count,
            max_magnitude=float(max_mags[i]) if count else 0.0,
            avg_magnitude=float(mag_sums[i] / count) if count else 0.0,
            energy=float(energy[i]),
            cumulative_energy=float(cumulative[i]),
        ))
    return points


def magnitude_histogram(records):
    """Count records per magnitude bucket.

    Buckets are ``<1, 1-2, 2-3, 3-4, 4-5, 5+`` with inclusive lower bounds.
    Percentages are relative to the number of counted records; with no
    records every percentage is 0.

    Returns:
        List of MagnitudeBucket, one per bucket, in ascending order.
    """
    mags = np.array([r.magnitude for r in _usable(records, "magnitude histogram")], dtype=float)
    edges = [upper for _, _, upper in MAGNITUDE_BUCKETS[:-1]]
    counts = np.bincount(np.digitize(mags, edges), minlength=len(MAGNITUDE_BUCKETS))
    total = len(mags)

    return [
        MagnitudeBucket(
            range=label,
            min=lower,
            max=upper,
            count=int(counts[i]),
            percentage=float(counts[i] / total * 100) if total else 0.0,
        )
        for i, (label, lower, upper) in enumerate(MAGNITUDE_BUCKETS)
    ]
