"""Dashboard-level aggregates built on the swarm and statistics engine.

Examines:
- Whole-catalogue summary (date range, magnitude range, counts by region,
  biggest quake, per-region statistics, recent swarm summaries)
- Paginated, filtered record listings
- Swarm activity rolled up by year for one region
- Side-by-side comparison of two regions

Everything here is recomputed per call from the records passed in.
"""

import logging
import time
from collections import Counter, defaultdict

from quakewatch.classify import swarm_intensity
from quakewatch.models import MS_PER_DAY, ms_to_datetime
from quakewatch.regions import get_region
from quakewatch.stats import all_region_stats
from quakewatch.swarms import detect_swarms, validate_records

logger = logging.getLogger(__name__)

MAX_SWARM_SUMMARIES = 50
EQUAL_THRESHOLD = 0.1  # relative difference below which two values count as equal


def biggest_earthquake(records):
    """Record with the largest magnitude (first one wins a tie), or None."""
    biggest = None
    for record in records:
        if biggest is None or record.magnitude > biggest.magnitude:
            biggest = record
    return biggest


def recent_activity(records, days=7, now_ms=None):
    """Records from the last ``days`` days, newest first."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    cutoff = now_ms - days * MS_PER_DAY
    return sorted((r for r in records if r.timestamp >= cutoff),
                  key=lambda r: r.timestamp, reverse=True)


def swarm_summary(swarm):
    """JSON-friendly summary of a swarm without its member records."""
    return {
        "id": swarm.id,
        "start_time": swarm.start_time,
        "end_time": swarm.end_time,
        "peak_magnitude": swarm.peak_magnitude,
        "total_count": swarm.total_count,
        "region": swarm.region,
        "center_lat": round(swarm.center_lat, 4),
        "center_lon": round(swarm.center_lon, 4),
        "intensity": swarm_intensity(swarm),
    }


def historical_summary(records, params=None):
    """Summarise a catalogue for the dashboard.

    Returns:
        Dict with total_count, date_range, magnitude_range, by_region,
        biggest_quake, region_stats, swarms (most recent first, capped at
        50), swarm_count and skipped (records rejected by validation).
    """
    valid, errors = validate_records(records)
    if errors:
        logger.warning(f"{len(errors)} invalid records excluded from summary")

    if not valid:
        return {
            "total_count": 0,
            "date_range": None,
            "magnitude_range": {"min": 0.0, "max": 0.0, "avg": 0.0},
            "by_region": {},
            "biggest_quake": None,
            "region_stats": [],
            "swarms": [],
            "swarm_count": 0,
            "skipped": len(errors),
        }

    mags = [r.magnitude for r in valid]
    times = [r.timestamp for r in valid]
    biggest = biggest_earthquake(valid)
    swarms = detect_swarms(valid, params)

    return {
        "total_count": len(valid),
        "date_range": {"start": min(times), "end": max(times)},
        "magnitude_range": {
            "min": min(mags),
            "max": max(mags),
            "avg": sum(mags) / len(mags),
        },
        "by_region": dict(Counter(r.region for r in valid)),
        "biggest_quake": {
            "id": biggest.id,
            "magnitude": biggest.magnitude,
            "place": biggest.place,
            "timestamp": biggest.timestamp,
            "region": biggest.region,
        },
        "region_stats": all_region_stats(valid, params),
        "swarms": [swarm_summary(s) for s in reversed(swarms)][:MAX_SWARM_SUMMARIES],
        "swarm_count": len(swarms),
        "skipped": len(errors),
    }


def earthquakes_page(records, region=None, page=1, limit=50, min_magnitude=0.0,
                     start=None, end=None):
    """Filter records and return one page, newest first.

    Args:
        records: Iterable of EarthquakeRecord.
        region: Region id, or None / 'all' for every region.
        page: 1-based page number.
        limit: Page size.
        min_magnitude: Keep records at or above this magnitude when > 0.
        start: Inclusive lower timestamp bound (ms), or None.
        end: Inclusive upper timestamp bound (ms), or None.

    Returns:
        Dict with 'earthquakes', 'total' and 'has_more'.
    """
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be positive")

    selected = sorted(records, key=lambda r: r.timestamp, reverse=True)
    if region and region != "all":
        selected = [r for r in selected if r.region == region]
    if min_magnitude > 0:
        selected = [r for r in selected if r.magnitude >= min_magnitude]
    if start is not None:
        selected = [r for r in selected if r.timestamp >= start]
    if end is not None:
        selected = [r for r in selected if r.timestamp <= end]

    total = len(selected)
    offset = (page - 1) * limit
    return {
        "earthquakes": selected[offset:offset + limit],
        "total": total,
        "has_more": offset + limit < total,
    }


def swarms_by_year(records, region_id, params=None):
    """Roll swarm activity for one region up by calendar year (UTC).

    Returns:
        List of per-year dicts, newest year first.
    """
    valid, _ = validate_records(records)
    region_quakes = [r for r in valid if r.region == region_id]
    swarms = detect_swarms(region_quakes, params)

    quakes_by_year = defaultdict(list)
    for r in region_quakes:
        quakes_by_year[r.time.year].append(r)
    swarms_by_yr = defaultdict(list)
    for s in swarms:
        swarms_by_yr[ms_to_datetime(s.start_time).year].append(s)

    results = []
    for year in sorted(quakes_by_year, reverse=True):
        year_quakes = quakes_by_year[year]
        year_swarms = swarms_by_yr.get(year, [])
        swarm_quakes = sum(s.total_count for s in year_swarms)
        mags = [r.magnitude for r in year_quakes]
        results.append({
            "year": year,
            "swarms": year_swarms,
            "swarm_count": len(year_swarms),
            "total_earthquakes": len(year_quakes),
            "peak_magnitude": max(mags),
            "total_swarm_quakes": swarm_quakes,
            "avg_swarm_size": swarm_quakes / len(year_swarms) if year_swarms else 0.0,
            "longest_swarm_hours": max((s.duration_hours for s in year_swarms), default=0.0),
            "magnitude_counts": {
                f"m{m}plus": sum(1 for x in mags if x >= m) for m in (2, 3, 4, 5)
            },
        })
    return results


def _comparison(a, b):
    diff = abs(a - b) / max(a, b, 1)
    if diff < EQUAL_THRESHOLD:
        return "equal"
    return "more" if a > b else "less"


def _percent_diff(a, b):
    if b == 0:
        return 100 if a > 0 else 0
    return round((a - b) / b * 100)


def compare_regions(records, region_a, region_b, params=None):
    """Compare two regions on total, swarm, felt and largest-magnitude counts.

    Returns:
        List of dicts with metric, region_a, region_b, comparison
        ('more'/'less'/'equal' from region_a's point of view) and
        percent_diff. Empty if either region id is unknown.
    """
    if get_region(region_a) is None or get_region(region_b) is None:
        return []

    records, _ = validate_records(records)
    quakes_a = [r for r in records if r.region == region_a]
    quakes_b = [r for r in records if r.region == region_b]

    def metrics(quakes):
        return {
            "Total Earthquakes": len(quakes),
            "Swarm Events": len(detect_swarms(quakes, params)),
            "Felt Earthquakes": sum(1 for r in quakes if r.felt),
            "Largest Earthquake": max((r.magnitude for r in quakes), default=0.0),
        }

    ma, mb = metrics(quakes_a), metrics(quakes_b)
    results = []
    for metric in ma:
        a, b = ma[metric], mb[metric]
        if metric == "Largest Earthquake":
            pct = round((a - b) * 10)
        else:
            pct = _percent_diff(a, b)
        results.append({
            "metric": metric,
            "region_a": a,
            "region_b": b,
            "comparison": _comparison(a, b),
            "percent_diff": pct,
        })
    return results
