"""USGS GeoJSON feature normalisation and snapshot loading.

Converts GeoJSON features of the shape::

    {"id": "nc75095651",
     "properties": {"mag": 2.4, "place": "...", "time": 1704067200000,
                    "felt": 3, "sig": 89, "url": "..."},
     "geometry": {"coordinates": [-121.95, 37.78, 8.2]}}

into ``EarthquakeRecord`` objects with a region assigned, and loads
directories of static snapshot files with the same shape.
"""

import json
import logging
import math
from pathlib import Path

from quakewatch.models import EarthquakeRecord, InvalidInputError
from quakewatch.regions import in_bay_area, region_for_coordinates

logger = logging.getLogger(__name__)


def _float(v):
    try:
        return float(v) if v is not None else None
    except (ValueError, TypeError, OverflowError):
        return None


def _int(v):
    try:
        return int(v) if v is not None else None
    except (ValueError, TypeError, OverflowError):
        return None


def parse_feature(feature) -> EarthquakeRecord:
    """Parse one GeoJSON feature into an EarthquakeRecord.

    Missing coordinates give an unlocated record (latitude/longitude None,
    region 'unknown') rather than an error.

    Raises:
        InvalidInputError: If the id, origin time or magnitude is missing
            or unparseable, or the properties/geometry are malformed.
    """
    if not isinstance(feature, dict):
        raise InvalidInputError(None, "feature is not an object")

    event_id = feature.get("id")
    if not event_id:
        raise InvalidInputError(None, "feature has no id")

    props = feature.get("properties") or {}
    if not isinstance(props, dict):
        raise InvalidInputError(event_id, "properties is not an object")
    timestamp = _int(props.get("time"))
    if timestamp is None:
        raise InvalidInputError(event_id, f"unparseable time {props.get('time')!r}")
    magnitude = _float(props.get("mag"))
    if magnitude is None or not math.isfinite(magnitude):
        raise InvalidInputError(event_id, f"unparseable magnitude {props.get('mag')!r}")

    geometry = feature.get("geometry") or {}
    if not isinstance(geometry, dict):
        raise InvalidInputError(event_id, "geometry is not an object")
    coords = geometry.get("coordinates") or []
    if not isinstance(coords, (list, tuple)):
        raise InvalidInputError(event_id, f"unparseable coordinates {coords!r}")
    lon = _float(coords[0]) if len(coords) > 0 else None
    lat = _float(coords[1]) if len(coords) > 1 else None
    depth = _float(coords[2]) if len(coords) > 2 else None

    return EarthquakeRecord(
        id=str(event_id),
        magnitude=magnitude,
        place=props.get("place") or "",
        timestamp=timestamp,
        latitude=lat,
        longitude=lon,
        depth=depth if depth is not None else 0.0,
        felt=_int(props.get("felt")),
        significance=_int(props.get("sig")) or 0,
        url=props.get("url") or "",
        region=region_for_coordinates(lat, lon),
    )


def dedupe_records(records):
    """Drop repeated ids, keeping the first occurrence."""
    seen = set()
    out = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        out.append(record)
    return out


def filter_bay_area(records):
    return [r for r in records if in_bay_area(r.latitude, r.longitude)]


def records_from_geojson(data, bay_area_only=False):
    """Normalise a GeoJSON FeatureCollection into deduplicated records.

    Features that fail ``parse_feature`` are logged and skipped.

    Args:
        data: Parsed FeatureCollection dict.
        bay_area_only: If True, keep only events inside the Bay Area box.

    Returns:
        List of EarthquakeRecord in feed order.
    """
    records = []
    skipped = 0
    features = data.get("features") or []
    if not isinstance(features, list):
        logger.warning(f"Ignoring non-list 'features' of type {type(features).__name__}")
        features = []
    for feature in features:
        try:
            records.append(parse_feature(feature))
        except InvalidInputError as e:
            skipped += 1
            logger.warning(f"Skipping feature: {e}")

    records = dedupe_records(records)
    if bay_area_only:
        records = filter_bay_area(records)
    if skipped:
        logger.info(f"Parsed {len(records)} records, skipped {skipped} features")
    return records


def load_snapshot_dir(path):
    """Load every ``*.json`` FeatureCollection in a directory.

    Unreadable or malformed files are logged and skipped. Records from all
    files are merged, deduplicated by id and sorted newest first.
    """
    path = Path(path)
    records = []
    files = sorted(path.glob("*.json"))
    for file in files:
        try:
            with open(file) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load snapshot {file}: {e}")
            continue
        if not isinstance(data, dict):
            logger.error(f"Snapshot {file} is not a FeatureCollection")
            continue
        records.extend(records_from_geojson(data))

    records = dedupe_records(records)
    records.sort(key=lambda r: r.timestamp, reverse=True)
    logger.info(f"Loaded {len(records)} earthquakes from {len(files)} snapshot files in {path}")
    return records
