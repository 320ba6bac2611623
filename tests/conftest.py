"""Shared pytest configuration and test data builders for quakewatch tests."""

import sys
from datetime import datetime, timezone
from pathlib import Path

# Ensure the quakewatch package is importable without installing it
sys.path.insert(0, str(Path(__file__).parent.parent))

from quakewatch.models import EarthquakeRecord  # noqa: E402
from quakewatch.regions import region_for_coordinates  # noqa: E402

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

# 2024-03-01 00:00 UTC
T0 = int(datetime(2024, 3, 1, tzinfo=timezone.utc).timestamp() * 1000)

# Inside the San Ramon box
SAN_RAMON = (37.78, -121.97)
# Inside the Santa Clara box
SANTA_CLARA = (37.30, -121.80)


def quake(event_id, timestamp, magnitude=2.0, lat=SAN_RAMON[0], lon=SAN_RAMON[1],
          depth=8.0, felt=None, region=None, place="test"):
    """Build an EarthquakeRecord with a region derived from its location."""
    if region is None:
        region = region_for_coordinates(lat, lon)
    return EarthquakeRecord(
        id=event_id,
        magnitude=magnitude,
        place=place,
        timestamp=timestamp,
        latitude=lat,
        longitude=lon,
        depth=depth,
        felt=felt,
        significance=0,
        url="",
        region=region,
    )


def feature(event_id, time_ms, mag=2.0, lon=SAN_RAMON[1], lat=SAN_RAMON[0], depth=8.0,
            felt=None, sig=50, place="3km SE of San Ramon, CA"):
    """Build a USGS GeoJSON feature dict."""
    return {
        "type": "Feature",
        "id": event_id,
        "properties": {
            "mag": mag,
            "place": place,
            "time": time_ms,
            "felt": felt,
            "sig": sig,
            "url": f"https://earthquake.usgs.gov/earthquakes/eventpage/{event_id}",
        },
        "geometry": {"type": "Point", "coordinates": [lon, lat, depth]},
    }
