"""Bay Area region definitions and coordinate classifier.

Regions are checked in table order and the first box containing a point
wins, so overlapping boxes (e.g. Santa Clara and Gilroy) always resolve the
same way.
"""

import math

from quakewatch.models import Region

UNKNOWN_REGION = "unknown"
UNKNOWN_COLOR = "#6b7280"

REGIONS = (
    Region(
        id="san-ramon",
        name="San Ramon / Dublin / Pleasanton",
        description="I-680/I-580 corridor along the Calaveras Fault",
        min_lat=37.635, max_lat=37.919, min_lon=-122.109, max_lon=-121.845,
        color="#ef5344",
        fault_line="Calaveras Fault",
    ),
    Region(
        id="berkeley-oakland",
        name="Berkeley / Oakland / Piedmont",
        description="Western East Bay along the Hayward Fault",
        min_lat=37.772, max_lat=38.071, min_lon=-122.439, max_lon=-122.047,
        color="#f59e0b",
        fault_line="Hayward Fault",
    ),
    Region(
        id="sf-peninsula",
        name="SF Peninsula / Millbrae / Pacifica",
        description="Peninsula along the San Andreas Fault",
        min_lat=37.317, max_lat=37.818, min_lon=-122.533, max_lon=-122.066,
        color="#8b5cf6",
        fault_line="San Andreas Fault",
    ),
    Region(
        id="santa-clara",
        name="Santa Clara / San Jose / Morgan Hill",
        description="South Bay along the Calaveras Fault",
        min_lat=36.95, max_lat=37.455, min_lon=-122.44, max_lon=-121.632,
        color="#10b981",
        fault_line="Calaveras Fault",
    ),
    Region(
        id="gilroy-south",
        name="Gilroy / Hollister / South Valley",
        description="Southern Santa Clara County",
        min_lat=36.763, max_lat=37.455, min_lon=-122.113, max_lon=-121.443,
        color="#06b6d4",
        fault_line="Calaveras/San Andreas",
    ),
    Region(
        id="sonoma-north",
        name="Sonoma / Napa / North Bay",
        description="Wine Country along the Rodgers Creek Fault",
        min_lat=37.81, max_lat=38.66, min_lon=-123.069, max_lon=-122.421,
        color="#ec4899",
        fault_line="Rodgers Creek Fault",
    ),
)

# Nine-county Bay Area; excludes The Geysers geothermal field (~38.75N)
BAY_AREA_BOUNDS = {
    "min_lat": 36.9,
    "max_lat": 38.35,
    "min_lon": -123.0,
    "max_lon": -121.4,
}

NORCAL_BOUNDS = {
    "min_lat": 36.5,
    "max_lat": 39.0,
    "min_lon": -123.5,
    "max_lon": -121.0,
    "center": (37.75, -122.25),
}


def _usable(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def region_for_coordinates(lat, lon):
    """Return the id of the first region containing (lat, lon).

    Returns 'unknown' if no region matches or the coordinates are missing.
    """
    if not (_usable(lat) and _usable(lon)):
        return UNKNOWN_REGION

    for region in REGIONS:
        if region.contains(lat, lon):
            return region.id

    return UNKNOWN_REGION


def in_bay_area(lat, lon):
    """Whether a point falls inside the Bay Area feed filter box."""
    if not (_usable(lat) and _usable(lon)):
        return False
    b = BAY_AREA_BOUNDS
    return b["min_lat"] <= lat <= b["max_lat"] and b["min_lon"] <= lon <= b["max_lon"]


def get_region(region_id):
    for region in REGIONS:
        if region.id == region_id:
            return region
    return None


def region_ids():
    return [r.id for r in REGIONS]


def region_name(region_id):
    """Get display name for a region key."""
    region = get_region(region_id)
    return region.name if region else "Unknown Region"


def region_color(region_id):
    region = get_region(region_id)
    return region.color if region else UNKNOWN_COLOR
