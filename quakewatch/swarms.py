"""Earthquake swarm detection.

A swarm is a run of earthquakes that are close together both in time and
in space. Detection is a single pass over the records in time order:

- A cluster grows while each new record arrives within the time window of
  the cluster's latest member and lies within the distance threshold of
  the cluster's centroid (mean latitude/longitude of its members).
- Anything else closes the cluster and starts a new one.
- Closed clusters with at least ``min_cluster_size`` members are swarms;
  smaller ones are dropped from the swarm output.

Records without a usable location can never join a cluster. They close
whatever cluster is open and are left out of the swarm output.
"""

import logging
import math

from quakewatch.models import InvalidInputError, SwarmEvent, SwarmParams

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1, lon1, lat2, lon2):
    """Great-circle distance in kilometres on a spherical Earth."""
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])
    dlat, dlon = lat2 - lat1, lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.asin(min(1.0, math.sqrt(a)))


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_located(record):
    """Whether a record has finite numeric latitude and longitude."""
    lat = getattr(record, "latitude", None)
    lon = getattr(record, "longitude", None)
    return (_is_number(lat) and _is_number(lon)
            and math.isfinite(lat) and math.isfinite(lon))


def validate_record(record):
    """Check that a record can take part in swarm detection.

    Missing or NaN coordinates are allowed (the record is just unlocated);
    coordinates of the wrong type are not.

    Returns:
        True if the record is located, False if it is not.

    Raises:
        InvalidInputError: If the id is missing or not a string, the
            timestamp or magnitude is missing or not a finite number, or a
            coordinate is present but not numeric.
    """
    record_id = getattr(record, "id", None)
    if not isinstance(record_id, str) or not record_id:
        raise InvalidInputError(record_id, "missing or non-string id")

    timestamp = getattr(record, "timestamp", None)
    if not _is_number(timestamp) or not math.isfinite(timestamp):
        raise InvalidInputError(record_id, f"unparseable timestamp {timestamp!r}")

    magnitude = getattr(record, "magnitude", None)
    if not _is_number(magnitude) or not math.isfinite(magnitude):
        raise InvalidInputError(record_id, f"non-numeric magnitude {magnitude!r}")

    for name in ("latitude", "longitude"):
        value = getattr(record, name, None)
        if value is not None and not _is_number(value):
            raise InvalidInputError(record_id, f"non-numeric {name} {value!r}")

    return is_located(record)


def validate_records(records):
    """Split records into those usable for detection and the errors for the rest.

    Returns:
        Tuple of (valid records in input order, list of InvalidInputError).
    """
    valid = []
    errors = []
    for record in records:
        try:
            validate_record(record)
        except InvalidInputError as e:
            errors.append(e)
            continue
        valid.append(record)
    return valid, errors


class _Cluster:
    """Members of the cluster currently being grown, with centroid sums."""

    def __init__(self):
        self.members = []
        self._lat_sum = 0.0
        self._lon_sum = 0.0

    def __len__(self):
        return len(self.members)

    @property
    def centroid(self):
        n = len(self.members)
        return self._lat_sum / n, self._lon_sum / n

    def add(self, record):
        self.members.append(record)
        self._lat_sum += record.latitude
        self._lon_sum += record.longitude

    def accepts(self, record, params):
        elapsed = record.timestamp - self.members[-1].timestamp
        if elapsed > params.time_window_ms:
            return False
        lat, lon = self.centroid
        return haversine_km(lat, lon, record.latitude, record.longitude) <= params.distance_threshold_km

    def to_swarm(self):
        first = self.members[0]
        start = min(r.timestamp for r in self.members)
        end = max(r.timestamp for r in self.members)
        center_lat, center_lon = self.centroid
        return SwarmEvent(
            id=f"swarm-{first.id}-{start}",
            start_time=start,
            end_time=end,
            earthquakes=tuple(self.members),
            peak_magnitude=max(r.magnitude for r in self.members),
            total_count=len(self.members),
            region=first.region,
            center_lat=center_lat,
            center_lon=center_lon,
        )


def detect_swarms(records, params=None):
    """Cluster earthquake records into swarms.

    The caller's sequence is not modified. Records are processed in
    (timestamp, id) order, so the result does not depend on input order.
    Records that fail ``validate_record`` are logged and skipped.

    Args:
        records: Iterable of EarthquakeRecord.
        params: SwarmParams; defaults to ``SwarmParams()``.

    Returns:
        List of SwarmEvent in ascending start_time order.
    """
    params = params or SwarmParams()
    valid, errors = validate_records(records)
    for err in errors:
        logger.warning(f"Skipping record in swarm detection: {err}")

    ordered = sorted(valid, key=lambda r: (r.timestamp, r.id))

    swarms = []
    cluster = _Cluster()

    def close(c):
        if len(c) >= params.min_cluster_size:
            swarms.append(c.to_swarm())

    for record in ordered:
        if not is_located(record):
            # Unlocated records form a singleton that is closed at once
            close(cluster)
            cluster = _Cluster()
            continue

        if len(cluster) and not cluster.accepts(record, params):
            close(cluster)
            cluster = _Cluster()
        cluster.add(record)

    close(cluster)

    swarms.sort(key=lambda s: (s.start_time, s.id))
    logger.debug(f"Detected {len(swarms)} swarms in {len(ordered)} records "
                 f"({len(errors)} skipped)")
    return swarms
