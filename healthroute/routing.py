import logging
import math
from typing import Iterable, List, Optional, Sequence

import polyline as pl

from .models import Coordinate, RouteCandidate

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000.0


# Google encoded polyline, precision 5, (lat, lng) order.
# The same order is used for ambient samples and display paths.


def decode_polyline(encoded: str) -> List[Coordinate]:
    if not encoded or not isinstance(encoded, str):
        return []
    try:
        pairs = pl.decode(encoded)  # (lat, lon)
    except (IndexError, ValueError, TypeError) as e:
        logger.debug("undecodable polyline (%s): %.40r", type(e).__name__, encoded)
        return []
    return [Coordinate(lat=lat, lng=lng) for lat, lng in pairs]


def encode_polyline(coords: Iterable[Coordinate]) -> str:
    return pl.encode([c.as_tuple() for c in coords])


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)
    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def estimate_distance_meters(coords: Sequence[Coordinate]) -> float:
    """Straight-segment length through the vertices; not the road-following length."""
    meters = 0.0
    for i in range(1, len(coords)):
        meters += haversine_m(coords[i - 1], coords[i])
    return meters


def route_path(candidate: RouteCandidate) -> List[Coordinate]:
    if candidate.path:
        return list(candidate.path)
    return decode_polyline(candidate.encoded_polyline or "")


def resolve_distance_km(encoded_polyline: Optional[str] = None, distance_km: Optional[float] = None,
                        route_metadata: Optional[dict] = None,
                        path: Optional[Sequence[Coordinate]] = None) -> float:
    """
    Distance precedence:
      decoded geometry > explicit distance_km > route_metadata["distanceMeters"] > 0
    An explicit path only counts as geometry when no distance_km was given
    (the routing provider's figure follows the roads, the path does not).
    """
    if encoded_polyline:
        return round(estimate_distance_meters(decode_polyline(encoded_polyline)) / 1000, 2)
    if distance_km is not None:
        return float(distance_km)
    if path and len(path) >= 2:
        return round(estimate_distance_meters(path) / 1000, 2)
    return metadata_distance_km(route_metadata)


def candidate_distance_km(candidate: RouteCandidate) -> float:
    return resolve_distance_km(candidate.encoded_polyline, candidate.distance_km,
                               candidate.route_metadata, candidate.path)


def metadata_distance_km(route_metadata: Optional[dict]) -> float:
    meters = (route_metadata or {}).get("distanceMeters")
    if isinstance(meters, (int, float)) and not isinstance(meters, bool):
        return round(meters / 1000, 2)
    return 0.0
