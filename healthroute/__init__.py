"""Route health scoring: rank candidate routes by air-quality exposure, distance and traffic."""

from .ai_agent import Explanation, ExplanationProvider, fallback_explanation, parse_response
from .config import Settings, load_settings
from .errors import HealthRouteError, InvalidSelectionError, NoRoutesError
from .exposure import NEUTRAL_EXPOSURE, average_exposure
from .models import (
    AmbientSample,
    Coordinate,
    HealthProfile,
    RankedRoute,
    RouteCandidate,
    RouteHealthRequest,
    ScoredRoute,
    TrafficLevel,
    TravelMode,
)
from .planner import calculate_route_health_score, rank_routes, rank_routes_payload
from .recommend import score_route, traffic_index
from .routing import decode_polyline, encode_polyline, estimate_distance_meters, resolve_distance_km

__version__ = "0.1.0"

__all__ = [
    "AmbientSample",
    "Coordinate",
    "Explanation",
    "ExplanationProvider",
    "HealthProfile",
    "HealthRouteError",
    "InvalidSelectionError",
    "NEUTRAL_EXPOSURE",
    "NoRoutesError",
    "RankedRoute",
    "RouteCandidate",
    "RouteHealthRequest",
    "ScoredRoute",
    "Settings",
    "TrafficLevel",
    "TravelMode",
    "average_exposure",
    "calculate_route_health_score",
    "decode_polyline",
    "encode_polyline",
    "estimate_distance_meters",
    "fallback_explanation",
    "load_settings",
    "parse_response",
    "rank_routes",
    "rank_routes_payload",
    "resolve_distance_km",
    "score_route",
    "traffic_index",
]
