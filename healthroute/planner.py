import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import ValidationError

from .ai_agent import ExplanationProvider
from .config import DEFAULT_MAX_WORKERS
from .errors import HealthRouteError, InvalidSelectionError, NoRoutesError
from .exposure import NEUTRAL_EXPOSURE, average_exposure
from .models import (
    AmbientSample,
    HealthProfile,
    RankedRoute,
    RouteCandidate,
    RouteHealthRequest,
    ScoredRoute,
    round_half_up,
)
from .recommend import score_route, traffic_index
from .routing import candidate_distance_km, resolve_distance_km, route_path

logger = logging.getLogger(__name__)


def _coerce_request(request: Union[RouteHealthRequest, Dict[str, Any]]) -> RouteHealthRequest:
    if isinstance(request, RouteHealthRequest):
        return request
    data = dict(request)
    data["health_profile"] = HealthProfile.parse(data.pop("healthProfile", data.get("health_profile")))
    try:
        return RouteHealthRequest.model_validate(data)
    except ValidationError as e:
        raise InvalidSelectionError(f"invalid route health request: {e.errors()[0].get('msg')}") from e


def calculate_route_health_score(request: Union[RouteHealthRequest, Dict[str, Any]],
                                 provider: Optional[ExplanationProvider] = None) -> ScoredRoute:
    """Score one route whose average AQI is already known (50 when absent)."""
    req = _coerce_request(request)
    provider = provider or ExplanationProvider()

    distance_km = resolve_distance_km(req.encoded_polyline, req.route_distance_km, req.route_metadata)
    avg_aqi = req.avg_aqi if req.avg_aqi is not None else NEUTRAL_EXPOSURE
    profile = req.health_profile

    health_score = score_route(avg_aqi, distance_km, profile, traffic_index(req.traffic_level))
    explanation = provider.explain(distance_km, avg_aqi, profile, health_score)
    return ScoredRoute(health_score=health_score, explanation=explanation)


def _coerce_samples(samples: Optional[Iterable[Any]]) -> List[AmbientSample]:
    out = []
    for s in samples or []:
        if isinstance(s, AmbientSample):
            out.append(s)
            continue
        try:
            out.append(AmbientSample.model_validate(s))
        except ValidationError:
            logger.warning("skipping malformed ambient sample: %.80r", s)
    return out


def _score_candidate(route: RouteCandidate, position: int, samples: Sequence[AmbientSample],
                     profile: HealthProfile, provider: ExplanationProvider) -> RankedRoute:
    path = route_path(route)
    distance_km = candidate_distance_km(route)
    avg_aqi = average_exposure(path, samples)
    health_score = score_route(avg_aqi, distance_km, profile, traffic_index(route.traffic))
    explanation = provider.explain_detailed(distance_km, avg_aqi, profile, health_score)

    return RankedRoute.model_validate({
        **route.model_dump(),
        "path": [c.model_dump() for c in path],
        "distance_km": distance_km,
        "id": f"{route.travel_mode.value}-{position}",
        "avg_aqi": round_half_up(avg_aqi),
        "health_score": health_score,
        "explanation": explanation.text,
        "explanation_source": explanation.source,
    })


def rank_routes(candidates: Sequence[Union[RouteCandidate, Dict[str, Any]]],
                samples: Optional[Iterable[Union[AmbientSample, Dict[str, Any]]]],
                profile: Union[HealthProfile, str, None],
                provider: Optional[ExplanationProvider] = None,
                max_workers: int = DEFAULT_MAX_WORKERS) -> List[RankedRoute]:
    """
    Score every candidate route and return them by descending health score.

    Candidates are scored concurrently and independently; equal scores keep
    their input order. Raises NoRoutesError for an empty candidate list and
    InvalidSelectionError for an unknown profile or travel mode.
    """
    profile = HealthProfile.parse(profile)
    if not candidates:
        raise NoRoutesError()
    routes = [RouteCandidate.coerce(c) for c in candidates]
    ambient = _coerce_samples(samples)
    provider = provider or ExplanationProvider()

    def _job(item):
        position, route = item
        return _score_candidate(route, position, ambient, profile, provider)

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(routes)))) as ex:
        scored = list(ex.map(_job, enumerate(routes, start=1)))  # input order

    scored.sort(key=lambda r: r.health_score, reverse=True)  # stable
    logger.info("ranked %d routes for profile=%s (best=%s)", len(scored), profile.value, scored[0].id)
    return scored


def rank_routes_payload(candidates, samples, profile, provider: Optional[ExplanationProvider] = None,
                        max_workers: int = DEFAULT_MAX_WORKERS) -> Dict[str, Any]:
    """Caller-facing shape: {"routes": [...], "aqiData": [...]} or {"error": "..."}."""
    samples = list(samples or [])
    try:
        ranked = rank_routes(candidates, samples, profile, provider=provider, max_workers=max_workers)
    except HealthRouteError as e:
        logger.warning("route ranking failed: %s", e)
        return {"error": str(e)}
    return {
        "routes": [r.to_dict() for r in ranked],
        "aqiData": [s.to_dict() for s in _coerce_samples(samples)],
    }
