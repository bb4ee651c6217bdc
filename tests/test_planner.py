import pytest

import healthroute.planner as planner
from healthroute.ai_agent import ExplanationProvider
from healthroute.data import DEMO_AQI, DEMO_ROUTES
from healthroute.errors import InvalidSelectionError, NoRoutesError
from healthroute.models import RankedRoute, ScoredRoute
from healthroute.planner import calculate_route_health_score, rank_routes, rank_routes_payload


def _walk(distance, **extra):
    return {"path": [{"lat": 3.15, "lng": 101.71}, {"lat": 3.14, "lng": 101.725}],
            "distance": distance, "duration": 10, "travelMode": "WALK", **extra}


def test_reference_scenario_without_credentials():
    result = calculate_route_health_score({
        "avgAqi": 55,
        "routeDistanceKm": 4.2,
        "routeDurationMinutes": 15,
        "trafficLevel": "moderate",
        "healthProfile": "default",
        "travelMode": "WALK",
        # only read by the caller's display layer; distance comes from routeDistanceKm
        "routeMetadata": {"polyline": "}_p~F~ps|U_ulLnnqC_mqNvxq`@"},
    }, provider=ExplanationProvider(api_key=None))
    assert result == ScoredRoute(health_score=75, explanation="Balanced 4.2 km and AQI 55; recommended for default.")


def test_single_route_defaults():
    result = calculate_route_health_score({"routeMetadata": {"distanceMeters": 2000}})
    # AQI 50, 2 km, no traffic, default profile
    assert result.health_score == round(100 - 0.5 * 50 / 3 - 0.3 * 10)
    assert result.explanation == "Balanced 2 km and AQI 50; recommended for default."


def test_single_route_bad_profile():
    with pytest.raises(InvalidSelectionError):
        calculate_route_health_score({"avgAqi": 10, "healthProfile": "athlete"})


def test_empty_candidates_is_an_error():
    with pytest.raises(NoRoutesError):
        rank_routes([], DEMO_AQI, "default")
    out = rank_routes_payload([], DEMO_AQI, "default")
    assert out == {"error": "Could not find any routes. Please try different locations or travel modes."}


def test_ties_keep_input_order(monkeypatch):
    scores = {1.0: 40, 2.0: 40, 3.0: 90}
    monkeypatch.setattr(planner, "score_route", lambda avg, km, profile, traffic=None: scores[km])
    ranked = rank_routes([_walk(1.0), _walk(2.0), _walk(3.0)], [], "default")
    assert [r.id for r in ranked] == ["WALK-3", "WALK-1", "WALK-2"]
    assert [r.health_score for r in ranked] == [90, 40, 40]


def test_ranked_descending_with_real_scores():
    ranked = rank_routes([_walk(10), _walk(10), _walk(1)], [], "sensitive")
    assert [r.id for r in ranked] == ["WALK-3", "WALK-1", "WALK-2"]
    assert ranked[1].health_score == ranked[2].health_score


def test_demo_routes_ranked():
    ranked = rank_routes(DEMO_ROUTES, DEMO_AQI, "sensitive", max_workers=3)
    assert len(ranked) == 3
    assert all(isinstance(r, RankedRoute) for r in ranked)
    scores = [r.health_score for r in ranked]
    assert scores == sorted(scores, reverse=True)
    assert {r.id for r in ranked} == {"WALK-1", "WALK-2", "WALK-3"}
    for r in ranked:
        assert r.explanation.endswith("recommended for sensitive.")
        assert r.explanation_source == "fallback"


def test_polyline_candidate_gets_path_and_distance():
    ranked = rank_routes([{"encodedPolyline": "_p~iF~ps|U_ulLnnqC_mqNvxq`@", "travelMode": "DRIVE"}],
                         [{"lat": 40.0, "lng": -121.0, "aqi": 120}], "default")
    route = ranked[0]
    assert route.id == "DRIVE-1"
    assert len(route.path) == 3
    assert route.avg_aqi == 120
    assert route.distance_km > 500


def test_unknown_enums_fail_fast():
    with pytest.raises(InvalidSelectionError):
        rank_routes([_walk(1)], [], "athlete")
    with pytest.raises(InvalidSelectionError):
        rank_routes([_walk(1, travelMode="TELEPORT")], [], "default")
    with pytest.raises(InvalidSelectionError):
        rank_routes([{"distance": 1}], [], "default")


def test_malformed_sample_skipped():
    ranked = rank_routes([_walk(1)], [{"lat": 3.15}, {"lat": 3.15, "lng": 101.71, "aqi": 80}], "default")
    assert ranked[0].avg_aqi == 80


def test_model_explanations_flow_through(provider_with):
    provider, llm = provider_with(content='{"healthScore": 60, "explanation": "Fine for a short walk."}')
    ranked = rank_routes([_walk(1), _walk(2)], DEMO_AQI, "elderly", provider=provider)
    assert [r.explanation for r in ranked] == ["Fine for a short walk."] * 2
    assert {r.explanation_source for r in ranked} == {"model"}
    assert len(llm.calls) == 2


def test_payload_shape():
    out = rank_routes_payload(DEMO_ROUTES, DEMO_AQI, "default")
    assert len(out["aqiData"]) == len(DEMO_AQI)
    first = out["routes"][0]
    assert set(first) == {"id", "path", "distance", "duration", "traffic", "travelMode",
                          "avgAqi", "healthScore", "explanation", "explanationSource"}
    assert isinstance(first["healthScore"], int)
    assert first["explanation"]


def test_half_average_rounds_up_in_payload():
    # vertices 0 and 5 are sampled: nearest 54 and 55 average to 54.5
    path = [{"lat": float(i), "lng": 0.0} for i in range(6)]
    samples = [{"lat": 0.0, "lng": 0.0, "aqi": 54}, {"lat": 5.0, "lng": 0.0, "aqi": 55}]
    out = rank_routes_payload([_walk(1, path=path)], samples, "default")
    route = out["routes"][0]
    assert route["avgAqi"] == 55
    assert route["explanation"] == "Balanced 1 km and AQI 55; recommended for default."


@pytest.mark.parametrize("bad", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_sample_is_skipped(bad):
    out = rank_routes_payload([_walk(1)], [{"lat": 3.15, "lng": 101.71, "aqi": bad}], "default")
    assert "error" not in out
    assert out["aqiData"] == []
    route = out["routes"][0]
    assert route["avgAqi"] == 50
    assert route["explanation"] == "Balanced 1 km and AQI 50; recommended for default."
