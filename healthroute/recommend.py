import logging
import math
from typing import Optional, Union

from .models import HealthProfile, TRAFFIC_LEVEL_INDEX, round_half_up

logger = logging.getLogger(__name__)

W_DISTANCE = 0.30
W_TRAFFIC = 0.20

# penalty saturation points
MAX_DISTANCE_KM = 20.0
MAX_AQI = 300.0
MAX_TRAFFIC = 100.0

TRAFFIC_ALIASES = {"moderate": "medium"}


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _penalty(value: Optional[float], full_at: float) -> float:
    # 0..100, NaN counts as no penalty
    if value is None or math.isnan(value):
        return 0.0
    return _clamp(value / full_at, 0.0, 1.0) * 100


def traffic_index(level: Union[float, str, None]) -> Optional[float]:
    """Categorical traffic bucket (low/medium/high) -> 0..100 index. Numbers pass through."""
    if level is None or isinstance(level, bool):
        return None
    if isinstance(level, (int, float)):
        return float(level)
    key = str(level).strip().lower()
    key = TRAFFIC_ALIASES.get(key, key)
    if key in TRAFFIC_LEVEL_INDEX:
        return TRAFFIC_LEVEL_INDEX[key]
    try:
        return float(key)
    except ValueError:
        logger.warning("unknown traffic level %r; scoring without traffic", level)
        return None


def score_route(avg_index: float, distance_km: float, profile: HealthProfile,
                traffic_index: Optional[float] = None) -> int:
    """
    0..100, higher is healthier.

    total = wExp*exposure + 0.30*distance + 0.20*traffic (each penalty 0..100),
    wExp by profile: sensitive .60, children/elderly .55, default .50.
    """
    profile = HealthProfile.parse(profile)
    dist_penalty = _penalty(distance_km, MAX_DISTANCE_KM)
    exposure_penalty = _penalty(avg_index, MAX_AQI)
    traffic_penalty = _penalty(traffic_index, MAX_TRAFFIC)

    total = (profile.exposure_weight * exposure_penalty
             + W_DISTANCE * dist_penalty
             + W_TRAFFIC * traffic_penalty)
    return round_half_up(_clamp(100 - total, 0.0, 100.0))
