import math
from typing import Optional, Sequence

from .models import AmbientSample, Coordinate

NEUTRAL_EXPOSURE = 50.0
SAMPLE_STRIDE = 5  # every 5th vertex, index 0 included


def nearest_sample(point: Coordinate, samples: Sequence[AmbientSample]) -> Optional[AmbientSample]:
    """Closest sample by planar distance in (lat, lng) degrees. First one wins ties."""
    best, best_d = None, math.inf
    for s in samples:
        d = math.hypot(point.lat - s.coordinate.lat, point.lng - s.coordinate.lng)
        if d < best_d:
            best, best_d = s, d
    return best


def average_exposure(route_coords: Sequence[Coordinate], samples: Sequence[AmbientSample]) -> float:
    """
    Mean index of the nearest ambient sample over every SAMPLE_STRIDE-th route vertex.

    Several consecutive vertices can land on the same sample; dense stretches of
    the route therefore weigh more. Returns NEUTRAL_EXPOSURE without samples or
    without vertices.
    """
    if not samples:
        return NEUTRAL_EXPOSURE
    total, count = 0.0, 0
    for i in range(0, len(route_coords), SAMPLE_STRIDE):
        s = nearest_sample(route_coords[i], samples)
        total += s.index
        count += 1
    return total / count if count else NEUTRAL_EXPOSURE
