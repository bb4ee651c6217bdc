# models.py
from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import InvalidSelectionError


# exposure weight per profile; distance/traffic weights live in recommend.py
PROFILE_EXPOSURE_WEIGHTS = {
    "sensitive": 0.60,
    "children": 0.55,
    "elderly": 0.55,
    "default": 0.50,
}

# categorical traffic bucket -> 0..100 index
TRAFFIC_LEVEL_INDEX = {
    "low": 15.0,
    "medium": 50.0,
    "high": 85.0,
}


def round_half_up(x: float) -> int:
    """Nearest integer with halves rounded up (54.5 -> 55), unlike round()."""
    return int(math.floor(x + 0.5))


class TravelMode(str, Enum):
    DRIVE = "DRIVE"
    WALK = "WALK"
    BICYCLE = "BICYCLE"

    @classmethod
    def parse(cls, value: Any) -> "TravelMode":
        if isinstance(value, cls):
            return value
        if value is None:
            raise InvalidSelectionError("travel mode is required")
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise InvalidSelectionError(f"unknown travel mode: {value!r}") from None


class HealthProfile(str, Enum):
    DEFAULT = "default"
    SENSITIVE = "sensitive"
    CHILDREN = "children"
    ELDERLY = "elderly"

    @property
    def exposure_weight(self) -> float:
        return PROFILE_EXPOSURE_WEIGHTS[self.value]

    @classmethod
    def parse(cls, value: Any) -> "HealthProfile":
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.DEFAULT
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidSelectionError(f"unknown health profile: {value!r}") from None


class TrafficLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def index(self) -> float:
        return TRAFFIC_LEVEL_INDEX[self.value]


class Coordinate(BaseModel):
    lat: float = Field(..., description="Latitude in WGS84 degrees")
    lng: float = Field(..., description="Longitude in WGS84 degrees")

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data: Any) -> Any:
        # (lat, lng) tuples as returned by the polyline codec
        if isinstance(data, (tuple, list)) and len(data) == 2:
            return {"lat": data[0], "lng": data[1]}
        if isinstance(data, dict) and "lng" not in data and "lon" in data:
            return {**data, "lng": data["lon"]}
        return data

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


class AmbientSample(BaseModel):
    """One air-quality index measurement at a point."""
    model_config = ConfigDict(populate_by_name=True)

    coordinate: Coordinate
    index: float = Field(..., validation_alias=AliasChoices("index", "aqi"), allow_inf_nan=False)
    id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _from_flat(cls, data: Any) -> Any:
        # the air-quality collaborator hands out {id, lat, lng, aqi}
        if isinstance(data, dict) and "coordinate" not in data and "lat" in data:
            data = dict(data)
            data["coordinate"] = {"lat": data.pop("lat"), "lng": data.pop("lng", data.pop("lon", None))}
        return data

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "lat": self.coordinate.lat, "lng": self.coordinate.lng, "aqi": self.index}


class RouteCandidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: Optional[List[Coordinate]] = None
    encoded_polyline: Optional[str] = Field(
        None, validation_alias=AliasChoices("encoded_polyline", "encodedPolyline", "polyline")
    )
    distance_km: Optional[float] = Field(
        None, validation_alias=AliasChoices("distance_km", "distanceKm", "distance")
    )
    duration_minutes: Optional[float] = Field(
        None, validation_alias=AliasChoices("duration_minutes", "durationMinutes", "duration")
    )
    traffic: Optional[Union[float, str]] = Field(
        None, validation_alias=AliasChoices("traffic", "trafficLevel", "traffic_level")
    )
    travel_mode: TravelMode = Field(..., validation_alias=AliasChoices("travel_mode", "travelMode"))
    route_metadata: Dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("route_metadata", "routeMetadata")
    )

    @classmethod
    def coerce(cls, obj: Any) -> "RouteCandidate":
        """dict or model -> RouteCandidate; enum problems surface as InvalidSelectionError."""
        if isinstance(obj, cls):
            return obj
        if not isinstance(obj, dict):
            raise InvalidSelectionError(f"route candidate must be a mapping, got {type(obj).__name__}")
        mode = obj.get("travel_mode", obj.get("travelMode"))
        data = {**obj, "travel_mode": TravelMode.parse(mode)}
        data.pop("travelMode", None)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidSelectionError(f"invalid route candidate: {e.errors()[0].get('msg')}") from e


class ScoredRoute(BaseModel):
    health_score: int = Field(..., ge=0, le=100)
    explanation: str = Field(..., min_length=1)


class RankedRoute(RouteCandidate):
    id: str
    avg_aqi: int
    health_score: int = Field(..., ge=0, le=100)
    explanation: str = Field(..., min_length=1)
    explanation_source: str = "fallback"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "path": [c.model_dump() for c in (self.path or [])],
            "distance": self.distance_km,
            "duration": self.duration_minutes,
            "traffic": self.traffic,
            "travelMode": self.travel_mode.value,
            "avgAqi": self.avg_aqi,
            "healthScore": self.health_score,
            "explanation": self.explanation,
            "explanationSource": self.explanation_source,
        }


class RouteHealthRequest(BaseModel):
    """Single-route scoring input."""
    model_config = ConfigDict(populate_by_name=True)

    encoded_polyline: Optional[str] = Field(None, validation_alias=AliasChoices("encoded_polyline", "encodedPolyline"))
    route_metadata: Dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("route_metadata", "routeMetadata")
    )
    avg_aqi: Optional[float] = Field(None, validation_alias=AliasChoices("avg_aqi", "avgAqi"), allow_inf_nan=False)
    route_distance_km: Optional[float] = Field(
        None, validation_alias=AliasChoices("route_distance_km", "routeDistanceKm")
    )
    route_duration_minutes: Optional[float] = Field(
        None, validation_alias=AliasChoices("route_duration_minutes", "routeDurationMinutes")
    )
    traffic_level: Optional[Union[float, str]] = Field(
        None, validation_alias=AliasChoices("traffic_level", "trafficLevel")
    )
    health_profile: HealthProfile = Field(
        HealthProfile.DEFAULT, validation_alias=AliasChoices("health_profile", "healthProfile")
    )
    travel_mode: Optional[TravelMode] = Field(None, validation_alias=AliasChoices("travel_mode", "travelMode"))
