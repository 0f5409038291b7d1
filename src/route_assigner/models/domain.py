"""Domain models for stops and route placement rules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 point. Immutable."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude {self.latitude} is outside [-90, 90].")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude {self.longitude} is outside [-180, 180].")

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True, slots=True)
class Waypoint:
    """A stop to visit. Identity is its position in a list."""

    coordinate: Coordinate
    label: Optional[str] = None

    @classmethod
    def at(cls, latitude: float, longitude: float, label: Optional[str] = None) -> "Waypoint":
        return cls(Coordinate(latitude, longitude), label)

    @property
    def latitude(self) -> float:
        return self.coordinate.latitude

    @property
    def longitude(self) -> float:
        return self.coordinate.longitude


@dataclass(frozen=True, slots=True)
class RouteConfig:
    """Placement rules for the first and last stop.

    ``return_to_start`` takes precedence over ``fixed_end``.
    """

    fixed_start: bool = False
    fixed_end: bool = False
    return_to_start: bool = False
