"""Routing domain models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Sequence

from ...models.domain import Coordinate, Waypoint
from .errors import ProviderError


class StrategyId(str, Enum):
    """Declaration order is the final tie-breaker when ranking."""

    DIRECT = "direct"
    ANCHORED = "from_start"
    ROUND_TRIP = "round_trip"
    NEAREST_NEIGHBOR = "nearest"


class PermutationSource(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"


@dataclass(frozen=True, slots=True)
class Permutation:
    """Visiting order as indices into the request's waypoint list."""

    source: PermutationSource
    order: tuple[int, ...]

    def apply(self, items: Sequence[Waypoint]) -> tuple[Waypoint, ...]:
        if sorted(self.order) != list(range(len(items))):
            raise ValueError(f"Order {self.order} is not a permutation of {len(items)} items.")
        return tuple(items[index] for index in self.order)


@dataclass(frozen=True, slots=True)
class RouteCost:
    distance_meters: float
    duration_seconds: float
    duration_in_traffic_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        if self.distance_meters < 0 or self.duration_seconds < 0:
            raise ValueError("Route cost cannot be negative.")
        if self.duration_in_traffic_seconds is not None and self.duration_in_traffic_seconds < 0:
            raise ValueError("Route cost cannot be negative.")


@dataclass(frozen=True, slots=True)
class RouteRequest:
    """Provider-agnostic route request."""

    coordinates: tuple[Coordinate, ...]
    optimize: bool = False
    source: Literal["first", "any"] = "first"
    destination: Literal["last", "any"] = "last"
    roundtrip: bool = False

    def __post_init__(self) -> None:
        if len(self.coordinates) < 2:
            raise ValueError("At least two coordinates are required for a route request.")


@dataclass(frozen=True, slots=True)
class ProviderRoute:
    """Normalized provider answer."""

    provider: str
    geometry: tuple[Coordinate, ...]
    cost: RouteCost
    waypoint_order: Optional[tuple[int, ...]] = None
    used_traffic_data: bool = False


@dataclass(frozen=True, slots=True)
class CascadeResult:
    route: Optional[ProviderRoute]
    errors: tuple[ProviderError, ...] = ()
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return self.route is not None


@dataclass(frozen=True, slots=True)
class ResolvedWaypoints:
    """Waypoints with placement constraints applied."""

    waypoints: tuple[Waypoint, ...]
    pinned_end: bool = False
    round_trip: bool = False

    def __len__(self) -> int:
        return len(self.waypoints)

    @property
    def coordinates(self) -> tuple[Coordinate, ...]:
        return tuple(waypoint.coordinate for waypoint in self.waypoints)


@dataclass(frozen=True, slots=True)
class RouteCandidate:
    strategy_id: StrategyId
    label: str
    geometry: tuple[Coordinate, ...]
    cost: RouteCost
    ordered_waypoints: tuple[Waypoint, ...]
    used_traffic_data: bool
    short_description: str
    long_description: str
    provider: str
    candidate_id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass(frozen=True, slots=True)
class StrategyOutcome:
    strategy_id: StrategyId
    candidate: Optional[RouteCandidate]
    errors: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class OptimizationResult:
    candidates: tuple[RouteCandidate, ...]
    succeeded: bool
    failures: dict[str, list[str]] = field(default_factory=dict)

    def find(self, candidate_id: str) -> Optional[RouteCandidate]:
        for candidate in self.candidates:
            if candidate.candidate_id == candidate_id:
                return candidate
        return None
