"""Routing request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.domain import RouteConfig, Waypoint


class WaypointModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    label: Optional[str] = None

    def to_domain(self) -> Waypoint:
        return Waypoint.at(self.latitude, self.longitude, self.label)


class RouteConfigModel(BaseModel):
    return_to_start: bool = Field(
        default=False,
        description="Close the loop at the fixed start. Requires fixed_start; overrides fixed_end.",
    )


class OptimizationRequest(BaseModel):
    waypoints: List[WaypointModel] = Field(default_factory=list)
    fixed_start: Optional[WaypointModel] = Field(default=None, description="Business-fixed first stop.")
    fixed_end: Optional[WaypointModel] = Field(default=None, description="Business-fixed last stop.")
    config: RouteConfigModel = Field(default_factory=RouteConfigModel)

    def domain_waypoints(self) -> list[Waypoint]:
        return [waypoint.to_domain() for waypoint in self.waypoints]

    def domain_config(self) -> RouteConfig:
        return RouteConfig(
            fixed_start=self.fixed_start is not None,
            fixed_end=self.fixed_end is not None,
            return_to_start=self.config.return_to_start,
        )


class OrderedWaypointModel(BaseModel):
    latitude: float
    longitude: float
    label: Optional[str] = None


class RouteCandidateModel(BaseModel):
    candidate_id: str
    strategy: str
    label: str
    short_description: str
    long_description: str
    provider: str
    used_traffic_data: bool
    distance_meters: float
    duration_seconds: float
    duration_in_traffic_seconds: Optional[float] = None
    distance_km: float
    duration_formatted: str
    duration_in_traffic_formatted: Optional[str] = None
    ordered_waypoints: List[OrderedWaypointModel]
    geometry: List[List[float]]


class OptimizationResponse(BaseModel):
    succeeded: bool
    candidates: List[RouteCandidateModel]
    failures: Dict[str, List[str]] = Field(default_factory=dict)


class CandidateSelection(BaseModel):
    candidate_id: str


class SessionResponse(BaseModel):
    session_id: str
    state: str
    candidates: List[RouteCandidateModel]
    previewed: Optional[RouteCandidateModel] = None
    committed: Optional[RouteCandidateModel] = None


class CommittedStopModel(BaseModel):
    sequence: int
    label: Optional[str] = None
    latitude: float
    longitude: float
    coordinates: str


class CommittedRouteModel(BaseModel):
    """Payload handed to the notification/automation workflow."""

    route_name: str
    strategy: str
    distance_km: float
    duration_formatted: str
    has_traffic_data: bool
    waypoints_count: int
    waypoints: List[CommittedStopModel]
