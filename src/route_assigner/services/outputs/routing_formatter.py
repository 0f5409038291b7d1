"""Serializers for routing outputs."""

from __future__ import annotations

from typing import Any, Optional

from ...models.domain import Coordinate
from ..routing.models import OptimizationResult, RouteCandidate


def format_duration(seconds: float) -> str:
    """``"1h 5m"`` from one hour up, ``"12 min"`` below."""
    total = int(max(seconds, 0))
    hours = total // 3600
    minutes = (total % 3600) // 60
    return f"{hours}h {minutes}m" if hours > 0 else f"{minutes} min"


def distance_km(meters: float) -> float:
    return round(meters / 1000.0, 1)


def coordinate_string(coordinate: Coordinate) -> str:
    """``"lat,lng"`` with ten decimals, the format the automation workflow reads."""
    return f"{coordinate.latitude:.10f},{coordinate.longitude:.10f}"


def _traffic_duration(candidate: RouteCandidate) -> Optional[str]:
    in_traffic = candidate.cost.duration_in_traffic_seconds
    return format_duration(in_traffic) if in_traffic is not None else None


def candidate_to_json(candidate: RouteCandidate) -> dict[str, Any]:
    return {
        "candidate_id": candidate.candidate_id,
        "strategy": candidate.strategy_id.value,
        "label": candidate.label,
        "short_description": candidate.short_description,
        "long_description": candidate.long_description,
        "provider": candidate.provider,
        "used_traffic_data": candidate.used_traffic_data,
        "distance_meters": candidate.cost.distance_meters,
        "duration_seconds": candidate.cost.duration_seconds,
        "duration_in_traffic_seconds": candidate.cost.duration_in_traffic_seconds,
        "distance_km": distance_km(candidate.cost.distance_meters),
        "duration_formatted": format_duration(candidate.cost.duration_seconds),
        "duration_in_traffic_formatted": _traffic_duration(candidate),
        "ordered_waypoints": [
            {"latitude": wp.latitude, "longitude": wp.longitude, "label": wp.label}
            for wp in candidate.ordered_waypoints
        ],
        "geometry": [[point.latitude, point.longitude] for point in candidate.geometry],
    }


def optimization_result_to_json(result: OptimizationResult) -> dict[str, Any]:
    return {
        "succeeded": result.succeeded,
        "candidates": [candidate_to_json(candidate) for candidate in result.candidates],
        "failures": result.failures,
    }


def committed_route_payload(candidate: RouteCandidate) -> dict[str, Any]:
    """Stable payload handed to the notification/automation collaborator."""
    return {
        "route_name": candidate.label,
        "strategy": candidate.strategy_id.value,
        "distance_km": distance_km(candidate.cost.distance_meters),
        "duration_formatted": _traffic_duration(candidate) or format_duration(candidate.cost.duration_seconds),
        "has_traffic_data": candidate.used_traffic_data,
        "waypoints_count": len(candidate.ordered_waypoints),
        "waypoints": [
            {
                "sequence": position,
                "label": wp.label,
                "latitude": wp.latitude,
                "longitude": wp.longitude,
                "coordinates": coordinate_string(wp.coordinate),
            }
            for position, wp in enumerate(candidate.ordered_waypoints, start=1)
        ],
    }
