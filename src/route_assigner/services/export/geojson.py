"""GeoJSON export of route options for the map client."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from shapely.geometry import LineString, Point, mapping

from ..outputs.routing_formatter import distance_km, format_duration
from ..routing.models import RouteCandidate


def generate_route_color(index: int) -> str:
    """Generate distinct colors for route options."""
    colors = [
        "#3b82f6", "#e0003e", "#38e000", "#8b5cf6", "#e0af00",
        "#13aae0", "#e000a2", "#10b981",
    ]
    return colors[index % len(colors)]


def candidate_to_feature(candidate: RouteCandidate, index: int = 0, role: str = "option") -> Dict[str, Any]:
    """One LineString feature; GeoJSON positions are ``[lon, lat]``."""
    if len(candidate.geometry) < 2:
        raise ValueError("LineString must have at least 2 coordinates")
    line = LineString([(point.longitude, point.latitude) for point in candidate.geometry])
    return {
        "type": "Feature",
        "geometry": mapping(line),
        "properties": {
            "candidate_id": candidate.candidate_id,
            "strategy": candidate.strategy_id.value,
            "label": candidate.label,
            "role": role,
            "rank": index + 1,
            "color": generate_route_color(index),
            "distance_km": distance_km(candidate.cost.distance_meters),
            "duration_formatted": format_duration(candidate.cost.duration_seconds),
            "used_traffic_data": candidate.used_traffic_data,
        },
    }


def waypoint_features(candidate: RouteCandidate) -> List[Dict[str, Any]]:
    return [
        {
            "type": "Feature",
            "geometry": mapping(Point(wp.longitude, wp.latitude)),
            "properties": {"sequence": position, "label": wp.label, "candidate_id": candidate.candidate_id},
        }
        for position, wp in enumerate(candidate.ordered_waypoints, start=1)
    ]


def export_candidates_geojson(
    candidates: Sequence[RouteCandidate],
    previewed: Optional[RouteCandidate] = None,
    committed: Optional[RouteCandidate] = None,
) -> Dict[str, Any]:
    """FeatureCollection with every option, plus the stops of the route on display.

    The previewed route takes precedence over the committed one for the stop
    markers, mirroring what the map shows.
    """
    features: List[Dict[str, Any]] = []
    for index, candidate in enumerate(candidates):
        role = "preview" if previewed is not None and candidate == previewed else "option"
        features.append(candidate_to_feature(candidate, index, role))
    if committed is not None and committed not in candidates:
        features.append(candidate_to_feature(committed, len(features), "committed"))
    elif committed is not None:
        for feature in features:
            if feature["properties"]["candidate_id"] == committed.candidate_id:
                feature["properties"]["role"] = "committed"

    shown = previewed or committed
    if shown is not None:
        features.extend(waypoint_features(shown))
    return {"type": "FeatureCollection", "features": features}
