"""Placement of fixed start, fixed end and return-to-start stops."""

from __future__ import annotations

from typing import Optional, Sequence

from ...config import settings
from ...models.domain import RouteConfig, Waypoint
from ..geospatial import coordinates_match
from .errors import InsufficientWaypoints
from .models import ResolvedWaypoints


def _without(waypoints: Sequence[Waypoint], point: Waypoint, tolerance: float) -> list[Waypoint]:
    return [wp for wp in waypoints if not coordinates_match(wp.coordinate, point.coordinate, tolerance)]


def resolve_waypoints(
    waypoints: Sequence[Waypoint],
    config: RouteConfig | None = None,
    fixed_start: Optional[Waypoint] = None,
    fixed_end: Optional[Waypoint] = None,
    *,
    tolerance_deg: float | None = None,
) -> ResolvedWaypoints:
    """Bake the placement rules into one ordered waypoint list.

    ``config.fixed_start`` and ``config.fixed_end`` decide whether the given
    points are pinned; a point passed with its flag off is ignored. Without a
    config, every point passed is pinned.

    A pinned start is prepended and removed from the raw list. With
    ``return_to_start`` the same point is appended as the last stop and any
    fixed end is ignored; otherwise a pinned end is moved to the end.

    Raises:
        InsufficientWaypoints: fewer than two stops remain.
    """
    if config is None:
        config = RouteConfig(fixed_start=fixed_start is not None, fixed_end=fixed_end is not None)
    start = fixed_start if config.fixed_start else None
    end = fixed_end if config.fixed_end else None
    tolerance = settings.coordinate_match_tolerance_deg if tolerance_deg is None else tolerance_deg
    resolved = list(waypoints)

    if start is not None:
        resolved = [start, *_without(resolved, start, tolerance)]

    round_trip = config.return_to_start and start is not None
    pinned_end = False
    if round_trip:
        resolved.append(start)
        pinned_end = True
    elif end is not None:
        head = resolved[:1] if start is not None else []
        rest = resolved[1:] if start is not None else resolved
        resolved = [*head, *_without(rest, end, tolerance), end]
        pinned_end = True

    if len(resolved) < 2:
        raise InsufficientWaypoints(len(resolved))

    return ResolvedWaypoints(waypoints=tuple(resolved), pinned_end=pinned_end, round_trip=round_trip)
