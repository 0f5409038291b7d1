"""Domain models."""

from .domain import Coordinate, RouteConfig, Waypoint

__all__ = ["Coordinate", "RouteConfig", "Waypoint"]
