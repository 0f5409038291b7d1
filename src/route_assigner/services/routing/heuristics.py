"""Local ordering heuristics."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import Coordinate
from ..geospatial import distance_km


def nearest_neighbor_order(coordinates: Sequence[Coordinate]) -> list[int]:
    """Greedy nearest-neighbor tour starting at index 0.

    Picks the closest unvisited point by haversine distance at each step; ties
    go to the lowest original index. Not globally optimal.
    """
    if not coordinates:
        return []

    order = [0]
    unvisited = list(range(1, len(coordinates)))
    while unvisited:
        current = coordinates[order[-1]]
        # unvisited stays sorted, so min() keeps the lowest index on ties
        nearest = min(unvisited, key=lambda idx: distance_km(current, coordinates[idx]))
        order.append(nearest)
        unvisited.remove(nearest)
    return order


def nearest_neighbor_with_pinned_tail(coordinates: Sequence[Coordinate], pinned_tail: bool) -> list[int]:
    """Run the heuristic on every point but the last when the last stop is fixed."""
    if not pinned_tail or len(coordinates) < 3:
        return nearest_neighbor_order(coordinates)
    head = nearest_neighbor_order(coordinates[:-1])
    return [*head, len(coordinates) - 1]
