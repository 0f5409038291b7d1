"""Candidate route strategies and their concurrent execution."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Optional

from ...config import settings
from ...models.domain import Waypoint
from ..outputs.routing_formatter import distance_km, format_duration
from .cancellation import CancellationToken
from .fallback import FallbackCascade
from .heuristics import nearest_neighbor_with_pinned_tail
from .models import (
    Permutation,
    PermutationSource,
    ProviderRoute,
    ResolvedWaypoints,
    RouteCandidate,
    RouteRequest,
    StrategyId,
    StrategyOutcome,
)

logger = logging.getLogger(__name__)

CANCEL_POLL_SECONDS = 0.05


@dataclass(frozen=True, slots=True)
class StrategyInfo:
    label: str
    short_description: str
    summary: str


STRATEGY_INFO: dict[StrategyId, StrategyInfo] = {
    StrategyId.DIRECT: StrategyInfo(
        label="Direct route",
        short_description="Stops in the order entered",
        summary="Visits every stop in the order it was entered.",
    ),
    StrategyId.ANCHORED: StrategyInfo(
        label="Fastest from start",
        short_description="Optimized, keeps first and last stop",
        summary="Lets the routing service reorder the intermediate stops while keeping the first and last stop in place.",
    ),
    StrategyId.ROUND_TRIP: StrategyInfo(
        label="Round trip",
        short_description="Optimized, returns to the start",
        summary="Lets the routing service reorder the stops for a loop that ends back at the starting point.",
    ),
    StrategyId.NEAREST_NEIGHBOR: StrategyInfo(
        label="Nearest stop first",
        short_description="Always drives to the closest pending stop",
        summary="Always continues to the closest stop not yet visited, measured in a straight line.",
    ),
}


@dataclass(frozen=True, slots=True)
class StrategyPlan:
    """One provider request plus how to turn its answer into a visiting order.

    ``local_order`` is set when the order is decided here; otherwise the
    provider's own order (if any) is used. ``closing_stop`` is appended after
    reordering, for loops that end where they started.
    """

    strategy_id: StrategyId
    request: RouteRequest
    waypoints: tuple[Waypoint, ...]
    local_order: Optional[tuple[int, ...]] = None
    closing_stop: Optional[Waypoint] = None


def _open_stops(resolved: ResolvedWaypoints) -> tuple[Waypoint, ...]:
    """Stops without the repeated start that closes a round trip."""
    return resolved.waypoints[:-1] if resolved.round_trip else resolved.waypoints


def applicable_strategies(resolved: ResolvedWaypoints) -> list[StrategyId]:
    if len(resolved) == 2:
        return [StrategyId.DIRECT]
    strategies = [StrategyId.DIRECT, StrategyId.ANCHORED]
    if len(_open_stops(resolved)) >= 3:
        strategies.append(StrategyId.ROUND_TRIP)
    strategies.append(StrategyId.NEAREST_NEIGHBOR)
    return strategies


def plan_strategy(strategy_id: StrategyId, resolved: ResolvedWaypoints) -> StrategyPlan:
    waypoints = resolved.waypoints
    coordinates = resolved.coordinates

    if strategy_id is StrategyId.DIRECT:
        return StrategyPlan(strategy_id, RouteRequest(coordinates), waypoints)

    if strategy_id is StrategyId.ANCHORED:
        request = RouteRequest(coordinates, optimize=True, source="first", destination="last")
        return StrategyPlan(strategy_id, request, waypoints)

    if strategy_id is StrategyId.ROUND_TRIP:
        stops = _open_stops(resolved)
        request = RouteRequest(
            tuple(wp.coordinate for wp in stops),
            optimize=True,
            source="first",
            destination="any",
            roundtrip=True,
        )
        return StrategyPlan(strategy_id, request, stops, closing_stop=stops[0])

    if strategy_id is StrategyId.NEAREST_NEIGHBOR:
        order = tuple(nearest_neighbor_with_pinned_tail(coordinates, resolved.pinned_end))
        request = RouteRequest(tuple(coordinates[index] for index in order))
        return StrategyPlan(strategy_id, request, waypoints, local_order=order)

    raise ValueError(f"Unknown strategy {strategy_id!r}")


def _permutation(plan: StrategyPlan, route: ProviderRoute) -> Permutation:
    if plan.local_order is not None:
        return Permutation(PermutationSource.LOCAL, plan.local_order)
    if plan.request.optimize and route.waypoint_order is not None:
        return Permutation(PermutationSource.REMOTE, route.waypoint_order)
    return Permutation(PermutationSource.LOCAL, tuple(range(len(plan.waypoints))))


def build_candidate(plan: StrategyPlan, route: ProviderRoute) -> RouteCandidate:
    ordered = _permutation(plan, route).apply(plan.waypoints)
    if plan.closing_stop is not None:
        ordered = (*ordered, plan.closing_stop)

    info = STRATEGY_INFO[plan.strategy_id]
    cost = route.cost
    duration = format_duration(cost.duration_seconds)
    if cost.duration_in_traffic_seconds is not None:
        duration = f"{duration} ({format_duration(cost.duration_in_traffic_seconds)} in traffic)"
    long_description = (
        f"{info.summary} {len(ordered)} stops, {distance_km(cost.distance_meters)} km, {duration}."
    )
    return RouteCandidate(
        strategy_id=plan.strategy_id,
        label=info.label,
        geometry=route.geometry,
        cost=cost,
        ordered_waypoints=tuple(ordered),
        used_traffic_data=route.used_traffic_data,
        short_description=info.short_description,
        long_description=long_description,
        provider=route.provider,
    )


class StrategyGenerator:
    """Runs every applicable strategy concurrently, one cascade each."""

    def __init__(self, cascade: FallbackCascade, max_workers: int | None = None) -> None:
        self.cascade = cascade
        self.max_workers = max_workers or settings.max_parallel_strategies

    def _execute(self, plan: StrategyPlan, token: CancellationToken) -> StrategyOutcome:
        """Run one strategy; never raises, so one strategy cannot sink the others."""
        try:
            return self._execute_plan(plan, token)
        except Exception as exc:
            logger.exception(f"Strategy {plan.strategy_id.value} failed unexpectedly: {exc}")
            return StrategyOutcome(plan.strategy_id, None, (f"unexpected error: {exc!r}",))

    def _execute_plan(self, plan: StrategyPlan, token: CancellationToken) -> StrategyOutcome:
        if token.cancelled:
            return StrategyOutcome(plan.strategy_id, None, ("cancelled",))
        result = self.cascade.compute_route(plan.request, token)
        if result.cancelled:
            return StrategyOutcome(plan.strategy_id, None, ("cancelled",))
        errors = tuple(str(error) for error in result.errors)
        if result.route is None:
            return StrategyOutcome(plan.strategy_id, None, errors)
        try:
            candidate = build_candidate(plan, result.route)
        except ValueError as exc:
            logger.warning(f"Strategy {plan.strategy_id.value} returned an unusable order: {exc}")
            return StrategyOutcome(plan.strategy_id, None, (*errors, str(exc)))
        return StrategyOutcome(plan.strategy_id, candidate, errors)

    def run(self, resolved: ResolvedWaypoints, token: CancellationToken | None = None) -> list[StrategyOutcome]:
        """Execute the strategies and wait for all of them to settle.

        Outcomes are returned in strategy declaration order. Once the token is
        cancelled, strategies that have not started yet are dropped.

        Raises:
            OptimizationCancelled: the token was cancelled before the join.
        """
        token = token or CancellationToken()
        plans = [plan_strategy(strategy_id, resolved) for strategy_id in applicable_strategies(resolved)]
        start_time = time.time()
        workers = min(len(plans), self.max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="strategy") as executor:
            futures = [executor.submit(self._execute, plan, token) for plan in plans]
            pending = set(futures)
            while pending:
                _, pending = wait(pending, timeout=CANCEL_POLL_SECONDS)
                if token.cancelled:
                    dropped = sum(1 for future in pending if future.cancel())
                    logger.debug(f"Cancelled {dropped} strategies before they started")
                    break

        token.raise_if_cancelled()
        outcomes = [future.result() for future in futures]
        succeeded = sum(1 for outcome in outcomes if outcome.candidate is not None)
        logger.info(
            f"Ran {len(plans)} strategies for {len(resolved)} waypoints in {time.time() - start_time:.2f}s "
            f"({succeeded} succeeded)"
        )
        return outcomes
