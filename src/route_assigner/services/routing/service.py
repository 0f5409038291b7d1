"""Routing orchestration service."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import RouteConfig, Waypoint
from ...schemas.routing import OptimizationRequest, OptimizationResponse
from ..outputs.routing_formatter import optimization_result_to_json
from .cancellation import CancellationToken
from .constraints import resolve_waypoints
from .fallback import FallbackCascade, RouteProvider
from .google_client import GoogleDirectionsClient
from .models import OptimizationResult, ResolvedWaypoints
from .osrm_client import OSRMClient
from .ranking import rank_candidates
from .strategies import StrategyGenerator

logger = logging.getLogger(__name__)


def build_providers() -> list[RouteProvider]:
    """Traffic-aware provider first when a Google key is configured, OSRM last."""
    providers: list[RouteProvider] = []
    if settings.google_maps_api_key:
        providers.append(GoogleDirectionsClient())
    else:
        logger.info("Google Maps API key not configured; routing with OSRM only")
    providers.append(OSRMClient())
    return providers


def build_default_cascade() -> FallbackCascade:
    return FallbackCascade(build_providers())


class RouteOptimizer:
    """Resolve constraints, run the strategies and rank their candidates."""

    def __init__(self, cascade: FallbackCascade | None = None, max_workers: int | None = None) -> None:
        self.cascade = cascade or build_default_cascade()
        self.generator = StrategyGenerator(self.cascade, max_workers=max_workers)

    def resolve(
        self,
        waypoints: Sequence[Waypoint],
        config: RouteConfig | None = None,
        fixed_start: Optional[Waypoint] = None,
        fixed_end: Optional[Waypoint] = None,
    ) -> ResolvedWaypoints:
        return resolve_waypoints(waypoints, config, fixed_start, fixed_end)

    def optimize_resolved(
        self, resolved: ResolvedWaypoints, token: CancellationToken | None = None
    ) -> OptimizationResult:
        outcomes = self.generator.run(resolved, token)
        return rank_candidates(outcomes)

    def optimize(
        self,
        waypoints: Sequence[Waypoint],
        config: RouteConfig | None = None,
        fixed_start: Optional[Waypoint] = None,
        fixed_end: Optional[Waypoint] = None,
        token: CancellationToken | None = None,
    ) -> OptimizationResult:
        """Produce the ranked route options for the given stops.

        Raises:
            InsufficientWaypoints: fewer than two stops after constraints.
            OptimizationCancelled: ``token`` was cancelled while running.
        """
        resolved = self.resolve(waypoints, config, fixed_start, fixed_end)
        return self.optimize_resolved(resolved, token)


def optimize_route_options(payload: OptimizationRequest) -> OptimizationResponse:
    """Stateless optimization used by the ``/routes/options`` endpoint."""
    optimizer = RouteOptimizer()
    result = optimizer.optimize(
        payload.domain_waypoints(),
        payload.domain_config(),
        fixed_start=payload.fixed_start.to_domain() if payload.fixed_start else None,
        fixed_end=payload.fixed_end.to_domain() if payload.fixed_end else None,
    )
    if not result.succeeded:
        logger.warning(f"No route options for {len(payload.waypoints)} waypoints: {result.failures}")
    return OptimizationResponse(**optimization_result_to_json(result))
