"""Sequential provider fallback for a single route request."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .cancellation import CancellationToken
from .errors import NoRouteFound, OptimizationCancelled, ProviderError
from .models import CascadeResult, ProviderRoute, RouteRequest

logger = logging.getLogger(__name__)


class RouteProvider(Protocol):
    name: str

    def compute_route(self, request: RouteRequest, token: CancellationToken | None = None) -> ProviderRoute:
        ...


class FallbackCascade:
    """Try each provider in turn until one returns a usable route.

    Usually ``[traffic-aware, plain]``. Provider errors are collected into the
    returned :class:`CascadeResult` instead of being raised.
    """

    def __init__(self, providers: Sequence[RouteProvider]) -> None:
        if not providers:
            raise ValueError("At least one routing provider is required.")
        self.providers = tuple(providers)

    def compute_route(self, request: RouteRequest, token: CancellationToken | None = None) -> CascadeResult:
        token = token or CancellationToken()
        errors: list[ProviderError] = []
        for provider in self.providers:
            if token.cancelled:
                return CascadeResult(route=None, errors=tuple(errors), cancelled=True)
            try:
                route = provider.compute_route(request, token)
            except OptimizationCancelled:
                return CascadeResult(route=None, errors=tuple(errors), cancelled=True)
            except ProviderError as exc:
                logger.warning(f"Provider {provider.name} failed: {exc}")
                errors.append(exc)
                continue

            if len(route.geometry) < 2:
                logger.warning(f"Provider {provider.name} returned an empty geometry")
                errors.append(NoRouteFound(provider.name, "empty route geometry"))
                continue
            if errors:
                logger.info(f"Fell back to {provider.name} after {len(errors)} failure(s)")
            return CascadeResult(route=route, errors=tuple(errors))

        return CascadeResult(route=None, errors=tuple(errors))
