"""Routing error taxonomy."""

from __future__ import annotations


class RoutingError(Exception):
    """Base class for every error raised by the routing engine."""


class InsufficientWaypoints(RoutingError):
    """Fewer than two stops remain after constraints are applied."""

    def __init__(self, count: int) -> None:
        super().__init__(f"At least two waypoints are required to optimize a route (got {count}).")
        self.count = count


class ProviderError(RoutingError):
    """Soft failure of a single provider request."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderUnavailable(ProviderError):
    """Network error, timeout, server error or exhausted quota."""


class ProviderRejected(ProviderError):
    """The provider refused the request as malformed or unsupported."""


class NoRouteFound(ProviderError):
    """The request was valid but no drivable path exists."""


class NoCandidates(RoutingError):
    """Every strategy failed."""

    def __init__(self, failures: dict[str, list[str]] | None = None) -> None:
        super().__init__("No route options could be generated.")
        self.failures = failures or {}


class UnknownCandidate(RoutingError):
    """The candidate is not part of the current selection."""


class SessionStateError(RoutingError):
    """The requested transition is not allowed from the current session state."""


class OptimizationCancelled(RoutingError):
    """The optimization was superseded or cancelled before it finished."""
