"""Route option engine: providers, fallback, strategies, ranking and sessions."""

from .errors import (
    InsufficientWaypoints,
    NoCandidates,
    NoRouteFound,
    OptimizationCancelled,
    ProviderRejected,
    ProviderUnavailable,
    RoutingError,
    SessionStateError,
    UnknownCandidate,
)

__all__ = [
    "RoutingError",
    "InsufficientWaypoints",
    "ProviderUnavailable",
    "ProviderRejected",
    "NoRouteFound",
    "NoCandidates",
    "UnknownCandidate",
    "SessionStateError",
    "OptimizationCancelled",
]
