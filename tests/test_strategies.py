import time

import pytest

from fakes import FakeProvider
from route_assigner.models.domain import RouteConfig, Waypoint
from route_assigner.services.geospatial import distance_km
from route_assigner.services.routing.cancellation import CancellationToken
from route_assigner.services.routing.constraints import resolve_waypoints
from route_assigner.services.routing.errors import OptimizationCancelled, ProviderUnavailable
from route_assigner.services.routing.fallback import FallbackCascade
from route_assigner.services.routing.models import StrategyId
from route_assigner.services.routing.service import RouteOptimizer
from route_assigner.services.routing.strategies import (
    StrategyGenerator,
    applicable_strategies,
    plan_strategy,
)

A = Waypoint.at(10.968, -74.781, "A")
B = Waypoint.at(10.991, -74.803, "B")
C = Waypoint.at(10.950, -74.760, "C")
DEPOT = Waypoint.at(10.9639, -74.7964, "Depot")


def _reverse_middle(request):
    n = len(request.coordinates)
    if request.roundtrip:
        return (0, *range(n - 1, 0, -1))
    return (0, *range(n - 2, 0, -1), n - 1)


def _optimizer(*providers, **kwargs) -> RouteOptimizer:
    return RouteOptimizer(FallbackCascade(providers or [FakeProvider("osrm")]), **kwargs)


def test_two_points_run_only_direct():
    resolved = resolve_waypoints([A, B], RouteConfig())
    assert applicable_strategies(resolved) == [StrategyId.DIRECT]

    result = _optimizer().optimize([A, B])

    assert result.succeeded
    assert [c.strategy_id for c in result.candidates] == [StrategyId.DIRECT]
    assert result.candidates[0].ordered_waypoints == (A, B)


def test_three_points_run_every_strategy():
    resolved = resolve_waypoints([A, B, C], RouteConfig())
    assert applicable_strategies(resolved) == [
        StrategyId.DIRECT,
        StrategyId.ANCHORED,
        StrategyId.ROUND_TRIP,
        StrategyId.NEAREST_NEIGHBOR,
    ]


def test_round_trip_needs_three_distinct_stops():
    resolved = resolve_waypoints([A], RouteConfig(fixed_start=True, return_to_start=True), fixed_start=DEPOT)
    assert len(resolved) == 3
    assert StrategyId.ROUND_TRIP not in applicable_strategies(resolved)


def test_request_shapes():
    resolved = resolve_waypoints([A, B, C], RouteConfig())

    direct = plan_strategy(StrategyId.DIRECT, resolved)
    assert not direct.request.optimize

    anchored = plan_strategy(StrategyId.ANCHORED, resolved)
    assert anchored.request.optimize
    assert (anchored.request.source, anchored.request.destination) == ("first", "last")
    assert not anchored.request.roundtrip

    loop = plan_strategy(StrategyId.ROUND_TRIP, resolved)
    assert loop.request.optimize and loop.request.roundtrip
    assert loop.request.destination == "any"

    nearest = plan_strategy(StrategyId.NEAREST_NEIGHBOR, resolved)
    assert not nearest.request.optimize
    assert nearest.local_order is not None


def test_provider_order_is_applied_to_waypoints():
    provider = FakeProvider("osrm", order_for=_reverse_middle)
    result = _optimizer(provider).optimize([A, B, C, DEPOT])

    by_strategy = {c.strategy_id: c for c in result.candidates}
    assert by_strategy[StrategyId.DIRECT].ordered_waypoints == (A, B, C, DEPOT)
    assert by_strategy[StrategyId.ANCHORED].ordered_waypoints == (A, C, B, DEPOT)
    assert by_strategy[StrategyId.ROUND_TRIP].ordered_waypoints == (A, DEPOT, C, B, A)


def test_round_trip_request_drops_the_closing_duplicate():
    provider = FakeProvider("osrm")
    config = RouteConfig(fixed_start=True, return_to_start=True)
    result = _optimizer(provider).optimize([A, B, C], config, fixed_start=DEPOT)

    loop_requests = [r for r in provider.requests if r.roundtrip]
    assert len(loop_requests) == 1
    assert len(loop_requests[0].coordinates) == 4

    loop = next(c for c in result.candidates if c.strategy_id is StrategyId.ROUND_TRIP)
    assert loop.ordered_waypoints[0] == DEPOT
    assert loop.ordered_waypoints[-1] == DEPOT


def test_nearest_neighbor_keeps_the_return_leg_last():
    config = RouteConfig(fixed_start=True, return_to_start=True)
    result = _optimizer().optimize([A, B, C], config, fixed_start=DEPOT)

    nearest = next(c for c in result.candidates if c.strategy_id is StrategyId.NEAREST_NEIGHBOR)
    assert nearest.ordered_waypoints[0] == DEPOT
    assert nearest.ordered_waypoints[-1] == DEPOT
    assert len(nearest.ordered_waypoints) == 5


def test_scenario_nearest_neighbor_second_stop():
    result = _optimizer().optimize([A, B, C])

    assert result.succeeded
    assert len(result.candidates) >= 1
    nearest = next(c for c in result.candidates if c.strategy_id is StrategyId.NEAREST_NEIGHBOR)
    closer = B if distance_km(A.coordinate, B.coordinate) < distance_km(A.coordinate, C.coordinate) else C
    assert nearest.ordered_waypoints[0] == A
    assert nearest.ordered_waypoints[1] == closer


def test_candidates_sorted_by_distance():
    waypoints = [
        Waypoint.at(10.968, -74.781),
        Waypoint.at(10.930, -74.850),
        Waypoint.at(10.991, -74.803),
        Waypoint.at(10.900, -74.790),
        Waypoint.at(10.950, -74.760),
    ]
    result = _optimizer(FakeProvider("osrm", order_for=_reverse_middle)).optimize(waypoints)

    distances = [c.cost.distance_meters for c in result.candidates]
    assert distances == sorted(distances)


def test_candidate_descriptions_and_traffic_flag():
    result = _optimizer(FakeProvider("google", used_traffic_data=True)).optimize([A, B, C])
    for candidate in result.candidates:
        assert candidate.used_traffic_data
        assert candidate.provider == "google"
        assert candidate.label
        assert candidate.short_description
        assert "km" in candidate.long_description
        assert "in traffic" in candidate.long_description


def test_every_provider_failing_yields_no_candidates():
    traffic = FakeProvider("google", fail_with=ProviderUnavailable("google", "down"))
    plain = FakeProvider("osrm", fail_with=ProviderUnavailable("osrm", "down"))

    result = _optimizer(traffic, plain).optimize([A, B, C])

    assert not result.succeeded
    assert result.candidates == ()
    assert set(result.failures) == {"direct", "from_start", "round_trip", "nearest"}


def test_each_strategy_cascades_independently():
    class FlakyOnOptimize(FakeProvider):
        def compute_route(self, request, token=None):
            if request.optimize:
                raise ProviderUnavailable(self.name, "optimizer down")
            return super().compute_route(request, token)

    traffic = FlakyOnOptimize("google", used_traffic_data=True)
    plain = FakeProvider("osrm")

    result = _optimizer(traffic, plain).optimize([A, B, C])

    providers = {c.strategy_id: c.provider for c in result.candidates}
    assert providers[StrategyId.DIRECT] == "google"
    assert providers[StrategyId.NEAREST_NEIGHBOR] == "google"
    assert providers[StrategyId.ANCHORED] == "osrm"
    assert providers[StrategyId.ROUND_TRIP] == "osrm"


def test_strategies_run_concurrently():
    provider = FakeProvider("osrm", delay=0.3)
    generator = StrategyGenerator(FallbackCascade([provider]), max_workers=4)
    resolved = resolve_waypoints([A, B, C], RouteConfig())

    start = time.monotonic()
    outcomes = generator.run(resolved)
    elapsed = time.monotonic() - start

    assert len(outcomes) == 4
    assert all(outcome.candidate is not None for outcome in outcomes)
    # four sequential calls would take at least 1.2s
    assert elapsed < 1.0


def test_outcomes_keep_declaration_order():
    generator = StrategyGenerator(FallbackCascade([FakeProvider("osrm")]))
    outcomes = generator.run(resolve_waypoints([A, B, C], RouteConfig()))
    assert [o.strategy_id for o in outcomes] == [
        StrategyId.DIRECT,
        StrategyId.ANCHORED,
        StrategyId.ROUND_TRIP,
        StrategyId.NEAREST_NEIGHBOR,
    ]


def test_cancelled_run_raises():
    generator = StrategyGenerator(FallbackCascade([FakeProvider("osrm")]))
    token = CancellationToken()
    token.cancel()
    with pytest.raises(OptimizationCancelled):
        generator.run(resolve_waypoints([A, B, C], RouteConfig()), token)


def test_unexpected_provider_exception_fails_only_its_strategy():
    class BrokenOnOptimize(FakeProvider):
        def compute_route(self, request, token=None):
            if request.optimize:
                raise RuntimeError("unexpected payload")
            return super().compute_route(request, token)

    result = _optimizer(BrokenOnOptimize("osrm")).optimize([A, B, C])

    assert result.succeeded
    assert {c.strategy_id for c in result.candidates} == {StrategyId.DIRECT, StrategyId.NEAREST_NEIGHBOR}
    assert set(result.failures) == {"from_start", "round_trip"}
    assert "unexpected payload" in result.failures["from_start"][0]


def test_cancellation_drops_strategies_not_yet_started():
    class CancelsOnFirstCall(FakeProvider):
        def compute_route(self, request, token=None):
            token.cancel()
            return super().compute_route(request, token)

    provider = CancelsOnFirstCall("osrm")
    generator = StrategyGenerator(FallbackCascade([provider]), max_workers=1)

    with pytest.raises(OptimizationCancelled):
        generator.run(resolve_waypoints([A, B, C], RouteConfig()), CancellationToken())

    assert len(provider.requests) == 1
