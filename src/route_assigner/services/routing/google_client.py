"""Traffic-aware routing provider backed by the Google Directions API."""

from __future__ import annotations

import logging

import httpx

from ...config import settings
from ...models.domain import Coordinate
from .cancellation import CancellationToken
from .errors import NoRouteFound, ProviderRejected, ProviderUnavailable
from .http import ProviderHttpClient
from .models import ProviderRoute, RouteCost, RouteRequest
from .osrm_client import decode_polyline

logger = logging.getLogger(__name__)

# Directions API allows 25 intermediate waypoints per request.
MAX_INTERMEDIATE_WAYPOINTS = 25

NO_ROUTE_STATUSES = frozenset({"ZERO_RESULTS"})
REJECTED_STATUSES = frozenset({"NOT_FOUND", "INVALID_REQUEST", "MAX_WAYPOINTS_EXCEEDED", "MAX_ROUTE_LENGTH_EXCEEDED", "REQUEST_DENIED"})


def _latlng(coordinate: Coordinate) -> str:
    return f"{coordinate.latitude},{coordinate.longitude}"


class GoogleDirectionsClient(ProviderHttpClient):
    """Directions with live traffic; departure time is always "now"."""

    name = "google"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(
            timeout=timeout,
            max_retries=max_retries,
            backoff_seconds=backoff_seconds,
            transport=transport,
        )
        self.api_key = api_key or settings.google_maps_api_key
        if not self.api_key:
            raise ValueError("Google Maps API key is not configured.")
        self.base_url = base_url or settings.google_directions_url

    def build_params(self, request: RouteRequest) -> dict[str, str]:
        if request.source != "first":
            raise ProviderRejected(self.name, "Directions API cannot choose the origin")
        if request.destination == "any" and not request.roundtrip:
            raise ProviderRejected(self.name, "Directions API cannot choose an open-ended destination")

        coordinates = request.coordinates
        origin = coordinates[0]
        if request.roundtrip:
            destination = origin
            intermediates = coordinates[1:]
        else:
            destination = coordinates[-1]
            intermediates = coordinates[1:-1]
        if len(intermediates) > MAX_INTERMEDIATE_WAYPOINTS:
            raise ProviderRejected(
                self.name,
                f"{len(intermediates)} intermediate waypoints exceed the limit of {MAX_INTERMEDIATE_WAYPOINTS}",
            )

        params = {
            "origin": _latlng(origin),
            "destination": _latlng(destination),
            "mode": "driving",
            "departure_time": "now",
            "traffic_model": "best_guess",
            "key": self.api_key,
        }
        if intermediates:
            prefix = ["optimize:true"] if request.optimize else []
            params["waypoints"] = "|".join([*prefix, *(_latlng(c) for c in intermediates)])
        return params

    def compute_route(self, request: RouteRequest, token: CancellationToken | None = None) -> ProviderRoute:
        token = token or CancellationToken()
        params = self.build_params(request)
        response = self._get(self.base_url, params, token)
        data = self._json(response)

        status = data.get("status")
        if status != "OK":
            message = data.get("error_message") or f"Directions status {status}"
            if status in NO_ROUTE_STATUSES:
                raise NoRouteFound(self.name, message)
            if status in REJECTED_STATUSES:
                raise ProviderRejected(self.name, message)
            raise ProviderUnavailable(self.name, message)

        routes = data.get("routes") or []
        if not routes:
            raise NoRouteFound(self.name, "response contained no routes")
        try:
            return self._parse_route(routes[0], request)
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            raise ProviderUnavailable(self.name, f"malformed response: {exc!r}") from exc

    def _parse_route(self, route: dict, request: RouteRequest) -> ProviderRoute:
        legs = route.get("legs") or []

        distance = sum(float(leg["distance"]["value"]) for leg in legs)
        duration = sum(float(leg["duration"]["value"]) for leg in legs)
        traffic_values = [leg.get("duration_in_traffic", {}).get("value") for leg in legs]
        in_traffic = sum(float(v) for v in traffic_values) if legs and None not in traffic_values else None

        waypoint_order = None
        if request.optimize:
            waypoint_order = self._full_order(route.get("waypoint_order") or [], request)

        geometry = decode_polyline((route.get("overview_polyline") or {}).get("points") or "")
        return ProviderRoute(
            provider=self.name,
            geometry=tuple(geometry),
            cost=RouteCost(
                distance_meters=distance,
                duration_seconds=duration,
                duration_in_traffic_seconds=in_traffic,
            ),
            waypoint_order=waypoint_order,
            used_traffic_data=True,
        )

    def _full_order(self, intermediate_order: list[int], request: RouteRequest) -> tuple[int, ...]:
        """Expand Google's intermediate-only order to indices over every coordinate."""
        count = len(request.coordinates)
        intermediate_count = count - 1 if request.roundtrip else count - 2
        if sorted(intermediate_order) != list(range(intermediate_count)):
            raise ProviderUnavailable(self.name, f"malformed waypoint_order {intermediate_order}")
        order = [0, *(index + 1 for index in intermediate_order)]
        if not request.roundtrip:
            order.append(count - 1)
        return tuple(order)


def check_health(api_key: str | None = None) -> bool:
    """Return True if the key is set and Directions answers a minimal request."""
    key = api_key or settings.google_maps_api_key
    if not key:
        return False
    try:
        response = httpx.get(
            settings.google_directions_url,
            params={"origin": "52.517037,13.388860", "destination": "52.496891,13.385983", "key": key},
            timeout=5.0,
        )
        response.raise_for_status()
        return response.json().get("status") == "OK"
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning(f"Google Directions health check failed: {exc}")
        return False
