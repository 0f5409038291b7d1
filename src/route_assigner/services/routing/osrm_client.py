"""HTTP client for interacting with OSRM services."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import Coordinate
from .cancellation import CancellationToken
from .errors import NoRouteFound, ProviderRejected, ProviderUnavailable
from .http import ProviderHttpClient
from .models import ProviderRoute, RouteCost, RouteRequest

logger = logging.getLogger(__name__)

NO_ROUTE_CODES = frozenset({"NoRoute", "NoTrips"})
REJECTED_CODES = frozenset(
    {
        "NoSegment",
        "InvalidQuery",
        "InvalidValue",
        "InvalidOptions",
        "InvalidInput",
        "InvalidUrl",
        "InvalidService",
        "InvalidVersion",
        "TooBig",
        "NotImplemented",
    }
)


class OSRMClient(ProviderHttpClient):
    """Plain routing provider backed by OSRM ``/route`` and ``/trip``."""

    name = "osrm"

    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
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
        self.base_url = (base_url or settings.osrm_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.profile = profile or settings.osrm_profile

    def compute_route(self, request: RouteRequest, token: CancellationToken | None = None) -> ProviderRoute:
        """Route through the coordinates, letting OSRM reorder them when ``optimize`` is set.

        ``optimize`` uses the trip service, whose answer carries the visiting
        order; otherwise the route service follows the given order.
        """
        token = token or CancellationToken()
        coordinate_str = format_coordinates(request.coordinates)
        params = {
            "overview": "full",
            "geometries": "polyline",
            "steps": "false",
        }
        if request.optimize:
            url = f"{self.base_url}/trip/v1/{self.profile}/{coordinate_str}"
            params.update(
                {
                    "roundtrip": "true" if request.roundtrip else "false",
                    "source": request.source,
                    "destination": request.destination,
                }
            )
        else:
            url = f"{self.base_url}/route/v1/{self.profile}/{coordinate_str}"

        response = self._get(url, params, token)
        data = self._json(response)
        self._raise_for_code(data, response.status_code)

        try:
            if request.optimize:
                return self._parse_trip(data, len(request.coordinates))
            return self._parse_route(data)
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            raise ProviderUnavailable(self.name, f"malformed response: {exc!r}") from exc

    def _raise_for_code(self, data: dict, status_code: int) -> None:
        code = data.get("code")
        if code == "Ok":
            return
        message = data.get("message") or f"OSRM returned code {code!r} (HTTP {status_code})"
        if code in NO_ROUTE_CODES:
            raise NoRouteFound(self.name, message)
        if code in REJECTED_CODES or 400 <= status_code < 500:
            raise ProviderRejected(self.name, message)
        raise ProviderUnavailable(self.name, message)

    def _parse_route(self, data: dict) -> ProviderRoute:
        routes = data.get("routes") or []
        if not routes:
            raise NoRouteFound(self.name, "response contained no routes")
        route = routes[0]
        return ProviderRoute(
            provider=self.name,
            geometry=tuple(decode_polyline(route.get("geometry") or "")),
            cost=RouteCost(distance_meters=float(route["distance"]), duration_seconds=float(route["duration"])),
        )

    def _parse_trip(self, data: dict, count: int) -> ProviderRoute:
        trips = data.get("trips") or []
        if not trips:
            raise NoRouteFound(self.name, "response contained no trips")
        if len(trips) > 1:
            raise NoRouteFound(self.name, f"stops are split across {len(trips)} disconnected trips")
        trip = trips[0]
        waypoints = data.get("waypoints") or []
        if len(waypoints) != count:
            raise ProviderUnavailable(self.name, f"expected {count} trip waypoints, got {len(waypoints)}")
        # waypoints are in input order; waypoint_index is each input's position in the trip
        order = sorted(range(count), key=lambda idx: waypoints[idx]["waypoint_index"])
        return ProviderRoute(
            provider=self.name,
            geometry=tuple(decode_polyline(trip.get("geometry") or "")),
            cost=RouteCost(distance_meters=float(trip["distance"]), duration_seconds=float(trip["duration"])),
            waypoint_order=tuple(order),
        )


def format_coordinates(coordinates: Sequence[Coordinate]) -> str:
    """OSRM expects ``lon,lat;lon,lat;...``."""
    return ";".join(f"{c.longitude},{c.latitude}" for c in coordinates)


def decode_polyline(polyline: str, precision: int = 5) -> list[Coordinate]:
    """Decode Google polyline string to a list of coordinates.

    OSRM and Google Directions both use Google's polyline encoding format for
    route geometry.
    """
    coordinates: list[Coordinate] = []
    factor = 10 ** precision
    index = 0
    lat = 0
    lon = 0

    while index < len(polyline):
        deltas = []
        for _ in range(2):
            shift = 0
            result = 0
            while True:
                b = ord(polyline[index]) - 63
                index += 1
                result |= (b & 0x1F) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
        lat += deltas[0]
        lon += deltas[1]
        coordinates.append(Coordinate(lat / factor, lon / factor))

    return coordinates


def check_health(base_url: str | None = None) -> bool:
    """Check OSRM service health by routing between two nearby points."""
    base = base_url or settings.osrm_base_url
    if not base:
        return False
    try:
        test_coords = "13.388860,52.517037;13.385983,52.496891"
        url = f"{base.rstrip('/')}/route/v1/{settings.osrm_profile}/{test_coords}"
        response = httpx.get(url, params={"overview": "false"}, timeout=5.0)
        response.raise_for_status()
        return response.json().get("code") == "Ok"
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning(f"OSRM health check failed: {exc}")
        return False
