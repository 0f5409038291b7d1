import pytest
from fastapi.testclient import TestClient

from fakes import FakeProvider
from route_assigner.main import create_app
from route_assigner.services.routing.errors import ProviderUnavailable
from route_assigner.services.routing.fallback import FallbackCascade
from route_assigner.services.routing.service import RouteOptimizer
from route_assigner.services.routing.session import SessionRegistry

STOPS = [
    {"latitude": 10.968, "longitude": -74.781, "label": "A"},
    {"latitude": 10.991, "longitude": -74.803, "label": "B"},
    {"latitude": 10.950, "longitude": -74.760, "label": "C"},
]
DEPOT = {"latitude": 10.9639, "longitude": -74.7964, "label": "Depot"}


def _fake_optimizer(*providers):
    return lambda: RouteOptimizer(FallbackCascade(list(providers) or [FakeProvider("osrm")]))


@pytest.fixture
def api_client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    from route_assigner.api.routes import sessions
    from route_assigner.services.routing import service as routing_service

    factory = _fake_optimizer()
    monkeypatch.setattr(routing_service, "RouteOptimizer", factory)
    monkeypatch.setattr(sessions, "registry", SessionRegistry(factory))
    return TestClient(create_app())


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_provider_health_reports_each_provider(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from route_assigner.api.routes import health

    monkeypatch.setattr(health, "_get_provider_health_checks", lambda: {"osrm": lambda: True, "google": lambda: True})
    monkeypatch.setattr(health.settings, "google_maps_api_key", None)

    payload = api_client.get("/api/health/providers").json()

    assert [entry["service"] for entry in payload["providers"]] == ["google", "osrm"]
    assert payload["providers"][0]["configured"] is False
    assert payload["providers"][1]["healthy"] is True
    assert payload["healthy"] is True


def test_route_options_endpoint(api_client: TestClient):
    response = api_client.post("/api/routes/options", json={"waypoints": STOPS})

    assert response.status_code == 200
    payload = response.json()
    assert payload["succeeded"] is True
    assert len(payload["candidates"]) == 4
    distances = [candidate["distance_meters"] for candidate in payload["candidates"]]
    assert distances == sorted(distances)
    assert payload["candidates"][0]["ordered_waypoints"][0]["label"] == "A"


def test_route_options_with_fixed_start_round_trip(api_client: TestClient):
    response = api_client.post(
        "/api/routes/options",
        json={"waypoints": STOPS, "fixed_start": DEPOT, "config": {"return_to_start": True}},
    )

    assert response.status_code == 200
    for candidate in response.json()["candidates"]:
        assert candidate["ordered_waypoints"][0]["label"] == "Depot"
        assert candidate["ordered_waypoints"][-1]["label"] == "Depot"


def test_route_options_rejects_single_waypoint(api_client: TestClient):
    response = api_client.post("/api/routes/options", json={"waypoints": STOPS[:1]})
    assert response.status_code == 400


def test_route_options_reports_total_failure(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from route_assigner.services.routing import service as routing_service

    monkeypatch.setattr(
        routing_service,
        "RouteOptimizer",
        _fake_optimizer(FakeProvider("osrm", fail_with=ProviderUnavailable("osrm", "down"))),
    )

    response = api_client.post("/api/routes/options", json={"waypoints": STOPS})

    assert response.status_code == 200
    payload = response.json()
    assert payload["succeeded"] is False
    assert payload["candidates"] == []
    assert "direct" in payload["failures"]


def test_route_options_validates_coordinates(api_client: TestClient):
    response = api_client.post(
        "/api/routes/options",
        json={"waypoints": [{"latitude": 91, "longitude": 0}, {"latitude": 0, "longitude": 0}]},
    )
    assert response.status_code == 422


def test_session_preview_apply_flow(api_client: TestClient):
    session_id = api_client.post("/api/sessions").json()["session_id"]

    optimized = api_client.post(f"/api/sessions/{session_id}/optimize", json={"waypoints": STOPS})
    assert optimized.status_code == 200
    assert optimized.json()["state"] == "ready"
    chosen = optimized.json()["candidates"][1]["candidate_id"]

    previewed = api_client.post(f"/api/sessions/{session_id}/preview", json={"candidate_id": chosen})
    assert previewed.json()["state"] == "previewing"
    assert previewed.json()["previewed"]["candidate_id"] == chosen

    geojson = api_client.get(f"/api/sessions/{session_id}/geojson").json()
    roles = [f["properties"].get("role") for f in geojson["features"] if f["geometry"]["type"] == "LineString"]
    assert roles.count("preview") == 1

    applied = api_client.post(f"/api/sessions/{session_id}/apply", json={"candidate_id": chosen})
    assert applied.json()["state"] == "committed"
    assert applied.json()["committed"]["candidate_id"] == chosen

    committed = api_client.get(f"/api/sessions/{session_id}/committed")
    assert committed.status_code == 200
    assert committed.json()["waypoints_count"] == 3
    assert committed.json()["waypoints"][0]["sequence"] == 1


def test_session_apply_without_preview_conflicts(api_client: TestClient):
    session_id = api_client.post("/api/sessions").json()["session_id"]
    optimized = api_client.post(f"/api/sessions/{session_id}/optimize", json={"waypoints": STOPS})
    chosen = optimized.json()["candidates"][0]["candidate_id"]

    response = api_client.post(f"/api/sessions/{session_id}/apply", json={"candidate_id": chosen})
    assert response.status_code == 409


def test_session_unknown_candidate_conflicts(api_client: TestClient):
    session_id = api_client.post("/api/sessions").json()["session_id"]
    api_client.post(f"/api/sessions/{session_id}/optimize", json={"waypoints": STOPS})

    response = api_client.post(f"/api/sessions/{session_id}/preview", json={"candidate_id": "missing"})
    assert response.status_code == 409


def test_session_waypoints_changed_and_reset(api_client: TestClient):
    session_id = api_client.post("/api/sessions").json()["session_id"]
    api_client.post(f"/api/sessions/{session_id}/optimize", json={"waypoints": STOPS})

    changed = api_client.post(f"/api/sessions/{session_id}/waypoints-changed")
    assert changed.json()["state"] == "idle"
    assert changed.json()["candidates"] == []

    reset = api_client.post(f"/api/sessions/{session_id}/reset")
    assert reset.json()["state"] == "idle"
    assert api_client.get(f"/api/sessions/{session_id}/committed").status_code == 404


def test_session_all_strategies_failing_returns_bad_gateway(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from route_assigner.api.routes import sessions

    failing = _fake_optimizer(FakeProvider("osrm", fail_with=ProviderUnavailable("osrm", "down")))
    monkeypatch.setattr(sessions, "registry", SessionRegistry(failing))

    session_id = api_client.post("/api/sessions").json()["session_id"]
    response = api_client.post(f"/api/sessions/{session_id}/optimize", json={"waypoints": STOPS})

    assert response.status_code == 502
    assert "direct" in response.json()["detail"]["failures"]
    assert api_client.get(f"/api/sessions/{session_id}").json()["state"] == "idle"


def test_unknown_session_is_not_found(api_client: TestClient):
    assert api_client.get("/api/sessions/nope").status_code == 404
    assert api_client.delete("/api/sessions/nope").status_code == 404
