#!/usr/bin/env python3
"""Check that the configured routing providers answer a real request."""

import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from route_assigner.config import settings
from route_assigner.models.domain import Coordinate
from route_assigner.services.routing import google_client, osrm_client
from route_assigner.services.routing.errors import ProviderError
from route_assigner.services.routing.models import RouteRequest
from route_assigner.services.routing.service import build_providers

# Berlin, two points a couple of kilometres apart
SAMPLE = RouteRequest((Coordinate(52.517037, 13.388860), Coordinate(52.496891, 13.385983)))


def main():
    print("=" * 60)
    print("Routing Provider Check")
    print("=" * 60)
    print()

    print("1. Configuration")
    print(f"   OSRM base URL: {settings.osrm_base_url} (profile {settings.osrm_profile})")
    if settings.google_maps_api_key:
        print("   Google Maps API key: set")
    else:
        print("   Google Maps API key: not set, traffic-aware routing disabled")
    print()

    print("2. Health checks")
    print(f"   [{'OK' if osrm_client.check_health() else 'ERROR'}] osrm")
    if settings.google_maps_api_key:
        print(f"   [{'OK' if google_client.check_health() else 'ERROR'}] google")
    print()

    print("3. Sample route through each provider")
    failures = 0
    for provider in build_providers():
        try:
            route = provider.compute_route(SAMPLE)
        except ProviderError as e:
            failures += 1
            print(f"   [ERROR] {e}")
            continue
        print(
            f"   [OK] {provider.name}: {route.cost.distance_meters:.0f} m, "
            f"{route.cost.duration_seconds:.0f} s, {len(route.geometry)} geometry points"
        )
    print()

    print("=" * 60)
    print("[SUCCESS] Providers reachable" if failures == 0 else f"[FAILED] {failures} provider(s) failed")
    print("=" * 60)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
