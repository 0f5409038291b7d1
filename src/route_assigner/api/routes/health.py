"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_provider_health_checks():
    """Lazy import to avoid startup failures."""
    from ...services.routing import google_client, osrm_client

    return {"osrm": osrm_client.check_health, "google": google_client.check_health}


@router.get("/health/providers", status_code=status.HTTP_200_OK)
def health_providers() -> dict:
    """Reachability of each routing provider, in fallback order."""
    checks = _get_provider_health_checks()
    providers = []
    for name in ("google", "osrm"):
        configured = bool(settings.google_maps_api_key) if name == "google" else bool(settings.osrm_base_url)
        entry = {"service": name, "configured": configured, "healthy": False}
        if configured:
            try:
                entry["healthy"] = checks[name]()
            except Exception as e:
                entry["error"] = str(e)
        providers.append(entry)
    return {"providers": providers, "healthy": any(entry["healthy"] for entry in providers)}
