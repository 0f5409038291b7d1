"""Routing endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import OptimizationRequest, OptimizationResponse
from ...services.routing.errors import InsufficientWaypoints
from ...services.routing.service import optimize_route_options

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post("/options", response_model=OptimizationResponse, status_code=status.HTTP_200_OK)
def route_options(payload: OptimizationRequest) -> OptimizationResponse:
    """Ranked route options without session state.

    ``succeeded`` is false when every strategy failed; the client should then
    fall back to drawing the stops in their entered order.
    """
    try:
        return optimize_route_options(payload)
    except InsufficientWaypoints as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error generating route options: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate route options: {str(exc)}",
        ) from exc
