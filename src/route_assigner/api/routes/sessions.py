"""Preview/apply session endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.routing import (
    CandidateSelection,
    CommittedRouteModel,
    OptimizationRequest,
    RouteCandidateModel,
    SessionResponse,
)
from ...services.export.geojson import export_candidates_geojson
from ...services.outputs.routing_formatter import candidate_to_json, committed_route_payload
from ...services.routing.errors import (
    InsufficientWaypoints,
    NoCandidates,
    OptimizationCancelled,
    SessionStateError,
    UnknownCandidate,
)
from ...services.routing.session import PreviewSession, SessionRegistry

router = APIRouter(prefix="/sessions", tags=["sessions"])

registry = SessionRegistry()


def _candidate_model(candidate) -> RouteCandidateModel | None:
    return RouteCandidateModel(**candidate_to_json(candidate)) if candidate is not None else None


def _session_response(session: PreviewSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        state=session.state.value,
        candidates=[_candidate_model(candidate) for candidate in session.candidates],
        previewed=_candidate_model(session.previewed),
        committed=_candidate_model(session.committed),
    )


def _get_session(session_id: str) -> PreviewSession:
    try:
        return registry.get(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Session '{session_id}' not found") from exc


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session() -> SessionResponse:
    return _session_response(registry.create())


@router.get("/{session_id}", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def get_session(session_id: str) -> SessionResponse:
    return _session_response(_get_session(session_id))


@router.delete("/{session_id}", status_code=status.HTTP_200_OK)
def delete_session(session_id: str) -> dict:
    try:
        registry.delete(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Session '{session_id}' not found") from exc
    return {"success": True, "message": f"Session {session_id} deleted"}


@router.post("/{session_id}/optimize", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def optimize(session_id: str, payload: OptimizationRequest) -> SessionResponse:
    session = _get_session(session_id)
    try:
        session.request_optimization(
            payload.domain_waypoints(),
            payload.domain_config(),
            fixed_start=payload.fixed_start.to_domain() if payload.fixed_start else None,
            fixed_end=payload.fixed_end.to_domain() if payload.fixed_end else None,
        )
    except InsufficientWaypoints as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except NoCandidates as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": str(exc), "failures": exc.failures},
        ) from exc
    except OptimizationCancelled as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing session {session_id}: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize route: {str(exc)}",
        ) from exc
    return _session_response(session)


@router.post("/{session_id}/preview", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def preview(session_id: str, payload: CandidateSelection) -> SessionResponse:
    session = _get_session(session_id)
    try:
        session.preview(session.find_candidate(payload.candidate_id))
    except (UnknownCandidate, SessionStateError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _session_response(session)


@router.post("/{session_id}/clear-preview", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def clear_preview(session_id: str) -> SessionResponse:
    session = _get_session(session_id)
    try:
        session.clear_preview()
    except SessionStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _session_response(session)


@router.post("/{session_id}/apply", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def apply(session_id: str, payload: CandidateSelection) -> SessionResponse:
    session = _get_session(session_id)
    try:
        session.apply(session.find_candidate(payload.candidate_id))
    except UnknownCandidate as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _session_response(session)


@router.post("/{session_id}/waypoints-changed", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def waypoints_changed(session_id: str) -> SessionResponse:
    session = _get_session(session_id)
    session.waypoints_changed()
    return _session_response(session)


@router.post("/{session_id}/reset", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def reset(session_id: str) -> SessionResponse:
    session = _get_session(session_id)
    session.reset()
    return _session_response(session)


@router.get("/{session_id}/committed", response_model=CommittedRouteModel, status_code=status.HTTP_200_OK)
def committed(session_id: str) -> CommittedRouteModel:
    """Committed route in the shape the notification workflow consumes."""
    session = _get_session(session_id)
    if session.committed is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No route has been applied yet")
    return CommittedRouteModel(**committed_route_payload(session.committed))


@router.get("/{session_id}/geojson", status_code=status.HTTP_200_OK)
def geojson(session_id: str) -> dict:
    session = _get_session(session_id)
    return export_candidates_geojson(session.candidates, session.previewed, session.committed)
