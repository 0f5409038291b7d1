"""Preview/apply state machine for choosing one route option."""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from enum import Enum
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import RouteConfig, Waypoint
from .cancellation import CancellationToken
from .errors import NoCandidates, OptimizationCancelled, SessionStateError, UnknownCandidate
from .models import OptimizationResult, RouteCandidate
from .service import RouteOptimizer

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    COMPUTING = "computing"
    READY = "ready"
    PREVIEWING = "previewing"
    COMMITTED = "committed"


class PreviewSession:
    """Single-route selection session.

    Transitions are serialized with a lock. The lock is released while the
    strategies run, so a newer ``request_optimization`` can supersede one in
    flight; the superseded caller gets :class:`OptimizationCancelled` and its
    result is never applied.
    """

    def __init__(self, optimizer: RouteOptimizer, session_id: str | None = None) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self._optimizer = optimizer
        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._result: Optional[OptimizationResult] = None
        self._previewed: Optional[RouteCandidate] = None
        self._committed: Optional[RouteCandidate] = None
        self._token: Optional[CancellationToken] = None
        self._generation = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def candidates(self) -> tuple[RouteCandidate, ...]:
        return self._result.candidates if self._result else ()

    @property
    def result(self) -> Optional[OptimizationResult]:
        return self._result

    @property
    def previewed(self) -> Optional[RouteCandidate]:
        return self._previewed

    @property
    def committed(self) -> Optional[RouteCandidate]:
        return self._committed

    def _resting_state(self) -> SessionState:
        return SessionState.COMMITTED if self._committed is not None else SessionState.IDLE

    def _cancel_in_flight(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None

    def request_optimization(
        self,
        waypoints: Sequence[Waypoint],
        config: RouteConfig | None = None,
        fixed_start: Optional[Waypoint] = None,
        fixed_end: Optional[Waypoint] = None,
    ) -> OptimizationResult:
        """Compute fresh route options, superseding any run still in flight.

        Raises:
            InsufficientWaypoints: before any state change.
            NoCandidates: every strategy failed; the session is back to IDLE,
                or COMMITTED if a route was applied earlier.
            OptimizationCancelled: a newer request or a reset superseded this one.
        """
        resolved = self._optimizer.resolve(waypoints, config, fixed_start, fixed_end)

        with self._lock:
            self._cancel_in_flight()
            self._generation += 1
            generation = self._generation
            token = CancellationToken()
            self._token = token
            self._result = None
            self._previewed = None
            self._state = SessionState.COMPUTING

        try:
            result = self._optimizer.optimize_resolved(resolved, token)
        except OptimizationCancelled:
            logger.info(f"Session {self.session_id}: optimization {generation} superseded")
            raise
        except Exception:
            with self._lock:
                if generation == self._generation:
                    self._token = None
                    self._state = self._resting_state()
            raise

        with self._lock:
            if generation != self._generation or token.cancelled:
                logger.info(f"Session {self.session_id}: discarding result of superseded optimization {generation}")
                raise OptimizationCancelled("Optimization was superseded by a newer request.")
            self._token = None
            if not result.succeeded:
                self._state = self._resting_state()
                raise NoCandidates(result.failures)
            self._result = result
            self._state = SessionState.READY
            logger.info(f"Session {self.session_id}: {len(result.candidates)} route options ready")
            return result

    def find_candidate(self, candidate_id: str) -> RouteCandidate:
        with self._lock:
            candidate = self._result.find(candidate_id) if self._result else None
            if candidate is None:
                raise UnknownCandidate(f"Candidate {candidate_id} is not part of the current route options.")
            return candidate

    def preview(self, candidate: RouteCandidate) -> RouteCandidate:
        with self._lock:
            if self._state not in (SessionState.READY, SessionState.PREVIEWING):
                raise SessionStateError(f"Cannot preview while {self._state.value}.")
            if candidate not in self.candidates:
                raise UnknownCandidate(f"Candidate {candidate.candidate_id} is not part of the current route options.")
            self._previewed = candidate
            self._state = SessionState.PREVIEWING
            return candidate

    def clear_preview(self) -> None:
        with self._lock:
            if self._state is SessionState.READY:
                return
            if self._state is not SessionState.PREVIEWING:
                raise SessionStateError(f"Nothing is being previewed while {self._state.value}.")
            self._previewed = None
            self._state = SessionState.READY

    def apply(self, candidate: RouteCandidate) -> RouteCandidate:
        """Commit the candidate currently shown in preview."""
        with self._lock:
            if self._state is not SessionState.PREVIEWING or candidate != self._previewed:
                raise UnknownCandidate(
                    f"Candidate {candidate.candidate_id} must be previewed before it can be applied."
                )
            self._committed = candidate
            self._previewed = None
            self._state = SessionState.COMMITTED
            logger.info(f"Session {self.session_id}: committed {candidate.strategy_id.value} route")
            return candidate

    def waypoints_changed(self) -> None:
        """Invalidate options computed for the previous stop list."""
        with self._lock:
            self._cancel_in_flight()
            self._generation += 1
            self._result = None
            self._previewed = None
            self._state = self._resting_state()

    def reset(self) -> None:
        with self._lock:
            self._cancel_in_flight()
            self._generation += 1
            self._result = None
            self._previewed = None
            self._committed = None
            self._state = SessionState.IDLE


class SessionRegistry:
    """In-process store of preview sessions keyed by id.

    Holds at most ``max_sessions``; creating one more evicts the session that
    was used least recently.
    """

    def __init__(self, optimizer_factory=RouteOptimizer, max_sessions: int | None = None) -> None:
        self._optimizer_factory = optimizer_factory
        self.max_sessions = max_sessions or settings.max_sessions
        self._sessions: OrderedDict[str, PreviewSession] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> PreviewSession:
        session = PreviewSession(self._optimizer_factory())
        evicted: list[PreviewSession] = []
        with self._lock:
            self._sessions[session.session_id] = session
            while len(self._sessions) > self.max_sessions:
                evicted.append(self._sessions.popitem(last=False)[1])
        for stale in evicted:
            logger.info(f"Evicting least recently used session {stale.session_id}")
            stale.reset()
        return session

    def get(self, session_id: str) -> PreviewSession:
        with self._lock:
            try:
                self._sessions.move_to_end(session_id)
            except KeyError:
                raise KeyError(f"Session '{session_id}' not found.") from None
            return self._sessions[session_id]

    def delete(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise KeyError(f"Session '{session_id}' not found.")
        session.reset()

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
