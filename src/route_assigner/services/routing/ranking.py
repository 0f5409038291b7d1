"""Ranking of strategy outcomes."""

from __future__ import annotations

import logging
from typing import Sequence

from .models import OptimizationResult, StrategyOutcome

logger = logging.getLogger(__name__)


def rank_candidates(outcomes: Sequence[StrategyOutcome]) -> OptimizationResult:
    """Drop failed strategies and sort the rest by distance, then duration.

    ``outcomes`` must be in strategy declaration order; the stable sort keeps
    that order for exact ties.
    """
    failures: dict[str, list[str]] = {}
    candidates = []
    for outcome in outcomes:
        if outcome.candidate is None:
            failures[outcome.strategy_id.value] = list(outcome.errors)
            logger.info(f"Strategy {outcome.strategy_id.value} produced no candidate: {list(outcome.errors)}")
            continue
        candidates.append(outcome.candidate)

    if not candidates:
        logger.warning(f"All {len(outcomes)} strategies failed")
        return OptimizationResult(candidates=(), succeeded=False, failures=failures)

    candidates.sort(key=lambda c: (c.cost.distance_meters, c.cost.duration_seconds))
    return OptimizationResult(candidates=tuple(candidates), succeeded=True, failures=failures)
