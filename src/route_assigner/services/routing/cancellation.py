"""Cooperative cancellation shared by one optimization run."""

from __future__ import annotations

import threading

from .errors import OptimizationCancelled


class CancellationToken:
    """Flag checked by provider clients at each I/O boundary."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OptimizationCancelled("Optimization was cancelled.")

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; returns True early if cancelled meanwhile."""
        return self._event.wait(seconds)
