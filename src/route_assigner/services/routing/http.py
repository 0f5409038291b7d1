"""Shared HTTP plumbing for routing provider clients."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...config import settings
from .cancellation import CancellationToken
from .errors import ProviderUnavailable

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class ProviderHttpClient:
    """Base class handling timeouts, retries and cancellation checks.

    Subclasses interpret the response body; anything that prevents getting a
    body at all, including an undecodable one, is reported as
    :class:`ProviderUnavailable`.
    """

    name = "provider"

    def __init__(
        self,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.provider_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.provider_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        """Create a client per call; strategies run on separate threads."""
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)),
            transport=self._transport,
        )

    def _backoff(self, attempt: int, token: CancellationToken) -> None:
        wait_time = self.backoff_seconds * (2 ** (attempt - 1))
        logger.debug(f"{self.name} retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
        if token.wait(wait_time):
            token.raise_if_cancelled()

    def _get(self, url: str, params: dict[str, Any], token: CancellationToken) -> httpx.Response:
        """GET with bounded retries. Returns any non-retryable response."""
        client = self._get_client()
        try:
            attempt = 0
            while True:
                token.raise_if_cancelled()
                try:
                    response = client.get(url, params=params)
                except httpx.TimeoutException as exc:
                    error: ProviderUnavailable = ProviderUnavailable(
                        self.name, f"request timed out after {self.timeout:.1f}s"
                    )
                    cause: Exception = exc
                except (httpx.RequestError, OSError) as exc:
                    error = ProviderUnavailable(self.name, f"request failed: {exc}")
                    cause = exc
                else:
                    token.raise_if_cancelled()
                    if response.status_code not in RETRYABLE_STATUS_CODES:
                        return response
                    error = ProviderUnavailable(self.name, f"HTTP {response.status_code}")
                    cause = httpx.HTTPStatusError(
                        f"HTTP {response.status_code}", request=response.request, response=response
                    )

                attempt += 1
                if attempt > self.max_retries:
                    logger.warning(f"{self.name} request failed after {attempt} attempt(s): {error}")
                    raise error from cause
                self._backoff(attempt, token)
        finally:
            client.close()

    def _json(self, response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderUnavailable(self.name, f"invalid JSON body (HTTP {response.status_code})") from exc
        if not isinstance(data, dict):
            raise ProviderUnavailable(self.name, "unexpected response shape")
        return data
