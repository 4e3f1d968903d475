"""Resilient Record Store Client — wraps httpx.AsyncClient with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429): backoff respecting Retry-After header
    - Transient errors (500/502/503/504, connection, timeout): max_retries retries
      with exponential backoff
    - Client errors (4xx except 429): immediate failure, no retry
    - All failures mapped to RecordStoreError (core/errors.py) with the status code
    - OData headers and bearer token sent on every request

Design Decisions:
    - Wrapper over raw client: isolates retry logic from the gateways
    - ±25% jitter on backoff: prevents thundering herd on the shared store
    - transport/sleep injectable: tests drive it with httpx.MockTransport and
      a no-op sleep
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from education_lifecycle.core.errors import ErrorContext, RecordStoreError

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = frozenset({500, 502, 503, 504})
_RATE_LIMITED = 429


class ResilientRecordStoreClient:
    """OData-style JSON client with retries for the external record store."""

    def __init__(
        self,
        base_url: str,
        token: str,
        api_path: str = "api/data/v9.2",
        max_retries: int = 3,
        base_delay_ms: int = 500,
        max_delay_ms: int = 10_000,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/{api_path.strip('/')}/",
            timeout=timeout_seconds,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
                "OData-MaxVersion": "4.0",
                "OData-Version": "4.0",
            },
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._sleep = sleep

    async def get_json(
        self, path: str, *, params: dict[str, Any] | None = None,
        context: ErrorContext | None = None,
    ) -> dict:
        response = await self.request("GET", path, params=params, context=context)
        return response.json()

    async def patch_json(
        self, path: str, payload: dict, *, context: ErrorContext | None = None,
    ) -> None:
        await self.request("PATCH", path, json=payload, context=context)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict | None = None,
        context: ErrorContext | None = None,
    ) -> httpx.Response:
        """Send a request with automatic retry on transient failures."""
        operation = f"{method} {path}"
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(
                    method, path, params=params, json=json,
                )
            except httpx.TransportError as e:  # includes timeouts
                await self._handle_transient_error(e, operation, attempt, context)
                continue

            if response.status_code == _RATE_LIMITED:
                await self._handle_rate_limit(response, operation, attempt, context)
                continue
            if response.status_code in _RETRYABLE_STATUS:
                await self._handle_transient_error(
                    _status_message(response), operation, attempt, context,
                    status_code=response.status_code,
                )
                continue
            if response.is_error:
                raise RecordStoreError(
                    _status_message(response), operation,
                    status_code=response.status_code, context=context,
                )
            if attempt:
                logger.info(
                    f"Record store {operation} succeeded after retry",
                    extra={"attempt": attempt + 1},
                )
            return response

        # Unreachable: the handlers raise on the final attempt
        raise RecordStoreError("retries exhausted", operation, context=context)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _handle_rate_limit(
        self, response: httpx.Response, operation: str, attempt: int,
        context: ErrorContext | None,
    ) -> None:
        """Handle rate limit response with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise RecordStoreError(
                "rate limit exceeded after retries", operation,
                status_code=_RATE_LIMITED, retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Record store rate limit hit, retry after {delay}ms",
            extra={"attempt": attempt + 1},
        )
        await self._sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, operation: str, attempt: int,
        context: ErrorContext | None, status_code: int | None = None,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise RecordStoreError(
                f"transient failure after {self.max_retries} retries: {e}",
                operation, status_code=status_code, context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(
            f"Record store transient error on {operation}, retry after {delay}ms: {e}",
            extra={"attempt": attempt + 1},
        )
        await self._sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None


def _status_message(response: httpx.Response) -> str:
    """Best-effort error text from an OData error body."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message")
        if message:
            return f"HTTP {response.status_code}: {message}"
    return f"HTTP {response.status_code}"
