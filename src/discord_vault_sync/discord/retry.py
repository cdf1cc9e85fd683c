"""Rate-limit aware retry executor for Discord REST calls.

Wraps a single HTTP request with bounded retries:

* 429 responses wait for the server's ``Retry-After`` hint (or an
  exponential delay when absent) and consume one attempt each.
* Other non-2xx responses and transport errors back off linearly.
* Client errors that cannot succeed on retry fail immediately.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Awaitable, Callable

import httpx

from discord_vault_sync.constants import (
    MAX_RETRIES,
    NON_RETRYABLE_STATUS_CODES,
    RATE_LIMIT_STATUS_CODE,
    RETRY_BASE_DELAY,
)
from discord_vault_sync.errors import RateLimited, RemoteRequestFailed, RetriesExhausted
from discord_vault_sync.logging import get_logger
from discord_vault_sync.notices import Notifier

log = get_logger("discord_vault_sync.discord.retry")

SendFn = Callable[[httpx.Request], Awaitable[httpx.Response]]
SleepFn = Callable[[float], Awaitable[None]]


def parse_retry_after(response: httpx.Response) -> float | None:
    """Extract the rate-limit wait hint (seconds) from a 429 response.

    Prefers the ``Retry-After`` header and falls back to the
    ``retry_after`` field Discord puts in the JSON body.
    """
    raw = response.headers.get("Retry-After")
    if raw:
        try:
            return max(0.0, float(raw))
        except ValueError:
            pass
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and "retry_after" in payload:
        try:
            return max(0.0, float(payload["retry_after"]))
        except (TypeError, ValueError):
            return None
    return None


class RetryExecutor:
    """Executes one request with Discord's retry and rate-limit rules."""

    def __init__(
        self,
        send: SendFn,
        *,
        max_retries: int = MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
        sleep: SleepFn = asyncio.sleep,
        notifier: Notifier | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            send: Coroutine that performs one HTTP round trip.
            max_retries: Retries after the first attempt.
            base_delay: Base delay in seconds for both backoff curves.
            sleep: Awaitable sleep, injectable for tests.
            notifier: Receives a notice on every rate-limit wait.
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._send = send
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._sleep = sleep
        self._notifier = notifier

    @property
    def max_attempts(self) -> int:
        """Total number of attempts, including the first one."""
        return self._max_retries + 1

    def rate_limit_delay(self, retry_after: float | None, attempt: int) -> float:
        """Seconds to wait after a 429 on the zero-based ``attempt``."""
        if retry_after is not None:
            return retry_after
        return self._base_delay * 2**attempt

    def failure_delay(self, attempt: int) -> float:
        """Seconds to wait after a failed zero-based ``attempt``."""
        return self._base_delay * (attempt + 1)

    async def execute(self, request: httpx.Request) -> httpx.Response:
        """Send ``request`` until it succeeds or attempts run out.

        Returns:
            The first 2xx response.

        Raises:
            RemoteRequestFailed: The server rejected the request with a
                status that retrying cannot fix.
            RetriesExhausted: Every attempt failed.
        """
        last_error: Exception | None = None

        for attempt in range(self.max_attempts):
            is_last = attempt == self.max_attempts - 1

            try:
                response = await self._send(request)
            except httpx.TransportError as exc:
                last_error = exc
                log.warning(
                    "discord_request_transport_error",
                    method=request.method,
                    url=str(request.url),
                    attempt=attempt + 1,
                    error=str(exc),
                )
                if not is_last:
                    await self._sleep(self.failure_delay(attempt))
                continue

            status = response.status_code

            if status == RATE_LIMIT_STATUS_CODE:
                last_error = RateLimited(parse_retry_after(response))
                wait = self.rate_limit_delay(last_error.retry_after, attempt)
                log.warning(
                    "discord_rate_limited",
                    url=str(request.url),
                    attempt=attempt + 1,
                    wait_seconds=wait,
                )
                if not is_last:
                    self._notify(f"Rate limited. Waiting {math.ceil(wait)}s...")
                    await self._sleep(wait)
                continue

            if 200 <= status < 300:
                return response

            failure = RemoteRequestFailed(status, response.text)
            log.error(
                "discord_api_error",
                method=request.method,
                url=str(request.url),
                status=status,
                body=response.text[:200],
                attempt=attempt + 1,
            )
            if status in NON_RETRYABLE_STATUS_CODES:
                raise failure
            last_error = failure
            if not is_last:
                await self._sleep(self.failure_delay(attempt))

        raise RetriesExhausted(self.max_attempts, last_error) from last_error

    def _notify(self, text: str) -> None:
        if self._notifier is not None:
            self._notifier.notify(text)
