# src/tracelog/apis/base.py
"""Shared HTTP plumbing for collector API clients.

One httpx.Client per API client gives connection pooling and keep-alive.
Transient failures (transport errors, 408/429/5xx responses) are retried
with exponential backoff and jitter via tenacity; a Retry-After header on
the failed response takes precedence over the computed delay.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import httpx
import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

logger = structlog.get_logger(__name__)

API_KEY_HEADER = "x-api-key"
USER_AGENT = "tracelog-python/0.1"

# Status codes that indicate a temporary server-side condition
RETRIABLE_STATUS_CODES = frozenset(
    {408, 429, 500, 502, 503, 504, 507, 508, 510, 511, 520, 521, 522, 523, 524, 525, 526, 527, 529, 530}
)


class RetriableStatusError(Exception):
    """Internal signal that a response should be retried."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"HTTP {response.status_code} from {response.request.url}")


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """Retry behavior for collector calls.

    max_attempts is the TOTAL number of tries, not the number of retries.
    """

    max_attempts: int = 5
    base_delay: float = 1.0  # seconds
    max_delay: float = 16.0  # seconds
    jitter: float = 0.5  # seconds

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    @classmethod
    def no_retry(cls) -> RetryConfig:
        """Factory for a single attempt."""
        return cls(max_attempts=1)


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, RetriableStatusError | httpx.TransportError)


class BaseAPIClient:
    """Base class for clients of the collector's SDK endpoints.

    Subclasses call _request() for collector-relative paths and _send() for
    prepared requests (e.g. signed URLs on third-party storage).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        retry: RetryConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Collector base URL
            api_key: Key sent in the x-api-key header
            timeout: Default request timeout in seconds
            retry: Retry behavior (default: 5 attempts, 1s..16s backoff)
            transport: Optional httpx transport, for tests
        """
        self._retry = retry or RetryConfig()
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={
                API_KEY_HEADER: api_key,
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
            },
            transport=transport,
        )
        self._closed = False

    def _request(self, method: str, url: str, **kwargs: object) -> httpx.Response:
        """Send a request relative to the base URL, retrying transient failures.

        Returns:
            The final response, which may still be a non-2xx status

        Raises:
            httpx.HTTPError: If every attempt failed at the transport level
        """
        request = self._client.build_request(method, url, **kwargs)  # type: ignore[arg-type]
        return self._send(request)

    def _send(self, request: httpx.Request) -> httpx.Response:
        return self._with_retry(lambda: self._client.send(request))

    def _with_retry(self, operation: Callable[[], httpx.Response]) -> httpx.Response:
        backoff = wait_exponential_jitter(
            initial=self._retry.base_delay,
            max=self._retry.max_delay,
            jitter=self._retry.jitter,
        )

        def wait(retry_state: RetryCallState) -> float:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            if isinstance(error, RetriableStatusError):
                retry_after = error.response.headers.get("retry-after", "")
                if retry_after.isdigit():
                    return min(float(retry_after), self._retry.max_delay)
            return backoff(retry_state)

        def before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.debug(
                "Retrying collector request",
                attempt=retry_state.attempt_number,
                max_attempts=self._retry.max_attempts,
                error=str(error),
            )

        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._retry.max_attempts),
                wait=wait,
                retry=retry_if_exception(_is_retryable),
                before_sleep=before_sleep,
                reraise=True,
            ):
                with attempt:
                    response = operation()
                    if response.status_code in RETRIABLE_STATUS_CODES:
                        raise RetriableStatusError(response)
                    return response
        except RetriableStatusError as e:
            logger.warning(
                "Max retries exceeded for collector request",
                status=e.response.status_code,
                path=e.response.request.url.path,
            )
            return e.response

        # Retrying with reraise=True always returns or raises
        raise RuntimeError("Unexpected state in retry loop")  # pragma: no cover

    def close(self) -> None:
        """Close pooled connections. Idempotent."""
        if not self._closed:
            self._client.close()
            self._closed = True
