# enrollment_core/core/http_client.py
"""Resilient request executor: per-attempt timeout plus a single bounded retry policy."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from .config import Settings, settings as default_settings
from .exceptions import (
    EnrollmentServiceError,
    ResponseFormatError,
    TransportError,
    classify_response,
)

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def is_retryable(error: Exception) -> bool:
    """Transport failures and generic 5xx are retried; client errors never are"""
    return isinstance(error, EnrollmentServiceError) and error.retryable


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    backoff: float = 0.0
    backoff_multiplier: float = 2.0
    retryable: Callable[[Exception], bool] = is_retryable

    def __post_init__(self):
        if self.max_attempts < 1:
            self.max_attempts = 1

    @classmethod
    def from_settings(cls, config: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_retries,
            backoff=config.retry_backoff,
            backoff_multiplier=config.retry_backoff_multiplier,
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt"""
        if self.backoff <= 0:
            return 0.0
        return self.backoff * (self.backoff_multiplier ** (attempt - 1))


class RequestExecutor:
    """Performs HTTP/JSON calls against one collaborator service.

    Each attempt is bounded by ``timeout`` seconds; on expiry the in-flight request is
    cancelled and counted as a failed attempt. Failures are classified into the typed
    errors of ``core.exceptions`` and only the ones the retry policy accepts are retried.
    Every attempt and outcome is reported through ``log`` (a caller-supplied logger).
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        log: Optional[logging.Logger] = None,
        name: str = "enrollment",
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else default_settings.request_timeout
        self.retry_policy = retry_policy or RetryPolicy.from_settings(default_settings)
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self.log = log or logger
        self.name = name
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(headers=self.headers, timeout=self.timeout)
        return self._client

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RequestExecutor":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Run the call under the retry policy and return the decoded JSON body (None for 204)"""
        url = f"{self.base_url}{path}"
        policy = self.retry_policy

        for attempt in range(1, policy.max_attempts + 1):
            started = time.monotonic()
            context = {"service": self.name, "method": method, "url": url, "attempt": attempt}
            self.log.debug(f"API request (attempt {attempt}/{policy.max_attempts}): {method} {url}", extra=context)

            try:
                result = await self._attempt(method, url, json=json, params=params)
            except EnrollmentServiceError as e:
                context.update(status=e.status_code, elapsed=round(time.monotonic() - started, 3))
                if not policy.retryable(e) or attempt >= policy.max_attempts:
                    self.log.error(
                        f"API request failed: {method} {url} (attempt {attempt}) - {type(e).__name__}: {e.message}",
                        extra=context,
                    )
                    raise
                delay = policy.delay_for(attempt)
                self.log.warning(
                    f"API request failed: {method} {url} (attempt {attempt}) - {e.message}; retrying in {delay:.2f}s",
                    extra=context,
                )
                if delay:
                    await asyncio.sleep(delay)
                continue

            context.update(elapsed=round(time.monotonic() - started, 3))
            self.log.info(f"API success: {method} {url}", extra=context)
            return result

    async def _attempt(self, method: str, url: str, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await asyncio.wait_for(
                self.client.request(
                    method, url, json=json, params=params, headers=self.headers, timeout=self.timeout
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise TransportError(f"Request timed out after {self.timeout}s")
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out: {e}") from e
        except (httpx.HTTPError, OSError) as e:
            raise TransportError(f"Network error: {e}") from e
        except Exception as e:
            raise TransportError(f"Request failed: {e}") from e
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> Any:
        if response.status_code == 204:
            return None

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise ResponseFormatError(f"Response body is not valid JSON: {e}", response.status_code)

        try:
            payload = response.json()
        except ValueError:
            payload = None
        raise classify_response(response.status_code, payload, response.reason_phrase)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("PUT", path, json=json, params=params)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
