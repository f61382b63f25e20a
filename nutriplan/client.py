"""
Remote service client for the NutriPlan microservices.

This module is the **single source of truth** for HTTP communication with the
users, plans and recipes services. Repositories never talk HTTP themselves; they
go through ServiceClient.call() and act on the ServiceResult it returns.

Key principles:
- One attempt per call: no retries, no backoff
- Never raises for transport or HTTP problems; the real cause is logged and
  reported in a tagged ServiceResult ("ok", "empty" or "failure")
- "empty" (HTTP 204 / no body) is a success and is distinct from "failure",
  so callers can apply fallback policy precisely
- Every call carries a timeout; /health checks use their own short timeout

Call flow: Repository -> ServiceClient.call() -> httpx.AsyncClient.request() -> ServiceResult
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx

from nutriplan.config import SERVICES, ServiceConfig
from nutriplan.errors import UnknownServiceError
from nutriplan.utils.cache import ServiceFailureCache

logger = logging.getLogger(__name__)

DEFAULT_HEADERS: Dict[str, str] = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


@dataclass(frozen=True)
class ServiceResult:
    """
    Normalized outcome of one HTTP round trip.

    Attributes:
        status: "ok" (data present, possibly an empty list), "empty" (no body),
            or "failure" (transport error, timeout, non-2xx, bad JSON)
        data: Decoded JSON body when status is "ok"
        error: Human-readable failure reason when status is "failure"
        status_code: HTTP status code if a response was received
    """
    status: str
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def ok(cls, data: Any, status_code: Optional[int] = 200) -> "ServiceResult":
        return cls(status="ok", data=data, status_code=status_code)

    @classmethod
    def empty(cls, status_code: Optional[int] = 204) -> "ServiceResult":
        return cls(status="empty", status_code=status_code)

    @classmethod
    def failure(cls, error: str, status_code: Optional[int] = None) -> "ServiceResult":
        return cls(status="failure", error=error, status_code=status_code)

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @property
    def is_empty(self) -> bool:
        return self.status == "empty"

    @property
    def is_failure(self) -> bool:
        return self.status == "failure"


def extract_error_message(response: httpx.Response) -> str:
    """
    Extract a human-readable message from an error response.

    Looks for a "detail" or "message" field in a JSON body and falls back to
    "HTTP Error: <status> <reason>".
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = body.get("detail") or body.get("message")
        if message:
            return message if isinstance(message, str) else str(message)

    return f"HTTP Error: {response.status_code} {response.reason_phrase}"


class ServiceClient:
    """
    Async HTTP client for the configured microservices.

    Args:
        base_urls: service -> base URL table (defaults to ServiceConfig)
        timeout: Timeout in seconds for CRUD calls
        health_timeout: Timeout in seconds for /health checks
        failure_cache: Circuit-breaker policy (defaults to the configured cooldown)
        http_client: Pre-built httpx.AsyncClient (e.g. with httpx.MockTransport in tests).
            When given, the caller owns its lifecycle.
    """

    def __init__(
        self,
        base_urls: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        health_timeout: Optional[float] = None,
        failure_cache: Optional[ServiceFailureCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        urls = base_urls if base_urls is not None else ServiceConfig.get_base_urls()
        self.base_urls = {name: url.rstrip("/") for name, url in urls.items()}
        self.timeout = timeout if timeout is not None else ServiceConfig.get_request_timeout()
        self.health_timeout = health_timeout if health_timeout is not None else ServiceConfig.get_health_timeout()
        if failure_cache is None:
            failure_cache = ServiceFailureCache(ServiceConfig.get_failure_cooldown())
        self.failure_cache = failure_cache
        self._http = http_client
        self._owns_http = http_client is None

    async def __aenter__(self) -> "ServiceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    def build_url(self, service: str, path: str) -> str:
        """
        Build the full URL for a service path.

        Raises:
            UnknownServiceError: If the service has no base URL
        """
        try:
            base = self.base_urls[service]
        except KeyError:
            raise UnknownServiceError(service) from None
        if not path:
            return base
        if not path.startswith("/"):
            path = "/" + path
        return f"{base}{path}"

    async def call(
        self,
        service: str,
        path: str,
        method: str = "GET",
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> ServiceResult:
        """
        Perform one HTTP round trip and normalize the outcome.

        Args:
            service: Service name ("users", "plans", "recipes")
            path: Endpoint path appended to the service base URL
            method: HTTP method (GET, POST, PUT, DELETE)
            json: JSON body for POST/PUT
            params: Query parameters; None values are dropped
            headers: Extra headers; they override the JSON defaults

        Returns:
            ServiceResult; never raises for network or HTTP errors.

        Raises:
            UnknownServiceError: If the service name is not configured
        """
        url = self.build_url(service, path)
        method = method.upper()
        is_read = method == "GET"

        if is_read:
            recent = self.failure_cache.recent_failure(service)
            if recent is not None:
                logger.info("Skipping %s %s: service '%s' failed recently (%s)", method, url, service, recent)
                return ServiceResult.failure(f"Service '{service}' is temporarily unavailable: {recent}")

        merged_headers = {**DEFAULT_HEADERS, **(headers or {})}
        query = {k: v for k, v in (params or {}).items() if v is not None} or None

        logger.debug("Calling %s %s params=%r", method, url, query)
        try:
            response = await self._get_http().request(
                method,
                url,
                json=json,
                params=query,
                headers=merged_headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            result = ServiceResult.failure(f"Request timed out after {self.timeout:g}s: {e.__class__.__name__}")
        except httpx.HTTPError as e:
            result = ServiceResult.failure(f"Could not reach service '{service}': {e}")
        else:
            result = self._to_result(response)

        if result.is_failure:
            logger.error("API error calling %s %s: %s", method, url, result.error)
            # Only outages mark the service; a 4xx is about the request, not the service
            if is_read and (result.status_code is None or result.status_code >= 500):
                self.failure_cache.record_failure(service, result.error or "failure")
        else:
            self.failure_cache.record_success(service)
        return result

    @staticmethod
    def _to_result(response: httpx.Response) -> ServiceResult:
        if not response.is_success:
            return ServiceResult.failure(extract_error_message(response), response.status_code)

        if response.status_code == 204 or not response.content.strip():
            return ServiceResult.empty(response.status_code)

        try:
            data = response.json()
        except ValueError:
            return ServiceResult.failure("Invalid JSON in response body", response.status_code)
        return ServiceResult.ok(data, response.status_code)

    async def fetch_json(self, service: str, path: str, **kwargs: Any) -> Any:
        """
        Lossy convenience wrapper around call().

        Returns:
            The decoded body on success, None for both "empty" and "failure".
        """
        result = await self.call(service, path, **kwargs)
        return result.data if result.is_ok else None

    async def check_health(self, service: str) -> bool:
        """
        Check whether a service answers its /health endpoint.

        Returns:
            True only for a 2xx response within the health timeout; timeouts,
            connection errors and non-2xx responses all return False.
        """
        url = self.build_url(service, "/health")
        try:
            response = await self._get_http().get(url, timeout=self.health_timeout)
        except (httpx.HTTPError, asyncio.TimeoutError, OSError) as e:
            logger.warning("Health check failed for %s (%s): %s", service, url, e)
            return False
        if not response.is_success:
            logger.warning("Health check for %s returned HTTP %d", service, response.status_code)
        return response.is_success

    async def check_all_health(self, services: Optional[Iterable[str]] = None) -> Dict[str, bool]:
        """Run health checks for several services concurrently."""
        names = list(services) if services is not None else [s for s in SERVICES if s in self.base_urls]
        results = await asyncio.gather(*(self.check_health(name) for name in names))
        return dict(zip(names, results))
