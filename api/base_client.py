import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from models.backend_result import BackendResult, NormalizedError
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_S = 30.0


class BackendClientError(Exception):
    """
    Raised inside a client to short-circuit into a typed failure.

    Never leaves the client: ``BaseBackendClient.invoke`` wrappers turn it into
    a ``NormalizedError``.
    """

    def __init__(self, code: str, message: str, *, retryable: bool = False, **details: Any):
        super().__init__(message)
        self.code = code
        self.message = message
        self.retryable = retryable
        self.details = details


class BaseBackendClient(ABC):
    """
    Abstract base for every external provider client.

    Subclasses implement ``invoke`` and must never raise: any failure is returned
    as a ``BackendResult`` carrying a ``NormalizedError``.
    """

    provider_name: str = "unknown"

    def __init__(self, *, timeout_s: float = DEFAULT_TIMEOUT_S, http_client: httpx.AsyncClient | None = None):
        self.timeout_s = timeout_s
        self._http_client = http_client

    @abstractmethod
    async def invoke(self, query: str, **params: Any) -> BackendResult:
        """Issue one request and return a typed result."""

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected HTTP client, or a short-lived one for this call."""
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            yield client

    @staticmethod
    def _measure_latency(start_time: float) -> int:
        return int((time.time() - start_time) * 1000)

    def _success(self, value: Any, start_time: float, **metadata: Any) -> BackendResult:
        latency_ms = self._measure_latency(start_time)
        logger.info(
            f"{self.provider_name} call succeeded",
            extra={"extra_fields": {"provider": self.provider_name, "latency_ms": latency_ms, **metadata}},
        )
        return BackendResult(
            provider=self.provider_name, value=value, latency_ms=latency_ms, metadata=metadata
        )

    def _failure(self, exc: Exception, start_time: float) -> BackendResult:
        latency_ms = self._measure_latency(start_time)
        error = self._normalize_error(exc, provider=self.provider_name)
        logger.error(
            f"{self.provider_name} call failed: {error.code}",
            extra={
                "extra_fields": {
                    "provider": self.provider_name,
                    "latency_ms": latency_ms,
                    "error_code": error.code,
                    "error_message": error.message,
                    "retryable": error.retryable,
                }
            },
        )
        return BackendResult(provider=self.provider_name, error=error, latency_ms=latency_ms)

    def _normalize_error(self, exc: Exception, provider: str) -> NormalizedError:
        """
        Map any exception onto the closed error-code set.

        Status codes win over message sniffing when the exception carries one.
        """
        if isinstance(exc, BackendClientError):
            return NormalizedError(
                code=exc.code,
                message=exc.message,
                provider=provider,
                retryable=exc.retryable,
                details=exc.details,
            )

        if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
            return NormalizedError(
                code="timeout", message=str(exc) or "Request timed out", provider=provider, retryable=True
            )

        message = str(exc) or type(exc).__name__
        details = {"exception_type": type(exc).__name__}

        status = status_code_of(exc)
        if status is not None:
            details["status_code"] = status
            code, retryable = _classify_status(status)
            return NormalizedError(
                code=code, message=message, provider=provider, retryable=retryable, details=details
            )

        if isinstance(exc, httpx.TransportError):
            return NormalizedError(
                code="provider_error", message=message, provider=provider, retryable=True, details=details
            )

        lowered = message.lower()
        if "timed out" in lowered or "timeout" in lowered:
            code, retryable = "timeout", True
        elif "401" in lowered or "403" in lowered or "unauthorized" in lowered or "forbidden" in lowered:
            code, retryable = "auth", False
        elif "429" in lowered or "rate limit" in lowered or "too many requests" in lowered:
            code, retryable = "rate_limit", True
        elif "400" in lowered or "bad request" in lowered:
            code, retryable = "bad_request", False
        elif any(s in lowered for s in ("500", "502", "503", "504", "unavailable")):
            code, retryable = "provider_error", True
        else:
            code, retryable = "unknown", False

        return NormalizedError(code=code, message=message, provider=provider, retryable=retryable, details=details)


def status_code_of(exc: Exception) -> int | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    # openai / anthropic expose status_code, google-genai exposes code
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and 100 <= value < 600:
            return value
    return None


def _classify_status(status: int) -> tuple[str, bool]:
    if status in (401, 403):
        return "auth", False
    if status == 429:
        return "rate_limit", True
    if status in (408, 504):
        return "timeout", True
    if status >= 500:
        return "provider_error", True
    if 400 <= status < 500:
        return "bad_request", False
    return "unknown", False
