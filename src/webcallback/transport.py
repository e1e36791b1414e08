"""Transports for callback delivery.

Every transport here is an ``httpx.AsyncBaseTransport``: one operation,
``handle_async_request(request) -> response``, raising on network failure.

- ``RetryingTransport`` re-sends a request with exponential backoff when
  the wrapped transport raises ``httpx.TransportError``.
- ``ObservedTransport`` opens an OpenTelemetry client span around each
  call and logs its outcome. It never retries.

The process-wide default is ``RetryingTransport`` over an
``ObservedTransport`` over ``httpx.AsyncHTTPTransport``, so each attempt
gets its own span. A caller-supplied override is only wrapped in
``ObservedTransport`` and is called exactly once per dispatch.
"""

from __future__ import annotations

import threading
import time

import httpx
from opentelemetry import propagate, trace
from opentelemetry.trace import SpanKind, Status, StatusCode
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import DEFAULT_MAX_RETRIES, Settings, get_settings
from .logging import get_logger

logger = get_logger(__name__)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log a failed attempt before backing off."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying callback request",
        attempt=retry_state.attempt_number,
        error=repr(exc),
        sleep_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
    )


class RetryingTransport(httpx.AsyncBaseTransport):
    """Transport that retries network failures with exponential backoff.

    Only ``httpx.TransportError`` triggers a retry, except
    ``httpx.UnsupportedProtocol``: a URL without a usable scheme fails on
    the first attempt. Responses of any status are returned as-is, and
    cancellation is never retried. When every attempt fails the last
    error is raised unchanged.

    Each attempt re-sends the full request, so the request body must be
    readable more than once. Bodies built from ``bytes`` always are.

    Attributes:
        max_retries: Total attempts per request, at least 1.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base: httpx.AsyncBaseTransport | None = None,
        *,
        backoff_multiplier: float = 1.0,
        backoff_max: float = 30.0,
        timeout: float | None = None,
    ) -> None:
        """Initialize the retrying transport.

        Args:
            max_retries: Total attempts. Values below 1 fall back to 5.
            base: Transport that performs each attempt. Defaults to a
                fresh ``httpx.AsyncHTTPTransport``.
            backoff_multiplier: First backoff delay in seconds; doubles per attempt.
            backoff_max: Upper bound for a single delay in seconds.
            timeout: Per-attempt timeout applied to requests that carry none.
        """
        if max_retries < 1:
            max_retries = DEFAULT_MAX_RETRIES
        self.max_retries = max_retries
        self._base = base if base is not None else httpx.AsyncHTTPTransport()
        self._wait = wait_exponential(multiplier=backoff_multiplier, max=backoff_max)
        self._timeout = httpx.Timeout(timeout) if timeout is not None else None

    @property
    def base(self) -> httpx.AsyncBaseTransport:
        return self._base

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self._timeout is not None and "timeout" not in request.extensions:
            request.extensions["timeout"] = self._timeout.as_dict()

        # A fresh controller per request keeps attempt counters off the instance.
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=self._wait,
            retry=(
                retry_if_exception_type(httpx.TransportError)
                & retry_if_not_exception_type(httpx.UnsupportedProtocol)
            ),
            before_sleep=_log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self._base.handle_async_request(request)
        return response

    async def aclose(self) -> None:
        await self._base.aclose()


class ObservedTransport(httpx.AsyncBaseTransport):
    """Tracing and logging layer in front of another transport.

    Injects trace-context headers when a span is active, which only adds
    headers and never replaces the caller's. With tracing disabled no
    span is opened and no headers are added, even inside a caller's span.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        *,
        tracer: trace.Tracer | None = None,
        tracing_enabled: bool = True,
    ) -> None:
        self._transport = transport
        self._tracer = tracer
        self._tracing_enabled = tracing_enabled

    @property
    def wrapped(self) -> httpx.AsyncBaseTransport:
        return self._transport

    def _get_tracer(self) -> trace.Tracer:
        if not self._tracing_enabled:
            return trace.NoOpTracer()
        return self._tracer or trace.get_tracer(__name__)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        tracer = self._get_tracer()
        with tracer.start_as_current_span(
            f"HTTP {request.method}",
            kind=SpanKind.CLIENT,
            attributes={"http.request.method": request.method, "url.full": url},
        ) as span:
            if self._tracing_enabled:
                propagate.inject(request.headers)
            started = time.perf_counter()
            try:
                response = await self._transport.handle_async_request(request)
            except httpx.TransportError as e:
                logger.debug(
                    "Callback request failed",
                    url=url,
                    error=repr(e),
                    duration_ms=round((time.perf_counter() - started) * 1000, 1),
                )
                raise

            span.set_attribute("http.response.status_code", response.status_code)
            if response.status_code >= 400:
                span.set_status(Status(StatusCode.ERROR))
            logger.debug(
                "Callback request completed",
                url=url,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return response

    async def aclose(self) -> None:
        await self._transport.aclose()


def build_default_transport(settings: Settings | None = None) -> RetryingTransport:
    """Build a retrying transport from settings.

    Args:
        settings: Settings to use. Uses the global settings if None.
    """
    settings = settings or get_settings()
    return RetryingTransport(
        max_retries=settings.effective_max_retries,
        base=ObservedTransport(
            httpx.AsyncHTTPTransport(),
            tracing_enabled=settings.tracing_enabled,
        ),
        backoff_multiplier=settings.backoff_multiplier,
        backoff_max=settings.backoff_max,
        timeout=settings.request_timeout,
    )


_default_transport: httpx.AsyncBaseTransport | None = None
_default_lock = threading.Lock()


def default_transport() -> httpx.AsyncBaseTransport:
    """Get the process-wide default transport, building it on first use."""
    global _default_transport
    if _default_transport is None:
        with _default_lock:
            if _default_transport is None:
                _default_transport = build_default_transport()
                logger.debug("Built default callback transport")
    return _default_transport


def set_default_transport(transport: httpx.AsyncBaseTransport) -> None:
    """Replace the process-wide default transport (useful for testing)."""
    global _default_transport
    with _default_lock:
        _default_transport = transport


def reset_default_transport() -> None:
    """Forget the default transport so the next use rebuilds it from settings.

    The dropped transport is not closed; use ``close_default_transport``
    to release its connections.
    """
    global _default_transport
    with _default_lock:
        _default_transport = None


async def close_default_transport() -> None:
    """Close the default transport's connection pool and forget it."""
    global _default_transport
    with _default_lock:
        transport, _default_transport = _default_transport, None
    if transport is not None:
        await transport.aclose()


def wrap_override(
    transport: httpx.AsyncBaseTransport,
    settings: Settings | None = None,
) -> ObservedTransport:
    """Wrap a caller-supplied transport for a single dispatch.

    No retry loop is added: the override owns its delivery semantics.
    """
    settings = settings or get_settings()
    return ObservedTransport(transport, tracing_enabled=settings.tracing_enabled)
