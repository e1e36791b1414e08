"""Callback entity and dispatch.

A ``Callback`` describes one POST delivery: where to send it, what to
send, and optionally which transport to send it through.

Example:
    ```python
    from webcallback import Callback

    cb = Callback(url="https://example.com/hook", payload={"status": "done"})
    response = await cb.dispatch(timeout=10.0)
    print(response.status_code)
    ```

A ``Callback`` is not synchronized. It belongs to a single dispatch at a
time: ``validate()`` rewrites ``url`` in place, so dispatching the same
instance from two tasks at once, or mutating it mid-dispatch, is
undefined. Different instances can be dispatched concurrently.
"""

from __future__ import annotations

import asyncio
import base64
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from .exceptions import DispatchCancelledError, EmptyURLError
from .logging import bound_context, get_logger
from .payload import (
    EncodedBody,
    RawBytes,
    RawText,
    Structured,
    as_payload,
    encode_json,
    encode_payload,
)
from .transport import default_transport, wrap_override

logger = get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"


class CallbackState(str, Enum):
    """Lifecycle of a callback within one dispatch."""

    UNVALIDATED = "unvalidated"
    VALIDATED = "validated"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def build_request(url: str, body: EncodedBody) -> httpx.Request:
    """Build the outbound POST request.

    Only ``Content-Type`` is set, and only for JSON bodies.
    """
    headers = {"Content-Type": JSON_CONTENT_TYPE} if body.is_json else None
    return httpx.Request("POST", url, content=body.content, headers=headers)


async def send_request(
    transport: httpx.AsyncBaseTransport,
    request: httpx.Request,
    timeout: float | None = None,
) -> httpx.Response:
    """Send a request through a transport under an optional deadline.

    The deadline covers every attempt, backoff sleep and the response
    body. The body is buffered so the returned response is usable after
    the call, but its status is not inspected.

    Args:
        transport: Transport to send through.
        request: Request to send.
        timeout: Deadline in seconds, or None for no deadline. Zero or
            negative means the deadline has already passed.

    Raises:
        DispatchCancelledError: If the deadline passed before a response.
        httpx.TransportError: If the transport gave up.
    """
    url = str(request.url)
    if timeout is not None and timeout <= 0:
        raise DispatchCancelledError(url, "callback deadline already expired")

    deadline = asyncio.timeout(timeout)
    try:
        async with deadline:
            response = await transport.handle_async_request(request)
            response.request = request
            try:
                await response.aread()
            except BaseException:
                await response.aclose()
                raise
    except TimeoutError as e:
        if not deadline.expired():
            raise
        raise DispatchCancelledError(url, "callback deadline exceeded") from e
    return response


@dataclass
class Callback:
    """One POST delivery.

    Attributes:
        url: Destination. Surrounding whitespace is stripped by ``validate()``.
        payload: Bytes, text, any JSON-serializable value, a tagged
            ``Payload``, or None for an empty body.
        transport: Optional transport override. When set, the built-in
            retry loop is bypassed and the override gets exactly one call
            per dispatch.
    """

    url: str
    payload: Any = None
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)
    _state: CallbackState = field(
        default=CallbackState.UNVALIDATED, init=False, repr=False, compare=False
    )

    @property
    def state(self) -> CallbackState:
        return self._state

    def validate(self) -> None:
        """Strip the URL and store it back.

        Raises:
            EmptyURLError: If the URL is empty after stripping.
        """
        url = (self.url or "").strip()
        if not url:
            raise EmptyURLError()
        self.url = url
        self._state = CallbackState.VALIDATED

    def _select_transport(self) -> httpx.AsyncBaseTransport:
        if self.transport is None:
            return default_transport()
        return wrap_override(self.transport)

    async def dispatch(self, *, timeout: float | None = None) -> httpx.Response:
        """Validate, encode and POST this callback.

        Args:
            timeout: Deadline in seconds for the whole delivery, retries
                included. None waits indefinitely.

        Returns:
            The response, whatever its status code.

        Raises:
            EmptyURLError: If the URL is empty. No request is made.
            PayloadEncodingError: If the payload cannot be encoded. No request is made.
            DispatchCancelledError: If the deadline passed.
            httpx.TransportError: If delivery failed after all attempts.
        """
        try:
            self.validate()
            with bound_context(callback_url=self.url):
                transport = self._select_transport()
                body = encode_payload(self.payload)
                request = build_request(self.url, body)
                logger.debug(
                    "Dispatching callback",
                    body_bytes=len(body.content),
                    is_json=body.is_json,
                    override=self.transport is not None,
                )
                response = await send_request(transport, request, timeout=timeout)
        except BaseException:
            self._state = CallbackState.FAILED
            raise

        self._state = CallbackState.SUCCEEDED
        return response

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe configuration form. Empty fields and the transport are omitted.

        Bytes payloads become base64 text and structured payloads their
        JSON value, so the result always passes through ``json.dumps``.
        ``from_dict`` reads a base64 payload back as text.

        Raises:
            PayloadEncodingError: If a structured payload cannot be encoded.
        """
        data: dict[str, Any] = {}
        if self.url:
            data["url"] = self.url
        match as_payload(self.payload):
            case RawBytes(data=raw):
                data["payload"] = base64.b64encode(raw).decode("ascii")
            case RawText(text=text):
                data["payload"] = text
            case Structured(value=value):
                data["payload"] = json.loads(encode_json(value))
        return data

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Callback:
        """Build a callback from its configuration form."""
        return cls(url=data.get("url", ""), payload=data.get("payload"), transport=transport)


async def post_callback(
    url: str,
    payload: Any = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout: float | None = None,
) -> httpx.Response:
    """Convenience function to build and dispatch a callback.

    Args:
        url: Destination URL.
        payload: Body to send; see ``Callback.payload``.
        transport: Optional transport override.
        timeout: Deadline in seconds for the whole delivery.

    Returns:
        The response, whatever its status code.
    """
    return await Callback(url=url, payload=payload, transport=transport).dispatch(timeout=timeout)
