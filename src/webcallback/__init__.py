"""webcallback: reliable HTTP callbacks.

POST a payload to a caller-supplied URL, retrying transient network
failures with exponential backoff.

Quick Start:
    from webcallback import Callback

    cb = Callback(
        url="https://example.com/hook",
        payload={"job_id": "job_123", "status": "done"},
    )
    response = await cb.dispatch(timeout=30.0)

Payloads:
    - bytes: sent verbatim
    - str: sent verbatim as UTF-8
    - anything else: sent as JSON with Content-Type: application/json

Transports:
    Without an override, callbacks share one retrying transport.
    A ``transport=`` override (any ``httpx.AsyncBaseTransport``) is called
    exactly once per dispatch and does its own retrying, if any.
"""

__version__ = "0.1.0"

# Core
from .callback import Callback, CallbackState, build_request, post_callback, send_request

# Configuration
from .config import Settings, get_settings, settings

# Exceptions
from .exceptions import (
    CallbackError,
    DispatchCancelledError,
    EmptyURLError,
    PayloadEncodingError,
    ValidationError,
)

# Logging
from .logging import (
    bind_context,
    bound_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)

# Payloads
from .payload import (
    EncodedBody,
    Payload,
    RawBytes,
    RawText,
    Structured,
    as_payload,
    encode_payload,
    strip_record_separator,
)

# Transports
from .transport import (
    ObservedTransport,
    RetryingTransport,
    close_default_transport,
    default_transport,
    reset_default_transport,
    set_default_transport,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Callback",
    "CallbackState",
    "build_request",
    "post_callback",
    "send_request",
    # Configuration
    "Settings",
    "get_settings",
    "settings",
    # Exceptions
    "CallbackError",
    "ValidationError",
    "EmptyURLError",
    "PayloadEncodingError",
    "DispatchCancelledError",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "bound_context",
    "clear_context",
    "unbind_context",
    # Payloads
    "Payload",
    "RawBytes",
    "RawText",
    "Structured",
    "EncodedBody",
    "as_payload",
    "encode_payload",
    "strip_record_separator",
    # Transports
    "RetryingTransport",
    "ObservedTransport",
    "default_transport",
    "set_default_transport",
    "reset_default_transport",
    "close_default_transport",
]
