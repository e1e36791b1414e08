"""webcallback exception hierarchy.

Provides structured exceptions for the delivery pipeline.
All exceptions inherit from CallbackError for easy catching.

Transport failures are not wrapped: once retries are exhausted the
underlying ``httpx.TransportError`` reaches the caller unchanged.
"""

from __future__ import annotations


class CallbackError(Exception):
    """Base exception for all webcallback errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code.
    """

    code: str = "callback_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


class ValidationError(CallbackError):
    """Invalid callback configuration.

    Raised before any network I/O and never retried.

    Attributes:
        field: The field that failed validation.
        message: Description of the validation failure.
    """

    code: str = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> dict[str, object]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code,
                "field": self.field,
                "message": self.message,
            }
        }


class EmptyURLError(ValidationError):
    """The callback URL is empty or only whitespace."""

    def __init__(self) -> None:
        super().__init__("url", "empty callback URL")


class PayloadEncodingError(CallbackError):
    """Structured payload could not be serialized.

    Raised before any network I/O and never retried. The serializer's
    own error is available as ``__cause__``.
    """

    code: str = "payload_encoding_error"


class DispatchCancelledError(CallbackError):
    """The dispatch deadline expired before a response arrived.

    Distinct from transport errors: no further attempts are made once
    this is raised.

    Attributes:
        url: Destination of the abandoned callback.
    """

    code: str = "dispatch_cancelled"

    def __init__(self, url: str, message: str = "callback dispatch cancelled") -> None:
        self.url = url
        super().__init__(f"{message}: {url}")

    def to_dict(self) -> dict[str, object]:
        """Convert exception to a serializable dictionary."""
        return {
            "error": {
                "code": self.code,
                "url": self.url,
                "message": self.message,
            }
        }
