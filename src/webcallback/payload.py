"""Payload encoding for outbound callbacks.

A payload is one of three shapes, carried as a tagged variant:

- ``RawBytes``: sent verbatim.
- ``RawText``: sent verbatim as UTF-8.
- ``Structured``: any other value, serialized to JSON in one shot.

Plain Python values are tagged by ``as_payload``, so callers can hand
``b"..."``, ``"..."`` or ``{"a": 1}`` straight to a ``Callback``.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping, Set
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel

from .exceptions import PayloadEncodingError

RECORD_SEPARATOR = b"\n"


@dataclass(frozen=True, slots=True)
class RawBytes:
    """Raw byte payload, delivered without transformation."""

    data: bytes


@dataclass(frozen=True, slots=True)
class RawText:
    """Raw text payload, delivered as its UTF-8 bytes."""

    text: str


@dataclass(frozen=True, slots=True)
class Structured:
    """Structured payload (mapping, list, model, scalar...), delivered as JSON."""

    value: Any


Payload = RawBytes | RawText | Structured


@dataclass(frozen=True, slots=True)
class EncodedBody:
    """Wire body for one dispatch.

    Attributes:
        content: Bytes to send. Empty means no body.
        is_json: Whether the request needs a JSON content type.
    """

    content: bytes
    is_json: bool = False


EMPTY_BODY = EncodedBody(content=b"", is_json=False)


def as_payload(value: Any) -> Payload | None:
    """Tag a plain value with its payload shape.

    Args:
        value: Raw value supplied by the caller, or an existing variant.

    Returns:
        The tagged payload, or None when there is no payload.
    """
    if value is None:
        return None
    if isinstance(value, RawBytes | RawText | Structured):
        return value
    if isinstance(value, bytes | bytearray | memoryview):
        return RawBytes(bytes(value))
    if isinstance(value, str):
        return RawText(value)
    return Structured(value)


def _json_default(obj: Any) -> Any:
    """Convert values the json module does not handle natively."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, datetime | date):
        return obj.isoformat()
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, Set | tuple):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def encode_json(value: Any) -> bytes:
    """Serialize a whole value to compact JSON bytes.

    Keys keep mapping order, non-ASCII text stays UTF-8 and HTML-unsafe
    characters are not escaped. NaN and Infinity are rejected.

    Raises:
        PayloadEncodingError: On cycles, unsupported types or non-finite floats.
    """
    try:
        text = json.dumps(
            value,
            default=_json_default,
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        )
    except (TypeError, ValueError, RecursionError) as e:
        raise PayloadEncodingError(f"cannot encode {type(value).__name__} payload: {e}") from e
    return text.encode("utf-8")


def encode_payload(value: Any) -> EncodedBody:
    """Produce the wire body for a payload.

    Args:
        value: A plain value or a tagged ``Payload``; None means no body.

    Returns:
        The encoded body and whether it needs a JSON content type.

    Raises:
        PayloadEncodingError: If a structured payload cannot be serialized.
    """
    payload = as_payload(value)
    match payload:
        case None:
            return EMPTY_BODY
        case RawBytes(data=data):
            return EncodedBody(content=bytes(data))
        case RawText(text=text):
            return EncodedBody(content=text.encode("utf-8"))
        case Structured(value=inner):
            return EncodedBody(content=encode_json(inner), is_json=True)
    raise PayloadEncodingError(f"unknown payload shape: {type(payload).__name__}")


def strip_record_separator(body: bytes) -> bytes:
    """Drop a single trailing newline, for comparing delivered bodies."""
    if body.endswith(RECORD_SEPARATOR):
        return body[: -len(RECORD_SEPARATOR)]
    return body
