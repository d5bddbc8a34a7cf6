"""
Typed value codec for the immudb SDK.

This module converts between Python scalars, the tagged ``WireValue``
union exchanged with the server, and the protobuf ``SQLValue`` message:
- encode(): Python value -> WireValue
- decode(): WireValue -> requested Python type
- wire_to_proto() / wire_from_proto(): WireValue <-> SQLValue

Invariants:
    - Every accepted Python type maps to exactly one wire variant
    - Timestamps carry microseconds since the Unix epoch, UTC
    - UUIDs travel as their 16-byte big-endian form and come back as bytes
    - Integers above the signed 64-bit range but within 64 unsigned bits
      wrap to their two's-complement signed value

How to change safely:
    - Adding a decode target means adding one entry to _DECODERS
    - Never widen the accepted variants of an existing target silently
"""

from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, TypeVar

from google.protobuf import struct_pb2

from ._generated import SQLValue
from .errors import DecodeError, InvalidInputError, TypeMismatchError

T = TypeVar("T")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_U64_MAX = 2**64 - 1


class WireKind(Enum):
    """Variants of the wire value union."""

    NULL = "null"
    INTEGER = "int64"
    FLOAT = "float64"
    BOOLEAN = "bool"
    STRING = "string"
    BYTES = "bytes"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class WireValue:
    """A single tagged value as sent to or received from the server.

    Attributes:
        kind: Which variant this is
        value: The payload (None for NULL, microseconds for TIMESTAMP)
    """

    kind: WireKind
    value: Any = None

    @classmethod
    def null(cls) -> WireValue:
        return cls(WireKind.NULL)

    @classmethod
    def int64(cls, value: int) -> WireValue:
        return cls(WireKind.INTEGER, value)

    @classmethod
    def float64(cls, value: float) -> WireValue:
        return cls(WireKind.FLOAT, value)

    @classmethod
    def boolean(cls, value: bool) -> WireValue:
        return cls(WireKind.BOOLEAN, value)

    @classmethod
    def string(cls, value: str) -> WireValue:
        return cls(WireKind.STRING, value)

    @classmethod
    def binary(cls, value: bytes) -> WireValue:
        return cls(WireKind.BYTES, value)

    @classmethod
    def timestamp(cls, micros: int) -> WireValue:
        return cls(WireKind.TIMESTAMP, micros)

    @property
    def is_null(self) -> bool:
        return self.kind is WireKind.NULL

    def to_json(self) -> Any:
        """JSON-compatible projection: bytes become base64, timestamps stay microseconds."""
        if self.kind is WireKind.BYTES:
            return base64.b64encode(self.value).decode("ascii")
        return self.value


def datetime_to_micros(value: datetime) -> int:
    """Microseconds since the epoch; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(microseconds=1)


def micros_to_datetime(micros: int) -> datetime:
    try:
        return EPOCH + timedelta(microseconds=micros)
    except OverflowError as e:
        raise DecodeError(f"timestamp out of range: {micros}", micros=micros) from e


def _encode_int(value: int) -> WireValue:
    if _I64_MIN <= value <= _I64_MAX:
        return WireValue.int64(value)
    if _I64_MAX < value <= _U64_MAX:
        return WireValue.int64(value - 2**64)
    raise InvalidInputError(f"integer {value} does not fit in 64 bits", value=value)


def encode(value: Any) -> WireValue:
    """Convert a Python value to its wire representation.

    Raises:
        InvalidInputError: If the type has no wire representation
    """
    if value is None:
        return WireValue.null()
    if isinstance(value, WireValue):
        return value
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return WireValue.boolean(value)
    if isinstance(value, int):
        return _encode_int(value)
    if isinstance(value, float):
        return WireValue.float64(value)
    if isinstance(value, str):
        return WireValue.string(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return WireValue.binary(bytes(value))
    if isinstance(value, uuid.UUID):
        return WireValue.binary(value.bytes)
    if isinstance(value, datetime):
        return WireValue.timestamp(datetime_to_micros(value))
    raise InvalidInputError(
        f"cannot encode value of type {type(value).__name__}",
        value=value,
    )


def _uuid_from_bytes(raw: bytes) -> uuid.UUID:
    try:
        return uuid.UUID(bytes=raw)
    except ValueError as e:
        raise DecodeError(f"uuid needs 16 bytes, got {len(raw)}") from e


def _uuid_from_str(text: str) -> uuid.UUID:
    try:
        return uuid.UUID(text)
    except ValueError as e:
        raise DecodeError(f"invalid uuid string: {text!r}") from e


_DECODERS: dict[type, tuple[str, dict[WireKind, Callable[[Any], Any]]]] = {
    int: ("int", {WireKind.INTEGER: int}),
    float: (
        "float",
        {WireKind.FLOAT: float, WireKind.INTEGER: float},
    ),
    bool: ("bool", {WireKind.BOOLEAN: bool}),
    str: (
        "str or bytes (base64)",
        {
            WireKind.STRING: str,
            WireKind.BYTES: lambda raw: base64.b64encode(raw).decode("ascii"),
        },
    ),
    bytes: ("bytes", {WireKind.BYTES: bytes}),
    datetime: ("timestamp", {WireKind.TIMESTAMP: micros_to_datetime}),
    uuid.UUID: (
        "uuid (16 bytes or string)",
        {WireKind.BYTES: _uuid_from_bytes, WireKind.STRING: _uuid_from_str},
    ),
}


def decode(wire: WireValue, target: type[T], *, nullable: bool = False) -> T:
    """Convert a wire value to ``target``.

    Args:
        wire: Value received from the server
        target: One of int, float, bool, str, bytes, datetime, uuid.UUID,
            or WireValue/object for the raw value
        nullable: Return None for NULL instead of failing

    Timestamps always decode to UTC-aware datetimes. A naive datetime is
    encoded as UTC, so it comes back as ``value.replace(tzinfo=timezone.utc)``
    rather than as an equal naive value.

    Raises:
        TypeMismatchError: If the variant is not accepted by ``target``
        DecodeError: If the payload is malformed for ``target``
    """
    if target is WireValue or target is object:
        return wire  # type: ignore[return-value]
    if nullable and wire.is_null:
        return None  # type: ignore[return-value]

    try:
        expected, accepted = _DECODERS[target]
    except KeyError:
        raise InvalidInputError(f"unsupported decode target {target!r}") from None

    convert = accepted.get(wire.kind)
    if convert is None:
        raise TypeMismatchError(expected, wire.kind.value)
    return convert(wire.value)


_PROTO_FIELDS = {
    WireKind.INTEGER: "n",
    WireKind.STRING: "s",
    WireKind.BOOLEAN: "b",
    WireKind.BYTES: "bs",
    WireKind.TIMESTAMP: "ts",
    WireKind.FLOAT: "f",
}
_PROTO_KINDS = {name: kind for kind, name in _PROTO_FIELDS.items()}


def wire_to_proto(wire: WireValue) -> SQLValue:
    if wire.is_null:
        return SQLValue(null=struct_pb2.NULL_VALUE)
    return SQLValue(**{_PROTO_FIELDS[wire.kind]: wire.value})


def wire_from_proto(proto: SQLValue) -> WireValue:
    """Read a SQLValue; an unset oneof is treated as NULL."""
    which = proto.WhichOneof("value")
    if which is None or which == "null":
        return WireValue.null()
    return WireValue(_PROTO_KINDS[which], getattr(proto, which))
