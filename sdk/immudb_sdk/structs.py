"""
Structured-document conversion for the immudb SDK.

Converts between plain JSON-compatible Python values (None, bool, numbers,
str, lists and str-keyed mappings) and the protobuf ``Value``/``Struct``
well-known types used by the document API.

Invariants:
    - Numbers travel as 64-bit floats; integers above 2**53 lose precision
    - from_struct() returns keys in sorted order
    - A Value with no kind set is never silently mapped to None

How to change safely:
    - Keep value_to_document() and document_to_value() symmetric
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from google.protobuf import struct_pb2

from .errors import DecodeError, InvalidInputError


def value_to_document(value: Any) -> struct_pb2.Value:
    """Convert a JSON-compatible value to a protobuf ``Value``.

    Raises:
        InvalidInputError: For types with no JSON representation
    """
    if value is None:
        return struct_pb2.Value(null_value=struct_pb2.NULL_VALUE)
    if isinstance(value, bool):
        return struct_pb2.Value(bool_value=value)
    if isinstance(value, (int, float)):
        return struct_pb2.Value(number_value=float(value))
    if isinstance(value, str):
        return struct_pb2.Value(string_value=value)
    if isinstance(value, Mapping):
        return struct_pb2.Value(struct_value=to_struct(value))
    if isinstance(value, (list, tuple)):
        return struct_pb2.Value(
            list_value=struct_pb2.ListValue(values=[value_to_document(v) for v in value])
        )
    raise InvalidInputError(
        f"value of type {type(value).__name__} is not JSON-compatible",
        value=value,
    )


def document_to_value(value: struct_pb2.Value) -> Any:
    """Convert a protobuf ``Value`` back to plain Python.

    Raises:
        DecodeError: If the value has no kind set
    """
    kind = value.WhichOneof("kind")
    if kind is None:
        raise DecodeError("document value has no kind set")
    if kind == "null_value":
        return None
    if kind == "struct_value":
        return from_struct(value.struct_value)
    if kind == "list_value":
        return [document_to_value(v) for v in value.list_value.values]
    return getattr(value, kind)


def to_struct(document: Mapping[str, Any]) -> struct_pb2.Struct:
    struct = struct_pb2.Struct()
    for key, item in document.items():
        if not isinstance(key, str):
            raise InvalidInputError(f"document keys must be strings, got {key!r}", value=key)
        struct.fields[key].CopyFrom(value_to_document(item))
    return struct


def from_struct(struct: struct_pb2.Struct) -> dict[str, Any]:
    return {key: document_to_value(struct.fields[key]) for key in sorted(struct.fields)}
