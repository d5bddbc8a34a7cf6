# mypy: ignore-errors
"""Helpers for declaring protocol messages as descriptor protos.

The immudb message definitions are declared in Python and registered in the
default descriptor pool, the same pool protoc-generated ``_pb2`` modules
use, so well-known types such as ``google.protobuf.Struct`` interoperate.
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.internal import enum_type_wrapper

# Registers google/protobuf/{empty,struct}.proto in the default pool.
from google.protobuf import empty_pb2, struct_pb2  # noqa: F401

_F = descriptor_pb2.FieldDescriptorProto

STRING = _F.TYPE_STRING
BYTES = _F.TYPE_BYTES
BOOL = _F.TYPE_BOOL
INT32 = _F.TYPE_INT32
INT64 = _F.TYPE_INT64
UINT32 = _F.TYPE_UINT32
UINT64 = _F.TYPE_UINT64
DOUBLE = _F.TYPE_DOUBLE
ENUM = _F.TYPE_ENUM
MESSAGE = _F.TYPE_MESSAGE


def field(name, number, ftype, *, repeated=False, type_name=None, oneof_index=None):
    proto = _F(
        name=name,
        number=number,
        type=ftype,
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
    )
    if type_name:
        proto.type_name = type_name
    if oneof_index is not None:
        proto.oneof_index = oneof_index
    return proto


def message(name, *fields, oneofs=(), nested=()):
    proto = descriptor_pb2.DescriptorProto(name=name)
    proto.field.extend(fields)
    for oneof in oneofs:
        proto.oneof_decl.add(name=oneof)
    proto.nested_type.extend(nested)
    return proto


def map_entry(name, value_type, *, value_type_name=None):
    entry = message(
        name,
        field("key", 1, STRING),
        field("value", 2, value_type, type_name=value_type_name),
    )
    entry.options.map_entry = True
    return entry


def enum(name, *values):
    proto = descriptor_pb2.EnumDescriptorProto(name=name)
    for number, value in enumerate(values):
        proto.value.add(name=value, number=number)
    return proto


def register(name, package, messages, enums=()):
    """Add a proto3 file to the default pool and return its FileDescriptor."""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=name,
        package=package,
        syntax="proto3",
        dependency=["google/protobuf/empty.proto", "google/protobuf/struct.proto"],
    )
    file_proto.message_type.extend(messages)
    file_proto.enum_type.extend(enums)
    return descriptor_pool.Default().AddSerializedFile(file_proto.SerializeToString())


def message_class(file_descriptor, name):
    return message_factory.GetMessageClass(file_descriptor.message_types_by_name[name])


def enum_wrapper(file_descriptor, name):
    return enum_type_wrapper.EnumTypeWrapper(file_descriptor.enum_types_by_name[name])
