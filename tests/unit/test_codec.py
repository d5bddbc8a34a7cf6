"""
Unit tests for the value codec.

Tests cover:
- Encoding each supported Python type
- Decoding with accepted and rejected wire variants
- Timestamp precision
- SQLValue conversion
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from sdk.immudb_sdk._generated import SQLValue
from sdk.immudb_sdk.codec import (
    WireKind,
    WireValue,
    datetime_to_micros,
    decode,
    encode,
    micros_to_datetime,
    wire_from_proto,
    wire_to_proto,
)
from sdk.immudb_sdk.errors import DecodeError, InvalidInputError, TypeMismatchError


class TestEncode:
    """Tests for encode()."""

    def test_none_is_null(self):
        assert encode(None) == WireValue.null()

    def test_bool_is_not_integer(self):
        assert encode(True).kind is WireKind.BOOLEAN
        assert encode(False).value is False

    def test_int(self):
        assert encode(7) == WireValue(WireKind.INTEGER, 7)

    def test_int64_bounds(self):
        assert encode(2**63 - 1).value == 2**63 - 1
        assert encode(-(2**63)).value == -(2**63)

    def test_unsigned_wraps_to_signed(self):
        assert encode(2**64 - 1).value == -1
        assert encode(2**63).value == -(2**63)

    def test_int_out_of_range(self):
        with pytest.raises(InvalidInputError):
            encode(2**64)
        with pytest.raises(InvalidInputError):
            encode(-(2**63) - 1)

    def test_float(self):
        assert encode(1.5) == WireValue(WireKind.FLOAT, 1.5)

    def test_str(self):
        assert encode("alice") == WireValue(WireKind.STRING, "alice")

    def test_bytes_like(self):
        assert encode(b"\x00\x01").value == b"\x00\x01"
        assert encode(bytearray(b"ab")) == WireValue(WireKind.BYTES, b"ab")
        assert encode(memoryview(b"cd")).value == b"cd"

    def test_uuid_as_16_bytes(self):
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        wire = encode(value)
        assert wire.kind is WireKind.BYTES
        assert wire.value == value.bytes
        assert len(wire.value) == 16

    def test_datetime_as_micros(self):
        dt = datetime(1970, 1, 1, 0, 0, 1, 500, tzinfo=timezone.utc)
        assert encode(dt) == WireValue(WireKind.TIMESTAMP, 1_000_500)

    def test_naive_datetime_is_utc(self):
        naive = datetime(2024, 5, 1, 12, 0, 0)
        aware = naive.replace(tzinfo=timezone.utc)
        assert encode(naive) == encode(aware)

    def test_naive_datetime_decodes_as_utc_aware(self):
        naive = datetime(2024, 1, 2, 3, 4, 5, 6)
        result = decode(encode(naive), datetime)
        assert result == naive.replace(tzinfo=timezone.utc)
        assert result.tzinfo is not None

    def test_wire_value_passthrough(self):
        wire = WireValue.string("x")
        assert encode(wire) is wire

    def test_unsupported_type(self):
        with pytest.raises(InvalidInputError):
            encode({"a": 1})
        with pytest.raises(InvalidInputError):
            encode([1, 2])


class TestDecode:
    """Tests for decode()."""

    @pytest.mark.parametrize(
        "value,target",
        [
            (42, int),
            (-1, int),
            (2.25, float),
            (True, bool),
            ("héllo", str),
            (b"\xff\x00", bytes),
            (uuid.UUID("12345678-1234-5678-1234-567812345678"), uuid.UUID),
        ],
    )
    def test_round_trip(self, value, target):
        assert decode(encode(value), target) == value

    def test_timestamp_round_trip(self):
        dt = datetime(2024, 2, 29, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert decode(encode(dt), datetime) == dt

    def test_timestamp_is_utc_aware(self):
        result = decode(WireValue.timestamp(0), datetime)
        assert result.tzinfo is not None
        assert result.utcoffset() == timedelta(0)

    def test_timestamp_keeps_offset_instant(self):
        tz = timezone(timedelta(hours=3))
        dt = datetime(2024, 1, 1, 3, 0, tzinfo=tz)
        assert decode(encode(dt), datetime) == dt

    def test_float_accepts_integer(self):
        assert decode(WireValue.int64(3), float) == 3.0

    def test_str_accepts_bytes_as_base64(self):
        assert decode(WireValue.binary(b"foobar\n"), str) == "Zm9vYmFyCg=="

    def test_uuid_accepts_string(self):
        text = "12345678-1234-5678-1234-567812345678"
        assert decode(WireValue.string(text), uuid.UUID) == uuid.UUID(text)

    def test_bool_cell_as_str_names_bool(self):
        with pytest.raises(TypeMismatchError) as exc_info:
            decode(WireValue.boolean(True), str)
        assert exc_info.value.actual == "bool"
        assert exc_info.value.code == "TYPE_MISMATCH"

    def test_str_cell_as_bool_expects_bool(self):
        with pytest.raises(TypeMismatchError) as exc_info:
            decode(WireValue.string("true"), bool)
        assert exc_info.value.expected == "bool"
        assert exc_info.value.actual == "string"

    def test_type_mismatch_is_decode_error(self):
        with pytest.raises(DecodeError):
            decode(WireValue.float64(1.0), int)

    def test_null_rejected_unless_nullable(self):
        with pytest.raises(TypeMismatchError):
            decode(WireValue.null(), int)
        assert decode(WireValue.null(), int, nullable=True) is None

    def test_raw_targets(self):
        wire = WireValue.int64(5)
        assert decode(wire, WireValue) is wire
        assert decode(wire, object) is wire

    def test_bad_uuid_length(self):
        with pytest.raises(DecodeError, match="16 bytes"):
            decode(WireValue.binary(b"short"), uuid.UUID)

    def test_bad_uuid_string(self):
        with pytest.raises(DecodeError):
            decode(WireValue.string("not-a-uuid"), uuid.UUID)

    def test_timestamp_out_of_range(self):
        with pytest.raises(DecodeError):
            micros_to_datetime(2**62)

    def test_unsupported_target(self):
        with pytest.raises(InvalidInputError):
            decode(WireValue.int64(1), list)


class TestMicros:
    """Tests for timestamp helpers."""

    def test_epoch(self):
        assert datetime_to_micros(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0

    def test_before_epoch(self):
        dt = datetime(1969, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
        assert datetime_to_micros(dt) == -1
        assert micros_to_datetime(-1) == dt


class TestJson:
    """Tests for WireValue.to_json()."""

    def test_bytes_become_base64(self):
        assert WireValue.binary(b"\x00\xff").to_json() == "AP8="

    def test_scalars_unchanged(self):
        assert WireValue.null().to_json() is None
        assert WireValue.int64(1).to_json() == 1
        assert WireValue.timestamp(123).to_json() == 123
        assert WireValue.string("s").to_json() == "s"


class TestProto:
    """Tests for SQLValue conversion."""

    @pytest.mark.parametrize(
        "wire,field",
        [
            (WireValue.int64(-5), "n"),
            (WireValue.string("x"), "s"),
            (WireValue.boolean(False), "b"),
            (WireValue.binary(b""), "bs"),
            (WireValue.timestamp(99), "ts"),
            (WireValue.float64(0.5), "f"),
        ],
    )
    def test_variant_fields(self, wire, field):
        proto = wire_to_proto(wire)
        assert proto.WhichOneof("value") == field
        assert wire_from_proto(proto) == wire

    def test_null(self):
        proto = wire_to_proto(WireValue.null())
        assert proto.WhichOneof("value") == "null"
        assert wire_from_proto(proto).is_null

    def test_unset_oneof_is_null(self):
        assert wire_from_proto(SQLValue()) == WireValue.null()

    def test_survives_serialization(self):
        proto = wire_to_proto(WireValue.string("héllo"))
        parsed = SQLValue.FromString(proto.SerializeToString())
        assert wire_from_proto(parsed) == WireValue.string("héllo")
