import ipaddress
import json
import math
import struct
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from structlogline import encoding
from structlogline import globals as config
from structlogline.globals import (
    RFC3339,
    TIME_FORMAT_UNIX,
    TIME_FORMAT_UNIX_MICRO,
    TIME_FORMAT_UNIX_MS,
    parse_time,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
MS = timedelta(milliseconds=1)


@pytest.mark.parametrize(
    "text",
    ["", "hello", 'say "hi"', "back\\slash", "line\nbreak\ttab\r", "\x00\x01\x1f\b\f", "caf\u00e9 \u2603"],
)
def test_string_round_trip(text):
    assert json.loads(encoding.encode_string(text)) == text


def test_string_keeps_non_ascii_and_escapes_controls():
    encoded = encoding.encode_string("\u2603\x01\n")
    assert "\u2603" in encoded
    assert all(ord(ch) >= 0x20 for ch in encoded)


def test_invalid_text_is_replaced_consistently():
    from_bytes = json.loads(encoding.encode_bytes(b"a\xffb"))
    from_surrogate = json.loads(encoding.encode_string("a\ud800b"))
    assert from_bytes == from_surrogate
    assert len(from_bytes) == 3
    assert from_bytes[0] == "a" and from_bytes[2] == "b"


def test_bytes_round_trip():
    assert json.loads(encoding.encode_bytes("h\u00e9llo".encode())) == "h\u00e9llo"


def test_hex():
    assert encoding.encode_hex(b"\x1f") == '"1f"'
    raw = b"\x00\x1f\xff"
    assert bytes.fromhex(json.loads(encoding.encode_hex(raw))) == raw


def test_bool():
    assert json.loads(encoding.encode_bool(True)) is True
    assert json.loads(encoding.encode_bool(False)) is False


@pytest.mark.parametrize("value", [0, -5, 2**63, 1152921504606846976])
def test_int_round_trip(value):
    assert json.loads(encoding.encode_int(value)) == value


def test_int_rejects_float():
    with pytest.raises(TypeError):
        encoding.encode_int(1.5)


def test_float_source_values():
    assert encoding.encode_float(12.987654321, 64) == "12.987654321"
    assert encoding.encode_float(11.98122, 32) == "11.98122"
    assert encoding.encode_float(10000.0, 64) == "10000"


@pytest.mark.parametrize("value", [0.1, 1.5, -2.25, 1e21, 1e-7, 123456789.125])
def test_float64_round_trip_plain_notation(value):
    text = encoding.encode_float(value, 64)
    assert "e" not in text.lower()
    assert float(text) == value


def test_float32_round_trips_at_single_precision():
    text = encoding.encode_float(0.1, 32)
    assert struct.pack("<f", float(text)) == struct.pack("<f", 0.1)
    assert len(text) < len(repr(struct.unpack("<f", struct.pack("<f", 0.1))[0]))


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_float_non_finite_are_strings(value):
    decoded = json.loads(encoding.encode_float(value, 64))
    assert isinstance(decoded, str)
    if math.isnan(value):
        assert math.isnan(float(decoded))
    else:
        assert float(decoded) == value


def test_float_bad_width():
    with pytest.raises(ValueError):
        encoding.encode_float(1.0, 16)


def test_time_zero_value_rfc3339():
    zero = datetime(1, 1, 1, tzinfo=timezone.utc)
    assert encoding.encode_time(zero, RFC3339) == '"0001-01-01T00:00:00Z"'


def test_time_rfc3339_round_trip_with_offset():
    moment = datetime(2001, 2, 3, 4, 5, 6, tzinfo=timezone(timedelta(hours=2)))
    decoded = json.loads(encoding.encode_time(moment, RFC3339))
    assert parse_time(decoded, RFC3339) == moment


def test_time_unix_formats():
    moment = EPOCH + timedelta(seconds=1234, milliseconds=567)
    assert encoding.encode_time(moment, TIME_FORMAT_UNIX) == "1234"
    assert encoding.encode_time(moment, TIME_FORMAT_UNIX_MS) == "1234567"
    micros = int(encoding.encode_time(moment, TIME_FORMAT_UNIX_MICRO))
    assert micros // 1000 == 1234567


def test_time_naive_is_utc():
    naive = datetime(2020, 5, 6, 7, 8, 9)
    aware = naive.replace(tzinfo=timezone.utc)
    assert encoding.encode_time(naive, TIME_FORMAT_UNIX) == encoding.encode_time(aware, TIME_FORMAT_UNIX)


def test_duration_float():
    assert encoding.encode_duration(timedelta(seconds=10), MS, False) == "10000"


def test_duration_int_truncates_toward_zero():
    assert encoding.encode_duration(timedelta(microseconds=-1500), MS, True) == "-1"


@pytest.mark.parametrize("micros", [0, 999, 1500, 123456789])
def test_duration_int_matches_float(micros):
    value = timedelta(microseconds=micros)
    as_float = float(encoding.encode_duration(value, MS, False))
    as_int = int(encoding.encode_duration(value, MS, True))
    assert as_int == int(as_float)


@dataclass
class Named:
    name: str


def test_interface_dataclass():
    assert encoding.encode_interface(Named("john")) == '{"name":"john"}'


def test_interface_round_trip():
    value = {"a": [1, 2], "b": None, "c": "x"}
    assert json.loads(encoding.encode_interface(value)) == value


@pytest.mark.parametrize("value", [object(), math.nan])
def test_interface_marshaling_error(value):
    decoded = json.loads(encoding.encode_interface(value))
    assert decoded.startswith("marshaling error")


def test_ip_addr():
    assert encoding.encode_ip_addr(bytes([192, 168, 0, 100])) == '"192.168.0.100"'
    mapped = bytes(10) + b"\xff\xff" + bytes([192, 168, 0, 10])
    assert encoding.encode_ip_addr(mapped) == '"192.168.0.10"'
    v6 = ipaddress.ip_address("2001:db8::1")
    assert json.loads(encoding.encode_ip_addr(v6)) == str(v6)


def test_ip_addr_bad_length():
    with pytest.raises(ValueError):
        encoding.encode_ip_addr(b"\x01\x02\x03")


def test_ip_prefix():
    assert encoding.encode_ip_prefix("192.168.0.0/24") == '"192.168.0.0/24"'
    network = ipaddress.ip_network("192.168.0.0/24")
    assert encoding.encode_ip_prefix(network) == '"192.168.0.0/24"'


def test_mac_addr_round_trip():
    raw = bytes([0x02, 0x00, 0x00, 0xAA, 0xBB, 0x01])
    text = json.loads(encoding.encode_mac_addr(raw))
    assert text.count(":") == 5
    assert bytes.fromhex(text.replace(":", "")) == raw
    assert encoding.encode_mac_addr(text) == encoding.encode_mac_addr(raw)


def test_list():
    assert json.loads(encoding.encode_list([1, 2, 3], encoding.encode_int)) == [1, 2, 3]
    assert encoding.encode_list([], encoding.encode_int) == "[]"


def test_fields_sorted_and_typed():
    fields = {
        "b": "x",
        "a": 1,
        "c": None,
        "d": True,
        "e": ["s", 2],
        "f": ValueError("boom"),
        "g": [ValueError("one"), RuntimeError("two")],
        "h": timedelta(seconds=2),
        "i": 2.5,
        "j": b"raw",
    }
    decoded = json.loads("{" + encoding.encode_fields(fields) + "}")
    assert list(decoded) == sorted(fields)
    expected_h = json.loads(
        encoding.encode_duration(
            timedelta(seconds=2), config.DURATION_FIELD_UNIT, config.DURATION_FIELD_INTEGER
        )
    )
    assert decoded == {
        "a": 1,
        "b": "x",
        "c": None,
        "d": True,
        "e": ["s", 2],
        "f": "boom",
        "g": ["one", "two"],
        "h": expected_h,
        "i": 2.5,
        "j": "raw",
    }


def test_fields_time_and_ip():
    fields = {
        "t": datetime(1, 1, 1, tzinfo=timezone.utc),
        "ip": ipaddress.ip_address("192.168.0.100"),
        "net": ipaddress.ip_network("192.168.0.0/24"),
    }
    decoded = json.loads("{" + encoding.encode_fields(fields) + "}")
    assert decoded == {
        "t": "0001-01-01T00:00:00Z",
        "ip": "192.168.0.100",
        "net": "192.168.0.0/24",
    }


def test_fields_empty():
    assert encoding.encode_fields({}) == ""