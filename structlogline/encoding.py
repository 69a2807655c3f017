"""JSON encoding of individual log field values."""

from __future__ import annotations

import base64
import dataclasses
import ipaddress
import json
import math
import operator
import re
import struct
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping

from . import globals as config
from .globals import (
    TIME_FORMAT_UNIX,
    TIME_FORMAT_UNIX_MICRO,
    TIME_FORMAT_UNIX_MS,
    format_time,
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)

_STRING_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}
_NEEDS_ESCAPE = re.compile('["\\\\\x00-\x1f\ud800-\udfff]')


def _escape(match: re.Match) -> str:
    char = match.group()
    if char in _STRING_ESCAPES:
        return _STRING_ESCAPES[char]
    if "\ud800" <= char <= "\udfff":
        return "\ufffd"
    return f"\\u{ord(char):04x}"


def encode_string(value: str) -> str:
    """Quote a string as JSON; non-ASCII text is kept as is."""
    return '"' + _NEEDS_ESCAPE.sub(_escape, value) + '"'


def encode_bytes(value: bytes | bytearray | memoryview) -> str:
    """Encode bytes as a JSON string; invalid UTF-8 becomes U+FFFD."""
    return encode_string(bytes(value).decode("utf-8", errors="replace"))


def encode_hex(value: bytes | bytearray | memoryview) -> str:
    """Encode bytes as a quoted lower-case hex string."""
    return '"' + bytes(value).hex() + '"'


def encode_bool(value: bool) -> str:
    return "true" if value else "false"


def encode_int(value: int) -> str:
    """Encode an integer; floats are rejected with TypeError."""
    return str(operator.index(value))


def _to_float32(number: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", number))[0]
    except OverflowError:
        return math.copysign(math.inf, number)


def _shortest_float32(number: float) -> str:
    packed = struct.pack("<f", number)
    for precision in range(1, 10):
        text = f"{number:.{precision}g}"
        try:
            if struct.pack("<f", float(text)) == packed:
                return text
        except OverflowError:
            continue
    return repr(number)


def encode_float(value: float, bits: int) -> str:
    """Encode a float in the shortest plain decimal form for its width.

    NaN and infinities are written as the strings "NaN", "+Inf" and "-Inf".
    """
    if bits not in (32, 64):
        raise ValueError(f"float width must be 32 or 64, got {bits}")
    number = float(value)
    if bits == 32:
        number = _to_float32(number)
    if math.isnan(number):
        return '"NaN"'
    if math.isinf(number):
        return '"+Inf"' if number > 0 else '"-Inf"'
    text = _shortest_float32(number) if bits == 32 else repr(number)
    return format(Decimal(text).normalize(), "f")


def _trunc_div(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // denominator
    return -quotient if numerator < 0 else quotient


def _render_time(moment: datetime, layout: str) -> str:
    # Four-digit years regardless of the platform's strftime.
    year = f"{moment.year:04d}"
    pieces = [piece.replace("%Y", year) for piece in layout.split("%%")]
    return format_time(moment, "%%".join(pieces))


def encode_time(value: datetime, time_format: str) -> str:
    """Encode a time as a Unix integer or as a quoted string in time_format.

    Naive datetimes are taken as UTC.
    """
    if time_format in (TIME_FORMAT_UNIX, TIME_FORMAT_UNIX_MS, TIME_FORMAT_UNIX_MICRO):
        moment = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
        micros = (moment - _EPOCH) // _MICROSECOND
        if time_format == TIME_FORMAT_UNIX:
            return str(micros // 1_000_000)
        if time_format == TIME_FORMAT_UNIX_MS:
            return str(_trunc_div(micros, 1000))
        return str(micros)
    return '"' + _render_time(value, time_format) + '"'


def encode_duration(value: timedelta, unit: timedelta, use_int: bool) -> str:
    """Encode value expressed in unit, as an integer or as a float."""
    micros = value // _MICROSECOND
    unit_micros = unit // _MICROSECOND
    if use_int:
        quotient = _trunc_div(abs(micros), abs(unit_micros))
        if (micros < 0) != (unit_micros < 0):
            quotient = -quotient
        return encode_int(quotient)
    return encode_float(micros / unit_micros, 64)


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, timedelta):
        return (value // _MICROSECOND) * 1000
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    attributes = getattr(value, "__dict__", None)
    if attributes is not None:
        return {k: v for k, v in attributes.items() if not k.startswith("_")}
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def encode_interface(value: Any) -> str:
    """Encode any value with the generic JSON encoder.

    Values that cannot be encoded become a quoted "marshaling error" message.
    """
    try:
        return json.dumps(
            value,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
            default=_json_default,
        )
    except (TypeError, ValueError, RecursionError) as exc:
        return encode_string(f"marshaling error: {exc}")


_INTERFACES = (ipaddress.IPv4Interface, ipaddress.IPv6Interface)
_NETWORKS = (ipaddress.IPv4Network, ipaddress.IPv6Network)
_ADDRESSES = (ipaddress.IPv4Address, ipaddress.IPv6Address)


def _to_ip(value: Any) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    if isinstance(value, _INTERFACES):
        return value.ip
    if isinstance(value, _ADDRESSES):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) == 16:
            address = ipaddress.IPv6Address(raw)
            return address.ipv4_mapped or address
        if len(raw) != 4:
            raise ValueError(f"IP address must be 4 or 16 bytes, got {len(raw)}")
        return ipaddress.IPv4Address(raw)
    return ipaddress.ip_address(value)


def encode_ip_addr(value: Any) -> str:
    """Encode an IPv4 or IPv6 address as a quoted string."""
    return '"' + str(_to_ip(value)) + '"'


def encode_ip_prefix(value: Any) -> str:
    """Encode an address with its prefix length, such as a.b.c.d/n."""
    if isinstance(value, _INTERFACES + _NETWORKS):
        return '"' + str(value) + '"'
    return '"' + str(ipaddress.ip_interface(value)) + '"'


def encode_mac_addr(value: Any) -> str:
    """Encode a hardware address as colon-separated lower-case hex."""
    if isinstance(value, str):
        raw = bytes.fromhex(re.sub(r"[:.\-]", "", value))
    else:
        raw = bytes(value)
    return '"' + ":".join(f"{byte:02x}" for byte in raw) + '"'


def encode_list(values: Iterable[Any], encode_item: Callable[[Any], str]) -> str:
    """Encode values as a JSON array, each item with encode_item."""
    return "[" + ",".join(encode_item(item) for item in values) + "]"


def _is_object_marshaler(value: Any) -> bool:
    return callable(getattr(value, "marshal_zerolog_object", None))


def _encode_object(obj: Any) -> str:
    """Marshal an object with marshal_zerolog_object into a JSON object."""
    from .event import new_dict  # the event module is built on this one

    sub = new_dict()
    obj.marshal_zerolog_object(sub)
    return sub._as_json()


def _encode_error(err: Any) -> str:
    marshaled = config.ERROR_MARSHAL_FUNC(err)
    if _is_object_marshaler(marshaled):
        return _encode_object(marshaled)
    if isinstance(marshaled, BaseException):
        return encode_string(str(marshaled))
    if isinstance(marshaled, str):
        return encode_string(marshaled)
    return encode_interface(marshaled)


def _encode_value(value: Any) -> str:
    if _is_object_marshaler(value):
        return _encode_object(value)
    if isinstance(value, str):
        return encode_string(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return encode_bytes(value)
    if isinstance(value, BaseException):
        return _encode_error(value)
    if value is None:
        return "null"
    if isinstance(value, bool):
        return encode_bool(value)
    if isinstance(value, int):
        return encode_int(value)
    if isinstance(value, float):
        return encode_float(value, 64)
    if isinstance(value, datetime):
        return encode_time(value, config.TIME_FIELD_FORMAT)
    if isinstance(value, timedelta):
        return encode_duration(value, config.DURATION_FIELD_UNIT, config.DURATION_FIELD_INTEGER)
    if isinstance(value, _INTERFACES + _NETWORKS):
        return encode_ip_prefix(value)
    if isinstance(value, _ADDRESSES):
        return encode_ip_addr(value)
    if isinstance(value, (list, tuple)):
        return encode_list(value, _encode_value)
    return encode_interface(value)


def encode_fields(fields: Mapping[str, Any]) -> str:
    """Encode a mapping as comma-separated "key":value pairs, keys sorted."""
    return ",".join(
        f"{encode_string(key)}:{_encode_value(fields[key])}" for key in sorted(fields)
    )