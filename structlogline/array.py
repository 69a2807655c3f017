"""Prebuilt JSON arrays for events and contexts."""

from __future__ import annotations

from typing import Any

from . import globals as config
from .encoding import (
    _encode_error,
    _encode_object,
    _is_object_marshaler,
    encode_bool,
    encode_bytes,
    encode_duration,
    encode_float,
    encode_hex,
    encode_int,
    encode_interface,
    encode_ip_addr,
    encode_ip_prefix,
    encode_mac_addr,
    encode_string,
    encode_time,
)


class Array:
    """An array of encoded items, built by chained calls."""

    def __init__(self) -> None:
        self._items: list[str] = []

    def _append(self, fragment: str) -> "Array":
        self._items.append(fragment)
        return self

    def marshal_zerolog_array(self, array: "Array") -> None:
        """Nothing to do: the items are already encoded."""

    def write(self) -> str:
        """Return the array as JSON text."""
        return "[" + ",".join(self._items) + "]"

    def object(self, obj: Any) -> "Array":
        """Append an object that has a marshal_zerolog_object method."""
        return self._append(_encode_object(obj))

    def str(self, value: str) -> "Array":
        return self._append(encode_string(value))

    def bytes(self, value: Any) -> "Array":
        return self._append(encode_bytes(value))

    def hex(self, value: Any) -> "Array":
        return self._append(encode_hex(value))

    def raw_json(self, value: Any) -> "Array":
        """Append already encoded JSON, unchecked."""
        if isinstance(value, (bytes, bytearray, memoryview)):
            value = bytes(value).decode("utf-8", errors="replace")
        return self._append(value)

    def err(self, err: Any) -> "Array":
        """Append err as serialised by the global error marshaler."""
        return self._append(_encode_error(err))

    def bool(self, value: bool) -> "Array":
        return self._append(encode_bool(value))

    def int(self, value: int) -> "Array":
        return self._append(encode_int(value))

    def float32(self, value: float) -> "Array":
        return self._append(encode_float(value, 32))

    def float64(self, value: float) -> "Array":
        return self._append(encode_float(value, 64))

    def time(self, value: Any) -> "Array":
        """Append a time in the global time field format."""
        return self._append(encode_time(value, config.TIME_FIELD_FORMAT))

    def dur(self, value: Any) -> "Array":
        """Append a duration in the global duration unit."""
        return self._append(
            encode_duration(value, config.DURATION_FIELD_UNIT, config.DURATION_FIELD_INTEGER)
        )

    def interface(self, value: Any) -> "Array":
        """Append any value, using marshal_zerolog_object when present."""
        if _is_object_marshaler(value):
            return self.object(value)
        return self._append(encode_interface(value))

    def ip_addr(self, value: Any) -> "Array":
        return self._append(encode_ip_addr(value))

    def ip_prefix(self, value: Any) -> "Array":
        return self._append(encode_ip_prefix(value))

    def mac_addr(self, value: Any) -> "Array":
        return self._append(encode_mac_addr(value))


def arr() -> Array:
    """Create an empty array."""
    return Array()