"""Log events: a set of encoded fields finished off and written by msg()."""

from __future__ import annotations

import io
import sys
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Mapping, Optional

from . import globals as config
from .array import Array
from .encoding import (
    _encode_object,
    _is_object_marshaler,
    encode_bool,
    encode_bytes,
    encode_duration,
    encode_fields,
    encode_float,
    encode_hex,
    encode_int,
    encode_interface,
    encode_ip_addr,
    encode_ip_prefix,
    encode_list,
    encode_mac_addr,
    encode_string,
    encode_time,
)
from .globals import Level


def _prefix_keys(fields: Mapping[str, Any], prefix: str) -> Mapping[str, Any]:
    if not prefix:
        return fields
    return {prefix + key: value for key, value in fields.items()}


class Event:
    """A log event under construction.

    Field methods return the event so calls can be chained; msg(), msgf()
    or send() finish the event and hand the JSON line to the writer. A
    writer with a write_level(level, data) method is given the level too.
    """

    def __init__(
        self,
        writer: Any = None,
        level: Level = Level.NO_LEVEL,
        done: Optional[Callable[[str], None]] = None,
        hooks: Iterable[Any] = (),
    ) -> None:
        self._writer = writer
        self._level = Level(level)
        self._done = done
        self._hooks = list(hooks)
        self._stack = False
        self._fields: list[str] = []

    @property
    def level(self) -> Level:
        return self._level

    def _as_json(self) -> str:
        return "{" + ",".join(self._fields) + "}"

    def _add(self, key: str, fragment: str) -> "Event":
        self._fields.append(f"{encode_string(key)}:{fragment}")
        return self

    def _emit(self) -> None:
        if self._level == Level.DISABLED or self._writer is None:
            return
        line = self._as_json() + "\n"
        writer = self._writer
        write_level = getattr(writer, "write_level", None)
        if callable(write_level):
            write_level(self._level, line)
        elif isinstance(writer, (io.RawIOBase, io.BufferedIOBase)):
            writer.write(line.encode("utf-8"))
        else:
            writer.write(line)

    def enabled(self) -> bool:
        """Return False if the event will not be written."""
        return self._level != Level.DISABLED

    def discard(self) -> "Event":
        """Disable the event so that msg() will not write it."""
        self._level = Level.DISABLED
        return self

    def msg(self, message: str) -> None:
        """Run the hooks, add message if not empty and write the event."""
        for hook in self._hooks:
            hook.run(self, self._level, message)
        if message:
            self._add(config.MESSAGE_FIELD_NAME, encode_string(message))
        try:
            self._emit()
        except (OSError, ValueError) as exc:
            if config.ERROR_HANDLER is not None:
                config.ERROR_HANDLER(exc)
            else:
                print(f"structlogline: could not write event: {exc}", file=sys.stderr)
        finally:
            if self._done is not None:
                self._done(message)

    def send(self) -> None:
        """Write the event without a message."""
        self.msg("")

    def msgf(self, fmt: str, *args: Any) -> None:
        """Write the event with a %-formatted message."""
        self.msg(fmt % args if args else fmt)

    def fields(self, fields: Mapping[str, Any]) -> "Event":
        """Add every entry of fields, in key order."""
        encoded = encode_fields(fields)
        if encoded:
            self._fields.append(encoded)
        return self

    def dict(self, key: str, sub: "Event") -> "Event":
        """Add an event built with new_dict() as a nested object."""
        return self._add(key, sub._as_json())

    def array(self, key: str, arr: Any) -> "Event":
        """Add an Array, or anything with marshal_zerolog_array."""
        if not isinstance(arr, Array):
            built = Array()
            arr.marshal_zerolog_array(built)
            arr = built
        return self._add(key, arr.write())

    def object(self, key: str, obj: Any) -> "Event":
        """Add an object that has a marshal_zerolog_object method."""
        return self._add(key, _encode_object(obj))

    def embed_object(self, obj: Any) -> "Event":
        """Let obj add its fields directly to this event."""
        obj.marshal_zerolog_object(self)
        return self

    def str(self, key: str, value: str) -> "Event":
        return self._add(key, encode_string(value))

    def strs(self, key: str, values: Iterable[str]) -> "Event":
        return self._add(key, encode_list(values, encode_string))

    def bytes(self, key: str, value: Any) -> "Event":
        return self._add(key, encode_bytes(value))

    def hex(self, key: str, value: Any) -> "Event":
        return self._add(key, encode_hex(value))

    def raw_json(self, key: str, value: Any) -> "Event":
        """Add already encoded JSON, unchecked."""
        if isinstance(value, (bytes, bytearray, memoryview)):
            value = bytes(value).decode("utf-8", errors="replace")
        return self._add(key, value)

    def an_err(self, key: str, err: Any) -> "Event":
        """Add err under key as the global error marshaler renders it."""
        marshaled = config.ERROR_MARSHAL_FUNC(err)
        if marshaled is None:
            return self
        if _is_object_marshaler(marshaled):
            return self.object(key, marshaled)
        if isinstance(marshaled, BaseException):
            return self.str(key, str(marshaled))
        if isinstance(marshaled, str):
            return self.str(key, marshaled)
        return self.interface(key, marshaled)

    def errs(self, key: str, errs: Iterable[Any]) -> "Event":
        """Add a list of errors as an array."""
        arr = Array()
        for err in errs:
            marshaled = config.ERROR_MARSHAL_FUNC(err)
            if _is_object_marshaler(marshaled):
                arr.object(marshaled)
            elif isinstance(marshaled, BaseException):
                arr.err(marshaled)
            elif isinstance(marshaled, str):
                arr.str(marshaled)
            else:
                arr.interface(marshaled)
        return self.array(key, arr)

    def err(self, err: Any) -> "Event":
        """Add err under the error field; with stack() also its stack."""
        if self._stack and config.ERROR_STACK_MARSHALER is not None:
            stack = config.ERROR_STACK_MARSHALER(err)
            name = config.ERROR_STACK_FIELD_NAME
            if stack is None:
                pass
            elif _is_object_marshaler(stack):
                self.object(name, stack)
            elif isinstance(stack, BaseException):
                self.str(name, str(stack))
            elif isinstance(stack, str):
                self.str(name, stack)
            else:
                self.interface(name, stack)
        return self.an_err(config.ERROR_FIELD_NAME, err)

    def stack(self) -> "Event":
        """Have err() also add the error's stack, if a marshaler is set."""
        self._stack = True
        return self

    def bool(self, key: str, value: bool) -> "Event":
        return self._add(key, encode_bool(value))

    def bools(self, key: str, values: Iterable[bool]) -> "Event":
        return self._add(key, encode_list(values, encode_bool))

    def int(self, key: str, value: int) -> "Event":
        return self._add(key, encode_int(value))

    def ints(self, key: str, values: Iterable[int]) -> "Event":
        return self._add(key, encode_list(values, encode_int))

    def float32(self, key: str, value: float) -> "Event":
        return self._add(key, encode_float(value, 32))

    def float64(self, key: str, value: float) -> "Event":
        return self._add(key, encode_float(value, 64))

    def floats32(self, key: str, values: Iterable[float]) -> "Event":
        return self._add(key, encode_list(values, lambda v: encode_float(v, 32)))

    def floats64(self, key: str, values: Iterable[float]) -> "Event":
        return self._add(key, encode_list(values, lambda v: encode_float(v, 64)))

    def timestamp(self) -> "Event":
        """Add the current time under the timestamp field."""
        return self._add(
            config.TIMESTAMP_FIELD_NAME,
            encode_time(config.TIMESTAMP_FUNC(), config.TIME_FIELD_FORMAT),
        )

    def time(self, key: str, value: datetime) -> "Event":
        return self._add(key, encode_time(value, config.TIME_FIELD_FORMAT))

    def times(self, key: str, values: Iterable[datetime]) -> "Event":
        layout = config.TIME_FIELD_FORMAT
        return self._add(key, encode_list(values, lambda v: encode_time(v, layout)))

    def dur(self, key: str, value: timedelta) -> "Event":
        return self._add(
            key,
            encode_duration(value, config.DURATION_FIELD_UNIT, config.DURATION_FIELD_INTEGER),
        )

    def durs(self, key: str, values: Iterable[timedelta]) -> "Event":
        unit, use_int = config.DURATION_FIELD_UNIT, config.DURATION_FIELD_INTEGER
        return self._add(
            key, encode_list(values, lambda v: encode_duration(v, unit, use_int))
        )

    def time_diff(self, key: str, t: datetime, start: datetime) -> "Event":
        """Add t - start as a duration, or zero if t is not after start."""
        delta = t - start if t > start else timedelta(0)
        return self.dur(key, delta)

    def interface(self, key: str, value: Any) -> "Event":
        """Add any value, using marshal_zerolog_object when present."""
        if _is_object_marshaler(value):
            return self.object(key, value)
        return self._add(key, encode_interface(value))

    def caller(self, *args: int) -> "Event":
        """Add file:line of the calling code; an argument skips more frames."""
        skip = config.CALLER_SKIP_FRAME_COUNT
        if args:
            skip = args[0] + config.CALLER_SKIP_FRAME_COUNT
        return self._caller(skip)

    def _caller(self, skip: int) -> "Event":
        try:
            frame = sys._getframe(skip)
        except ValueError:
            return self
        location = config.CALLER_MARSHAL_FUNC(frame.f_code.co_filename, frame.f_lineno)
        return self._add(config.CALLER_FIELD_NAME, encode_string(location))

    def ip_addr(self, key: str, value: Any) -> "Event":
        return self._add(key, encode_ip_addr(value))

    def ip_prefix(self, key: str, value: Any) -> "Event":
        return self._add(key, encode_ip_prefix(value))

    def mac_addr(self, key: str, value: Any) -> "Event":
        return self._add(key, encode_mac_addr(value))

    def fields_with_prefix(self, fields: Mapping[str, Any], prefix: str) -> "Event":
        """Add fields with prefix put before every key."""
        return self.fields(_prefix_keys(fields, prefix))

    def fields_with_underscore_prefix(self, fields: Mapping[str, Any]) -> "Event":
        """Add fields with an underscore put before every key."""
        return self.fields(_prefix_keys(fields, "_"))

    def event(self, name: str) -> "Event":
        """Add the event name under the _event key."""
        return self.str("_event", name)


def new_dict() -> Event:
    """Create an event to fill and pass to Event.dict."""
    return Event(None, Level.DEBUG)