"""Human-friendly, optionally colourised rendering of JSON log lines."""

from __future__ import annotations

import io
import json
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from . import globals as config
from .globals import KITCHEN, format_time, parse_time

COLOR_BLACK = 30
COLOR_RED = 31
COLOR_GREEN = 32
COLOR_YELLOW = 33
COLOR_BLUE = 34
COLOR_MAGENTA = 35
COLOR_CYAN = 36
COLOR_WHITE = 37
COLOR_BOLD = 1
COLOR_DARK_GRAY = 90

CONSOLE_DEFAULT_TIME_FORMAT = KITCHEN

Formatter = Callable[[Any], str]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class _Number(str):
    """A JSON number kept as the exact text it was written with."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON value {name}")


_DECODER = json.JSONDecoder(
    parse_int=_Number, parse_float=_Number, parse_constant=_reject_constant
)


def _is_plain_str(value: Any) -> bool:
    return isinstance(value, str) and not isinstance(value, _Number)


def _sprint(value: Any) -> str:
    """Render a value the way a %s verb renders decoded JSON values."""
    if value is None:
        return "%!s(<nil>)"
    if isinstance(value, str):
        return str(value)
    if isinstance(value, bool):
        return f"%!s(bool={'true' if value else 'false'})"
    if isinstance(value, list):
        return "[" + " ".join(_sprint(item) for item in value) + "]"
    if isinstance(value, dict):
        items = " ".join(f"{k}:{_sprint(v)}" for k, v in sorted(value.items()))
        return f"map[{items}]"
    return str(value)


_QUOTE_ESCAPES = {
    "\a": "\\a", "\b": "\\b", "\f": "\\f", "\n": "\\n", "\r": "\\r",
    "\t": "\\t", "\v": "\\v", "\\": "\\\\", '"': '\\"',
}


def _quote(s: str) -> str:
    parts = ['"']
    for ch in s:
        code = ord(ch)
        if ch in _QUOTE_ESCAPES:
            parts.append(_QUOTE_ESCAPES[ch])
        elif 0x20 <= code <= 0x7E:
            parts.append(ch)
        elif code < 0x80:
            parts.append(f"\\x{code:02x}")
        elif ch.isprintable():
            parts.append(ch)
        elif code < 0x10000:
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)


def _json_string(s: str) -> str:
    parts = ['"']
    for ch in s:
        code = ord(ch)
        if ch == '"':
            parts.append('\\"')
        elif ch == "\\":
            parts.append("\\\\")
        elif ch == "\n":
            parts.append("\\n")
        elif ch == "\r":
            parts.append("\\r")
        elif ch == "\t":
            parts.append("\\t")
        elif code < 0x20 or ch in "<>&" or code in (0x2028, 0x2029):
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(ch)
    parts.append('"')
    return "".join(parts)


def _marshal(value: Any) -> str:
    """Re-encode a decoded JSON value compactly with sorted keys."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, _Number):
        return str(value)
    if isinstance(value, str):
        return _json_string(value)
    if isinstance(value, list):
        return "[" + ",".join(_marshal(item) for item in value) + "]"
    if isinstance(value, dict):
        return "{" + ",".join(
            f"{_json_string(k)}:{_marshal(value[k])}" for k in sorted(value)
        ) + "}"
    return json.dumps(value)


def needs_quote(s: str) -> bool:
    """Return True when s must be quoted in console output."""
    return any(ch < " " or ch > "~" or ch in ' \\"' for ch in s)


def colorize(s: Any, color: int, disabled: bool) -> str:
    """Wrap s in the ANSI colour code, unless disabled."""
    if disabled:
        return _sprint(s)
    return f"\x1b[{color}m{s}\x1b[0m"


def _default_parts_order() -> list[str]:
    return [
        config.TIMESTAMP_FIELD_NAME,
        config.LEVEL_FIELD_NAME,
        config.CALLER_FIELD_NAME,
        config.MESSAGE_FIELD_NAME,
    ]


def _timestamp_formatter(time_format: str, no_color: bool) -> Formatter:
    time_format = time_format or CONSOLE_DEFAULT_TIME_FORMAT

    def render(value: Any) -> str:
        text = "<nil>"
        if isinstance(value, _Number):
            try:
                number = int(value)
            except ValueError:
                text = str(value)
            else:
                seconds, nanos = number, 0
                if config.TIME_FIELD_FORMAT == config.TIME_FORMAT_UNIX_MS:
                    seconds, nanos = 0, number * 1_000_000
                try:
                    moment = _EPOCH + timedelta(seconds=seconds, microseconds=nanos // 1000)
                except OverflowError:
                    text = str(value)
                else:
                    text = format_time(moment, time_format)
        elif isinstance(value, str):
            try:
                moment = parse_time(value, config.TIME_FIELD_FORMAT)
            except ValueError:
                text = value
            else:
                text = format_time(moment, time_format)
        return colorize(text, COLOR_DARK_GRAY, no_color)

    return render


_LEVEL_LABELS = {
    "trace": ("TRC", COLOR_MAGENTA, False),
    "debug": ("DBG", COLOR_YELLOW, False),
    "info": ("INF", COLOR_GREEN, False),
    "warn": ("WRN", COLOR_RED, False),
    "error": ("ERR", COLOR_RED, True),
    "fatal": ("FTL", COLOR_RED, True),
    "panic": ("PNC", COLOR_RED, True),
}


def _level_formatter(no_color: bool) -> Formatter:
    def render(value: Any) -> str:
        if _is_plain_str(value):
            label = _LEVEL_LABELS.get(value)
            if label is None:
                return colorize("???", COLOR_BOLD, no_color)
            text, color, bold = label
            rendered = colorize(text, color, no_color)
            return colorize(rendered, COLOR_BOLD, no_color) if bold else rendered
        if value is None:
            return colorize("???", COLOR_BOLD, no_color)
        return _sprint(value).upper()[:3]

    return render


def _caller_formatter(no_color: bool) -> Formatter:
    def render(value: Any) -> str:
        caller = value if _is_plain_str(value) else ""
        if caller:
            try:
                cwd = os.getcwd()
            except OSError:
                cwd = None
            if cwd is not None:
                caller = caller.removeprefix(cwd).removeprefix("/")
            caller = colorize(caller, COLOR_BOLD, no_color) + colorize(" >", COLOR_CYAN, no_color)
        return caller

    return render


def _format_message(value: Any) -> str:
    return "" if value is None else _sprint(value)


def _format_field_value(value: Any) -> str:
    return _sprint(value)


def _field_name_formatter(no_color: bool) -> Formatter:
    return lambda value: colorize(f"{_sprint(value)}=", COLOR_CYAN, no_color)


def _err_field_name_formatter(no_color: bool) -> Formatter:
    return lambda value: colorize(f"{_sprint(value)}=", COLOR_RED, no_color)


def _err_field_value_formatter(no_color: bool) -> Formatter:
    return lambda value: colorize(_sprint(value), COLOR_RED, no_color)


@dataclass
class ConsoleWriter:
    """Parses JSON log lines and writes them in a readable form to out."""

    out: Any = None
    no_color: bool = False
    time_format: str = CONSOLE_DEFAULT_TIME_FORMAT
    parts_order: Optional[list[str]] = None
    format_timestamp: Optional[Formatter] = None
    format_level: Optional[Formatter] = None
    format_caller: Optional[Formatter] = None
    format_message: Optional[Formatter] = None
    format_field_name: Optional[Formatter] = None
    format_field_value: Optional[Formatter] = None
    format_err_field_name: Optional[Formatter] = None
    format_err_field_value: Optional[Formatter] = None

    def write(self, data: bytes | str) -> int:
        """Render one JSON event and write it; return the input length.

        Raises ValueError when data is not a JSON object.
        """
        if isinstance(data, (bytes, bytearray, memoryview)):
            text = bytes(data).decode("utf-8", errors="replace")
        else:
            text = data
        try:
            event, _ = _DECODER.raw_decode(text.lstrip())
        except ValueError as exc:
            raise ValueError(f"cannot decode event: {exc}") from exc
        if event is None:
            event = {}
        if not isinstance(event, dict):
            raise ValueError("cannot decode event: expected a JSON object")

        parts_order = self.parts_order if self.parts_order is not None else _default_parts_order()
        buf: list[str] = []
        for part in parts_order:
            self._write_part(buf, event, part, parts_order)
        self._write_fields(buf, event)
        buf.append("\n")

        out = self.out if self.out is not None else sys.stdout
        line = "".join(buf)
        if isinstance(out, (io.RawIOBase, io.BufferedIOBase)):
            out.write(line.encode("utf-8"))
        else:
            out.write(line)
        return len(data)

    def _part_formatter(self, part: str) -> Formatter:
        if part == config.LEVEL_FIELD_NAME:
            return self.format_level or _level_formatter(self.no_color)
        if part == config.TIMESTAMP_FIELD_NAME:
            return self.format_timestamp or _timestamp_formatter(self.time_format, self.no_color)
        if part == config.MESSAGE_FIELD_NAME:
            return self.format_message or _format_message
        if part == config.CALLER_FIELD_NAME:
            return self.format_caller or _caller_formatter(self.no_color)
        return self.format_field_value or _format_field_value

    def _write_part(self, buf: list[str], event: dict, part: str, parts_order: list[str]) -> None:
        rendered = self._part_formatter(part)(event.get(part))
        if rendered:
            buf.append(rendered)
            if part != parts_order[-1]:
                buf.append(" ")

    def _write_fields(self, buf: list[str], event: dict) -> None:
        excluded = {
            config.LEVEL_FIELD_NAME,
            config.TIMESTAMP_FIELD_NAME,
            config.MESSAGE_FIELD_NAME,
            config.CALLER_FIELD_NAME,
        }
        fields = sorted(name for name in event if name not in excluded)
        if fields:
            buf.append(" ")
        if config.ERROR_FIELD_NAME in fields:
            fields.remove(config.ERROR_FIELD_NAME)
            fields.insert(0, config.ERROR_FIELD_NAME)

        for position, name in enumerate(fields):
            if name == config.ERROR_FIELD_NAME:
                name_fmt = self.format_err_field_name or _err_field_name_formatter(self.no_color)
                value_fmt = self.format_err_field_value or _err_field_value_formatter(self.no_color)
            else:
                name_fmt = self.format_field_name or _field_name_formatter(self.no_color)
                value_fmt = self.format_field_value or _format_field_value

            buf.append(name_fmt(name))
            value = event[name]
            if isinstance(value, _Number):
                buf.append(value_fmt(str(value)))
            elif isinstance(value, str):
                buf.append(value_fmt(_quote(value) if needs_quote(value) else value))
            else:
                buf.append(value_fmt(_marshal(value)))

            if position < len(fields) - 1:
                buf.append(" ")


def new_console_writer(*args: Callable[[ConsoleWriter], None]) -> ConsoleWriter:
    """Create a writer to stdout, then apply each option callable to it."""
    writer = ConsoleWriter(
        out=sys.stdout,
        time_format=CONSOLE_DEFAULT_TIME_FORMAT,
        parts_order=_default_parts_order(),
    )
    for option in args:
        option(writer)
    return writer