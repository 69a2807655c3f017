"""Process-wide logging settings, time layouts and the log level type."""

from __future__ import annotations

import enum
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional


class Level(enum.IntEnum):
    """Severity of a log event, from least to most severe."""

    TRACE = -1
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4
    PANIC = 5
    NO_LEVEL = 6
    DISABLED = 7

    def __str__(self) -> str:
        return _LEVEL_NAMES.get(self, "")


_LEVEL_NAMES = {
    Level.TRACE: "trace",
    Level.DEBUG: "debug",
    Level.INFO: "info",
    Level.WARN: "warn",
    Level.ERROR: "error",
    Level.FATAL: "fatal",
    Level.PANIC: "panic",
    Level.NO_LEVEL: "",
    Level.DISABLED: "disabled",
}

# Time field formats that serialise times as Unix integers.
TIME_FORMAT_UNIX = ""
TIME_FORMAT_UNIX_MS = "UNIXMS"
TIME_FORMAT_UNIX_MICRO = "UNIXMICRO"

_UNIX_FORMATS = frozenset({TIME_FORMAT_UNIX, TIME_FORMAT_UNIX_MS, TIME_FORMAT_UNIX_MICRO})

# Layouts understood by format_time and parse_time. Besides the strftime
# directives they accept %:z (Z or +HH:MM), %-I (unpadded 12-hour clock),
# %e (space-padded day) and %L (milliseconds).
RFC3339 = "%Y-%m-%dT%H:%M:%S%:z"
RFC822 = "%d %b %y %H:%M %Z"
KITCHEN = "%-I:%M%p"
STAMP_MILLI = "%b %e %H:%M:%S.%L"


def _default_caller_marshal(file: str, line: int) -> str:
    return f"{file}:{line}"


def _now() -> datetime:
    return datetime.now().astimezone()


TIMESTAMP_FIELD_NAME = "time"
LEVEL_FIELD_NAME = "level"
LEVEL_FIELD_MARSHAL_FUNC: Callable[[Level], str] = str
MESSAGE_FIELD_NAME = "message"
ERROR_FIELD_NAME = "error"
CALLER_FIELD_NAME = "caller"
CALLER_SKIP_FRAME_COUNT = 2
CALLER_MARSHAL_FUNC: Callable[[str, int], str] = _default_caller_marshal
ERROR_STACK_FIELD_NAME = "stack"
ERROR_STACK_MARSHALER: Optional[Callable[[BaseException], Any]] = None
# By default an error is passed on unchanged and rendered by its type.
ERROR_MARSHAL_FUNC: Callable[[Any], Any] = lambda err: err  # noqa: E731
TIME_FIELD_FORMAT = RFC3339
TIMESTAMP_FUNC: Callable[[], datetime] = _now
DURATION_FIELD_UNIT = timedelta(milliseconds=1)
DURATION_FIELD_INTEGER = False
ERROR_HANDLER: Optional[Callable[[BaseException], None]] = None

_global_level = Level.TRACE
_sampling_disabled = False


def set_global_level(level: Level | int) -> None:
    """Set the minimum level every logger honours; DISABLED silences all."""
    global _global_level
    _global_level = Level(level)


def global_level() -> Level:
    """Return the current global minimum level."""
    return _global_level


def disable_sampling(value: bool) -> None:
    """Turn sampling off in every logger when value is true."""
    global _sampling_disabled
    _sampling_disabled = bool(value)


def sampling_disabled() -> bool:
    """Return whether sampling is globally disabled."""
    return _sampling_disabled


_DIRECTIVE = re.compile(r"%(:z|-I|.)", re.DOTALL)


def _format_offset(moment: datetime) -> str:
    offset = moment.utcoffset()
    if offset is None or not offset:
        return "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    return f"{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


def format_time(moment: datetime, layout: str) -> str:
    """Render moment with a layout of strftime directives plus the extras above."""

    def replace(match: re.Match) -> str:
        directive = match.group(1)
        if directive == ":z":
            return _format_offset(moment)
        if directive == "-I":
            return str(moment.hour % 12 or 12)
        if directive == "e":
            return f"{moment.day:2d}"
        if directive == "L":
            return f"{moment.microsecond // 1000:03d}"
        return moment.strftime("%" + directive)

    return _DIRECTIVE.sub(replace, layout)


_PARSE_TRANSLATION = {":z": "%z", "-I": "%I", "e": "%d", "L": "%f"}


def parse_time(text: str, layout: str) -> datetime:
    """Parse text with a layout; naive results are taken as UTC.

    Raises ValueError when the text does not match or the layout is a Unix format.
    """
    if layout in _UNIX_FORMATS:
        raise ValueError(f"cannot parse {text!r} with a Unix timestamp format")
    pattern = _DIRECTIVE.sub(
        lambda m: _PARSE_TRANSLATION.get(m.group(1), "%" + m.group(1)), layout
    )
    moment = datetime.strptime(text, pattern)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment