"""Structured JSON line logging: event builders, hooks, console formatting and non-blocking writers."""

__version__ = "0.1.0"

__all__ = [
    "array",
    "console",
    "diode",
    "diodes",
    "encoding",
    "event",
    "globals",
    "hook",
]