"""Hooks run on every event just before it is written."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from .globals import Level


class Hook(Protocol):
    """Anything with a run(event, level, message) method."""

    def run(self, event: Any, level: Level, message: str) -> None:
        ...


@dataclass(frozen=True)
class HookFunc:
    """Adapts a plain function to the hook interface."""

    func: Callable[[Any, Level, str], None]

    def run(self, event: Any, level: Level, message: str) -> None:
        self.func(event, level, message)


@dataclass
class LevelHook:
    """Runs a different hook for each level; missing hooks are skipped."""

    no_level_hook: Optional[Hook] = None
    trace_hook: Optional[Hook] = None
    debug_hook: Optional[Hook] = None
    info_hook: Optional[Hook] = None
    warn_hook: Optional[Hook] = None
    error_hook: Optional[Hook] = None
    fatal_hook: Optional[Hook] = None
    panic_hook: Optional[Hook] = None

    def _hook_for(self, level: Level) -> Optional[Hook]:
        return {
            Level.TRACE: self.trace_hook,
            Level.DEBUG: self.debug_hook,
            Level.INFO: self.info_hook,
            Level.WARN: self.warn_hook,
            Level.ERROR: self.error_hook,
            Level.FATAL: self.fatal_hook,
            Level.PANIC: self.panic_hook,
            Level.NO_LEVEL: self.no_level_hook,
        }.get(level)

    def run(self, event: Any, level: Level, message: str) -> None:
        hook = self._hook_for(level)
        if hook is not None:
            hook.run(event, level, message)