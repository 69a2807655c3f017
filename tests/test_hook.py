import pytest

from structlogline.globals import Level
from structlogline.hook import HookFunc, LevelHook


class Recorder:
    def __init__(self):
        self.calls = []

    def run(self, event, level, message):
        self.calls.append((event, level, message))


def test_hook_func_passes_arguments():
    seen = []
    hook = HookFunc(lambda e, lvl, msg: seen.append((e, lvl, msg)))
    event = object()
    hook.run(event, Level.INFO, "hello world")
    assert seen == [(event, Level.INFO, "hello world")]


def test_hook_func_can_mutate_event():
    event = {}
    hook = HookFunc(lambda e, lvl, msg: e.update(level_name=str(lvl)))
    hook.run(event, Level.ERROR, "")
    assert event == {"level_name": "error"}


@pytest.mark.parametrize(
    "attribute,level",
    [("no_level_hook", Level.NO_LEVEL), ("trace_hook", Level.TRACE),
     ("debug_hook", Level.DEBUG), ("info_hook", Level.INFO),
     ("warn_hook", Level.WARN), ("error_hook", Level.ERROR),
     ("fatal_hook", Level.FATAL), ("panic_hook", Level.PANIC)],
)
def test_level_hook_dispatches_to_matching_hook(attribute, level):
    recorders = {name: Recorder() for name in (
        "no_level_hook", "trace_hook", "debug_hook", "info_hook",
        "warn_hook", "error_hook", "fatal_hook", "panic_hook")}
    hook = LevelHook(**recorders)
    event = object()
    hook.run(event, level, "msg")
    assert recorders[attribute].calls == [(event, level, "msg")]
    others = [r for name, r in recorders.items() if name != attribute]
    assert all(r.calls == [] for r in others)


def test_level_hook_skips_missing_hook():
    info = Recorder()
    hook = LevelHook(info_hook=info)
    hook.run(object(), Level.DEBUG, "ignored")
    assert info.calls == []


def test_level_hook_ignores_disabled_level():
    recorders = [Recorder() for _ in range(8)]
    hook = LevelHook(*recorders)
    hook.run(object(), Level.DISABLED, "x")
    assert all(r.calls == [] for r in recorders)


def test_level_hook_accepts_hook_func():
    seen = []
    hook = LevelHook(warn_hook=HookFunc(lambda e, lvl, msg: seen.append(msg)))
    hook.run(None, Level.WARN, "careful")
    hook.run(None, Level.INFO, "skipped")
    assert seen == ["careful"]