# structlogline

Building blocks for structured logging that writes one JSON object per line.
You add fields to an event through chained calls. The event is written when
its message is sent. The package also has a console formatter for such lines
and a non-blocking writer.

The package has no dependencies outside the standard library.

## Events

`structlogline.event.Event(writer=None, level=Level.NO_LEVEL, done=None, hooks=())`
collects encoded fields in the order they are added. `msg(message)`,
`msgf(fmt, *args)` or `send()` finish the event. Finishing it does three
things, in this order:

1. It runs the hooks.
2. It adds the `message` field, if the message is not empty.
3. It writes the line, ending in a newline.

Where the line goes depends on the writer:

- A writer with a `write_level(level, data)` method gets the level as well as the line.
- A binary stream gets UTF-8 bytes.
- Any other writer gets a `str`.

An event whose level is `Level.DISABLED` is not written. Neither is an event
without a writer. After the write, the `done` callback, if given, is called
with the message.

```python
import io
from structlogline.event import Event, new_dict
from structlogline.array import arr
from structlogline.globals import Level

out = io.StringIO()
Event(out, Level.INFO).str("foo", "bar").int("n", 123).msg("hello world")
# {"foo":"bar","n":123,"message":"hello world"}

Event(out).dict("dict", new_dict().str("bar", "baz").int("n", 1)).msg("hello world")
# {"dict":{"bar":"baz","n":1},"message":"hello world"}

Event(out).array("array", arr().str("baz").int(1)).msg("hello world")
# {"array":["baz",1],"message":"hello world"}
```

The event does not add a `level` field by itself. Add one with
`str("level", ...)` or from a hook if you want it.

### Field methods

- **Scalars:** `str`, `bytes`, `hex`, `bool`, `int`, `float32`, `float64`
- **Lists:** `strs`, `bools`, `ints`, `floats32`, `floats64`
- **Times:**
  - `time` and `times` render values in the global time field format.
  - `timestamp` adds the current time under the timestamp field.
  - `dur`, `durs` and `time_diff` render durations in the global duration unit.
- **Network:** `ip_addr`, `ip_prefix`, `mac_addr`
- **Errors:**
  - `err(error)` adds the error under the `error` field.
  - `an_err(key, error)` adds it under `key`.
  - `errs(key, errors)` adds a list of errors.
  - After `stack()`, `err` also adds the stack, provided `ERROR_STACK_MARSHALER` is set.
- **Objects:**
  - `object(key, obj)` and `embed_object(obj)` call `obj.marshal_zerolog_object(event)`.
  - `interface(key, value)` uses that method when present, and the generic JSON encoder otherwise.
  - `array(key, a)` takes an `Array` or any object with `marshal_zerolog_array(array)`.
- **Prebuilt content:**
  - `raw_json(key, text)` adds already encoded JSON, unchecked.
  - `fields(mapping)` adds every entry in key order.
- **Prefixed fields:** `fields_with_prefix(mapping, prefix)` and `fields_with_underscore_prefix(mapping)` add a mapping with a prefix on every key.
- **Event name:** `event(name)` sets the `_event` field.
- **Caller:** `caller()` adds the `file:line` of the calling code. An argument skips extra frames.
- **Control:**
  - `enabled()` tells whether the event will be written.
  - `discard()` disables the event.

When writing raises `OSError` or `ValueError`, the error goes to
`globals.ERROR_HANDLER`. If no handler is set, a message is printed to stderr.

### Arrays

`structlogline.array.arr()` returns an empty `Array`. Build it with chained
calls:

- `str`, `bytes`, `hex`, `bool`, `int`
- `float32`, `float64`
- `time`, `dur`
- `err`, `object`, `interface`
- `raw_json`
- `ip_addr`, `ip_prefix`, `mac_addr`

`write()` returns the JSON text.

### Encoding

`structlogline.encoding` holds the encoders the other modules use. The value
encoders are:

- `encode_string`, `encode_bytes`, `encode_hex`
- `encode_bool`, `encode_int`
- `encode_float(value, bits)`
- `encode_time(value, time_format)`
- `encode_duration(value, unit, use_int)`
- `encode_interface`
- `encode_ip_addr`, `encode_ip_prefix`, `encode_mac_addr`

Two more build larger pieces:

- `encode_list(values, encode_item)` encodes a list with the given item encoder.
- `encode_fields(mapping)` encodes a whole mapping, with the keys sorted.

Some values get special treatment:

- NaN and infinities are written as the strings `"NaN"`, `"+Inf"` and `"-Inf"`.
- A value the generic encoder cannot handle becomes a quoted `"marshaling error: ..."` string.

## Global settings

`structlogline.globals` holds module-level settings that you can reassign.

| Setting | Purpose |
| --- | --- |
| `TIMESTAMP_FIELD_NAME`, `LEVEL_FIELD_NAME`, `MESSAGE_FIELD_NAME`, `ERROR_FIELD_NAME`, `CALLER_FIELD_NAME`, `ERROR_STACK_FIELD_NAME` | Field names |
| `TIME_FIELD_FORMAT` | Time layout, RFC 3339 by default. `TIME_FORMAT_UNIX`, `TIME_FORMAT_UNIX_MS` and `TIME_FORMAT_UNIX_MICRO` give Unix integers. |
| `TIMESTAMP_FUNC` | Source of the current time |
| `DURATION_FIELD_UNIT`, `DURATION_FIELD_INTEGER` | Duration unit, and whether durations are integers |
| `ERROR_MARSHAL_FUNC` | How errors are rendered |
| `ERROR_STACK_MARSHALER` | How an error's stack is rendered |
| `CALLER_MARSHAL_FUNC` | How the caller location is rendered |
| `CALLER_SKIP_FRAME_COUNT` | Frames skipped to find the caller |
| `ERROR_HANDLER` | Receives errors raised while writing an event |

`Level` is an `IntEnum` with these members:

- `TRACE`, `DEBUG`, `INFO`, `WARN`, `ERROR`
- `FATAL`, `PANIC`
- `NO_LEVEL`, `DISABLED`

`str(level)` gives the lower-case name.

`set_global_level` and `global_level` store and return a global level.
`disable_sampling` and `sampling_disabled` store and return a sampling switch.
Nothing in the package acts on either value yet; they are there for code that
builds loggers on top of events.

`format_time(moment, layout)` and `parse_time(text, layout)` use strftime
layouts with a few extra directives:

- `%:z` renders `Z` or `+HH:MM`.
- `%-I` renders an unpadded 12-hour clock.
- `%e` renders a space-padded day.
- `%L` renders milliseconds.

Ready-made layouts are `RFC3339`, `RFC822`, `KITCHEN` and `STAMP_MILLI`.

## Hooks

A hook is any object with `run(event, level, message)`. Pass hooks to `Event`.
They run in order just before the event is written, so they can add fields or
call `discard()`.

```python
from structlogline.hook import HookFunc, LevelHook

level_name = HookFunc(lambda e, level, msg: e.str("level_name", str(level)))
per_level = LevelHook(error_hook=level_name)  # runs only for Level.ERROR
```

## Console output

`structlogline.console.ConsoleWriter` parses one JSON object per `write` call
and prints a readable line to `out`, which is stdout by default.

```python
import io
from structlogline.console import ConsoleWriter

buf = io.StringIO()
ConsoleWriter(out=buf, no_color=True).write(
    '{"level": "debug", "message": "Foobar", "foo": "bar"}'
)
# buf.getvalue() == "<nil> DBG Foobar foo=bar\n"
```

The parts are written first, in `parts_order`: timestamp, level, caller and
message by default. The remaining fields follow, sorted, with `error` first.

Options:

- `no_color` turns the ANSI colours off.
- `time_format` is the output time layout, `KITCHEN` by default.
- Each part and field has its own formatter callable:
  - `format_timestamp`, `format_level`, `format_caller`, `format_message`
  - `format_field_name`, `format_field_value`
  - `format_err_field_name`, `format_err_field_value`

Input that is not a JSON object raises `ValueError`.

`new_console_writer(*options)` creates a writer to stdout and applies each
option callable to it. `needs_quote` and `colorize` are the helpers the
writer uses.

A `ConsoleWriter` can itself be the writer of an `Event`.

## Non-blocking output

`structlogline.diode.DiodeWriter(out, size, poll_interval=0, alerter=None)`
wraps any writer. Its `write` never blocks. It copies the data into a
many-to-one ring buffer, and a background thread drains the buffer into
`out`.

When producers outpace the output, older items are dropped. The `alerter` is
then called with the number of items dropped.

How the background thread waits depends on `poll_interval`:

- A positive value, in seconds or as a `timedelta`, makes it poll at that interval.
- Otherwise it waits on a condition.

`close()`, or leaving a `with` block, does three things:

1. It flushes what is pending.
2. It stops the thread.
3. It calls `out.close()` if `out` has one.

`structlogline.diodes` provides the pieces:

- **Ring buffers:** `OneToOne` for one writer and `ManyToOne` for many writers. Their `try_next()` raises `Empty` when nothing is ready.
- **Readers:**
  - `Poller` and `Waiter` wrap a ring buffer.
  - Their `next()` waits for data. Once `cancel()` has been called and nothing is left, it returns `None`.

## What this package does not do

There is no logger object. You create events and give them a writer
yourself. The package has none of the following:

- per-logger or global level filtering
- sampling
- sub-loggers that carry context fields
- storing a logger in a request or task context
- HTTP request middleware
- a command-line tool