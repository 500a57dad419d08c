# commute_loadtest

A load generator for a transit-display backend. It creates a fleet of
simulated display devices, each of which walks through the full device
lifecycle against the server over HTTP and then stays connected over MQTT,
recording the command messages it receives until it is told to stop.

## Installing

```
pip install .
pip install ".[test]"   # with pytest and responses for the test suite
```

## What each simulated device does

`commute_loadtest.device.MockDevice` gets a random identity: a device id of
the form `loadtest-<uuid>`, a matching e-mail address under the reserved
`test.invalid` domain and a random password. It is given one transit `Stop`.
`run(events)` performs these steps in order:

1. register the device (`POST /device/register`)
2. register a user (`POST /user/register`)
3. log in (`POST /auth/login`)
4. link the device to the user (`POST /user/device/link`)
5. store a stop configuration (`POST /device/<id>/config`, allowed up to 90 s)
6. read the configuration back (`GET /device/<id>/config`)
7. connect to the MQTT broker, publishing a retained `online` message on
   `device/<id>/presence` and leaving a retained `offline` last will
8. subscribe to `/device/<id>/commands`

If a step fails, the device moves to `State.ERROR`, keeps the reason (see
`error_message()`) and puts an `Event` of type `EventType.ERROR` on the
queue it was given. Otherwise it becomes `State.ACTIVE`, reports
`EventType.ACTIVE` and waits until `shutdown()` is called; it then logs out,
publishes `offline`, disconnects, moves to `State.DONE` and reports
`EventType.DONE`. `wait(timeout)` blocks until the lifecycle has ended, and
`force_refresh()` sends `POST /refresh/<id>`.

Every HTTP request is recorded as an `HTTPLogEntry` (status 0 when the
request did not reach the server) and every incoming MQTT message as an
`MQTTMessage`; read them with `http_log()`, `mqtt_messages()` and
`mqtt_count()`. When a secret key is configured it is sent in the
`X-Loadtest-Key` header. Unexpected HTTP statuses raise
`http_client.HTTPStepError`; broker problems raise `mqtt_client.MQTTError`.

## Providers and stops

Stops come from curated lists for four providers: `cta`, `mta`, `mbta` and
`septa`.

```python
from commute_loadtest.providers import assign_providers, pick_stop, valid_providers

print(sorted(valid_providers()))          # ['cta', 'mbta', 'mta', 'septa']

keys = assign_providers(10, {"cta": 50, "mta": 50})
stops = [pick_stop(key) for key in keys]
```

`assign_providers(n, dist)` gives each provider `pct * n // 100` slots,
fills any shortfall by cycling through the providers, shuffles and returns
exactly `n` keys. It raises `ValueError` for an empty distribution.
`pick_stop` raises `UnknownProviderError` for a provider it has no stops for.

## Running a fleet

```python
from commute_loadtest.runner import Config, Runner

config = Config(
    server_url="http://localhost:3000",
    secret_key="",
    mqtt_host="localhost",
    mqtt_port=1883,
    mqtt_username="",
    mqtt_password="",
    devices=5,
    providers={"cta": 50, "mta": 50},
    duration=60,          # seconds; 0 runs until stopped
)
runner = Runner(config)
runner.start()
runner.watch_signals(config.duration)
runner.wait()
runner.print_cleanup_sql()
```

- `start(notify)` runs every device in its own thread plus an event
  processor that keeps `runner.stats` up to date and, if given, calls
  `notify` with each device `Event` and with a `Tick` once per second.
- `watch_signals(duration, on_stop)` shuts the fleet down on SIGINT or
  SIGTERM (handlers are installed only from the main thread) or when the
  duration elapses, then calls `on_stop`.
- `shutdown()` stops every device; `wait()` blocks until they have finished.
- `cleanup_sql()` returns SQL that deletes users and devices whose e-mail or
  id starts with `loadtest-`, followed by the addresses and ids this run
  created; `print_cleanup_sql(file)` prints it.

`Stats` tracks `active_devices`, `error_count`, `mqtt_total` and a rolling
five-second average from `msgs_per_sec()`.

## Dashboard

`commute_loadtest.dashboard.Dashboard(devices, stats)` renders a terminal
screen as a string with ANSI colour codes: a stats bar, a scrollable device
list (`list_panel.render_list`) and a detail panel for the selected device
(`detail_panel.render_detail`) with its last HTTP requests and MQTT
messages. Call `resize(width, height)`, then `view()`. `handle_key(key)`
takes key names such as `"up"`, `"k"`, `"down"`, `"j"`, `"r"` (refresh the
selected device in the background), `"e"` (show only errored devices),
`"?"` (help overlay) and returns `True` for `"q"` or `"ctrl+c"`.

`commute_loadtest.styles` holds the layout helpers it is built on: `Style`,
`visible_width`, `ansi_truncate`, `truncate`, `split_pad`, `place_center`,
`boxed` and `format_number`.

## What this package does not do

- There is no command-line program; a fleet is started from Python code as
  shown above.
- There is no interactive pre-run setup screen for choosing the device
  count, duration and providers; pass them in a `Config`.
- `Dashboard` does not read the keyboard or draw to the terminal itself:
  the caller feeds it key names and writes the strings `view()` returns.

## Cleaning up

Simulated users and devices are real records on the target server. After a
run, use the SQL from `Runner.cleanup_sql()` on the target database.