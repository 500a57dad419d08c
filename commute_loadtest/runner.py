"""Orchestration of many mock devices and the aggregate statistics they produce."""

from __future__ import annotations

import collections
import queue
import signal
import sys
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Mapping, TextIO, Union

from .device import MockDevice
from .providers import assign_providers, pick_stop
from .records import Event, EventType

WINDOW_SECONDS = 5
_POLL = 0.1


@dataclass
class Config:
    """Runtime parameters for a load test; duration in seconds, 0 for unlimited."""

    server_url: str
    secret_key: str
    mqtt_host: str
    mqtt_port: int
    mqtt_username: str
    mqtt_password: str
    devices: int
    providers: Mapping[str, int] = field(default_factory=dict)
    duration: float = 0.0


@dataclass(frozen=True)
class Tick:
    """Sent to listeners once a second after the statistics are refreshed."""

    timestamp: datetime


class Stats:
    """Aggregate counters shared with the dashboard."""

    def __init__(self, total_devices: int, started_at: datetime | None = None) -> None:
        self.total_devices = total_devices
        self.started_at = started_at or datetime.now()
        self.active_devices = 0
        self.error_count = 0
        self.mqtt_total = 0
        self._lock = threading.Lock()
        self._window: collections.deque[int] = collections.deque([0] * WINDOW_SECONDS, maxlen=WINDOW_SECONDS)
        self._last_total = 0

    def apply_event(self, event: Event) -> None:
        """Update the counters for a device lifecycle event."""
        with self._lock:
            if event.type is EventType.ACTIVE:
                self.active_devices += 1
            elif event.type is EventType.ERROR:
                self.error_count += 1
            elif event.type is EventType.DONE and self.active_devices > 0:
                self.active_devices -= 1

    def record_total(self, total: int) -> None:
        """Record this second's MQTT message total, feeding the rolling window."""
        with self._lock:
            self.mqtt_total = total
            self._window.append(total - self._last_total)
            self._last_total = total

    def msgs_per_sec(self) -> float:
        """Rolling five-second average of MQTT messages per second."""
        with self._lock:
            return sum(self._window) / WINDOW_SECONDS


Notify = Callable[[Union[Event, Tick]], None]


class Runner:
    """Creates, starts and stops a fleet of mock devices."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.stats = Stats(config.devices)
        self.events: queue.Queue[Event] = queue.Queue()
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []
        self.devices = [
            MockDevice(
                config.server_url,
                config.secret_key,
                config.mqtt_host,
                config.mqtt_username,
                config.mqtt_password,
                config.mqtt_port,
                pick_stop(provider),
            )
            for provider in assign_providers(config.devices, config.providers)
        ]

    def start(self, notify: Notify | None = None) -> None:
        """Start the event processor and every device in background threads."""
        threading.Thread(target=self._process_events, args=(notify,), daemon=True).start()
        for device in self.devices:
            thread = threading.Thread(target=device.run, args=(self.events,), daemon=True)
            self._threads.append(thread)
            thread.start()

    def shutdown(self) -> None:
        """Signal every device to stop; safe to call more than once."""
        self._stop.set()
        for device in self.devices:
            device.shutdown()

    def wait(self) -> None:
        """Block until every started device has finished."""
        for thread in self._threads:
            thread.join()

    def watch_signals(
        self, duration: float = 0.0, on_stop: Callable[[], None] | None = None
    ) -> threading.Thread:
        """Shut down on SIGINT/SIGTERM or after ``duration`` seconds, then call ``on_stop``.

        Signal handlers are only installed when called from the main thread.
        """
        triggered = threading.Event()

        def _handler(signum: int, frame: object) -> None:
            triggered.set()

        if threading.current_thread() is threading.main_thread():
            for sig in (signal.SIGINT, signal.SIGTERM):
                signal.signal(sig, _handler)

        deadline = time.monotonic() + duration if duration > 0 else None

        def _watch() -> None:
            while True:
                if self._stop.is_set():
                    return
                if triggered.wait(_POLL):
                    break
                if deadline is not None and time.monotonic() >= deadline:
                    break
            self.shutdown()
            if on_stop is not None:
                on_stop()

        thread = threading.Thread(target=_watch, daemon=True)
        thread.start()
        return thread

    def cleanup_sql(self) -> str:
        """SQL that removes the records this run created, with a list of them."""
        lines = [
            "--- Cleanup SQL ---",
            "-- Run this on staging DB to remove all loadtest records:",
            "DELETE FROM users WHERE email LIKE 'loadtest-%';",
            "DELETE FROM devices WHERE id LIKE 'loadtest-%';",
            "-- Emails created:",
            *(f"--   {device.email}" for device in self.devices),
            "-- Device IDs created:",
            *(f"--   {device.device_id}" for device in self.devices),
        ]
        return "\n".join(lines)

    def print_cleanup_sql(self, file: TextIO | None = None) -> None:
        out = file if file is not None else sys.stdout
        print(file=out)
        print(self.cleanup_sql(), file=out)

    def _tick(self, notify: Notify | None) -> None:
        self.stats.record_total(sum(device.mqtt_count() for device in self.devices))
        if notify is not None:
            notify(Tick(datetime.now()))

    def _process_events(self, notify: Notify | None) -> None:
        next_tick = time.monotonic() + 1.0
        while not self._stop.is_set():
            remaining = next_tick - time.monotonic()
            if remaining <= 0:
                self._tick(notify)
                next_tick += 1.0
                continue
            try:
                event = self.events.get(timeout=min(remaining, _POLL))
            except queue.Empty:
                continue
            self.stats.apply_event(event)
            if notify is not None:
                notify(event)