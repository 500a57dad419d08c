"""A simulated device walking through registration, linking, config and MQTT."""

from __future__ import annotations

import threading
import uuid
from datetime import datetime
from typing import Callable, Protocol

from .http_client import DeviceHTTPClient
from .mqtt_client import DeviceMQTTClient
from .providers import Stop
from .records import Event, EventType, HTTPLogEntry, MQTTMessage, State


class _EventSink(Protocol):
    def put(self, item: Event) -> None: ...


class MockDevice:
    """One simulated device going through the full lifecycle."""

    def __init__(
        self,
        server_url: str,
        secret_key: str,
        mqtt_host: str,
        mqtt_username: str,
        mqtt_password: str,
        mqtt_port: int,
        stop: Stop,
    ) -> None:
        ident = str(uuid.uuid4())
        self.short_id = ident[:8]
        self.device_id = f"loadtest-{ident}"
        self.email = f"loadtest-{ident}@test.invalid"
        self.password = str(uuid.uuid4())
        self.stop = stop
        self.started_at = datetime.now()
        self.active_at: datetime | None = None

        self._lock = threading.Lock()
        self._state = State.INIT
        self._error = ""
        self._http_log: list[HTTPLogEntry] = []
        self._mqtt_messages: list[MQTTMessage] = []
        self._mqtt_count = 0
        self._stop_requested = threading.Event()
        self._done = threading.Event()

        self._http = DeviceHTTPClient(server_url, secret_key, self)
        self._mqtt = DeviceMQTTClient(mqtt_host, mqtt_port, mqtt_username, mqtt_password, self)

    def _steps(self) -> list[tuple[str, Callable[[], None]]]:
        return [
            ("register device", self._http.register_device),
            ("register user", self._http.register_user),
            ("login", self._http.login),
            ("link device", self._http.link_device),
            ("set config", self._http.set_config),
            ("get config", self._http.get_config),
            ("connect mqtt", self._mqtt.connect),
            ("subscribe mqtt", self._mqtt.subscribe),
        ]

    def run(self, events: _EventSink) -> None:
        """Run the lifecycle, then block until shut down and clean up."""
        try:
            for name, step in self._steps():
                if self._stop_requested.is_set():
                    self.set_state(State.DONE)
                    return
                try:
                    step()
                except Exception as err:  # any failing step ends the lifecycle
                    self.set_error(f"{name}: {err}")
                    events.put(Event(self.device_id, EventType.ERROR))
                    return

            with self._lock:
                self._state = State.ACTIVE
                self.active_at = datetime.now()
            events.put(Event(self.device_id, EventType.ACTIVE))

            self._stop_requested.wait()
            self._cleanup(events)
        finally:
            self._done.set()

    def _cleanup(self, events: _EventSink) -> None:
        try:
            self._http.logout()
        except Exception:
            pass
        self._mqtt.disconnect()
        self.set_state(State.DONE)
        events.put(Event(self.device_id, EventType.DONE))

    def shutdown(self) -> None:
        """Ask the device to stop; safe to call more than once."""
        self._stop_requested.set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the lifecycle has finished; return False on timeout."""
        return self._done.wait(timeout)

    def force_refresh(self) -> None:
        """Ask the server to refresh transit data for this device."""
        self._http.refresh()

    def state(self) -> State:
        with self._lock:
            return self._state

    def http_log(self) -> list[HTTPLogEntry]:
        with self._lock:
            return list(self._http_log)

    def mqtt_messages(self) -> list[MQTTMessage]:
        with self._lock:
            return list(self._mqtt_messages)

    def mqtt_count(self) -> int:
        with self._lock:
            return self._mqtt_count

    def error_message(self) -> str:
        with self._lock:
            return self._error

    def add_http_log(self, entry: HTTPLogEntry) -> None:
        with self._lock:
            self._http_log.append(entry)

    def add_mqtt_message(self, message: MQTTMessage) -> None:
        with self._lock:
            self._mqtt_messages.append(message)
            self._mqtt_count += 1

    def set_state(self, state: State) -> None:
        with self._lock:
            self._state = state

    def set_error(self, message: str) -> None:
        with self._lock:
            self._state = State.ERROR
            self._error = message