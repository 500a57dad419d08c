"""MQTT side of a mock device: presence, command subscription and teardown."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Protocol

import paho.mqtt.client as mqtt

from .records import MQTTMessage

KEEPALIVE = 30
_SUBACK_FAILURE = 128


class MQTTError(Exception):
    """Raised when connecting or subscribing to the broker fails."""


class _Device(Protocol):
    device_id: str

    def add_mqtt_message(self, message: MQTTMessage) -> None: ...


def _is_failure(code: Any) -> bool:
    flag = getattr(code, "is_failure", None)
    if flag is not None:
        return bool(flag)
    return code != 0


def _suback_failed(code: Any) -> bool:
    flag = getattr(code, "is_failure", None)
    if flag is not None:
        return bool(flag)
    return code == _SUBACK_FAILURE


def _new_paho_client(client_id: str) -> mqtt.Client:
    api = getattr(mqtt, "CallbackAPIVersion", None)
    if api is not None:
        return mqtt.Client(api.VERSION2, client_id=client_id, clean_session=True)
    return mqtt.Client(client_id=client_id, clean_session=True)


class DeviceMQTTClient:
    """Connects a device to the broker, announces presence and records commands."""

    connect_timeout = 10.0
    subscribe_timeout = 5.0
    publish_timeout = 5.0

    def __init__(self, host: str, port: int, username: str, password: str, device: _Device) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.device = device
        self.client: mqtt.Client | None = None
        self._connected = threading.Event()
        self._connect_result: Any = None
        self._acks = threading.Condition()
        self._acked: dict[int, bool] = {}

    def presence_topic(self) -> str:
        return f"device/{self.device.device_id}/presence"

    def command_topic(self) -> str:
        return f"/device/{self.device.device_id}/commands"

    def _on_connect(self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any = None) -> None:
        self._connect_result = reason_code
        if not _is_failure(reason_code):
            client.publish(self.presence_topic(), "online", 0, True)
        self._connected.set()

    def _on_subscribe(self, client: Any, userdata: Any, mid: int, codes: Any, properties: Any = None) -> None:
        codes = codes if isinstance(codes, (list, tuple)) else [codes]
        with self._acks:
            self._acked[mid] = any(_suback_failed(code) for code in codes)
            self._acks.notify_all()

    def _on_disconnect(self, *args: Any) -> None:
        """Connection loss is tolerated; the network loop reconnects on its own."""

    def _on_message(self, client: Any, userdata: Any, msg: Any) -> None:
        payload = msg.payload.decode("utf-8", "replace")
        self.device.add_mqtt_message(MQTTMessage(datetime.now(), msg.topic, payload))

    def connect(self) -> None:
        """Connect to the broker with a retained "offline" will; raise MQTTError on failure."""
        client = _new_paho_client(self.device.device_id)
        client.username_pw_set(self.username or None, self.password or None)
        client.will_set(self.presence_topic(), "offline", 0, True)
        client.connect_timeout = self.connect_timeout
        client.on_connect = self._on_connect
        client.on_subscribe = self._on_subscribe
        client.on_disconnect = self._on_disconnect
        self._connected.clear()
        self._connect_result = None

        try:
            client.connect(self.host, self.port, KEEPALIVE)
        except OSError as err:
            raise MQTTError(f"mqtt connect: {err}") from err

        client.loop_start()
        if not self._connected.wait(self.connect_timeout):
            client.loop_stop()
            raise MQTTError("mqtt connect timeout")
        if _is_failure(self._connect_result):
            client.loop_stop()
            raise MQTTError(f"mqtt connect: {self._connect_result}")
        self.client = client

    def subscribe(self) -> None:
        """Subscribe to the device's command topic, recording every message on the device."""
        if self.client is None:
            raise MQTTError("mqtt not connected")
        topic = self.command_topic()
        self.client.message_callback_add(topic, self._on_message)
        result, mid = self.client.subscribe(topic, 0)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise MQTTError(f"mqtt subscribe: error {result}")
        with self._acks:
            if not self._acks.wait_for(lambda: mid in self._acked, self.subscribe_timeout):
                raise MQTTError("mqtt subscribe timeout")
            failed = self._acked.pop(mid)
        if failed:
            raise MQTTError("mqtt subscribe: rejected by broker")

    def disconnect(self) -> None:
        """Publish "offline" presence and close the connection, if connected."""
        client = self.client
        if client is None or not client.is_connected():
            return
        info = client.publish(self.presence_topic(), "offline", 0, True)
        try:
            info.wait_for_publish(self.publish_timeout)
        except (RuntimeError, ValueError):
            pass
        client.disconnect()
        client.loop_stop()