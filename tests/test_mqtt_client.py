from types import SimpleNamespace
from unittest import mock

import pytest

from commute_loadtest.mqtt_client import DeviceMQTTClient, MQTTError


class FakeDevice:
    def __init__(self, device_id="dev-1"):
        self.device_id = device_id
        self.messages = []

    def add_mqtt_message(self, message):
        self.messages.append(message)


def _fake_paho(connect_rc=0, suback=0, fire_connect=True):
    fake = mock.MagicMock()
    fake.is_connected.return_value = True
    if fire_connect:
        fake.loop_start.side_effect = lambda: fake.on_connect(fake, None, {}, connect_rc, None)

    def subscribe(topic, qos=0):
        fake.on_subscribe(fake, None, 7, [suback], None)
        return (0, 7)

    fake.subscribe.side_effect = subscribe
    return fake


def _client(device=None):
    return DeviceMQTTClient("broker.test", 1883, "", "", device or FakeDevice())


def test_topics():
    client = _client()
    assert client.presence_topic() == "device/dev-1/presence"
    assert client.command_topic() == "/device/dev-1/commands"


def test_subscribe_without_connect_raises():
    client = _client()
    client.disconnect()
    with pytest.raises(MQTTError, match="mqtt not connected"):
        client.subscribe()


def test_connect_sets_will_and_publishes_online():
    fake = _fake_paho()
    client = _client()
    with mock.patch("paho.mqtt.client.Client", return_value=fake):
        client.connect()
    assert client.client is fake
    fake.will_set.assert_called_once_with("device/dev-1/presence", "offline", 0, True)
    fake.publish.assert_any_call("device/dev-1/presence", "online", 0, True)
    assert fake.connect.call_args[0][:2] == ("broker.test", 1883)


def test_connect_refused_raises():
    fake = _fake_paho()
    fake.connect.side_effect = ConnectionRefusedError("refused")
    client = _client()
    with mock.patch("paho.mqtt.client.Client", return_value=fake):
        with pytest.raises(MQTTError, match="mqtt connect"):
            client.connect()
    assert client.client is None


def test_connect_rejected_by_broker_raises():
    fake = _fake_paho(connect_rc=5)
    client = _client()
    with mock.patch("paho.mqtt.client.Client", return_value=fake):
        with pytest.raises(MQTTError, match="mqtt connect"):
            client.connect()
    assert client.client is None
    fake.loop_stop.assert_called_once()


def test_connect_timeout_raises():
    fake = _fake_paho(fire_connect=False)
    client = _client()
    client.connect_timeout = 0.05
    with mock.patch("paho.mqtt.client.Client", return_value=fake):
        with pytest.raises(MQTTError, match="mqtt connect timeout"):
            client.connect()
    assert client.client is None


def test_subscribe_records_messages():
    device = FakeDevice()
    fake = _fake_paho()
    client = _client(device)
    with mock.patch("paho.mqtt.client.Client", return_value=fake):
        client.connect()
        client.subscribe()
    topic, handler = fake.message_callback_add.call_args[0]
    assert topic == "/device/dev-1/commands"
    handler(fake, None, SimpleNamespace(topic=topic, payload=b"hello"))
    assert len(device.messages) == 1
    assert device.messages[0].payload == "hello"
    assert device.messages[0].topic == topic


def test_subscribe_rejected_raises():
    fake = _fake_paho(suback=128)
    client = _client()
    with mock.patch("paho.mqtt.client.Client", return_value=fake):
        client.connect()
        with pytest.raises(MQTTError, match="rejected"):
            client.subscribe()


def test_disconnect_publishes_offline():
    fake = _fake_paho()
    client = _client()
    with mock.patch("paho.mqtt.client.Client", return_value=fake):
        client.connect()
        client.disconnect()
    topic = client.presence_topic()
    assert topic == "device/dev-1/presence"
    published = [c.args for c in fake.publish.call_args_list]
    assert (topic, "offline", 0, True) in published
    assert published[-1] == (topic, "offline", 0, True)
    assert fake.disconnect.call_count == 1
    assert fake.loop_stop.call_count == 1