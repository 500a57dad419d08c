import time

import pytest
import responses

from commute_loadtest.dashboard import Dashboard, FOOTER_TEXT, HELP_TEXT
from commute_loadtest.device import MockDevice
from commute_loadtest.providers import Stop
from commute_loadtest.records import Event, EventType, State
from commute_loadtest.runner import Stats
from commute_loadtest.styles import visible_width

SERVER = "http://server.example.com"
STOP = Stop("cta", "cta-subway", "Red", "40900", "N")


def _device() -> MockDevice:
    password = "password"
    return MockDevice(SERVER, "secret", "localhost", "user", password, 1883, STOP)


@pytest.fixture
def devices():
    return [_device() for _ in range(3)]


@pytest.fixture
def dash(devices):
    return Dashboard(devices, Stats(len(devices)))


def test_view_before_resize_is_loading(dash):
    assert dash.view() == "Loading..."


def test_quit_keys(dash):
    assert dash.handle_key("q") is True
    assert dash.handle_key("ctrl+c") is True
    assert dash.handle_key("x") is False


def test_navigation_is_clamped(dash):
    dash.handle_key("up")
    assert dash.selected == 0
    for _ in range(5):
        dash.handle_key("j")
    assert dash.selected == 2
    dash.handle_key("k")
    assert dash.selected == 1


def test_filter_shows_only_errored_devices(dash, devices):
    devices[1].set_error("login: boom")
    dash.handle_key("down")
    dash.handle_key("e")
    assert dash.filter_error is True
    assert dash.selected == 0
    assert dash.visible_devices() == [devices[1]]
    dash.handle_key("e")
    assert dash.visible_devices() == devices


def test_help_closes_on_any_key_without_acting(dash):
    dash.handle_key("?")
    assert dash.show_help is True
    assert dash.handle_key("q") is False
    assert dash.show_help is False


def test_stats_bar_reports_counters(dash, devices):
    dash.stats.apply_event(Event(devices[0].device_id, EventType.ACTIVE))
    dash.stats.apply_event(Event(devices[1].device_id, EventType.ERROR))
    dash.stats.record_total(1500)
    bar = dash.stats_bar()
    assert bar.startswith("Devices: 3  Active: 1  MQTT msgs: 1,500")
    assert "Errors: 1" in bar
    assert bar.endswith("Elapsed: 00:00:00")


def test_view_fills_terminal(dash, devices):
    dash.resize(120, 20)
    screen = dash.view()
    lines = screen.split("\n")
    assert len(lines) == 20
    assert all(visible_width(line) == 120 for line in lines)
    assert devices[0].device_id in screen
    assert FOOTER_TEXT in lines[-1]


def test_view_with_filter_and_no_errors_has_no_selection(dash):
    dash.resize(100, 10)
    dash.handle_key("e")
    screen = dash.view()
    assert "No device selected" in screen
    assert "(no devices)" in screen


def test_view_clamps_selection(dash):
    dash.resize(100, 10)
    dash.selected = 10
    dash.view()
    assert dash.selected == 2


def test_help_view_is_centred_in_terminal(dash):
    dash.resize(100, 30)
    dash.handle_key("?")
    lines = dash.view().split("\n")
    assert len(lines) == 30
    assert all(visible_width(line) == 100 for line in lines)
    assert any("Press any key to close." in line for line in lines)
    assert HELP_TEXT.split("\n")[0].strip() in dash.help_view()


def test_refresh_posts_for_selected_device(dash, devices):
    target = devices[1]
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{SERVER}/refresh/{target.device_id}", status=200)
        dash.handle_key("down")
        assert dash.handle_key("r") is False
        deadline = time.monotonic() + 5
        while not target.http_log() and time.monotonic() < deadline:
            time.sleep(0.01)
        log = target.http_log()
    assert len(log) == 1
    assert log[0].path == f"/refresh/{target.device_id}"
    assert log[0].status == 200
    assert devices[0].http_log() == []


def test_state_changes_show_in_view(dash, devices):
    dash.resize(120, 20)
    devices[0].set_state(State.ACTIVE)
    assert "ACTIVE" in dash.view()