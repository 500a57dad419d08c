"""Right dashboard panel: identity, HTTP log and MQTT messages of one device."""

from __future__ import annotations

from .device import MockDevice
from .records import State
from .styles import (
    ACTIVE,
    DIM,
    DONE,
    ERROR,
    HTTP_ERR,
    HTTP_OK,
    INIT,
    MQTT_MSG,
    SECTION,
    truncate,
)

_MAX_HTTP = 10
_PATH_WIDTH = 38


def state_label(device: MockDevice) -> str:
    """Coloured state label with a leading symbol."""
    state = device.state()
    if state is State.ACTIVE:
        return ACTIVE.render("● ACTIVE")
    if state is State.ERROR:
        return ERROR.render("✗ ERROR")
    if state is State.DONE:
        return DONE.render("○ DONE")
    return INIT.render("◌ " + str(state))


def render_detail(device: MockDevice | None, width: int, height: int) -> str:
    """Render details of ``device`` in at most ``height`` lines."""
    height = max(height, 1)
    width = max(width, 12)
    if device is None:
        return DIM.render("  No device selected")

    stop = device.stop
    lines = [
        SECTION.render("Device: ") + device.device_id,
        f"Provider: {stop.provider_id:<14} Stop: {stop.stop_id:<16} Dir: {stop.direction}",
        "Status: " + state_label(device),
    ]

    error = device.error_message()
    if error:
        lines.append(HTTP_ERR.render("  Error: " + error))

    lines += ["", SECTION.render("─── HTTP Log ───")]
    log = device.http_log()
    if not log:
        lines.append(DIM.render("  (no requests yet)"))
    for entry in log[-_MAX_HTTP:]:
        mark = HTTP_OK.render("✓") if entry.ok else HTTP_ERR.render("✗")
        stamp = DIM.render(f"{entry.timestamp:%H:%M:%S}")
        path = truncate(entry.path, _PATH_WIDTH)
        lines.append(f"{stamp}  {entry.method:<6} {path:<38} {entry.status:>3} {mark}")
        if len(lines) >= height:
            return "\n".join(lines[:height])

    lines += ["", SECTION.render("─── MQTT Messages ───")]
    messages = device.mqtt_messages()
    remaining = max(height - len(lines), 1)
    if not messages:
        lines.append(DIM.render("  (waiting for MQTT messages...)"))
    for message in messages[-remaining:]:
        stamp = DIM.render(f"{message.timestamp:%H:%M:%S}")
        lines.append(f"{stamp}  {MQTT_MSG.render(truncate(message.payload, width - 12))}")
        if len(lines) >= height:
            break

    return "\n".join(lines[:height])