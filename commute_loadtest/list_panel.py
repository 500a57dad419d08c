"""Left dashboard panel: the scrollable list of devices."""

from __future__ import annotations

from typing import Sequence

from .device import MockDevice
from .records import State
from .styles import ACTIVE, DONE, ERROR, INIT, LIST_TITLE, SELECTED_ITEM


def state_indicator(device: MockDevice) -> str:
    """One-character coloured marker for the device's state."""
    state = device.state()
    if state is State.ACTIVE:
        return ACTIVE.render("*")
    if state is State.ERROR:
        return ERROR.render("!")
    if state is State.DONE:
        return DONE.render("-")
    return INIT.render("~")


def provider_tag(device: MockDevice) -> str:
    """Upper-case provider key cut to three letters."""
    return device.stop.provider.upper()[:3]


def render_list(devices: Sequence[MockDevice], selected: int, width: int, height: int) -> str:
    """Render the device list, scrolled so the selected row is visible."""
    width = max(width, 4)
    rows = [LIST_TITLE.render("Devices"), "─" * width]

    max_items = max(height - len(rows), 1)
    start = selected - max_items + 1 if selected >= max_items else 0

    for index, device in enumerate(devices[start : start + max_items], start):
        prefix = "> " if index == selected else "  "
        row = f"{prefix}{state_indicator(device)} {device.short_id[:8]:<8}[{provider_tag(device):>3}]"
        if index == selected:
            row = SELECTED_ITEM.render(row)
        rows.append(row)

    if not devices:
        rows.append(INIT.render("(no devices)"))

    return "\n".join(rows)