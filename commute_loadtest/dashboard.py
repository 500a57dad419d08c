"""Live dashboard: stats bar, device list, device details and a help overlay."""

from __future__ import annotations

import dataclasses
import threading
import time
from typing import Sequence

from .detail_panel import render_detail
from .device import MockDevice
from .list_panel import render_list
from .records import State
from .runner import Stats
from .styles import (
    DIVIDER,
    FOOTER,
    HEADER,
    HELP_BORDER_COLOR,
    boxed,
    format_number,
    place_center,
    split_pad,
)

LIST_WIDTH = 24
DIVIDER_WIDTH = 3
_MIN_DETAIL_WIDTH = 10

_QUIT_KEYS = frozenset({"q", "ctrl+c"})
_UP_KEYS = frozenset({"up", "k"})
_DOWN_KEYS = frozenset({"down", "j"})
_REFRESH_KEYS = frozenset({"r"})
_FILTER_KEYS = frozenset({"e"})
_HELP_KEYS = frozenset({"?"})

FOOTER_TEXT = "↑↓ navigate  q quit+cleanup  r refresh  e filter errors  ? help"

HELP_TEXT = """  CommuteLive Load Test — Keybindings

  ↑ / k       Navigate device list up
  ↓ / j       Navigate device list down
  q           Quit + trigger cleanup
  r           Force refresh selected device
  e           Toggle filter: errored devices only
  ?           Toggle this help overlay

  Press any key to close."""


def _refresh_quietly(device: MockDevice) -> None:
    try:
        device.force_refresh()
    except Exception:
        pass


class Dashboard:
    """State and rendering of the load-test dashboard."""

    def __init__(self, devices: Sequence[MockDevice], stats: Stats) -> None:
        self.devices = list(devices)
        self.stats = stats
        self.selected = 0
        self.filter_error = False
        self.show_help = False
        self.width = 0
        self.height = 0
        self._started = time.monotonic()

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def handle_key(self, key: str) -> bool:
        """Apply a key press; return True when the user asked to quit."""
        if self.show_help:
            self.show_help = False
            return False
        if key in _QUIT_KEYS:
            return True
        if key in _UP_KEYS:
            if self.selected > 0:
                self.selected -= 1
        elif key in _DOWN_KEYS:
            if self.selected < len(self.visible_devices()) - 1:
                self.selected += 1
        elif key in _REFRESH_KEYS:
            visible = self.visible_devices()
            if self.selected < len(visible):
                threading.Thread(
                    target=_refresh_quietly, args=(visible[self.selected],), daemon=True
                ).start()
        elif key in _FILTER_KEYS:
            self.filter_error = not self.filter_error
            self.selected = 0
        elif key in _HELP_KEYS:
            self.show_help = not self.show_help
        return False

    def visible_devices(self) -> list[MockDevice]:
        """All devices, or only the errored ones when the filter is on."""
        if not self.filter_error:
            return list(self.devices)
        return [device for device in self.devices if device.state() is State.ERROR]

    def stats_bar(self) -> str:
        elapsed = int(time.monotonic() - self._started)
        hours, rest = divmod(elapsed, 3600)
        minutes, seconds = divmod(rest, 60)
        stats = self.stats
        return (
            f"Devices: {stats.total_devices}  Active: {stats.active_devices}  "
            f"MQTT msgs: {format_number(stats.mqtt_total)}  {stats.msgs_per_sec():.1f}/s  "
            f"Errors: {stats.error_count}  "
            f"Elapsed: {hours:02d}:{minutes:02d}:{seconds:02d}"
        )

    def help_view(self) -> str:
        return place_center(self.width, self.height, boxed(HELP_TEXT, HELP_BORDER_COLOR, 1, 2))

    def view(self) -> str:
        """Render the whole screen for the current terminal size."""
        if self.width == 0 or self.height == 0:
            return "Loading..."
        if self.show_help:
            return self.help_view()

        body_height = max(self.height - 2, 1)
        detail_width = max(self.width - LIST_WIDTH - DIVIDER_WIDTH, _MIN_DETAIL_WIDTH)

        visible = self.visible_devices()
        if visible and self.selected >= len(visible):
            self.selected = len(visible) - 1
        selected_device = visible[self.selected] if visible else None

        list_lines = split_pad(
            render_list(visible, self.selected, LIST_WIDTH, body_height), LIST_WIDTH, body_height
        )
        detail_lines = split_pad(
            render_detail(selected_device, detail_width, body_height), detail_width, body_height
        )
        divider = DIVIDER.render(" │ ")
        body = "\n".join(
            left + divider + right for left, right in zip(list_lines, detail_lines)
        )

        header = dataclasses.replace(HEADER, width=self.width).render(self.stats_bar())
        footer = dataclasses.replace(FOOTER, width=self.width).render(FOOTER_TEXT)
        return header + "\n" + body + "\n" + footer