"""Lifecycle states, log records and events shared by devices and the runner."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class State(enum.IntEnum):
    """Lifecycle stage of a mock device."""

    INIT = 0
    REGISTERING = 1
    AUTHENTICATING = 2
    LINKING = 3
    CONFIGURING = 4
    ACTIVE = 5
    ERROR = 6
    DONE = 7

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class HTTPLogEntry:
    """A single HTTP request and the status that came back (0 on transport failure)."""

    timestamp: datetime
    method: str
    path: str
    status: int
    ok: bool

    def __str__(self) -> str:
        mark = "✓" if self.ok else "✗"
        return (
            f"{self.timestamp:%H:%M:%S}  {self.method:<6} {self.path:<40}  "
            f"{self.status} {mark}"
        )


@dataclass(frozen=True)
class MQTTMessage:
    """An incoming MQTT message."""

    timestamp: datetime
    topic: str
    payload: str

    def __str__(self) -> str:
        return f"{self.timestamp:%H:%M:%S}  {self.payload}"


class EventType(enum.IntEnum):
    """Kinds of lifecycle events a device reports."""

    ACTIVE = 0
    ERROR = 1
    DONE = 2
    MQTT = 3


@dataclass(frozen=True)
class Event:
    """A lifecycle change reported by a device."""

    device_id: str
    type: EventType