"""HTTP side of a mock device's lifecycle against the server API."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Protocol
from urllib.parse import quote

import requests

from .providers import Stop
from .records import HTTPLogEntry, State

DEFAULT_TIMEOUT = 15.0
CONFIG_TIMEOUT = 90.0


class HTTPStepError(Exception):
    """Raised when the server answers a lifecycle step with an unexpected status."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status


class _Device(Protocol):
    device_id: str
    email: str
    password: str
    stop: Stop

    def set_state(self, state: State) -> None: ...

    def add_http_log(self, entry: HTTPLogEntry) -> None: ...


def _path_escape(segment: str) -> str:
    return quote(segment, safe="$&+,;=:@")


class DeviceHTTPClient:
    """Performs a device's HTTP requests, keeping cookies between calls."""

    def __init__(self, server_url: str, secret_key: str, device: _Device) -> None:
        self.base = server_url.rstrip("/")
        self.secret_key = secret_key
        self.device = device
        self.session = requests.Session()

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> tuple[int, bytes]:
        """Send a request, log it on the device and return (status, body).

        Transport failures are logged with status 0 and re-raised.
        """
        headers: dict[str, str] = {}
        data = None
        if body is not None:
            data = json.dumps(body, sort_keys=True, separators=(",", ":")).encode()
            headers["Content-Type"] = "application/json"
        if self.secret_key:
            headers["X-Loadtest-Key"] = self.secret_key

        try:
            response = self.session.request(
                method, self.base + path, data=data, headers=headers, timeout=timeout
            )
        except requests.RequestException:
            self.device.add_http_log(HTTPLogEntry(datetime.now(), method, path, 0, False))
            raise

        status = response.status_code
        self.device.add_http_log(
            HTTPLogEntry(datetime.now(), method, path, status, 200 <= status < 300)
        )
        return status, response.content

    def _expect(
        self,
        label: str,
        accepted: tuple[int, ...],
        method: str,
        path: str,
        body: Any = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        status, _ = self.request(method, path, body, timeout)
        if status not in accepted:
            raise HTTPStepError(f"{label} returned {status}", status)

    def _config_path(self) -> str:
        return "/device/" + _path_escape(self.device.device_id) + "/config"

    def register_device(self) -> None:
        self.device.set_state(State.REGISTERING)
        payload = {"id": self.device.device_id, "timezone": "America/New_York"}
        self._expect("register device", (200, 201), "POST", "/device/register", payload)

    def register_user(self) -> None:
        payload = {"email": self.device.email, "password": self.device.password}
        self._expect("register user", (200, 201), "POST", "/user/register", payload)

    def login(self) -> None:
        self.device.set_state(State.AUTHENTICATING)
        payload = {"email": self.device.email, "password": self.device.password}
        self._expect("login", (200, 201), "POST", "/auth/login", payload)

    def link_device(self) -> None:
        self.device.set_state(State.LINKING)
        payload = {"deviceId": self.device.device_id}
        self._expect("link device", (200, 201), "POST", "/user/device/link", payload)

    def set_config(self) -> None:
        self.device.set_state(State.CONFIGURING)
        stop = self.device.stop
        payload = {
            "lines": [
                {
                    "provider": stop.provider_id,
                    "line": stop.line,
                    "stop": stop.stop_id,
                    "direction": stop.direction,
                }
            ]
        }
        # The server fetches live provider data on config changes, so allow longer.
        self._expect(
            "set config", (200, 201), "POST", self._config_path(), payload, CONFIG_TIMEOUT
        )

    def get_config(self) -> None:
        self._expect("get config", (200,), "GET", self._config_path())

    def refresh(self) -> None:
        path = "/refresh/" + _path_escape(self.device.device_id)
        self._expect("refresh", (200, 201), "POST", path)

    def logout(self) -> None:
        self._expect("logout", (200, 204), "POST", "/auth/logout")