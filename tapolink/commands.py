"""Commands understood by Tapo devices.

Each command is a frozen dataclass with a fixed ``method`` and the
``params`` it sends.  :meth:`Command.to_request` returns the dict that is
encrypted into the passthrough envelope.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

SET_DEVICE_INFO = "set_device_info"
GET_DEVICE_INFO = "get_device_info"
LOGIN_DEVICE = "login_device"


@dataclass(frozen=True)
class Command:
    """Base class for a method + params request."""

    method: ClassVar[str]

    def params(self) -> dict[str, Any]:
        """Return the request parameters."""
        return {}

    def to_request(self) -> dict[str, Any]:
        """Return the wire request."""
        request: dict[str, Any] = {"method": self.method}
        if params := self.params():
            request["params"] = params
        return request


def _with_transition(params: dict[str, Any], transition: int | None) -> dict[str, Any]:
    if transition is not None:
        params["transition"] = transition
    return params


@dataclass(frozen=True)
class SetPowerState(Command):
    """Turn the device on or off."""

    method: ClassVar[str] = SET_DEVICE_INFO

    device_on: bool
    transition: int | None = None

    def params(self) -> dict[str, Any]:
        return _with_transition({"device_on": self.device_on}, self.transition)


@dataclass(frozen=True)
class SetBrightness(Command):
    """Set the brightness in percent."""

    method: ClassVar[str] = SET_DEVICE_INFO

    brightness: int
    transition: int | None = None

    def __post_init__(self) -> None:
        if (
            not isinstance(self.brightness, int)
            or isinstance(self.brightness, bool)
            or not 1 <= self.brightness <= 100
        ):
            raise ValueError(
                f"Invalid brightness value: {self.brightness} (valid range: 1-100%)"
            )

    def params(self) -> dict[str, Any]:
        return _with_transition({"brightness": self.brightness}, self.transition)


@dataclass(frozen=True)
class SetColorTemp(Command):
    """Set the color temperature in Kelvin."""

    method: ClassVar[str] = SET_DEVICE_INFO

    color_temp: int
    transition: int | None = None

    def __post_init__(self) -> None:
        if self.color_temp < 0:
            raise ValueError(f"Invalid color temperature: {self.color_temp}")

    def params(self) -> dict[str, Any]:
        return _with_transition({"color_temp": self.color_temp}, self.transition)


@dataclass(frozen=True)
class SetColor(Command):
    """Set hue, saturation and color temperature in one request."""

    method: ClassVar[str] = SET_DEVICE_INFO

    hue: int | None = None
    saturation: int | None = None
    color_temp: int | None = None

    def params(self) -> dict[str, Any]:
        params = {
            "hue": self.hue,
            "saturation": self.saturation,
            "color_temp": self.color_temp,
        }
        return {k: v for k, v in params.items() if v is not None}


@dataclass(frozen=True)
class GetDeviceInfo(Command):
    """Query the device status."""

    method: ClassVar[str] = GET_DEVICE_INFO


@dataclass(frozen=True)
class LoginDevice(Command):
    """Exchange encoded credentials for a device token."""

    method: ClassVar[str] = LOGIN_DEVICE

    username: str = field(repr=False)
    password: str = field(repr=False)

    def params(self) -> dict[str, Any]:
        return {"username": self.username, "password": self.password}
