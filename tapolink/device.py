"""Control a single Tapo device over the local protocol.

>>> from tapolink import TapoDevice, DeviceConfig, Credentials
>>> config = DeviceConfig(
>>>     "192.168.1.20", credentials=Credentials("user@example.com", "pw")
>>> )
>>> async with await TapoDevice.connect(config=config) as dev:
>>>     await dev.set_brightness(50, transition=1000)
>>>     info = await dev.get_device_info()
>>>     print(info.nickname)
Living Room

No command is retried.  A :class:`~tapolink.exceptions.CommandRejected`
with ``DEVICE_TOKEN_EXPIRED`` means the session has to be renewed with
:meth:`TapoDevice.relogin` by the caller.
"""

from __future__ import annotations

import binascii
import logging
from types import TracebackType
from typing import Any

from .colors import ColorResolver, get_color
from .commands import (
    Command,
    GetDeviceInfo,
    SetBrightness,
    SetColorTemp,
    SetPowerState,
)
from .credentials import Credentials
from .crypto import decode_base64
from .deviceconfig import DeviceConfig
from .exceptions import AuthenticationError, SessionNotEstablished
from .handle import DeviceSessionHandle
from .handshake import HandshakeNegotiator
from .httpclient import HttpClient
from .passthrough import SecurePassthroughChannel
from .session import DeviceSession

_LOGGER = logging.getLogger(__name__)

ENCODED_INFO_FIELDS = ("ssid", "nickname")


def _decode_field(value: Any) -> Any:
    if not isinstance(value, str) or not value:
        return value
    try:
        return decode_base64(value)
    except (binascii.Error, UnicodeDecodeError):
        _LOGGER.debug("Field value %s is not base64, keeping as is", value)
        return value


class DeviceInfo:
    """Status snapshot returned by ``get_device_info``.

    ``ssid`` and ``nickname`` arrive base64 encoded and are decoded here.
    """

    def __init__(self, info: dict[str, Any]) -> None:
        self._info = {
            k: _decode_field(v) if k in ENCODED_INFO_FIELDS else v
            for k, v in info.items()
        }

    def __getitem__(self, key: str) -> Any:
        return self._info[key]

    def __contains__(self, key: object) -> bool:
        return key in self._info

    def __repr__(self) -> str:
        return f"<DeviceInfo {self.model} '{self.nickname}' on={self.device_on}>"

    def get(self, key: str, default: Any = None) -> Any:
        """Return a raw value."""
        return self._info.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Return the decoded data."""
        return dict(self._info)

    @property
    def nickname(self) -> str | None:
        return self._info.get("nickname")

    @property
    def ssid(self) -> str | None:
        return self._info.get("ssid")

    @property
    def model(self) -> str | None:
        return self._info.get("model")

    @property
    def mac(self) -> str | None:
        """Return the mac formatted with colons."""
        if mac := self._info.get("mac"):
            return str(mac).replace("-", ":")
        return None

    @property
    def device_id(self) -> str | None:
        return self._info.get("device_id")

    @property
    def device_on(self) -> bool:
        return bool(self._info.get("device_on"))

    @property
    def brightness(self) -> int | None:
        return self._info.get("brightness")

    @property
    def color_temp(self) -> int | None:
        return self._info.get("color_temp")

    @property
    def hue(self) -> int | None:
        return self._info.get("hue")

    @property
    def saturation(self) -> int | None:
        return self._info.get("saturation")


class TapoDevice:
    """A Tapo plug or bulb reached over the local network."""

    def __init__(
        self,
        config: DeviceConfig,
        *,
        http_client: HttpClient | None = None,
        color_resolver: ColorResolver = get_color,
    ) -> None:
        self._config = config
        self._host = config.host
        self._owns_http_client = http_client is None
        self._http_client = http_client or HttpClient(config)
        self._negotiator = HandshakeNegotiator(config, http_client=self._http_client)
        self._channel = SecurePassthroughChannel(self._http_client)
        self._session = DeviceSession(self._channel)
        self._color_resolver = color_resolver
        self._handle: DeviceSessionHandle | None = None

    @classmethod
    async def connect(
        cls, *, config: DeviceConfig, http_client: HttpClient | None = None
    ) -> TapoDevice:
        """Create a device and log in to it."""
        dev = cls(config, http_client=http_client)
        try:
            await dev.login()
        except BaseException:
            await dev.close()
            raise
        return dev

    @property
    def host(self) -> str:
        """Return the device address."""
        return self._host

    @property
    def config(self) -> DeviceConfig:
        """Return the connection configuration."""
        return self._config

    @property
    def handle(self) -> DeviceSessionHandle | None:
        """Return the current session handle."""
        return self._handle

    async def login(self, credentials: Credentials | None = None) -> None:
        """Perform the handshake and log in."""
        credentials = credentials or self._config.credentials
        if credentials is None:
            raise AuthenticationError(f"{self._host}: credentials are required")
        self._handle = None
        handle = await self._negotiator.handshake()
        self._handle = await self._session.login(handle, credentials)

    async def relogin(self) -> None:
        """Start a new session, for example after a token expiry."""
        _LOGGER.debug("%s: starting a new session", self._host)
        await self.login()

    async def send(self, command: Command | dict[str, Any]) -> Any:
        """Send a command through the authenticated session."""
        if self._handle is None or not self._handle.is_authenticated:
            raise SessionNotEstablished(
                f"{self._host}: login must complete before sending commands"
            )
        return await self._channel.send(self._handle, command)

    async def turn_on(
        self, transition: int | None = None, *, device_on: bool = True
    ) -> None:
        """Turn the device on, or off with ``device_on=False``."""
        await self.send(SetPowerState(device_on=device_on, transition=transition))

    async def turn_off(self, transition: int | None = None) -> None:
        """Turn the device off."""
        await self.turn_on(transition, device_on=False)

    async def set_brightness(
        self, brightness: int, *, transition: int | None = None
    ) -> None:
        """Set the brightness in percent (1-100)."""
        await self.send(SetBrightness(brightness=brightness, transition=transition))

    async def set_color_temp(
        self, color_temp: int, *, transition: int | None = None
    ) -> None:
        """Set the color temperature in Kelvin."""
        await self.send(SetColorTemp(color_temp=color_temp, transition=transition))

    async def set_color(self, name: str = "white") -> None:
        """Set a named color."""
        await self.send(self._color_resolver(name).to_command())

    async def get_device_info(self) -> DeviceInfo:
        """Return the current status of the device."""
        return DeviceInfo(await self.send(GetDeviceInfo()))

    async def close(self) -> None:
        """Drop the session and close the http client if it is owned."""
        self._handle = None
        if self._owns_http_client:
            await self._http_client.close()

    async def __aenter__(self) -> TapoDevice:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        logged_in = bool(self._handle and self._handle.is_authenticated)
        return f"<TapoDevice at {self._host} logged_in={logged_in}>"
