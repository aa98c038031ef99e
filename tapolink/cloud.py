"""Client for the TP-Link cloud directory service.

The cloud is only used to log in and list the devices registered to an
account.  Resolving a device's address from its mac is left to the
caller.
"""

from __future__ import annotations

import binascii
import logging
from dataclasses import dataclass, field, replace
from typing import Any, cast

from mashumaro import MissingField, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue
from yarl import URL

from .credentials import Credentials
from .crypto import decode_base64
from .deviceconfig import CloudConfig
from .exceptions import (
    CloudTokenError,
    ErrorCode,
    MalformedResponse,
    TapoException,
    raise_for_error_code,
)
from .httpclient import HttpClient
from .json import DataClassJSONMixin
from .redact import redact_data

_LOGGER = logging.getLogger(__name__)

SUPPORTED_DEVICE_TYPES = frozenset({"SMART.TAPOPLUG", "SMART.TAPOBULB"})
CLOUD_HEADERS = {"Content-Type": "application/json"}


def is_supported_device_type(device_type: str | None) -> bool:
    """Return True for device types whose fields are base64 encoded."""
    return device_type in SUPPORTED_DEVICE_TYPES


@dataclass
class DeviceDirectoryEntry(DataClassJSONMixin):
    """A device record from the cloud device list."""

    device_type: str = field(metadata=field_options(alias="deviceType"))
    device_mac: str | None = field(
        default=None, metadata=field_options(alias="deviceMac")
    )
    device_id: str | None = field(
        default=None, metadata=field_options(alias="deviceId")
    )
    alias: str | None = None
    device_name: str | None = field(
        default=None, metadata=field_options(alias="deviceName")
    )
    device_model: str | None = field(
        default=None, metadata=field_options(alias="deviceModel")
    )
    fw_ver: str | None = field(default=None, metadata=field_options(alias="fwVer"))
    hw_ver: str | None = field(
        default=None, metadata=field_options(alias="deviceHwVer")
    )
    app_server_url: str | None = field(
        default=None, metadata=field_options(alias="appServerUrl")
    )
    status: int | None = None
    # The record as received, fields not modelled above included
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    class Config(BaseConfig):
        """Serialization config."""

        omit_none = True
        serialize_by_alias = True
        forbid_extra_keys = False

    @classmethod
    def __pre_deserialize__(cls, d: dict) -> dict:
        return {**d, "raw": dict(d)}

    def __post_serialize__(self, d: dict) -> dict:
        d.pop("raw", None)
        return {**self.raw, **d}

    def decoded(self) -> DeviceDirectoryEntry:
        """Return the entry with its alias decoded for supported types.

        Entries of other types are returned unmodified.
        """
        if not is_supported_device_type(self.device_type) or not self.alias:
            return self
        try:
            return replace(self, alias=decode_base64(self.alias))
        except (binascii.Error, UnicodeDecodeError):
            _LOGGER.debug("Alias of %s is not base64", self.device_id)
            return self


class CloudClient:
    """Log in to the cloud and list devices."""

    def __init__(
        self,
        config: CloudConfig | None = None,
        *,
        http_client: HttpClient | None = None,
    ) -> None:
        self._config = config or CloudConfig()
        self._url = URL(self._config.url)
        self._owns_http_client = http_client is None
        self._http_client = http_client or HttpClient(self._config)
        self._token: str | None = None

    @property
    def token(self) -> str | None:
        """Return the token of the last login."""
        return self._token

    async def _post(self, url: URL, request: dict[str, Any], msg: str) -> Any:
        _LOGGER.debug("cloud >> %s", redact_data(request))
        status_code, resp = await self._http_client.post(
            url, json=request, headers=CLOUD_HEADERS
        )
        if status_code != 200 or not isinstance(resp, dict):
            raise TapoException(
                f"Cloud responded with an unexpected status code {status_code}"
            )
        resp = cast(dict[str, Any], resp)
        _LOGGER.debug("cloud << %s", redact_data(resp))
        raise_for_error_code(resp, msg)
        return resp.get("result")

    async def login(self, credentials: Credentials) -> str:
        """Log in with the account credentials and return the cloud token."""
        request = {
            "method": "login",
            "params": {
                "appType": self._config.app_type,
                "cloudUserName": credentials.username,
                "cloudPassword": credentials.password,
                "terminalUUID": self._config.terminal_uuid,
            },
        }
        result = await self._post(self._url, request, "Cloud login failed")
        if not isinstance(result, dict) or not result.get("token"):
            raise MalformedResponse("Cloud login response has no token")
        token: str = result["token"]
        self._token = token
        return token

    async def list_devices(
        self, token: str | None = None
    ) -> list[DeviceDirectoryEntry]:
        """Return all devices registered to the account."""
        token = token or self._token
        if not token:
            raise CloudTokenError(
                "Cloud login required before listing devices",
                error_code=ErrorCode.CLOUD_TOKEN_EXPIRED,
            )
        result = await self._post(
            self._url.with_query(token=token),
            {"method": "getDeviceList"},
            "Unable to list devices",
        )
        try:
            device_list = result["deviceList"]
        except (KeyError, TypeError) as ex:
            raise MalformedResponse("Cloud device list response is malformed") from ex
        try:
            entries = [DeviceDirectoryEntry.from_dict(d) for d in device_list]
        except (MissingField, InvalidFieldValue, TypeError) as ex:
            raise MalformedResponse(f"Cloud device record is malformed: {ex}") from ex
        return [entry.decoded() for entry in entries]

    async def list_devices_by_type(
        self, device_type: str, token: str | None = None
    ) -> list[DeviceDirectoryEntry]:
        """Return the devices of the given type."""
        devices = await self.list_devices(token)
        return [d for d in devices if d.device_type == device_type]

    async def close(self) -> None:
        """Close the http client if it was created here."""
        if self._owns_http_client:
            await self._http_client.close()
