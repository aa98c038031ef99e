"""Configuration for connecting to a device or to the cloud.

:class:`DeviceConfig` holds everything needed to open a local session with
a device, :class:`CloudConfig` everything needed to talk to the cloud
directory service.  Both can be stored and restored::

>>> from tapolink import DeviceConfig, Credentials
>>> config = DeviceConfig("127.0.0.3", credentials=Credentials("user", "pass"))
>>> config.to_dict()
{'host': '127.0.0.3', 'timeout': 5, 'credentials': {'username': 'user', \
'password': 'pass'}}

Credentials are never read from the environment here; that happens in the
cli.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Self

from aiohttp import ClientSession
from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.types import SerializationStrategy
from yarl import URL

from .credentials import Credentials
from .json import DataClassJSONMixin

_LOGGER = logging.getLogger(__name__)

DEFAULT_CLOUD_URL = "https://eu-wap.tplinkcloud.com/"
DEFAULT_APP_TYPE = "Tapo_Android"
DEFAULT_TERMINAL_UUID = "59284a9c-e7b1-40f9-8ecd-b9e70c90d19b"


class _ConfigBaseMixin(DataClassJSONMixin):
    """Base class for serialization mixin."""

    class Config(BaseConfig):
        """Serialization config."""

        omit_none = True


class _DoNotSerialize(SerializationStrategy):
    def serialize(self, value: Any) -> None:
        return None

    def deserialize(self, value: Any) -> None:
        return None


@dataclass
class DeviceConfig(_ConfigBaseMixin):
    """Class to represent paramaters that determine how to connect to devices."""

    DEFAULT_TIMEOUT = 5
    #: IP address or hostname
    host: str
    #: Timeout for a single request to the device
    timeout: int | None = DEFAULT_TIMEOUT
    #: Override the default port 80 to support port forwarding
    port_override: int | None = None
    #: Credentials used for the local login
    credentials: Credentials | None = None

    # compare=False will be excluded from object comparison.
    #: Set a custom http_client for the device to use.
    http_client: ClientSession | None = field(
        default=None,
        compare=False,
        metadata=field_options(serialization_strategy=_DoNotSerialize()),
    )

    def __pre_serialize__(self) -> Self:
        return replace(self, http_client=None)


@dataclass
class CloudConfig(_ConfigBaseMixin):
    """Class to represent parameters for the cloud directory service."""

    DEFAULT_TIMEOUT = 10
    #: Base url of the cloud service
    url: str = DEFAULT_CLOUD_URL
    #: Timeout for a single request to the cloud
    timeout: int | None = DEFAULT_TIMEOUT
    #: App type reported at login
    app_type: str = DEFAULT_APP_TYPE
    #: Terminal identifier reported at login
    terminal_uuid: str = DEFAULT_TERMINAL_UUID

    http_client: ClientSession | None = field(
        default=None,
        compare=False,
        metadata=field_options(serialization_strategy=_DoNotSerialize()),
    )

    @property
    def host(self) -> str:
        """Return the host part of the cloud url."""
        return URL(self.url).host or self.url

    def __pre_serialize__(self) -> Self:
        return replace(self, http_client=None)
