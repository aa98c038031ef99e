"""Python interface for the local protocol of Tapo smart plugs and bulbs.

Devices are listed through the cloud and controlled locally::

>>> from tapolink import CloudClient, Credentials, DeviceConfig, TapoDevice
>>> creds = Credentials("user@example.com", "password")
>>> cloud = CloudClient()
>>> await cloud.login(creds)
>>> bulbs = await cloud.list_devices_by_type("SMART.TAPOBULB")
>>> dev = await TapoDevice.connect(
>>>     config=DeviceConfig("192.168.1.20", credentials=creds)
>>> )
>>> await dev.turn_off(transition=500)

Errors are raised as subclasses of `TapoException` and are expected
to be handled by the user of the library.
"""

from tapolink.cloud import CloudClient, DeviceDirectoryEntry, is_supported_device_type
from tapolink.colors import ColorParams, get_color
from tapolink.commands import (
    Command,
    GetDeviceInfo,
    LoginDevice,
    SetBrightness,
    SetColor,
    SetColorTemp,
    SetPowerState,
)
from tapolink.credentials import Credentials
from tapolink.crypto import KeyPair, SessionKey
from tapolink.device import DeviceInfo, TapoDevice
from tapolink.deviceconfig import CloudConfig, DeviceConfig
from tapolink.exceptions import (
    AuthenticationError,
    AuthenticationFailed,
    ChannelError,
    CommandRejected,
    DecryptionError,
    DeviceError,
    ErrorCode,
    HandshakeFailed,
    KeyGenerationError,
    MalformedKeyMaterial,
    MalformedResponse,
    SessionNotEstablished,
    TapoException,
    TimeoutError,
    UnexpectedDeviceError,
)
from tapolink.handle import DeviceSessionHandle
from tapolink.handshake import HandshakeNegotiator, HandshakeState
from tapolink.passthrough import SecurePassthroughChannel
from tapolink.session import DeviceSession
from tapolink.version import __version__

__all__ = [
    "AuthenticationError",
    "AuthenticationFailed",
    "ChannelError",
    "CloudClient",
    "CloudConfig",
    "ColorParams",
    "Command",
    "CommandRejected",
    "Credentials",
    "DecryptionError",
    "DeviceConfig",
    "DeviceDirectoryEntry",
    "DeviceError",
    "DeviceInfo",
    "DeviceSession",
    "DeviceSessionHandle",
    "ErrorCode",
    "GetDeviceInfo",
    "HandshakeFailed",
    "HandshakeNegotiator",
    "HandshakeState",
    "KeyGenerationError",
    "KeyPair",
    "LoginDevice",
    "MalformedKeyMaterial",
    "MalformedResponse",
    "SecurePassthroughChannel",
    "SessionKey",
    "SessionNotEstablished",
    "SetBrightness",
    "SetColor",
    "SetColorTemp",
    "SetPowerState",
    "TapoDevice",
    "TapoException",
    "TimeoutError",
    "UnexpectedDeviceError",
    "get_color",
    "is_supported_device_type",
]
