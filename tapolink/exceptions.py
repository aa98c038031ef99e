"""tapolink exceptions.

Every response from the cloud or a device, outer or inner, carries an
``error_code``.  :func:`raise_for_error_code` turns a non-zero code into
one of the categorized :class:`DeviceError` subclasses below.
"""

from __future__ import annotations

from asyncio import TimeoutError as _asyncioTimeoutError
from enum import IntEnum
from functools import cache
from typing import Any


class TapoException(Exception):
    """Base exception for library errors."""


class TimeoutError(TapoException, _asyncioTimeoutError):
    """Timeout exception for device errors."""

    def __repr__(self) -> str:
        return TapoException.__repr__(self)

    def __str__(self) -> str:
        return TapoException.__str__(self)


class _ConnectionError(TapoException):
    """Connection exception for device errors."""


class ErrorCode(IntEnum):
    """Enum for the status codes returned by the cloud and devices."""

    def __str__(self) -> str:
        return f"{self.name}({self.value})"

    @staticmethod
    @cache
    def from_int(value: int) -> ErrorCode:
        """Convert an integer to an ErrorCode."""
        return ErrorCode(value)

    SUCCESS = 0

    # Device errors
    INVALID_PUBLIC_KEY_LENGTH = -1010
    INVALID_REQUEST_OR_CREDENTIALS = -1501
    INCORRECT_REQUEST = -1002
    JSON_FORMAT_ERROR = -1003
    DEVICE_TOKEN_EXPIRED = 9999

    # Cloud errors
    CLOUD_INVALID_CREDENTIALS = -20601
    CLOUD_TOKEN_EXPIRED = -20675


AUTHENTICATION_ERRORS = [
    ErrorCode.INVALID_REQUEST_OR_CREDENTIALS,
    ErrorCode.CLOUD_INVALID_CREDENTIALS,
    ErrorCode.CLOUD_TOKEN_EXPIRED,
    ErrorCode.DEVICE_TOKEN_EXPIRED,
]


class DeviceError(TapoException):
    """Base exception for errors reported through a status code."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.error_code: ErrorCode | int | None = kwargs.get("error_code")
        super().__init__(*args)

    def __repr__(self) -> str:
        err_code = self.error_code.__repr__() if self.error_code is not None else ""
        return f"{self.__class__.__name__}({err_code})"

    def __str__(self) -> str:
        err_code = ""
        if isinstance(self.error_code, ErrorCode):
            err_code = f" (error_code={self.error_code.name})"
        elif self.error_code is not None:
            err_code = f" (error_code={self.error_code})"
        return super().__str__() + err_code


class AuthenticationError(DeviceError):
    """Base exception for authentication errors."""


# Status code categories


class InvalidPublicKeyError(DeviceError):
    """The device rejected the length of the handshake public key."""


class InvalidCredentialsError(AuthenticationError):
    """Invalid request or credentials."""


class IncorrectRequestError(DeviceError):
    """The device did not understand the request."""


class JsonFormatError(DeviceError):
    """The device could not parse the request payload."""


class CloudCredentialsError(AuthenticationError):
    """Incorrect cloud email or password."""


class CloudTokenError(AuthenticationError):
    """Cloud token expired or invalid."""


class DeviceTokenError(AuthenticationError):
    """Device token expired or invalid."""


class UnexpectedDeviceError(DeviceError):
    """Status code without a known category."""


ERROR_CODE_CATEGORIES: dict[ErrorCode, type[DeviceError]] = {
    ErrorCode.INVALID_PUBLIC_KEY_LENGTH: InvalidPublicKeyError,
    ErrorCode.INVALID_REQUEST_OR_CREDENTIALS: InvalidCredentialsError,
    ErrorCode.INCORRECT_REQUEST: IncorrectRequestError,
    ErrorCode.JSON_FORMAT_ERROR: JsonFormatError,
    ErrorCode.CLOUD_INVALID_CREDENTIALS: CloudCredentialsError,
    ErrorCode.CLOUD_TOKEN_EXPIRED: CloudTokenError,
    ErrorCode.DEVICE_TOKEN_EXPIRED: DeviceTokenError,
}

ERROR_CODE_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_PUBLIC_KEY_LENGTH: "Invalid public key length",
    ErrorCode.INVALID_REQUEST_OR_CREDENTIALS: "Invalid request or credentials",
    ErrorCode.INCORRECT_REQUEST: "Incorrect request",
    ErrorCode.JSON_FORMAT_ERROR: "JSON format error",
    ErrorCode.CLOUD_INVALID_CREDENTIALS: "Incorrect email or password",
    ErrorCode.CLOUD_TOKEN_EXPIRED: "Cloud token expired or invalid",
    ErrorCode.DEVICE_TOKEN_EXPIRED: "Device token expired or invalid",
}


def raise_for_error_code(response: dict[str, Any], msg: str = "") -> None:
    """Raise the categorized error for the response's ``error_code``.

    A missing, ``None`` or ``0`` code is success.
    """
    error_code_raw = response.get("error_code")
    if not error_code_raw:
        return
    prefix = f"{msg}: " if msg else ""
    try:
        error_code = ErrorCode.from_int(error_code_raw)
    except (ValueError, TypeError):
        raise UnexpectedDeviceError(
            f"{prefix}Unexpected error code: {error_code_raw}",
            error_code=error_code_raw,
        ) from None

    raise ERROR_CODE_CATEGORIES[error_code](
        f"{prefix}{ERROR_CODE_MESSAGES[error_code]}", error_code=error_code
    )


# Crypto and protocol errors


class KeyGenerationError(TapoException):
    """The asymmetric key pair could not be generated."""


class MalformedKeyMaterial(TapoException):
    """The handshake key blob could not be turned into a session key."""


class DecryptionError(TapoException):
    """An envelope could not be decrypted."""


class MalformedResponse(TapoException):
    """A response did not have the expected structure."""


# Session layer errors


class HandshakeFailed(DeviceError):
    """The handshake with the device did not complete."""


class SessionNotEstablished(TapoException):
    """A command was issued on a session that is not ready for it."""


class AuthenticationFailed(AuthenticationError):
    """The device refused the login credentials."""


class ChannelError(DeviceError):
    """The outer securePassthrough layer reported an error."""


class CommandRejected(DeviceError):
    """The command inside the passthrough envelope reported an error."""
