"""Local login turning a handshaken session into an authenticated one."""

from __future__ import annotations

import logging

from .commands import LoginDevice
from .credentials import Credentials
from .crypto import encode_base64, hash_credential_identity
from .exceptions import (
    AUTHENTICATION_ERRORS,
    AuthenticationFailed,
    DeviceError,
    MalformedResponse,
    SessionNotEstablished,
)
from .handle import DeviceSessionHandle
from .passthrough import SecurePassthroughChannel

_LOGGER = logging.getLogger(__name__)


def build_login_request(credentials: Credentials) -> LoginDevice:
    """Return the login command for the credentials.

    The username is the base64 of the sha1 hex digest, the password is
    only base64 encoded.
    """
    return LoginDevice(
        username=encode_base64(hash_credential_identity(credentials.username)),
        password=encode_base64(credentials.password),
    )


class DeviceSession:
    """Authenticate against a device that completed the handshake."""

    def __init__(self, channel: SecurePassthroughChannel) -> None:
        self._channel = channel

    async def login(
        self, handle: DeviceSessionHandle, credentials: Credentials
    ) -> DeviceSessionHandle:
        """Log in and return a handle with the device token set."""
        if handle.session_key is None or handle.cookie is None:
            raise SessionNotEstablished(
                f"{handle.host}: handshake must be performed before login"
            )
        if handle.is_authenticated:
            raise SessionNotEstablished(
                f"{handle.host}: session is already logged in, handshake again"
            )

        try:
            result = await self._channel.send(handle, build_login_request(credentials))
        except DeviceError as ex:
            if ex.error_code in AUTHENTICATION_ERRORS:
                raise AuthenticationFailed(
                    f"Unable to log in to {handle.host}: {ex.args[0]}",
                    error_code=ex.error_code,
                ) from ex
            raise

        if not isinstance(result, dict) or not result.get("token"):
            raise MalformedResponse(f"{handle.host} login response has no token")

        _LOGGER.debug("%s: logged in with provided credentials", handle.host)
        return handle.with_token(result["token"])
