"""Handshake establishing the AES session key with a device."""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, cast

from .crypto import KeyPair, derive_session_key, generate_key_pair
from .exceptions import (
    DeviceError,
    HandshakeFailed,
    MalformedKeyMaterial,
    raise_for_error_code,
)
from .handle import DeviceSessionHandle, app_url
from .httpclient import HttpClient
from .redact import redact_data

if TYPE_CHECKING:
    from .deviceconfig import DeviceConfig

_LOGGER = logging.getLogger(__name__)

COMMON_HEADERS = {
    "Content-Type": "application/json",
    "requestByApp": "true",
    "Accept": "application/json",
}


class HandshakeState(Enum):
    """Enum for the handshake progress."""

    IDLE = auto()  # Nothing sent yet
    KEY_SENT = auto()  # Public key posted to the device
    KEY_RECEIVED = auto()  # Device answered with key blob and cookie
    SESSION_ESTABLISHED = auto()  # Session key derived
    FAILED = auto()


def parse_session_cookie(set_cookie: str) -> str:
    """Return the bare name=value pair of a Set-Cookie header."""
    return set_cookie.split(";", 1)[0].strip()


class HandshakeNegotiator:
    """Perform the public key exchange with a device.

    Each call to :meth:`handshake` uses a new key pair and returns a new
    :class:`DeviceSessionHandle` without a token.
    """

    def __init__(
        self, config: DeviceConfig, *, http_client: HttpClient | None = None
    ) -> None:
        self._config = config
        self._host = config.host
        self._owns_http_client = http_client is None
        self._http_client = http_client or HttpClient(config)
        self._app_url = app_url(config.host, config.port_override)
        self._state = HandshakeState.IDLE

    @property
    def state(self) -> HandshakeState:
        """Return the state of the last handshake."""
        return self._state

    def _set_state(self, state: HandshakeState) -> None:
        _LOGGER.debug(
            "%s: handshake %s -> %s", self._host, self._state.name, state.name
        )
        self._state = state

    @staticmethod
    def build_handshake_request(key_pair: KeyPair) -> dict[str, Any]:
        """Return the plain handshake request for the key pair."""
        return {"method": "handshake", "params": {"key": key_pair.public_key_pem}}

    async def handshake(self) -> DeviceSessionHandle:
        """Perform the handshake."""
        self._set_state(HandshakeState.IDLE)
        try:
            return await self._handshake()
        except BaseException:
            self._set_state(HandshakeState.FAILED)
            raise

    async def _handshake(self) -> DeviceSessionHandle:
        key_pair = generate_key_pair()
        request = self.build_handshake_request(key_pair)
        _LOGGER.debug("%s: handshake request: %s", self._host, redact_data(request))
        self._set_state(HandshakeState.KEY_SENT)

        status_code, resp = await self._http_client.post(
            self._app_url, json=request, headers=COMMON_HEADERS
        )
        _LOGGER.debug("%s: device responded with: %s", self._host, redact_data(resp))

        if status_code != 200:
            raise HandshakeFailed(
                f"{self._host} responded with an unexpected "
                + f"status code {status_code} to handshake"
            )
        if not isinstance(resp, dict):
            raise HandshakeFailed(f"{self._host} sent a non json handshake response")
        resp = cast(dict[str, Any], resp)

        try:
            raise_for_error_code(resp, "Unable to complete handshake")
        except DeviceError as ex:
            raise HandshakeFailed(ex.args[0], error_code=ex.error_code) from ex

        if not (set_cookie := self._http_client.get_set_cookie()):
            raise HandshakeFailed(f"{self._host} did not send a session cookie")
        cookie = parse_session_cookie(set_cookie)

        try:
            handshake_key = resp["result"]["key"]
        except (KeyError, TypeError) as ex:
            raise MalformedKeyMaterial(
                f"{self._host} handshake response has no key"
            ) from ex
        self._set_state(HandshakeState.KEY_RECEIVED)

        session_key = derive_session_key(handshake_key, key_pair)
        self._set_state(HandshakeState.SESSION_ESTABLISHED)
        _LOGGER.debug("Handshake with %s complete", self._host)

        return DeviceSessionHandle(
            host=self._host,
            session_key=session_key,
            cookie=cookie,
            port=self._config.port_override,
        )

    async def close(self) -> None:
        """Close the http client if it was created here."""
        if self._owns_http_client:
            await self._http_client.close()
