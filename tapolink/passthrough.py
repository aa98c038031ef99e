"""Encrypted securePassthrough channel to a device."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from .commands import Command
from .crypto import decrypt_envelope, encrypt_envelope
from .exceptions import (
    ChannelError,
    CommandRejected,
    DeviceError,
    MalformedResponse,
    SessionNotEstablished,
    raise_for_error_code,
)
from .handle import DeviceSessionHandle
from .handshake import COMMON_HEADERS
from .httpclient import HttpClient
from .redact import redact_data

_LOGGER = logging.getLogger(__name__)


class SecurePassthroughChannel:
    """Send commands to a device inside the encrypted passthrough envelope.

    Both the outer ``securePassthrough`` response and the decrypted inner
    response carry an ``error_code``; each is checked on its own.  An outer
    error raises :class:`ChannelError`, an inner one
    :class:`CommandRejected`.  The handle is never modified.
    """

    def __init__(self, http_client: HttpClient) -> None:
        self._http_client = http_client

    @staticmethod
    def _as_request(command: Command | dict[str, Any]) -> dict[str, Any]:
        if isinstance(command, Command):
            return command.to_request()
        return command

    async def send(
        self, handle: DeviceSessionHandle, command: Command | dict[str, Any]
    ) -> Any:
        """Send the command and return the inner result."""
        if handle.session_key is None or handle.cookie is None:
            raise SessionNotEstablished(
                f"{handle.host}: handshake must complete before sending commands"
            )
        async with handle.lock:
            return await self._send(handle, self._as_request(command))

    async def _send(self, handle: DeviceSessionHandle, request: dict[str, Any]) -> Any:
        host = handle.host
        session_key = handle.session_key
        if TYPE_CHECKING:
            assert session_key is not None
        _LOGGER.debug("%s >> %s", host, redact_data(request))

        passthrough_request = {
            "method": "securePassthrough",
            "params": {"request": encrypt_envelope(request, session_key)},
        }
        headers = {**COMMON_HEADERS, "Cookie": cast(str, handle.cookie)}

        status_code, resp = await self._http_client.post(
            handle.url, json=passthrough_request, headers=headers
        )

        if status_code != 200:
            raise ChannelError(
                f"{host} responded with an unexpected "
                + f"status code {status_code} to passthrough"
            )
        if not isinstance(resp, dict):
            raise MalformedResponse(f"{host} sent a non json passthrough response")

        try:
            raise_for_error_code(resp, f"Error sending passthrough to {host}")
        except DeviceError as ex:
            raise ChannelError(ex.args[0], error_code=ex.error_code) from ex

        try:
            raw_response: str = resp["result"]["response"]
        except (KeyError, TypeError) as ex:
            raise MalformedResponse(
                f"{host} passthrough response has no response field"
            ) from ex

        inner = decrypt_envelope(raw_response, session_key)
        if not isinstance(inner, dict):
            raise MalformedResponse(f"{host} sent a non object inner response")
        _LOGGER.debug("%s << %s", host, redact_data(inner))

        try:
            raise_for_error_code(inner, f"{request.get('method')} failed on {host}")
        except DeviceError as ex:
            raise CommandRejected(ex.args[0], error_code=ex.error_code) from ex

        return inner.get("result", {})
