"""Session handle shared by the handshake, login and passthrough layers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace

from yarl import URL

from .crypto import SessionKey
from .exceptions import SessionNotEstablished


def app_url(host: str, port: int | None = None) -> URL:
    """Return the /app endpoint of a device."""
    return URL.build(scheme="http", host=host, port=port, path="/app")


@dataclass(frozen=True)
class DeviceSessionHandle:
    """State of one local session with a device.

    The handshake creates the handle without a token, the login returns a
    new handle with the token set.  Both share the same lock so only one
    request is in flight per session.
    """

    host: str
    session_key: SessionKey | None
    cookie: str | None
    token: str | None = field(default=None, repr=False)
    port: int | None = None
    lock: asyncio.Lock = field(
        default_factory=asyncio.Lock, compare=False, repr=False
    )

    @property
    def is_authenticated(self) -> bool:
        """Return True once a device token is present."""
        return self.token is not None

    @property
    def url(self) -> URL:
        """Return the url commands are posted to."""
        url = app_url(self.host, self.port)
        if self.token is not None:
            return url.with_query(token=self.token)
        return url

    def with_token(self, token: str) -> DeviceSessionHandle:
        """Return a new handle for the same session with the token set."""
        if self.token is not None:
            raise SessionNotEstablished(
                f"{self.host}: session already has a token, handshake again to "
                "log in anew"
            )
        return replace(self, token=token)
