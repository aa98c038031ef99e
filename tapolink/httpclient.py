"""Module for the HttpClient class."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from .exceptions import (
    TapoException,
    TimeoutError,
    _ConnectionError,
)
from .json import dumps as json_dumps
from .json import loads as json_loads

_LOGGER = logging.getLogger(__name__)


class _HttpConfig(Protocol):
    host: str
    timeout: int | None
    http_client: aiohttp.ClientSession | None


def get_cookie_jar() -> aiohttp.CookieJar:
    """Return a new cookie jar with the correct options for device communication."""
    return aiohttp.CookieJar(unsafe=True, quote_cookie=False)


class HttpClient:
    """Post json to a device or the cloud and read json back.

    Cookies are not tracked by the client; callers pass the session cookie
    as a raw ``Cookie`` header and read ``Set-Cookie`` back with
    :meth:`get_set_cookie`.
    """

    def __init__(self, config: _HttpConfig) -> None:
        self._config = config
        self._client_session: aiohttp.ClientSession | None = None
        self._last_headers: CIMultiDict[str] = CIMultiDict()

    @property
    def client(self) -> aiohttp.ClientSession:
        """Return the underlying http client."""
        if self._config.http_client and issubclass(
            self._config.http_client.__class__, aiohttp.ClientSession
        ):
            return self._config.http_client

        if not self._client_session:
            self._client_session = aiohttp.ClientSession(cookie_jar=get_cookie_jar())
        return self._client_session

    async def post(
        self,
        url: URL,
        *,
        json: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> tuple[int, dict[str, Any] | bytes | None]:
        """Send an http post request and return the status and decoded body.

        The body is returned as a dict when it parses as json, otherwise the
        raw bytes are returned.
        """
        _LOGGER.debug("Posting to %s", url.with_query(None))
        response_data: Any = None
        self._last_headers = CIMultiDict()
        self.client.cookie_jar.clear()
        if self._config.timeout is None:
            _LOGGER.warning("Request timeout is set to None.")
        client_timeout = aiohttp.ClientTimeout(total=self._config.timeout)

        try:
            resp = await self.client.post(
                url,
                data=json_dumps(json).encode(),
                timeout=client_timeout,
                headers=headers,
            )
            async with resp:
                response_data = await resp.read()
                self._last_headers = CIMultiDict(resp.headers)

            if resp.status != 200:
                _LOGGER.debug(
                    "%s received status code %s with response %s",
                    self._config.host,
                    resp.status,
                    str(response_data),
                )
            if response_data:
                try:
                    response_data = json_loads(response_data)
                except ValueError:
                    _LOGGER.debug(
                        "%s response could not be parsed as json", self._config.host
                    )

        except (aiohttp.ServerDisconnectedError, aiohttp.ClientOSError) as ex:
            raise _ConnectionError(
                f"Connection error: {self._config.host}: {ex}", ex
            ) from ex
        except (aiohttp.ServerTimeoutError, asyncio.TimeoutError) as ex:
            raise TimeoutError(
                f"Unable to query {self._config.host}, timed out: {ex}", ex
            ) from ex
        except Exception as ex:
            raise TapoException(
                f"Unable to query {self._config.host}: {ex}", ex
            ) from ex

        return resp.status, response_data

    def get_set_cookie(self) -> str | None:
        """Return the raw Set-Cookie header of the last response."""
        return self._last_headers.get("Set-Cookie")

    async def close(self) -> None:
        """Close the ClientSession."""
        client = self._client_session
        self._client_session = None
        if client:
            await client.close()
