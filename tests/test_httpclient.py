import asyncio

import aiohttp
import pytest
from yarl import URL

from tapolink.deviceconfig import DeviceConfig
from tapolink.exceptions import (
    TapoException,
    TimeoutError,
    _ConnectionError,
)
from tapolink.httpclient import HttpClient

from .fakedevice import FakeTapoDevice


@pytest.mark.parametrize(
    ("error", "error_raises", "error_message"),
    [
        (
            aiohttp.ServerDisconnectedError(),
            _ConnectionError,
            "Connection error: ",
        ),
        (
            aiohttp.ClientOSError(),
            _ConnectionError,
            "Connection error: ",
        ),
        (
            aiohttp.ServerTimeoutError(),
            TimeoutError,
            "Unable to query 127.0.0.1, timed out: ",
        ),
        (
            asyncio.TimeoutError(),
            TimeoutError,
            "Unable to query 127.0.0.1, timed out: ",
        ),
        (Exception(), TapoException, "Unable to query 127.0.0.1: "),
        (
            aiohttp.ServerFingerprintMismatch(b"exp", b"got", "host", 1),
            TapoException,
            "Unable to query 127.0.0.1: ",
        ),
    ],
    ids=(
        "ServerDisconnectedError",
        "ClientOSError",
        "ServerTimeoutError",
        "TimeoutError",
        "Exception",
        "ServerFingerprintMismatch",
    ),
)
@pytest.mark.parametrize("mock_read", [False, True], ids=("post", "read"))
async def test_httpclient_errors(mocker, error, error_raises, error_message, mock_read):
    class _mock_response:
        def __init__(self, status, error):
            self.status = status
            self.error = error
            self.call_count = 0

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_t, exc_v, exc_tb):
            pass

        async def read(self):
            self.call_count += 1
            raise self.error

    mock_response = _mock_response(200, error)

    async def _post(url, *_, **__):
        return mock_response

    side_effect = _post if mock_read else error

    conn = mocker.patch.object(aiohttp.ClientSession, "post", side_effect=side_effect)
    client = HttpClient(DeviceConfig("127.0.0.1"))
    with pytest.raises(error_raises, match=error_message) as exc_info:
        await client.post(URL("http://foobar"), json={})

    assert exc_info.value.args[1] is error
    if mock_read:
        assert mock_response.call_count == 1
    else:
        assert conn.call_count == 1
    await client.close()


async def test_post_returns_json_and_cookie(mocker):
    async def _post(url, *, data=None, headers=None, **_):
        return FakeTapoDevice._mock_response(
            200, {"error_code": 0}, {"Set-Cookie": "TP_SESSIONID=1;TIMEOUT=1440"}
        )

    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=_post)
    client = HttpClient(DeviceConfig("127.0.0.1"))

    status, body = await client.post(URL("http://127.0.0.1/app"), json={})

    assert status == 200
    assert body == {"error_code": 0}
    assert client.get_set_cookie() == "TP_SESSIONID=1;TIMEOUT=1440"
    await client.close()


async def test_post_returns_raw_body(mocker):
    async def _post(url, *, data=None, headers=None, **_):
        return FakeTapoDevice._mock_response(500, b"<html>oops</html>")

    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=_post)
    client = HttpClient(DeviceConfig("127.0.0.1"))

    status, body = await client.post(URL("http://127.0.0.1/app"), json={})

    assert status == 500
    assert body == b"<html>oops</html>"
    assert client.get_set_cookie() is None
    await client.close()


async def test_shared_client_session():
    session = aiohttp.ClientSession()
    client = HttpClient(DeviceConfig("127.0.0.1", http_client=session))

    assert client.client is session
    await client.close()
    assert not session.closed
    await session.close()
