import aiohttp
import pytest

from tapolink import DeviceConfig
from tapolink.exceptions import (
    ErrorCode,
    HandshakeFailed,
    MalformedKeyMaterial,
    TimeoutError,
    _ConnectionError,
)
from tapolink.handshake import HandshakeNegotiator, HandshakeState, parse_session_cookie

from .conftest import HOST
from .fakedevice import KEY_IV, SESSION_COOKIE, SET_COOKIE_HEADER, FakeTapoDevice


async def test_handshake(fake_device, device_config):
    negotiator = HandshakeNegotiator(device_config)
    assert negotiator.state is HandshakeState.IDLE

    handle = await negotiator.handshake()

    assert negotiator.state is HandshakeState.SESSION_ESTABLISHED
    assert handle.host == HOST
    assert handle.cookie == SESSION_COOKIE
    assert handle.token is None
    assert not handle.is_authenticated
    assert handle.session_key.key == KEY_IV[:16]
    assert handle.session_key.iv == KEY_IV[16:]

    url, headers, request = fake_device.posts[0]
    assert str(url) == f"http://{HOST}/app"
    assert request["method"] == "handshake"
    assert request["params"]["key"].startswith("-----BEGIN PUBLIC KEY-----\n")
    assert "Cookie" not in headers
    await negotiator.close()


async def test_handshake_uses_new_key_pair(fake_device, device_config):
    negotiator = HandshakeNegotiator(device_config)
    await negotiator.handshake()
    await negotiator.handshake()

    assert len(fake_device.handshake_keys) == 2
    assert fake_device.handshake_keys[0] != fake_device.handshake_keys[1]
    await negotiator.close()


async def test_port_override(fake_device, credentials):
    config = DeviceConfig(HOST, credentials=credentials, port_override=12345)
    negotiator = HandshakeNegotiator(config)
    handle = await negotiator.handshake()

    assert str(fake_device.posts[0][0]) == f"http://{HOST}:12345/app"
    assert str(handle.url) == f"http://{HOST}:12345/app"
    await negotiator.close()


@pytest.mark.parametrize(
    ("error_code", "expected"),
    [
        (-1010, ErrorCode.INVALID_PUBLIC_KEY_LENGTH),
        (-1002, ErrorCode.INCORRECT_REQUEST),
        (-4242, -4242),
    ],
)
async def test_handshake_error_code(mocker, device_config, error_code, expected):
    device = FakeTapoDevice(HOST, handshake_error_code=error_code)
    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=device.post)

    negotiator = HandshakeNegotiator(device_config)
    with pytest.raises(HandshakeFailed) as exc_info:
        await negotiator.handshake()

    assert exc_info.value.error_code == expected
    assert negotiator.state is HandshakeState.FAILED
    await negotiator.close()


async def test_handshake_http_status(mocker, device_config):
    device = FakeTapoDevice(HOST, status_code=500)
    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=device.post)

    negotiator = HandshakeNegotiator(device_config)
    with pytest.raises(HandshakeFailed, match="status code 500"):
        await negotiator.handshake()
    await negotiator.close()


async def test_handshake_without_cookie(mocker, device_config):
    device = FakeTapoDevice(HOST, set_cookie=None)
    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=device.post)

    negotiator = HandshakeNegotiator(device_config)
    with pytest.raises(HandshakeFailed, match="did not send a session cookie"):
        await negotiator.handshake()
    assert negotiator.state is HandshakeState.FAILED
    await negotiator.close()


async def test_handshake_bad_key_blob(mocker, device_config):
    device = FakeTapoDevice(HOST, key_iv=KEY_IV[:24])
    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=device.post)

    negotiator = HandshakeNegotiator(device_config)
    with pytest.raises(MalformedKeyMaterial):
        await negotiator.handshake()
    assert negotiator.state is HandshakeState.FAILED
    await negotiator.close()


@pytest.mark.parametrize("key", [None, 1234, ["a", "b"]])
async def test_handshake_key_not_text(mocker, device_config, key):
    async def _post(url, *, data=None, headers=None, **_):
        return FakeTapoDevice._mock_response(
            200,
            {"error_code": 0, "result": {"key": key}},
            {"Set-Cookie": SET_COOKIE_HEADER},
        )

    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=_post)

    negotiator = HandshakeNegotiator(device_config)
    with pytest.raises(MalformedKeyMaterial):
        await negotiator.handshake()
    assert negotiator.state is HandshakeState.FAILED
    await negotiator.close()


@pytest.mark.parametrize(
    ("side_effect", "expected"),
    [
        (aiohttp.ClientOSError("Connection refused"), _ConnectionError),
        (aiohttp.ServerDisconnectedError(), _ConnectionError),
        (TimeoutError("timed out"), TimeoutError),
    ],
)
async def test_handshake_transport_errors(mocker, device_config, side_effect, expected):
    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=side_effect)

    negotiator = HandshakeNegotiator(device_config)
    with pytest.raises(expected):
        await negotiator.handshake()
    assert negotiator.state is HandshakeState.FAILED
    await negotiator.close()


@pytest.mark.parametrize(
    ("header", "cookie"),
    [
        ("TP_SESSIONID=ABC;TIMEOUT=1440", "TP_SESSIONID=ABC"),
        ("TP_SESSIONID=ABC; Path=/; HttpOnly", "TP_SESSIONID=ABC"),
        ("TP_SESSIONID=ABC", "TP_SESSIONID=ABC"),
    ],
)
def test_parse_session_cookie(header, cookie):
    assert parse_session_cookie(header) == cookie
