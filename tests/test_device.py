import aiohttp
import pytest

from tapolink import DeviceConfig, TapoDevice
from tapolink.colors import ColorParams
from tapolink.device import DeviceInfo
from tapolink.exceptions import (
    AuthenticationError,
    AuthenticationFailed,
    CommandRejected,
    ErrorCode,
    SessionNotEstablished,
)

from .conftest import HOST
from .fakedevice import DEVICE_INFO, FakeTapoDevice


@pytest.fixture
async def dev(fake_device, device_config):
    dev = await TapoDevice.connect(config=device_config)
    yield dev
    await dev.close()


async def test_connect(dev, fake_device):
    assert dev.handle is not None
    assert dev.handle.is_authenticated
    assert [request["method"] for _, _, request in fake_device.posts] == [
        "handshake",
        "securePassthrough",
    ]
    assert repr(dev) == f"<TapoDevice at {HOST} logged_in=True>"


async def test_set_brightness(dev, fake_device):
    await dev.set_brightness(50, transition=1000)

    assert fake_device.inner_requests[-1] == {
        "method": "set_device_info",
        "params": {"brightness": 50, "transition": 1000},
    }


async def test_turn_on_off(dev, fake_device):
    await dev.turn_on()
    await dev.turn_off(transition=500)
    await dev.turn_on(500, device_on=False)

    on, off, off_explicit = fake_device.inner_requests[-3:]
    assert on == {"method": "set_device_info", "params": {"device_on": True}}
    assert off == {
        "method": "set_device_info",
        "params": {"device_on": False, "transition": 500},
    }
    assert off == off_explicit


async def test_set_color_temp(dev, fake_device):
    await dev.set_color_temp(4000)
    assert fake_device.inner_requests[-1]["params"] == {"color_temp": 4000}


async def test_set_color(dev, fake_device):
    await dev.set_color("blue")
    assert fake_device.inner_requests[-1]["params"] == {
        "hue": 240,
        "saturation": 100,
        "color_temp": 0,
    }


async def test_custom_color_resolver(fake_device, device_config):
    dev = TapoDevice(device_config, color_resolver=lambda _: ColorParams(10, 20, 0))
    await dev.login()
    await dev.set_color("anything")
    await dev.close()

    assert fake_device.inner_requests[-1]["params"] == {
        "hue": 10,
        "saturation": 20,
        "color_temp": 0,
    }


async def test_set_brightness_invalid(dev, fake_device):
    sent = len(fake_device.posts)
    with pytest.raises(ValueError, match="Invalid brightness value"):
        await dev.set_brightness(0)
    assert len(fake_device.posts) == sent


async def test_get_device_info(dev):
    info = await dev.get_device_info()

    assert isinstance(info, DeviceInfo)
    assert info.nickname == "Living Room"
    assert info.ssid == "HomeWifi"
    assert info.model == "L530 Series"
    assert info.mac == "AA:BB:CC:DD:EE:FF"
    assert info.device_on is True
    assert info.brightness == 100
    assert info.color_temp == 2700
    assert info.hue == 0
    assert info.saturation == 100
    assert info["fw_ver"] == DEVICE_INFO["fw_ver"]
    assert "device_id" in info
    assert info.to_dict()["nickname"] == "Living Room"


def test_device_info_keeps_plain_values():
    info = DeviceInfo({"nickname": "not base64!", "ssid": ""})
    assert info.nickname == "not base64!"
    assert info.ssid == ""
    assert info.get("model") is None
    assert info.mac is None


async def test_send_before_login(fake_device, device_config):
    dev = TapoDevice(device_config)
    with pytest.raises(SessionNotEstablished):
        await dev.get_device_info()
    assert fake_device.posts == []
    assert repr(dev) == f"<TapoDevice at {HOST} logged_in=False>"
    await dev.close()


async def test_login_without_credentials(fake_device):
    dev = TapoDevice(DeviceConfig(HOST))
    with pytest.raises(AuthenticationError, match="credentials are required"):
        await dev.login()
    await dev.close()


async def test_connect_wrong_credentials(mocker, device_config):
    device = FakeTapoDevice(HOST, password="other")
    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=device.post)

    with pytest.raises(AuthenticationFailed):
        await TapoDevice.connect(config=device_config)


async def test_token_expiry_and_relogin(mocker, device_config):
    device = FakeTapoDevice(HOST)
    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=device.post)
    dev = await TapoDevice.connect(config=device_config)

    device.token = "rotated"
    with pytest.raises(CommandRejected) as exc_info:
        await dev.get_device_info()
    assert exc_info.value.error_code == ErrorCode.DEVICE_TOKEN_EXPIRED

    await dev.relogin()
    assert dev.handle is not None
    assert dev.handle.token == "rotated"
    info = await dev.get_device_info()
    assert info.nickname == "Living Room"
    assert len(device.handshake_keys) == 2
    await dev.close()


async def test_context_manager(fake_device, device_config):
    async with await TapoDevice.connect(config=device_config) as dev:
        await dev.turn_on()
    assert dev.handle is None
