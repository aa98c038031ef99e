from __future__ import annotations

import aiohttp
import pytest

from tapolink import Credentials, DeviceConfig
from tapolink.httpclient import HttpClient

from .fakedevice import FakeTapoDevice

HOST = "127.0.0.1"


@pytest.fixture
def credentials():
    return Credentials("user@example.com", "pw")


@pytest.fixture
def device_config(credentials):
    return DeviceConfig(HOST, credentials=credentials)


@pytest.fixture
def fake_device(mocker):
    """Return a fake device answering all posts made through aiohttp."""
    device = FakeTapoDevice(HOST)
    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=device.post)
    return device


@pytest.fixture
async def http_client(device_config):
    client = HttpClient(device_config)
    yield client
    await client.close()
