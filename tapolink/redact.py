"""Helpers for masking sensitive values before they are logged."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


def mask_mac(mac: str) -> str:
    """Return mac address with last three octets blanked."""
    if len(mac) == 12:
        return f"{mac[:6]}000000"
    delim = ":" if ":" in mac else "-"
    return f"{mac[:8]}{delim}00{delim}00{delim}00"


REDACTORS: dict[str, Callable[[Any], Any] | None] = {
    "latitude": lambda x: 0,
    "longitude": lambda x: 0,
    "device_id": lambda x: "REDACTED_" + x[9::],
    "deviceId": lambda x: "REDACTED_" + x[9::],
    "nickname": lambda x: "I01BU0tFRF9OQU1FIw==" if x else "",
    "alias": lambda x: "#MASKED_NAME#" if x else "",
    "mac": mask_mac,
    "deviceMac": mask_mac,
    "ssid": lambda x: "I01BU0tFRF9TU0lEIw==" if x else "",
    "bssid": lambda _: "000000000000",
    "ip": lambda x: x,  # not redacted but listed so it is explicit
    "token": None,
    "key": None,
    "request": None,
    "response": None,
    "username": None,
    "password": None,
    "cloudUserName": None,
    "cloudPassword": None,
}


def redact_data(
    data: _T, redactors: dict[str, Callable[[Any], Any] | None] = REDACTORS
) -> _T:
    """Redact sensitive data for logging."""
    if not isinstance(data, dict | list):
        return data

    if isinstance(data, list):
        return cast(_T, [redact_data(val, redactors) for val in data])

    redacted = {**data}

    for key, value in redacted.items():
        if value is None:
            continue
        if isinstance(value, str) and not value:
            continue
        if key in redactors:
            if redactor := redactors[key]:
                try:
                    redacted[key] = redactor(value)
                except (TypeError, ValueError, IndexError):
                    _LOGGER.debug("Unable to redact %s", key)
                    redacted[key] = "**REDACTEX**"
            else:
                redacted[key] = "**REDACTED**"
        elif isinstance(value, dict):
            redacted[key] = redact_data(value, redactors)
        elif isinstance(value, list):
            redacted[key] = [redact_data(item, redactors) for item in value]

    return cast(_T, redacted)
