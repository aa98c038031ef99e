"""Resolve color names to device parameters."""

from __future__ import annotations

import colorsys
import re
from collections.abc import Callable
from typing import NamedTuple

from .commands import SetColor


class ColorParams(NamedTuple):
    """Hue, saturation and color temperature sent for a color."""

    hue: int
    saturation: int
    color_temp: int

    def to_command(self) -> SetColor:
        """Return the command setting this color."""
        return SetColor(
            hue=self.hue, saturation=self.saturation, color_temp=self.color_temp
        )


ColorResolver = Callable[[str], ColorParams]

PRESET_COLORS: dict[str, ColorParams] = {
    "blue": ColorParams(240, 100, 0),
    "red": ColorParams(0, 100, 0),
    "yellow": ColorParams(60, 100, 0),
    "green": ColorParams(120, 100, 0),
    "cyan": ColorParams(180, 100, 0),
    "magenta": ColorParams(300, 100, 0),
    "orange": ColorParams(30, 100, 0),
    "purple": ColorParams(270, 100, 0),
    "white": ColorParams(0, 0, 4500),
    "daylightwhite": ColorParams(0, 0, 5500),
    "warmwhite": ColorParams(0, 0, 2700),
}

_HEX_COLOR = re.compile(r"^#?([0-9a-f]{6})$")


def get_color(name: str) -> ColorParams:
    """Return the parameters for a preset name or a #rrggbb value."""
    key = name.strip().lower().replace(" ", "").replace("_", "")
    if key in PRESET_COLORS:
        return PRESET_COLORS[key]
    if match := _HEX_COLOR.match(key):
        value = match.group(1)
        r, g, b = (int(value[i : i + 2], 16) / 255 for i in (0, 2, 4))
        h, _, s = colorsys.rgb_to_hls(r, g, b)
        return ColorParams(round(h * 360), round(s * 100), 0)
    raise ValueError(f"Unknown color: {name}")
