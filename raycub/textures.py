"""Wall textures read from XPM images."""

from __future__ import annotations

import os
from dataclasses import dataclass

import numpy as np
from PIL import ImageColor

from raycub.config import CubError, SceneConfig
from raycub.raycast import Face

TEXTURE_SIZE = 512
TEXTURE_ERROR = "Texture must be a 512x512 XPM file."
TRANSPARENT = 0xFF000000
_COLOR_KEYS = ("c", "g", "g4", "m", "s")
_PREFERRED_KEYS = ("c", "g", "g4", "m")


@dataclass(eq=False)
class Texture:
    """A height by width array of 0xRRGGBB pixels."""

    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def pixel(self, x: int, y: int) -> int:
        """Colour of texel (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"texel ({x}, {y}) is outside the texture")
        return int(self.pixels[y, x])


@dataclass(frozen=True, eq=False)
class TextureSet:
    """The four wall textures of a scene."""

    north: Texture
    south: Texture
    east: Texture
    west: Texture

    def for_face(self, face: Face) -> Texture:
        """Texture shown on a wall face."""
        return getattr(self, face.value)


def _quoted_strings(text: str) -> list[str]:
    """String literals of an XPM file, skipping comments."""
    strings = []
    i, end = 0, len(text)
    while i < end:
        if text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = end if close < 0 else close + 2
        elif text[i] == '"':
            chars = []
            i += 1
            while i < end and text[i] != '"':
                if text[i] == "\\" and i + 1 < end:
                    i += 1
                chars.append(text[i])
                i += 1
            strings.append("".join(chars))
            i += 1
        else:
            i += 1
    return strings


def _parse_color(value: str) -> int:
    if value.lower() == "none":
        return TRANSPARENT
    digits = value[1:]
    if value.startswith("#") and len(digits) == 12:
        try:
            red, green, blue = (int(digits[k:k + 2], 16) for k in (0, 4, 8))
        except ValueError as exc:
            raise CubError(f"bad colour {value!r}") from exc
    else:
        try:
            red, green, blue = ImageColor.getrgb(value)[:3]
        except ValueError as exc:
            raise CubError(f"bad colour {value!r}") from exc
    return (red << 16) | (green << 8) | blue


def _color_entry(spec: str) -> int:
    values: dict[str, list[str]] = {}
    key = None
    for token in spec.split():
        if token in _COLOR_KEYS:
            key = token
            values[key] = []
        elif key is not None:
            values[key].append(token)
    for key in _PREFERRED_KEYS:
        if values.get(key):
            return _parse_color(" ".join(values[key]))
    raise CubError(f"colour entry without a colour: {spec!r}")


def _parse_xpm(text: str) -> Texture:
    strings = _quoted_strings(text)
    if not strings:
        raise CubError("not an XPM image")
    try:
        width, height, ncolors, cpp = (int(v) for v in strings[0].split()[:4])
    except ValueError as exc:
        raise CubError("bad XPM header") from exc
    if width <= 0 or height <= 0 or ncolors <= 0 or cpp <= 0:
        raise CubError("bad XPM header")
    if len(strings) < 1 + ncolors + height:
        raise CubError("truncated XPM image")

    palette = {
        entry[:cpp]: _color_entry(entry[cpp:])
        for entry in strings[1:1 + ncolors]
    }
    rows = strings[1 + ncolors:1 + ncolors + height]
    pixels = np.empty((height, width), dtype=np.uint32)
    for y, row in enumerate(rows):
        if len(row) < width * cpp:
            raise CubError(f"XPM row {y} is too short")
        keys = row if cpp == 1 else [row[k:k + cpp] for k in range(0, width * cpp, cpp)]
        try:
            pixels[y] = [palette[key] for key in keys[:width]]
        except KeyError as exc:
            raise CubError(f"XPM row {y} uses an undefined colour") from exc
    return Texture(pixels)


def load_texture(path: str | os.PathLike[str]) -> Texture:
    """Read an XPM image file."""
    try:
        with open(path, encoding="latin-1") as handle:
            text = handle.read()
    except OSError as exc:
        raise CubError(f"cannot read texture {os.fspath(path)!r}") from exc
    return _parse_xpm(text)


def load_textures(config: SceneConfig) -> TextureSet:
    """Load the scene's four wall textures; each must be 512 by 512."""
    loaded = {}
    for name in ("north", "south", "east", "west"):
        path = getattr(config, name)
        if path is None:
            raise CubError(TEXTURE_ERROR)
        try:
            texture = load_texture(path)
        except CubError as exc:
            raise CubError(TEXTURE_ERROR) from exc
        if texture.width != TEXTURE_SIZE or texture.height != TEXTURE_SIZE:
            raise CubError(TEXTURE_ERROR)
        loaded[name] = texture
    return TextureSet(**loaded)