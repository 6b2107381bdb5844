"""Scene file header: wall texture paths and floor and ceiling colours."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

_WHITESPACE = frozenset("\t\n\v\f\r ")
_LONG_MAX = 2**63 - 1
_END = "\0"
_ALL_TEXTURES = 15

# Identifier, field name and the bit it adds to the texture flags.
_TEXTURE_KEYS = (
    ("NO", "north", 1),
    ("SO", "south", 2),
    ("WE", "west", 4),
    ("EA", "east", 8),
)
_VALIDATION_ORDER = ("north", "south", "east", "west")


class CubError(Exception):
    """A scene file or one of the resources it names cannot be used."""


@dataclass(frozen=True)
class SceneConfig:
    """What the header of a scene file declares.

    The texture fields hold the whole header line until
    validate_texture_paths() replaces them with bare file paths.
    """

    north: str | None = None
    south: str | None = None
    east: str | None = None
    west: str | None = None
    floor: int = 0
    ceiling: int = 0
    texture_flags: int = 0
    map_rows: int = 0


def _at(text: str, index: int) -> str:
    """Character at index, or NUL outside the string."""
    if 0 <= index < len(text):
        return text[index]
    return _END


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def _to_int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def parse_int(text: str) -> int:
    """Parse a leading decimal integer the way the scene reader does.

    Leading whitespace and one sign are accepted; parsing stops at the
    first non-digit. A value too large for a 64-bit integer gives -1
    (0 when negative); the result is wrapped to 32 bits.
    """
    i = 0
    while _at(text, i) in _WHITESPACE:
        i += 1
    negative = _at(text, i) == "-"
    if _at(text, i) in "+-" and _at(text, i) != _END:
        i += 1
    acc = 0
    while _is_digit(_at(text, i)):
        acc = (acc + int(text[i])) * 10
        if acc > _LONG_MAX:
            return 0 if negative else -1
        i += 1
    value = acc // 10
    return _to_int32(-value if negative else value)


def parse_rgb(line: str, start: int = 1) -> int:
    """Parse "R,G,B" beginning at start into a 0xRRGGBB integer.

    Raises ValueError when the text is not a well formed colour.
    """
    i = start
    while _at(line, i) != _END and not _is_digit(_at(line, i)):
        if line[i] != " ":
            raise ValueError(f"unexpected character in colour: {line!r}")
        i += 1

    channels = []
    for _ in range(2):
        value = parse_int(line[i:])
        digits = 0
        while _is_digit(_at(line, i)):
            i += 1
            digits += 1
            if digits > 3:
                raise ValueError(f"colour component too long: {line!r}")
        if _at(line, i) != "," or _at(line, i - 1) == ",":
            raise ValueError(f"malformed colour: {line!r}")
        i += 1
        channels.append(value)

    if _at(line, i) in ("\n", _END):
        raise ValueError(f"missing blue component: {line!r}")
    blue = parse_int(line[i:])
    while _is_digit(_at(line, i)):
        i += 1
    red, green = channels
    if red >= 256 or green >= 256 or blue >= 256:
        raise ValueError(f"colour component out of range: {line!r}")
    if _at(line, i) not in ("\n", _END):
        raise ValueError(f"trailing text after colour: {line!r}")
    return (red << 16) | (green << 8) | blue


def extract_path(line: str) -> str:
    """Return the path part of a texture line such as "NO ./north.xpm\\n".

    The identifier and the spaces after it are dropped, and so is the
    final character, which is expected to be the line's newline.
    """
    i = 0
    while _at(line, i) not in (" ", _END):
        i += 1
    while _at(line, i) == " ":
        i += 1
    if _at(line, i) == _END:
        i = max(i - 2, 0)
    return line[i:][:-1]


def check_scene_path(path: str | os.PathLike[str]) -> str:
    """Check that path names a ".cub" scene file and return it as a string."""
    name = os.fspath(path)
    if len(name) < 5 or not name.endswith(".cub") or name.endswith("/.cub"):
        raise CubError("Not the correct amount of arguments")
    return name


def _read_lines(path: str | os.PathLike[str]) -> list[str]:
    # Scene files are opened read-write, as the game has always done.
    try:
        fd = os.open(path, os.O_RDWR)
    except (OSError, ValueError) as exc:
        raise CubError("Get Data Error") from exc
    try:
        with os.fdopen(fd, "rb") as handle:
            return [raw.decode("utf-8", "surrogateescape") for raw in handle]
    except OSError as exc:
        raise CubError("Get Data Error") from exc


def read_header(path: str | os.PathLike[str]) -> SceneConfig:
    """Read texture lines, colours and the number of map rows from a scene."""
    lines = _read_lines(path)
    if not lines:
        raise CubError("Empty File!")

    textures: dict[str, str] = {}
    flags = 0
    floor = ceiling = 0
    floor_seen = ceiling_seen = 0
    count = 0

    for line in lines:
        for key, name, bit in _TEXTURE_KEYS:
            if line.startswith(key):
                flags += bit
                textures.setdefault(name, line)

        if line.startswith(("F", "C")):
            if line.startswith("F"):
                floor_seen += 1
                try:
                    floor = parse_rgb(line, 1)
                except ValueError as exc:
                    raise CubError("RGB Incorrect Format1!") from exc
                if floor_seen > 1:
                    raise CubError("RGB Incorrect Format1!")
            else:
                ceiling_seen += 1
                try:
                    ceiling = parse_rgb(line, 1)
                except ValueError as exc:
                    raise CubError("RGB Incorrect Format2!") from exc
                if ceiling_seen > 1:
                    raise CubError("RGB Incorrect Format2!")
            count -= 1

        if len(line) == 1:
            count -= 1
        count += 1

    map_rows = count - 4
    if map_rows <= 0:
        raise CubError("Get Data Error")

    return SceneConfig(
        north=textures.get("north"),
        south=textures.get("south"),
        east=textures.get("east"),
        west=textures.get("west"),
        floor=floor,
        ceiling=ceiling,
        texture_flags=flags,
        map_rows=map_rows,
    )


def _check_texture_file(path: str) -> None:
    try:
        fd = os.open(path, os.O_RDONLY)
    except (OSError, ValueError) as exc:
        raise CubError("Invalid Texture Files!") from exc
    os.close(fd)
    if not path.endswith(".xpm"):
        raise CubError("Invalid Texture Files!")


def validate_texture_paths(config: SceneConfig) -> SceneConfig:
    """Return a copy of config whose texture fields are checked file paths."""
    if config.texture_flags != _ALL_TEXTURES:
        raise CubError("Dub Or No Textures!")
    if any(getattr(config, name) is None for name in _VALIDATION_ORDER):
        raise CubError("Empty Textures!")

    paths: dict[str, str] = {}
    for name in _VALIDATION_ORDER:
        path = extract_path(getattr(config, name))
        _check_texture_file(path)
        paths[name] = path
    return replace(config, **paths)


def scene_directory(path: str | os.PathLike[str]) -> Path:
    """Directory that holds a scene file."""
    return Path(path).resolve().parent