"""The map part of a scene file: reading, querying and validating it."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass, field

from raycub.config import CubError

_PLAYER_TILES = "NSEW"
_SPACE_TILES = " \n"
# Neighbour offsets as (row, column): up, down, left, right.
_NEIGHBOURS = ((-1, 0), (1, 0), (0, -1), (0, 1))

# Each table is keyed by whether the bonus (door) rules are in force.
# Tiles that make a line count as a map row.
_SOLID_TILES = {False: "10", True: "102"}
# Characters a line may begin with to start the map.
_START_TILES = {False: "10 ", True: "10 2"}
# Non-player characters allowed in the map.
_PLAIN_TILES = {False: "10 \n", True: "10 \n2"}
# Tiles the player can stand on.
_WALKABLE_TILES = {False: "0NSEW", True: "0NSEW2"}


@dataclass
class MapGrid:
    """Rows of map tiles, each row kept with its trailing newline if it had one."""

    rows: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows = list(self.rows)

    def __iter__(self) -> Iterator[str]:
        return iter(self.rows)

    def height(self) -> int:
        """Number of rows."""
        return len(self.rows)

    def width(self, y: int) -> int:
        """Length of row y, or 0 when there is no such row."""
        if 0 <= y < len(self.rows):
            return len(self.rows[y])
        return 0

    def is_valid_pos(self, x: int, y: int) -> bool:
        """True when (x, y) names a character of the map."""
        if not 0 <= y < len(self.rows):
            return False
        return 0 <= x < len(self.rows[y])

    def tile_at(self, x: int, y: int) -> str:
        """Tile at (x, y); positions outside the map read as '0'."""
        if not self.is_valid_pos(x, y):
            return "0"
        return self.rows[y][x]

    def set_tile(self, x: int, y: int, tile: str) -> None:
        """Replace the tile at (x, y)."""
        if len(tile) != 1:
            raise ValueError(f"a tile is one character, got {tile!r}")
        if not self.is_valid_pos(x, y):
            raise IndexError(f"position ({x}, {y}) is outside the map")
        row = self.rows[y]
        self.rows[y] = row[:x] + tile + row[x + 1:]


@dataclass(frozen=True)
class PlayerStart:
    """Where the player begins and which way it faces ('N', 'S', 'E' or 'W')."""

    x: int
    y: int
    direction: str


def is_walkable(tile: str, bonus: bool = False) -> bool:
    """True for tiles the player can stand on; doors count in bonus maps."""
    return len(tile) == 1 and tile in _WALKABLE_TILES[bool(bonus)]


def is_space(tile: str) -> bool:
    """True for the tiles that leave the map open: space and newline."""
    return len(tile) == 1 and tile in _SPACE_TILES


def read_map(path: str | os.PathLike[str], bonus: bool = False) -> MapGrid:
    """Read the map rows that follow the header of a scene file."""
    try:
        fd = os.open(path, os.O_RDWR)
    except (OSError, ValueError) as exc:
        raise CubError("Open Error") from exc
    try:
        with os.fdopen(fd, "rb") as handle:
            lines = [raw.decode("utf-8", "surrogateescape") for raw in handle]
    except OSError as exc:
        raise CubError("Get Next Line Error") from exc
    if not lines:
        raise CubError("Get Next Line Error")

    starts = _START_TILES[bool(bonus)]
    solid = _SOLID_TILES[bool(bonus)]
    first = next(
        (index for index, line in enumerate(lines) if line[0] in starts), None
    )
    if first is None:
        raise CubError("Map Invalid!")

    rows = []
    for line in lines[first:]:
        if line[0] == "\n" or not any(char in solid for char in line):
            raise CubError("Map Invalid!")
        rows.append(line)
    return MapGrid(rows)


def _find_player(grid: MapGrid, bonus: bool) -> PlayerStart:
    allowed = _PLAIN_TILES[bool(bonus)]
    start = None
    found = 0
    for y, row in enumerate(grid):
        for x, tile in enumerate(row):
            if tile in _PLAYER_TILES:
                start = PlayerStart(x, y, tile)
                found += 1
            elif tile not in allowed:
                raise CubError("Invalid Map!")
    if start is None:
        raise CubError("Invalid Player Direction!")
    if found >= 2:
        raise CubError("Too Many Player Icons!")
    return start


def _check_top_and_bottom(grid: MapGrid) -> None:
    if not grid.rows:
        return
    for row in {0, grid.height() - 1}:
        if "0" in grid.rows[row]:
            raise CubError("Top and Bottom are Open!")


def _check_enclosed(grid: MapGrid, bonus: bool) -> None:
    for y, row in enumerate(grid):
        for x, tile in enumerate(row):
            if not is_walkable(tile, bonus):
                continue
            for dy, dx in _NEIGHBOURS:
                ny, nx = y + dy, x + dx
                if not grid.is_valid_pos(nx, ny) or is_space(grid.rows[ny][nx]):
                    raise CubError("Open tile is Exposed!")


def validate_map(grid: MapGrid, bonus: bool = False) -> PlayerStart:
    """Check the map is closed and holds one player; return the player's start."""
    start = _find_player(grid, bonus)
    _check_top_and_bottom(grid)
    _check_enclosed(grid, bonus)
    return start