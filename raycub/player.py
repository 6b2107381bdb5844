"""The player: position, heading, movement and the doors it opens."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from raycub.mapgrid import MapGrid, PlayerStart

MOVE_SPEED = 0.1
COLLISION_BUFFER = 0.1
_START_ANGLES = {
    "E": 0.0,
    "S": math.pi / 2,
    "W": math.pi,
    "N": 3 * math.pi / 2,
}


class MoveKey(Enum):
    """Movement keys."""

    FORWARD = "w"
    BACKWARD = "s"
    LEFT = "a"
    RIGHT = "d"


def is_wall(grid: MapGrid, x: float, y: float) -> bool:
    """True when (x, y) is outside the map, in a wall or in a closed door."""
    map_x = math.floor(x)
    map_y = math.floor(y)
    if not grid.is_valid_pos(map_x, map_y):
        return True
    return grid.rows[map_y][map_x] in "12"


def can_move_to(grid: MapGrid, x: float, y: float, buffer: float) -> bool:
    """True when a square of half-size buffer around (x, y) is free."""
    return not any(
        is_wall(grid, x + dx, y + dy)
        for dx, dy in ((buffer, buffer), (buffer, -buffer), (-buffer, buffer), (-buffer, -buffer))
    )


def try_open_door(grid: MapGrid, x: float, y: float) -> bool:
    """Open a closed door at (x, y); return whether one was opened."""
    map_x = math.floor(x)
    map_y = math.floor(y)
    if grid.tile_at(map_x, map_y) == "2":
        grid.set_tile(map_x, map_y, "3")
        return True
    return False


def is_orthogonally_adjacent(px: int, py: int, x: int, y: int) -> bool:
    """True when the two cells share an edge."""
    return (abs(px - x) == 1 and py == y) or (abs(py - y) == 1 and px == x)


def update_doors(grid: MapGrid, player_x: float, player_y: float) -> None:
    """Open doors next to the player's cell and close all others."""
    cell_x = math.floor(player_x)
    cell_y = math.floor(player_y)
    for y, row in enumerate(list(grid.rows)):
        for x, tile in enumerate(row):
            adjacent = is_orthogonally_adjacent(cell_x, cell_y, x, y)
            if tile == "2" and adjacent:
                grid.set_tile(x, y, "3")
            elif tile == "3" and not adjacent:
                grid.set_tile(x, y, "2")


def _normalize_angle(angle: float) -> float:
    while angle < 0:
        angle += 2 * math.pi
    while angle >= 2 * math.pi:
        angle -= 2 * math.pi
    return angle


@dataclass
class Player:
    """Position in map units and viewing angle in radians."""

    x: float
    y: float
    angle: float = 0.0

    @property
    def dir_x(self) -> float:
        return math.cos(self.angle)

    @property
    def dir_y(self) -> float:
        return math.sin(self.angle)

    @staticmethod
    def from_start(start: PlayerStart) -> Player:
        """Player centred in its start cell, facing the start direction."""
        return Player(start.x + 0.5, start.y + 0.5, _START_ANGLES[start.direction])

    def rotate(self, delta: float) -> None:
        """Turn by delta radians, keeping the angle in [0, 2*pi)."""
        self.angle = _normalize_angle(self.angle + delta)

    def step_vector(self, key: MoveKey) -> tuple[float, float]:
        """Unit direction that a movement key moves in."""
        dir_x, dir_y = self.dir_x, self.dir_y
        if key is MoveKey.FORWARD:
            return dir_x, dir_y
        if key is MoveKey.BACKWARD:
            return -dir_x, -dir_y
        if key is MoveKey.RIGHT:
            return -dir_y, dir_x
        return dir_y, -dir_x

    def move(self, grid: MapGrid, key: MoveKey) -> None:
        """Take one step, opening doors ahead and sliding along walls."""
        dx, dy = self.step_vector(key)
        new_x = self.x + dx * MOVE_SPEED
        new_y = self.y + dy * MOVE_SPEED
        try_open_door(grid, new_x, new_y)
        if can_move_to(grid, new_x, self.y, COLLISION_BUFFER):
            self.x = new_x
        if can_move_to(grid, self.x, new_y, COLLISION_BUFFER):
            self.y = new_y
        if is_wall(grid, self.x, self.y):
            self._recover_from_wall(grid)

    def _recover_from_wall(self, grid: MapGrid) -> None:
        offset = 0.1
        while offset < 1.0:
            for i in range(8):
                angle = i * math.pi / 4
                test_x = self.x + math.cos(angle) * offset
                test_y = self.y + math.sin(angle) * offset
                if not is_wall(grid, test_x, test_y):
                    self.x, self.y = test_x, test_y
                    return
            offset += 0.1