"""An off-screen pixel buffer and the minimap drawn into it."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from raycub.mapgrid import MapGrid

WIDTH = 1800
HEIGHT = 900
MINIMAP_SQUARE = 7

GRID_COLOR = 0x222222
PLAYER_COLOR = 0xFF0000
ARROW_COLOR = 0x0000FF
_COLOR_MASK = 0xFFFFFFFF


def line_points(x0: int, y0: int, x1: int, y1: int) -> list[tuple[int, int]]:
    """Pixels of a straight line from (x0, y0) to (x1, y1), both ends included.

    A line whose ends coincide has no pixels.
    """
    dx = x1 - x0
    dy = y1 - y0
    steps = max(abs(dx), abs(dy))
    if steps == 0:
        return []
    x_inc = np.float32(dx) / np.float32(steps)
    y_inc = np.float32(dy) / np.float32(steps)
    x = np.float32(x0)
    y = np.float32(y0)
    points = []
    for _ in range(steps + 1):
        points.append((int(x), int(y)))
        x = np.float32(x + x_inc)
        y = np.float32(y + y_inc)
    return points


@dataclass(eq=False)
class Framebuffer:
    """A width by height image of 0xRRGGBB pixels; writes outside it are dropped."""

    width: int = WIDTH
    height: int = HEIGHT
    pixels: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("a framebuffer needs a positive size")
        self.pixels = np.zeros((self.height, self.width), dtype=np.uint32)

    def _inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def put_pixel(self, x: int, y: int, color: int) -> None:
        """Set one pixel; positions outside the buffer are ignored."""
        if self._inside(x, y):
            self.pixels[y, x] = color & _COLOR_MASK

    def pixel(self, x: int, y: int) -> int:
        """Colour of the pixel at (x, y)."""
        if not self._inside(x, y):
            raise IndexError(f"pixel ({x}, {y}) is outside the framebuffer")
        return int(self.pixels[y, x])

    def clear(self) -> None:
        """Set every pixel to black."""
        self.pixels.fill(0)

    def fill_tile(self, x: int, y: int, size: int, color: int) -> None:
        """Fill the size by size square whose top-left corner is (x, y)."""
        if size <= 0:
            return
        left, right = max(x, 0), min(x + size, self.width)
        top, bottom = max(y, 0), min(y + size, self.height)
        if left < right and top < bottom:
            self.pixels[top:bottom, left:right] = color & _COLOR_MASK

    def fill_column(self, x: int, start: int, stop: int, color: int) -> None:
        """Fill rows start up to stop (exclusive) of column x."""
        if not 0 <= x < self.width:
            return
        top, bottom = max(start, 0), min(stop, self.height)
        if top < bottom:
            self.pixels[top:bottom, x] = color & _COLOR_MASK

    def put_column(self, x: int, start: int, colors: Sequence[int]) -> None:
        """Write colors down column x beginning at row start."""
        if not 0 <= x < self.width:
            return
        values = np.asarray(colors, dtype=np.int64) & _COLOR_MASK
        top = max(start, 0)
        bottom = min(start + len(values), self.height)
        if top < bottom:
            self.pixels[top:bottom, x] = values[top - start:bottom - start]

    def draw_line(self, x0: int, y0: int, x1: int, y1: int, color: int) -> None:
        """Draw a straight line between two points."""
        for x, y in line_points(x0, y0, x1, y1):
            self.put_pixel(x, y, color)


def tile_color(tile: str) -> int:
    """Minimap colour of a map tile."""
    colors = {"1": 0xFFFFFF, "2": 0xFF0000, "3": 0x00FF00, "\n": 0x000000}
    return colors.get(tile, 0x888888)


def tile_exists(grid: MapGrid, row: int, col: int) -> bool:
    """True when (row, col) holds a map tile rather than a line end."""
    if not 0 <= row < grid.height():
        return False
    if not 0 <= col < grid.width(row):
        return False
    return grid.rows[row][col] not in ("\n", "\0")


@dataclass
class Minimap:
    """A top-down view of the map drawn in squares of square_size pixels."""

    square_size: int = MINIMAP_SQUARE
    off_x: int = 0
    off_y: int = 0

    def screen_pos(self, x: int, y: int) -> tuple[int, int]:
        """Pixel position of the top-left corner of grid cell (x, y)."""
        return self.off_x + x * self.square_size, self.off_y + y * self.square_size

    def draw_tiles(self, fb: Framebuffer, grid: MapGrid) -> None:
        """Fill one square per map tile in that tile's colour."""
        for y, row in enumerate(grid):
            for x, tile in enumerate(row):
                if tile != "\n":
                    px, py = self.screen_pos(x, y)
                    fb.fill_tile(px, py, self.square_size, tile_color(tile))

    def draw_grid(self, fb: Framebuffer, grid: MapGrid) -> None:
        """Outline every map tile."""
        size = self.square_size
        for i, row in enumerate(grid):
            for j in range(len(row) + 1):
                if tile_exists(grid, i, j - 1) or tile_exists(grid, i, j):
                    x, y = self.screen_pos(j, i)
                    fb.draw_line(x, y, x, y + size, GRID_COLOR)
        max_cols = max((len(row) for row in grid), default=0)
        for i in range(grid.height() + 1):
            for j in range(max_cols):
                if tile_exists(grid, i - 1, j) or tile_exists(grid, i, j):
                    x, y = self.screen_pos(j, i)
                    fb.draw_line(x, y, x + size, y, GRID_COLOR)

    def draw_player(
        self, fb: Framebuffer, x: float, y: float, dir_x: float, dir_y: float
    ) -> None:
        """Draw the player as a square with an arrow showing its heading."""
        margin = self.square_size // 4
        size = self.square_size - 2 * margin
        center_x = self.off_x + int(x * self.square_size)
        center_y = self.off_y + int(y * self.square_size)
        fb.fill_tile(center_x - size // 2, center_y - size // 2, size, PLAYER_COLOR)
        length = self.square_size // 2
        fb.draw_line(
            center_x,
            center_y,
            center_x + int(dir_x * length),
            center_y + int(dir_y * length),
            ARROW_COLOR,
        )