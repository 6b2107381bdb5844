"""Grid ray casting and the geometry of one textured wall column."""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass, replace
from enum import Enum

from raycub.mapgrid import MapGrid

FOV = math.pi / 3
MAX_DEPTH = 1000
WALL_TILES = "12"
_MIN_DISTANCE = 0.0001


class Face(Enum):
    """Side of a wall block that a ray hits, named by the texture it shows."""

    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


def _inverse_abs(value: float) -> float:
    """|1 / value|, infinite for zero."""
    if value == 0.0:
        return math.inf
    return abs(1.0 / value)


@dataclass(frozen=True)
class Ray:
    """Unit direction of a ray and the distance it travels per grid cell."""

    dir_x: float
    dir_y: float
    delta_x: float
    delta_y: float

    @staticmethod
    def from_angle(angle: float) -> Ray:
        """Ray pointing at angle radians (0 is east, pi/2 is south)."""
        dir_x = math.cos(angle)
        dir_y = math.sin(angle)
        return Ray(dir_x, dir_y, _inverse_abs(dir_x), _inverse_abs(dir_y))


@dataclass
class DDAState:
    """Progress of a ray through the grid."""

    step_x: int
    step_y: int
    map_x: int
    map_y: int
    side_x: float
    side_y: float
    side: int = 0
    perp_dist: float = 0.0


@dataclass(frozen=True)
class RayHit:
    """A cast ray, where it stopped, and its fisheye-corrected distance."""

    ray: Ray
    dda: DDAState
    corrected_dist: float


@dataclass(frozen=True)
class WallSlice:
    """Vertical extent and texture column of one wall strip on screen."""

    start: int
    end: int
    original_start: int
    wall_height: int
    face: Face
    tex_x: int


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def init_step(ray: Ray, px: float, py: float) -> DDAState:
    """Starting cell, step directions and first side distances for a ray."""
    map_x = int(px)
    map_y = int(py)
    if ray.dir_x < 0.0:
        step_x, side_x = -1, (px - map_x) * ray.delta_x
    else:
        step_x, side_x = 1, (map_x + 1.0 - px) * ray.delta_x
    if ray.dir_y < 0.0:
        step_y, side_y = -1, (py - map_y) * ray.delta_y
    else:
        step_y, side_y = 1, (map_y + 1.0 - py) * ray.delta_y
    return DDAState(step_x, step_y, map_x, map_y, side_x, side_y)


def _advance(ray: Ray, state: DDAState) -> None:
    if state.side_x < state.side_y:
        state.side_x += ray.delta_x
        state.map_x += state.step_x
        state.side = 0
    else:
        state.side_y += ray.delta_y
        state.map_y += state.step_y
        state.side = 1


def perform_dda(grid: MapGrid, ray: Ray, dda: DDAState) -> DDAState:
    """Step the ray until it hits a wall or door, or leaves the map.

    Returns the final state with its perpendicular distance filled in;
    the state passed in is left unchanged.
    """
    state = replace(dda)
    for _ in range(MAX_DEPTH):
        _advance(ray, state)
        if not grid.is_valid_pos(state.map_x, state.map_y):
            break
        if grid.rows[state.map_y][state.map_x] in WALL_TILES:
            break
    if state.side == 0:
        state.perp_dist = state.side_x - ray.delta_x
    else:
        state.perp_dist = state.side_y - ray.delta_y
    return state


def correct_fisheye(ray_angle: float, player_angle: float, perp_dist: float) -> float:
    """Distance projected onto the player's view direction."""
    diff = ray_angle - player_angle
    while diff > math.pi:
        diff -= 2 * math.pi
    while diff < -math.pi:
        diff += 2 * math.pi
    return perp_dist * math.cos(diff)


def cast_ray(
    grid: MapGrid, px: float, py: float, player_angle: float, ray_angle: float
) -> RayHit:
    """Cast one ray from (px, py) at ray_angle."""
    ray = Ray.from_angle(ray_angle)
    dda = perform_dda(grid, ray, init_step(ray, px, py))
    return RayHit(ray, dda, correct_fisheye(ray_angle, player_angle, dda.perp_dist))


def select_face(ray: Ray, dda: DDAState) -> Face:
    """Which wall texture a hit shows."""
    if dda.side == 0:
        return Face.EAST if ray.dir_x > 0.0 else Face.WEST
    return Face.SOUTH if ray.dir_y > 0.0 else Face.NORTH


def wall_x(px: float, py: float, ray: Ray, dda: DDAState) -> float:
    """Fractional position along the wall where the ray hit, in [0, 1)."""
    if dda.side == 0:
        value = py + dda.perp_dist * ray.dir_y
    else:
        value = px + dda.perp_dist * ray.dir_x
    return value - math.floor(value)


def _slice_height(corrected_dist: float, screen_width: int) -> int:
    proj_dist = (screen_width / 2.0) / math.tan(FOV / 2.0)
    if not corrected_dist >= _MIN_DISTANCE:
        corrected_dist = _MIN_DISTANCE
    return int(proj_dist / corrected_dist)


def _texture_x(px: float, py: float, ray: Ray, dda: DDAState, tex_width: int) -> int:
    tex_x = int(wall_x(px, py, ray, dda) * tex_width)
    if (dda.side == 0 and ray.dir_x < 0.0) or (dda.side == 1 and ray.dir_y > 0.0):
        tex_x = tex_width - tex_x - 1
    return tex_x


def compute_wall_slice(
    hit: RayHit,
    px: float,
    py: float,
    screen_width: int,
    screen_height: int,
    tex_width: int,
) -> WallSlice:
    """Screen rows and texture column of the wall strip for one ray."""
    height = _slice_height(hit.corrected_dist, screen_width)
    original_start = screen_height // 2 - height // 2
    start = max(original_start, 0)
    end = min(original_start + height, screen_height - 1)
    return WallSlice(
        start=start,
        end=end,
        original_start=original_start,
        wall_height=height,
        face=select_face(hit.ray, hit.dda),
        tex_x=_texture_x(px, py, hit.ray, hit.dda, tex_width),
    )


def texture_row(y: int, wall: WallSlice, tex_height: int) -> int:
    """Texture row to sample for screen row y of a wall strip."""
    if wall.wall_height <= 0:
        return 0
    row = _trunc_div((y - wall.original_start) * tex_height, wall.wall_height)
    return min(max(row, 0), tex_height - 1)


def column_angles(angle: float, width: int) -> Iterator[float]:
    """Ray angle for each screen column, spread over the field of view."""
    start = angle - FOV / 2.0
    step = FOV / float(width)
    for col in range(width):
        yield start + col * step