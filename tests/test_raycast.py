import math

import pytest

from raycub.mapgrid import MapGrid
from raycub.raycast import (
    FOV,
    DDAState,
    Face,
    Ray,
    RayHit,
    WallSlice,
    cast_ray,
    column_angles,
    compute_wall_slice,
    correct_fisheye,
    init_step,
    perform_dda,
    select_face,
    texture_row,
    wall_x,
)


@pytest.fixture
def room():
    return MapGrid(["111111", "100001", "100001", "100001", "111111"])


def test_ray_from_angle_zero_has_infinite_vertical_delta():
    ray = Ray.from_angle(0.0)
    assert ray.dir_x == 1.0
    assert ray.dir_y == 0.0
    assert ray.delta_x == 1.0
    assert math.isinf(ray.delta_y)


def test_ray_direction_is_unit_length():
    ray = Ray.from_angle(1.234)
    assert math.hypot(ray.dir_x, ray.dir_y) == pytest.approx(1.0)
    assert ray.delta_x == pytest.approx(abs(1 / ray.dir_x))


def test_init_step_signs_follow_direction():
    west = init_step(Ray.from_angle(math.pi), 2.5, 2.5)
    east = init_step(Ray.from_angle(0.0), 2.5, 2.5)
    assert west.step_x == -1
    assert east.step_x == 1
    assert (west.map_x, west.map_y) == (int(2.5), int(2.5))
    assert west.side_x >= 0 and east.side_x >= 0


def test_init_step_up_ray_steps_negative_y():
    dda = init_step(Ray.from_angle(3 * math.pi / 2), 1.5, 3.5)
    assert dda.step_y == -1


def test_perform_dda_east_hits_wall(room):
    ray = Ray.from_angle(0.0)
    start = init_step(ray, 2.5, 2.5)
    dda = perform_dda(room, ray, start)
    assert room.tile_at(dda.map_x, dda.map_y) == "1"
    assert dda.side == 0
    assert dda.perp_dist == pytest.approx(dda.map_x - 2.5)
    assert start.map_x == int(2.5)


def test_perform_dda_north_hits_horizontal_side(room):
    ray = Ray.from_angle(3 * math.pi / 2)
    dda = perform_dda(room, ray, init_step(ray, 2.5, 2.5))
    assert dda.side == 1
    assert dda.map_y == 0
    assert room.tile_at(dda.map_x, dda.map_y) == "1"


def test_perform_dda_stops_at_door():
    grid = MapGrid(["1111", "1021", "1111"])
    ray = Ray.from_angle(0.0)
    dda = perform_dda(grid, ray, init_step(ray, 1.5, 1.5))
    assert grid.tile_at(dda.map_x, dda.map_y) == "2"


def test_perform_dda_leaves_open_map():
    grid = MapGrid(["000"])
    ray = Ray.from_angle(0.0)
    dda = perform_dda(grid, ray, init_step(ray, 0.5, 0.5))
    assert not grid.is_valid_pos(dda.map_x, dda.map_y)


def test_correct_fisheye_same_angle_keeps_distance():
    assert correct_fisheye(0.7, 0.7, 4.0) == pytest.approx(4.0)


def test_correct_fisheye_wraps_angles():
    assert correct_fisheye(0.1 + 2 * math.pi, 0.1, 3.0) == pytest.approx(3.0)


def test_correct_fisheye_shortens_oblique_rays():
    assert correct_fisheye(math.pi / 3, 0.0, 2.0) == pytest.approx(1.0)


def test_cast_ray_straight_ahead_not_corrected(room):
    hit = cast_ray(room, 2.5, 2.5, 0.0, 0.0)
    assert hit.corrected_dist == pytest.approx(hit.dda.perp_dist)


@pytest.mark.parametrize(
    "angle, face",
    [
        (0.0, Face.EAST),
        (math.pi, Face.WEST),
        (math.pi / 2, Face.SOUTH),
        (3 * math.pi / 2, Face.NORTH),
    ],
)
def test_select_face(room, angle, face):
    hit = cast_ray(room, 2.5, 2.5, angle, angle)
    assert select_face(hit.ray, hit.dda) == face


def test_wall_x_is_fraction(room):
    for angle in (0.2, 1.3, 2.5, 4.0, 5.5):
        hit = cast_ray(room, 2.3, 2.7, angle, angle)
        assert 0.0 <= wall_x(2.3, 2.7, hit.ray, hit.dda) < 1.0


def test_wall_slice_within_screen(room):
    hit = cast_ray(room, 2.5, 2.5, 0.3, 0.3)
    wall = compute_wall_slice(hit, 2.5, 2.5, 1800, 900, 512)
    assert 0 <= wall.start <= wall.end <= 899
    assert 0 <= wall.tex_x < 512
    assert wall.start >= wall.original_start


def test_closer_wall_is_taller(room):
    near = compute_wall_slice(cast_ray(room, 4.5, 2.5, 0.0, 0.0), 4.5, 2.5, 1800, 900, 512)
    far = compute_wall_slice(cast_ray(room, 1.5, 2.5, 0.0, 0.0), 1.5, 2.5, 1800, 900, 512)
    assert near.wall_height > far.wall_height


def test_wall_slice_zero_distance_is_clamped():
    dda = DDAState(1, 1, 1, 1, 0.0, 0.0, side=0, perp_dist=0.0)
    hit = RayHit(Ray.from_angle(0.0), dda, 0.0)
    wall = compute_wall_slice(hit, 1.0, 1.0, 1800, 900, 512)
    assert wall.start == 0
    assert wall.end == 899


def test_texture_row_clamped_and_starts_at_zero():
    wall = WallSlice(start=0, end=899, original_start=-100, wall_height=1000, face=Face.NORTH, tex_x=0)
    assert texture_row(-100, wall, 512) == 0
    assert texture_row(-500, wall, 512) == 0
    assert texture_row(900, wall, 512) == 511
    rows = [texture_row(y, wall, 512) for y in range(0, 900)]
    assert rows == sorted(rows)


def test_column_angles_span_field_of_view():
    angles = list(column_angles(1.0, 100))
    assert len(angles) == 100
    assert angles[0] == pytest.approx(1.0 - FOV / 2)
    assert angles[-1] < 1.0 + FOV / 2
    assert all(a < b for a, b in zip(angles, angles[1:]))