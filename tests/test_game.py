import math

import pytest

from raycub.config import CubError
from raycub.framebuffer import Framebuffer
from raycub.game import USAGE_ERROR, Game, load_scene, main
from raycub.player import MoveKey
from raycub.textures import TEXTURE_ERROR

NORTH = 0xFF0000
SOUTH = 0x00FF00
EAST = 0x0000FF
WEST = 0xFFFF00
FLOOR = (220, 100, 0)
CEILING = (225, 30, 0)

PLAIN_MAP = ["111111", "100101", "101001", "1100N1", "111111"]
DOOR_MAP = ["111111", "100101", "101001", "1102N1", "111111"]


def _rgb(channels):
    red, green, blue = channels
    return (red << 16) | (green << 8) | blue


def write_xpm(path, size, color):
    row = '"' + "a" * size + '",\n'
    text = (
        "/* XPM */\nstatic char *img[] = {\n"
        f'"{size} {size} 1 1",\n'
        f'"a c #{color:06X}",\n'
        + row * size
        + "};\n"
    )
    path.write_text(text)
    return path


@pytest.fixture(scope="module")
def textures(tmp_path_factory):
    folder = tmp_path_factory.mktemp("textures")
    return {
        "NO": write_xpm(folder / "north.xpm", 512, NORTH),
        "SO": write_xpm(folder / "south.xpm", 512, SOUTH),
        "WE": write_xpm(folder / "west.xpm", 512, WEST),
        "EA": write_xpm(folder / "east.xpm", 512, EAST),
    }


@pytest.fixture(scope="module")
def small_textures(tmp_path_factory):
    folder = tmp_path_factory.mktemp("small")
    return {
        key: write_xpm(folder / f"{key}.xpm", 8, NORTH)
        for key in ("NO", "SO", "WE", "EA")
    }


def write_scene(folder, texture_paths, rows, name="scene.cub"):
    lines = [f"{key} {texture_paths[key]}\n" for key in ("NO", "SO", "WE", "EA")]
    lines.append("F {},{},{}\n".format(*FLOOR))
    lines.append("C {},{},{}\n".format(*CEILING))
    lines.append("\n")
    lines.extend(row + "\n" for row in rows)
    path = folder / name
    path.write_text("".join(lines))
    return str(path)


@pytest.fixture
def game(tmp_path, textures):
    return load_scene(write_scene(tmp_path, textures, PLAIN_MAP))


def test_load_scene_places_player_in_cell_centre_facing_north(game):
    assert math.isclose(game.player.x, 4.5)
    assert math.isclose(game.player.y, 3.5)
    assert math.isclose(game.player.angle, 3 * math.pi / 2)


def test_load_scene_reads_colours(game):
    assert game.config.floor == _rgb(FLOOR)
    assert game.config.ceiling == _rgb(CEILING)


def test_load_scene_rejects_wrong_extension(tmp_path, textures):
    path = write_scene(tmp_path, textures, PLAIN_MAP, name="scene.txt")
    with pytest.raises(CubError):
        load_scene(path)


def test_load_scene_rejects_wrong_texture_size(tmp_path, small_textures):
    path = write_scene(tmp_path, small_textures, PLAIN_MAP)
    with pytest.raises(CubError, match=TEXTURE_ERROR):
        load_scene(path)


def test_door_map_needs_bonus(tmp_path, textures):
    path = write_scene(tmp_path, textures, DOOR_MAP)
    with pytest.raises(CubError, match="Invalid Map!"):
        load_scene(path)


def test_render_frame_draws_ceiling_wall_and_floor(game):
    game.framebuffer = Framebuffer(200, 100)
    frame = game.render_frame()
    assert frame is game.framebuffer
    assert frame.pixel(100, 0) == _rgb(CEILING)
    assert frame.pixel(100, 99) == _rgb(FLOOR)
    assert frame.pixel(100, 50) == NORTH


def test_render_frame_draws_minimap_wall_tile(game):
    game.framebuffer = Framebuffer(200, 100)
    frame = game.render_frame()
    assert frame.pixel(3, 3) == 0xFFFFFF


def test_render_frame_opens_adjacent_door(tmp_path, textures):
    bonus_game = load_scene(write_scene(tmp_path, textures, DOOR_MAP), bonus=True)
    bonus_game.framebuffer = Framebuffer(200, 100)
    assert bonus_game.grid.tile_at(3, 3) == "2"
    frame = bonus_game.render_frame()
    assert bonus_game.grid.tile_at(3, 3) == "3"
    assert frame.pixel(24, 24) == 0x00FF00


def test_escape_ends_game(game):
    assert game.handle_key("escape") is False
    assert math.isclose(game.player.x, 4.5)


def test_rotation_keys(game):
    assert game.handle_key("left") is True
    assert math.isclose(game.player.angle, 3 * math.pi / 2 - math.pi / 16)
    game.handle_key("right")
    game.handle_key("right")
    assert math.isclose(game.player.angle, 3 * math.pi / 2 + math.pi / 16)


def test_forward_key_moves_north(game):
    assert game.handle_key("w") is True
    assert math.isclose(game.player.y, 3.4)
    assert math.isclose(game.player.x, 4.5, abs_tol=1e-9)


def test_move_key_enum_and_string_agree(tmp_path, textures):
    first = load_scene(write_scene(tmp_path, textures, PLAIN_MAP, "a.cub"))
    second = load_scene(write_scene(tmp_path, textures, PLAIN_MAP, "b.cub"))
    first.handle_key("s")
    second.handle_key(MoveKey.BACKWARD)
    assert math.isclose(first.player.y, second.player.y)
    assert math.isclose(first.player.x, second.player.x)


def test_unknown_key_is_ignored(game):
    assert game.handle_key("q") is True
    assert math.isclose(game.player.x, 4.5)
    assert math.isclose(game.player.y, 3.5)


def test_main_without_arguments(capsys):
    assert main([]) == 255
    assert capsys.readouterr().err == f"Error\n{USAGE_ERROR}\n"


def test_main_with_bad_extension(capsys):
    assert main(["scene.txt"]) == 255
    assert USAGE_ERROR in capsys.readouterr().err


def test_main_with_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.cub")]) == 2
    assert capsys.readouterr().err == "Error\nGet Data Error\n"


def test_main_with_wrong_texture_size(tmp_path, small_textures, capsys):
    path = write_scene(tmp_path, small_textures, PLAIN_MAP)
    assert main([path]) == 0
    assert capsys.readouterr().err == f"Error\n{TEXTURE_ERROR}\n"


def test_game_can_be_built_directly(game):
    rebuilt = Game(game.config, game.grid, game.player, game.textures, Framebuffer(50, 40))
    frame = rebuilt.render_frame()
    assert (frame.width, frame.height) == (50, 40)
    assert frame.pixel(25, 39) == _rgb(FLOOR)