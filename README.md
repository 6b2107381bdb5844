# raycub

raycub is a first-person maze explorer with textured walls, drawn by raycasting. Each level is described by a `.cub` scene file. The file names the four wall textures, gives the floor and ceiling colours, and draws the map in characters.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Running

```
raycub path/to/level.cub
raycub --bonus path/to/level.cub
```

The command takes exactly one scene file. Its name must end in `.cub` and must be more than just `.cub`. The `--bonus` option turns on doors (see below).

The game opens a window of 1800×900 pixels with the title `so_long_with_extrasteps`. A minimap in the top-left corner shows the map, your position and the direction you face.

If the scene cannot be used, no window opens. A message that begins with `Error` is written to standard error, and the exit status is set as follows:

- A bad command line exits with status 255.
- A problem with the scene or its map exits with status 2.
- A texture that is not a readable 512×512 XPM image is reported the same way, but the exit status is 0.

### Controls

| Key          | Action                 |
|--------------|------------------------|
| W / S        | move forward / back    |
| A / D        | strafe left / right    |
| Left / Right | turn                   |
| Escape       | quit                   |

Each key press moves you 0.1 map units or turns you by π/16. Holding a key repeats it. You slide along walls instead of stopping dead.

## Scene files

The header lines come first and the map follows them:

```
NO ./textures/north.xpm
SO ./textures/south.xpm
WE ./textures/west.xpm
EA ./textures/east.xpm

F 220,100,0
C 225,30,0

        1111111111111
        1000000000001
        1011000001001
        100100000N001
111111111011000001111
100000000011000001
11110111111111011100
11111111 1111111
```

### Header

- `NO`, `SO`, `WE` and `EA` must each appear once.
- Each of those four names a file that must exist and end in `.xpm`. The path is opened relative to the current working directory, not relative to the scene file.
- Each texture must be a 512×512 XPM image.
- `F` (floor) and `C` (ceiling) each take three comma-separated components, for example `F 220,100,0`.
- Each component has at most three digits and must be below 256.
- Giving `F` or `C` twice is an error. A colour that is left out is black.

### Map characters

- `1` is a wall and `0` is open floor.
- A space is empty space outside the playable area.
- `N`, `S`, `E` or `W` marks where the player starts and which way they face. There must be exactly one of these.
- `2` is a closed door. It is allowed only with `--bonus`.

### Map rules

- The map begins at the first line that starts with `1`, `0`, a space, or `2` in bonus mode.
- Every line after that point is a map row. Each row must contain at least one `1` or `0`, or a `2` in bonus mode, so there can be no blank lines inside the map.
- The first and last rows must not contain `0`.
- Every walkable tile (`0`, the player's tile, and `2` in bonus mode) must have a neighbour above, below, left and right. None of those neighbours may be a space or the end of a line.

### Doors

- Walls and closed doors stop both rays and movement.
- Walking into a closed door opens it.
- On every frame, each door next to the cell you stand in is opened. Every open door that is not next to you is closed again.
- The minimap shows walls in white, closed doors in red, open doors in green and everything else in grey.

## Using the library

You can load and check scenes, cast rays and move the player without opening a window:

```python
from raycub.game import load_scene
from raycub.player import MoveKey

game = load_scene("maps/level.cub", bonus=False)
game.handle_key(MoveKey.FORWARD)
game.handle_key("left")
frame = game.render_frame()          # a Framebuffer of 0xRRGGBB pixels
print(frame.pixel(900, 450))
```

`Game.handle_key` accepts a `MoveKey` or one of the names `"w"`, `"a"`, `"s"`, `"d"`, `"left"`, `"right"` and `"escape"`. It returns `False` for Escape. `Game.run` opens the pygame window and runs the game loop.

The modules are:

- `raycub.config` reads the scene header.
  - `read_header` returns a `SceneConfig`.
  - `validate_texture_paths` returns a copy of the `SceneConfig` with the bare texture paths filled in.
  - Helpers: `check_scene_path`, `parse_rgb`, `parse_int`, `extract_path`.
  - Every problem is raised as `CubError`.
- `raycub.mapgrid` reads and checks the map.
  - `read_map` returns a `MapGrid`.
  - `validate_map` returns the `PlayerStart`.
  - Helpers: `is_walkable`, `is_space`.
- `raycub.raycast` handles ray casting and wall geometry.
  - Ray stepping: `Ray`, `init_step`, `perform_dda`, `cast_ray`.
  - Fisheye correction: `correct_fisheye`.
  - Wall strip geometry: `compute_wall_slice`, `WallSlice`, `select_face`, `wall_x`, `texture_row`.
  - Angles for each screen column: `column_angles`.
- `raycub.player` handles the player and doors.
  - The `Player` class handles movement and turning.
  - Collision: `is_wall`, `can_move_to`.
  - Doors: `try_open_door`, `update_doors`.
- `raycub.framebuffer` provides the pixel buffer and the minimap.
  - `Framebuffer` is the pixel buffer.
  - `line_points` gives the pixels of a line.
  - `Minimap` draws the minimap.
- `raycub.textures` loads XPM images.
  - `load_texture` and `load_textures` read the images.
  - `Texture` and `TextureSet` hold them.
  - The loader understands `c`, `g`, `g4` and `m` colour keys, named colours, `#RRGGBB`, `#RRRRGGGGBBBB` and `None`.
- `raycub.game` holds `Game`, `load_scene` and the `main` command.

## What it does not do

raycub draws only walls, a flat floor and a flat ceiling. It has no sprites, enemies, sound, mouse look or saved state.