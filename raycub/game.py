"""The running game: scene loading, frame rendering, input and the window."""

from __future__ import annotations

import math
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from raycub.config import (
    CubError,
    SceneConfig,
    check_scene_path,
    read_header,
    validate_texture_paths,
)
from raycub.framebuffer import Framebuffer, Minimap
from raycub.mapgrid import MapGrid, read_map, validate_map
from raycub.player import MoveKey, Player, update_doors
from raycub.raycast import (
    WallSlice,
    cast_ray,
    column_angles,
    compute_wall_slice,
    select_face,
)
from raycub.textures import TEXTURE_ERROR, TextureSet, load_textures

WINDOW_TITLE = "so_long_with_extrasteps"
ROTATION_SPEED = math.pi / 16
USAGE_ERROR = "Not the correct amount of arguments"
_MOVE_KEYS = {key.value: key for key in MoveKey}


def _texture_rows(ys: np.ndarray, wall: WallSlice, tex_height: int) -> np.ndarray:
    """Texture rows sampled by screen rows ys of a wall strip."""
    if wall.wall_height <= 0:
        return np.zeros(len(ys), dtype=np.int64)
    scaled = (ys - wall.original_start) * tex_height
    rows = np.sign(scaled) * (np.abs(scaled) // wall.wall_height)
    return np.clip(rows, 0, tex_height - 1)


def _to_rgb(pixels: np.ndarray) -> np.ndarray:
    """A (width, height, 3) byte array from 0xRRGGBB pixels stored row-major."""
    channels = np.stack(
        ((pixels >> 16) & 0xFF, (pixels >> 8) & 0xFF, pixels & 0xFF), axis=-1
    )
    return channels.transpose(1, 0, 2).astype(np.uint8)


@dataclass(eq=False)
class Game:
    """A loaded scene together with the player and the image it is drawn into."""

    config: SceneConfig
    grid: MapGrid
    player: Player
    textures: TextureSet
    framebuffer: Framebuffer = field(default_factory=Framebuffer)
    minimap: Minimap = field(default_factory=Minimap)

    def _draw_column(self, col: int, ray_angle: float) -> None:
        player = self.player
        fb = self.framebuffer
        hit = cast_ray(self.grid, player.x, player.y, player.angle, ray_angle)
        texture = self.textures.for_face(select_face(hit.ray, hit.dda))
        wall = compute_wall_slice(
            hit, player.x, player.y, fb.width, fb.height, texture.width
        )
        fb.fill_column(col, 0, wall.start, self.config.ceiling)
        if wall.end >= wall.start:
            ys = np.arange(wall.start, wall.end + 1, dtype=np.int64)
            rows = _texture_rows(ys, wall, texture.height)
            tex_x = min(max(wall.tex_x, 0), texture.width - 1)
            fb.put_column(col, wall.start, texture.pixels[rows, tex_x])
        fb.fill_column(col, wall.end + 1, fb.height, self.config.floor)

    def render_frame(self) -> Framebuffer:
        """Draw the 3D view, the minimap and the player; return the image."""
        player = self.player
        fb = self.framebuffer
        update_doors(self.grid, player.x, player.y)
        fb.clear()
        for col, ray_angle in enumerate(column_angles(player.angle, fb.width)):
            self._draw_column(col, ray_angle)
        self.minimap.draw_tiles(fb, self.grid)
        self.minimap.draw_grid(fb, self.grid)
        self.minimap.draw_player(fb, player.x, player.y, player.dir_x, player.dir_y)
        return fb

    def handle_key(self, key: str | MoveKey) -> bool:
        """Act on a key press; return False when the game should end."""
        if isinstance(key, MoveKey):
            self.player.move(self.grid, key)
            return True
        name = key.lower()
        if name == "escape":
            return False
        if name == "left":
            self.player.rotate(-ROTATION_SPEED)
        elif name == "right":
            self.player.rotate(ROTATION_SPEED)
        elif name in _MOVE_KEYS:
            self.player.move(self.grid, _MOVE_KEYS[name])
        return True

    def run(self) -> None:
        """Open a window and play until it is closed or Escape is pressed."""
        import pygame

        fb = self.framebuffer
        pygame.init()
        try:
            screen = pygame.display.set_mode((fb.width, fb.height))
            pygame.display.set_caption(WINDOW_TITLE)
            pygame.key.set_repeat(200, 30)
            keys = {
                pygame.K_ESCAPE: "escape",
                pygame.K_LEFT: "left",
                pygame.K_RIGHT: "right",
                pygame.K_w: "w",
                pygame.K_a: "a",
                pygame.K_s: "s",
                pygame.K_d: "d",
            }
            clock = pygame.time.Clock()
            running = True
            while running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN and event.key in keys:
                        if not self.handle_key(keys[event.key]):
                            running = False
                if not running:
                    break
                frame = self.render_frame()
                pygame.surfarray.blit_array(screen, _to_rgb(frame.pixels))
                pygame.display.flip()
                clock.tick(60)
        finally:
            pygame.quit()


def load_scene(path: str, bonus: bool = False) -> Game:
    """Read, check and load everything a scene file describes."""
    name = check_scene_path(path)
    config = validate_texture_paths(read_header(name))
    grid = read_map(name, bonus)
    start = validate_map(grid, bonus)
    textures = load_textures(config)
    return Game(config, grid, Player.from_start(start), textures)


def _report(message: str) -> None:
    sys.stderr.write(f"Error\n{message}\n")
    sys.stderr.flush()


def main(argv: Sequence[str] | None = None) -> int:
    """Start the game on the scene file named on the command line."""
    args = list(sys.argv[1:] if argv is None else argv)
    bonus = "--bonus" in args
    args = [arg for arg in args if arg != "--bonus"]
    if len(args) != 1:
        _report(USAGE_ERROR)
        return 255
    try:
        check_scene_path(args[0])
    except CubError as exc:
        _report(str(exc))
        return 255
    try:
        game = load_scene(args[0], bonus)
    except CubError as exc:
        _report(str(exc))
        return 0 if str(exc) == TEXTURE_ERROR else 2
    game.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())