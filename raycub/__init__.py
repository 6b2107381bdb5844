"""Textured raycasting maze explorer for .cub scene files."""

__version__ = "0.1.0"
__all__ = ["config", "mapgrid", "raycast", "player", "framebuffer", "textures", "game"]