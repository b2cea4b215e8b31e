"""
Pygame Renderer
===============

Side-scrolling renderer using pygame.
Supports both display mode (human play) and headless RGB output.
"""

from __future__ import annotations

import math
from typing import Dict, Any, Optional, Tuple

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

import numpy as np

from platformer.core.config_loader import GameConfig, get_config


# Backdrop in screen coordinates (it does not scroll)
# Clouds: (x, y, sway amplitude, sway phase)
CLOUDS = ((50, 50, 30, 0.0), (300, 80, 40, 2.0), (600, 60, 30, 4.0))
CLOUD_PUFFS = ((0, 0, 20), (25, -10, 25), (50, 0, 20))
# Radians of cloud sway per tick
CLOUD_SWAY_RATE = 0.0017
# Hills: (center x, center y, radius x, radius y), drawn as lower half-ellipses
HILLS = ((150, 400, 120, 80), (500, 420, 100, 70), (700, 410, 110, 75))
HILL_SHADES = ((150, 395, 100, 60), (500, 415, 80, 50), (700, 405, 90, 60))


class PygameRenderer:
    """
    Renderer for the platformer world.

    Supports:
    - Sky gradient with drifting clouds and hills
    - Platforms coloured by kind, goal flag
    - Patrolling enemies and the player's 4-frame walk cycle
    - HUD (score, lives, distance or level) and end-of-run panel
    - Screen display for human mode
    - RGB array output for agents

    Everything is drawn in world coordinates shifted by ``camera_x`` and
    scaled to the target surface.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize renderer.

        Args:
            config: Game configuration.
        """
        if not PYGAME_AVAILABLE:
            raise ImportError("pygame is required for PygameRenderer")

        if config is None:
            config = get_config()

        self._config = config

        # Initialize pygame
        if not pygame.get_init():
            pygame.init()

        # Display surface (created on demand)
        self._screen: Optional[pygame.Surface] = None
        self._screen_size: Optional[Tuple[int, int]] = None

        # Fonts
        pygame.font.init()
        self._font = pygame.font.Font(None, 28)
        self._font_large = pygame.font.Font(None, 56)
        self._font_small = pygame.font.Font(None, 22)

        # Colors
        self._sky_top = (135, 206, 235)
        self._sky_bottom = (224, 246, 255)
        self._cloud_color = (255, 255, 255)
        self._cloud_shadow = (205, 215, 225)
        self._hill_color = (34, 139, 34)
        self._hill_shade = (26, 107, 26)
        self._platform_colors = {
            "normal": (139, 90, 43),
            "moving": (100, 100, 160),
            "goal": (230, 190, 40),
        }
        self._grass_color = (78, 160, 73)
        self._enemy_color = (200, 60, 60)
        self._player_color = (240, 240, 255)
        self._player_outline = (40, 40, 70)
        self._flag_color = (220, 40, 40)
        self._text_color = (255, 255, 255)
        self._text_shadow = (20, 20, 40)

        # Sky gradient is the same every frame; cached per surface size
        self._sky_cache: Dict[Tuple[int, int], pygame.Surface] = {}

    def render(
        self,
        render_data: Dict[str, Any],
        width: Optional[int] = None,
        height: Optional[int] = None
    ) -> np.ndarray:
        """
        Render to RGB array (for agent observation).

        Args:
            render_data: Data from CoreGame.get_render_data().
            width: Output image width. Viewport width if None.
            height: Output image height. Viewport height if None.

        Returns:
            (height, width, 3) uint8 array.
        """
        width = width or render_data["viewport_width"]
        height = height or render_data["viewport_height"]
        surface = pygame.Surface((width, height))
        self._render_to_surface(surface, render_data)
        array = pygame.surfarray.array3d(surface)
        return np.transpose(array, (1, 0, 2)).astype(np.uint8)

    def render_to_screen(
        self,
        render_data: Dict[str, Any],
        window_width: Optional[int] = None,
        window_height: Optional[int] = None
    ) -> None:
        """
        Render to pygame window.

        Args:
            render_data: Data from CoreGame.get_render_data().
            window_width: Window width. Viewport width if None.
            window_height: Window height. Viewport height if None.
        """
        size = (
            window_width or render_data["viewport_width"],
            window_height or render_data["viewport_height"]
        )
        if self._screen is None or self._screen_size != size:
            self._screen = pygame.display.set_mode(size)
            self._screen_size = size
            pygame.display.set_caption("Endless Platformer")

        self._render_to_surface(self._screen, render_data)

    def _render_to_surface(
        self,
        surface: pygame.Surface,
        render_data: Dict[str, Any]
    ) -> None:
        """Render game state to a pygame surface."""
        width, height = surface.get_size()
        scale_x = width / render_data["viewport_width"]
        scale_y = height / render_data["viewport_height"]
        camera_x = render_data["camera_x"]

        def to_screen(x: float, y: float, w: float, h: float) -> pygame.Rect:
            return pygame.Rect(
                int((x - camera_x) * scale_x),
                int(y * scale_y),
                max(1, int(w * scale_x)),
                max(1, int(h * scale_y))
            )

        self._draw_sky(surface, width, height)
        self._draw_backdrop(surface, render_data.get("ticks", 0), scale_x, scale_y)

        for platform in render_data["platforms"]:
            rect = to_screen(platform["x"], platform["y"], platform["width"], platform["height"])
            if rect.right < 0 or rect.left > width:
                continue
            self._draw_platform(surface, rect, platform)

        for enemy in render_data["enemies"]:
            rect = to_screen(enemy["x"], enemy["y"], enemy["width"], enemy["height"])
            if rect.right < 0 or rect.left > width:
                continue
            self._draw_enemy(surface, rect, enemy)

        player = render_data["player"]
        self._draw_player(
            surface,
            to_screen(player["x"], player["y"], player["width"], player["height"]),
            player
        )

        self._draw_ui(surface, render_data, width)

        if render_data["status_title"]:
            self._draw_panel(surface, render_data, width, height)

    def _draw_sky(self, surface: pygame.Surface, width: int, height: int) -> None:
        """Vertical gradient background."""
        sky = self._sky_cache.get((width, height))
        if sky is None:
            sky = pygame.Surface((width, height))
            top = pygame.Color(*self._sky_top)
            bottom = pygame.Color(*self._sky_bottom)
            for y in range(height):
                c = top.lerp(bottom, y / max(1, height - 1))
                pygame.draw.line(sky, c, (0, y), (width, y))
            self._sky_cache[(width, height)] = sky
        surface.blit(sky, (0, 0))

    def _draw_backdrop(
        self,
        surface: pygame.Surface,
        ticks: int,
        scale_x: float,
        scale_y: float
    ) -> None:
        """Clouds and hills behind the play field."""
        t = ticks * CLOUD_SWAY_RATE
        for x, y, sway, phase in CLOUDS:
            cx = x + math.sin(t + phase) * sway
            for color, offset, shrink in ((self._cloud_shadow, 2, 2), (self._cloud_color, 0, 0)):
                for dx, dy, radius in CLOUD_PUFFS:
                    pygame.draw.circle(
                        surface,
                        color,
                        (int((cx + dx + offset) * scale_x), int((y + dy + offset) * scale_y)),
                        max(1, int((radius - shrink) * scale_x))
                    )

        old_clip = surface.get_clip()
        for hills, color in ((HILLS, self._hill_color), (HILL_SHADES, self._hill_shade)):
            for cx, cy, rx, ry in hills:
                rect = pygame.Rect(
                    int((cx - rx) * scale_x),
                    int((cy - ry) * scale_y),
                    int(2 * rx * scale_x),
                    int(2 * ry * scale_y)
                )
                # Lower half only
                surface.set_clip(pygame.Rect(rect.left, rect.centery, rect.width, rect.height))
                pygame.draw.ellipse(surface, color, rect)
        surface.set_clip(old_clip)

    def _draw_platform(
        self,
        surface: pygame.Surface,
        rect: pygame.Rect,
        platform: Dict[str, Any]
    ) -> None:
        kind = platform["kind"]
        pygame.draw.rect(surface, self._platform_colors.get(kind, self._platform_colors["normal"]), rect)

        if kind == "normal":
            grass = pygame.Rect(rect.x, rect.y, rect.width, max(2, rect.height // 5))
            pygame.draw.rect(surface, self._grass_color, grass)
        elif kind == "moving":
            # Chevrons hint at motion
            for cx in range(rect.x + 10, rect.right - 6, 20):
                cy = rect.centery
                pygame.draw.lines(surface, (220, 220, 255), False, [(cx, cy - 4), (cx + 4, cy), (cx, cy + 4)], 2)
        elif kind == "goal":
            # Waving flag on the left of the goal platform
            pole_x = rect.x + 12
            pole_top = rect.y - 60
            pygame.draw.line(surface, (60, 60, 60), (pole_x, rect.y), (pole_x, pole_top), 3)
            wave = math.sin(platform["animation_frame"] / 60 * 2 * math.pi) * 4
            pygame.draw.polygon(
                surface,
                self._flag_color,
                [(pole_x, pole_top), (pole_x + 32, pole_top + 10 + wave), (pole_x, pole_top + 20)]
            )

    def _draw_enemy(
        self,
        surface: pygame.Surface,
        rect: pygame.Rect,
        enemy: Dict[str, Any]
    ) -> None:
        bob = int(math.sin(enemy["animation_counter"]) * 2)
        body = rect.move(0, bob)
        pygame.draw.rect(surface, self._enemy_color, body, border_radius=8)

        # Eyes look where the enemy walks
        look = 3 if enemy["direction"] > 0 else -3
        eye_y = body.y + body.height // 3
        for ex in (body.x + body.width // 3, body.x + 2 * body.width // 3):
            pygame.draw.circle(surface, (255, 255, 255), (ex, eye_y), 4)
            pygame.draw.circle(surface, (0, 0, 0), (ex + look // 2, eye_y), 2)

    def _draw_player(
        self,
        surface: pygame.Surface,
        rect: pygame.Rect,
        player: Dict[str, Any]
    ) -> None:
        pygame.draw.rect(surface, self._player_color, rect, border_radius=8)
        pygame.draw.rect(surface, self._player_outline, rect, 2, border_radius=8)

        facing = player["facing"]
        eye_x = rect.centerx + facing * rect.width // 5
        pygame.draw.circle(surface, (20, 20, 40), (eye_x, rect.y + rect.height // 4), 4)

        # Legs: 4-frame walk cycle, tucked while airborne
        leg_y = rect.bottom - 2
        if player["is_jumping"]:
            offsets = (-4, 4)
        else:
            stride = (0, 5, 0, -5)[player["animation_frame"] % 4]
            offsets = (-6 + stride, 6 - stride)
        for dx in offsets:
            pygame.draw.line(
                surface,
                self._player_outline,
                (rect.centerx + dx // 2, leg_y - 8),
                (rect.centerx + dx, leg_y),
                3
            )

    def _blit_text(
        self,
        surface: pygame.Surface,
        text: str,
        font: pygame.font.Font,
        pos: Tuple[int, int],
        center: bool = False
    ) -> None:
        """Text with a drop shadow."""
        shadow = font.render(text, True, self._text_shadow)
        label = font.render(text, True, self._text_color)
        rect = label.get_rect(center=pos) if center else label.get_rect(topleft=pos)
        surface.blit(shadow, rect.move(2, 2))
        surface.blit(label, rect)

    def _draw_ui(
        self,
        surface: pygame.Surface,
        render_data: Dict[str, Any],
        width: int
    ) -> None:
        """Draw HUD with score, lives and progress."""
        self._blit_text(surface, f"Score: {render_data['score']}", self._font, (16, 12))
        self._blit_text(surface, f"Lives: {render_data['lives']}", self._font, (16, 40))

        if render_data["mode"] == "levels":
            progress = f"Level: {render_data['level']}"
        else:
            progress = f"Distance: {render_data['distance']}"
        label = self._font.render(progress, True, self._text_color)
        self._blit_text(surface, progress, self._font, (width - label.get_width() - 16, 12))

    def _draw_panel(
        self,
        surface: pygame.Surface,
        render_data: Dict[str, Any],
        width: int,
        height: int
    ) -> None:
        """Draw the end-of-run / level-complete panel."""
        overlay = pygame.Surface((width, height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 150))
        surface.blit(overlay, (0, 0))

        cx, cy = width // 2, height // 2
        self._blit_text(surface, render_data["status_title"], self._font_large, (cx, cy - 40), center=True)
        self._blit_text(surface, render_data["status_message"], self._font, (cx, cy + 10), center=True)

        if render_data["state"] == "level_won":
            hint = "Press N for the next level"
        else:
            hint = "Press R to restart"
        self._blit_text(surface, hint, self._font_small, (cx, cy + 50), center=True)

    def handle_events(self) -> bool:
        """Handle pygame events. Returns False if quit requested."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                return False
        return True

    def close(self) -> None:
        """Clean up pygame resources."""
        self._sky_cache.clear()
        if self._screen is not None:
            self._screen = None
