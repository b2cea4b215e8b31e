"""
Human Play Mode
================

Play the platformer interactively with keyboard or mouse.

Controls:
    - Left/Right arrows: Move
    - Space/Up arrow: Jump
    - Mouse button: left third moves left, right third moves right,
      middle third jumps
    - R: Restart game
    - N: Next level (level mode, after a level is complete)
    - ESC: Quit

Usage:
    python -m tools.play_human [--seed SEED] [--mode {endless,levels}] [--fps FPS]
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional

try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False

from platformer.core.config_loader import load_config, GameConfig
from platformer.core.game import CoreGame
from platformer.core.input_state import IntentSet
from platformer.core.rules import SessionState
from platformer.core.render_pygame import PygameRenderer
from platformer.core.world_source import WORLD_MODES


class HumanPlayer:
    """
    Interactive game session driven by pygame events.

    Held keys and mouse buttons set the movement intents every frame; jump is
    set only on key-down / button-down so holding jump does not bunny-hop.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        mode: str = "endless",
        target_fps: int = 60
    ):
        if not PYGAME_AVAILABLE:
            raise ImportError("pygame required. Install: pip install pygame")

        if config is None:
            config = load_config()

        self._config = config
        self._seed = seed
        self._target_fps = target_fps

        # Initialize game
        self._game = CoreGame(config=config, seed=seed, mode=mode)

        # Initialize pygame
        pygame.init()
        self._clock = pygame.time.Clock()

        # Initialize renderer
        self._renderer = PygameRenderer(config)

        # State
        self._running = True
        self._intents = IntentSet()
        self._mouse_left = False
        self._mouse_right = False
        self._last_state = self._game.state

    def run(self) -> int:
        """Run the game loop. Returns final score."""
        print("=== Endless Platformer ===")
        print("Arrows to move, Space/Up to jump (or click the screen thirds)")
        print("R to restart, N for the next level, ESC to quit")
        print()

        while self._running:
            self._handle_events()
            self._update()
            self._render()
            self._clock.tick(self._target_fps)

        pygame.quit()
        return self._game.score

    def _handle_events(self) -> None:
        """Process pygame events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self._running = False
                elif event.key == pygame.K_r:
                    self._restart()
                elif event.key == pygame.K_n:
                    self._next_level()
                elif event.key in (pygame.K_SPACE, pygame.K_UP):
                    self._intents.jump = True

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                width = self._config.viewport.width
                x = event.pos[0]
                if x < width / 3:
                    self._mouse_left, self._mouse_right = True, False
                elif x > width * 2 / 3:
                    self._mouse_left, self._mouse_right = False, True
                else:
                    self._intents.jump = True

            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self._mouse_left = False
                self._mouse_right = False

    def _update(self) -> None:
        """Sample held input and advance one tick."""
        keys = pygame.key.get_pressed()
        self._intents.move_left = bool(keys[pygame.K_LEFT]) or self._mouse_left
        self._intents.move_right = bool(keys[pygame.K_RIGHT]) or self._mouse_right

        result = self._game.step(self._intents)

        for event in result.score_events:
            if event.reason == "stomp":
                print(f"  Stomp! +{event.points} (Total: {self._game.score})")
        if result.life_lost and not result.terminated:
            print(f"  Lives lost: {result.lives_lost} ({self._game.lives} left)")

        state = self._game.state
        if state is not self._last_state:
            if state is SessionState.GAME_OVER:
                print(f"\nGAME OVER - Score: {self._game.score}, Distance: {self._game.distance}")
            elif state is SessionState.LEVEL_WON:
                print(f"\nLEVEL {self._game.level} COMPLETE - Score: {self._game.score}")
            elif state is SessionState.GAME_WON:
                print(f"\nALL LEVELS COMPLETE - Score: {self._game.score}")
            self._last_state = state

    def _restart(self) -> None:
        """Restart the game."""
        self._game.restart(seed=self._seed)
        self._intents.clear()
        self._last_state = self._game.state
        print("\n=== Game Restarted ===\n")

    def _next_level(self) -> None:
        """Continue after a won level; ignored otherwise."""
        if self._game.state is not SessionState.LEVEL_WON:
            return
        self._game.next_level()
        self._intents.clear()
        self._last_state = self._game.state
        print(f"\n=== Level {self._game.level} ===\n")

    def _render(self) -> None:
        """Render the game."""
        self._renderer.render_to_screen(self._game.get_render_data())
        pygame.display.flip()


def main():
    parser = argparse.ArgumentParser(description="Play the platformer interactively")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--mode", choices=list(WORLD_MODES), default="endless", help="World mode")
    parser.add_argument("--fps", type=int, default=60, help="Target FPS")

    args = parser.parse_args()

    try:
        config = load_config()
        player = HumanPlayer(
            config=config,
            seed=args.seed,
            mode=args.mode,
            target_fps=args.fps
        )
        score = player.run()
        print(f"\nFinal Score: {score}")
        return 0
    except ImportError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
