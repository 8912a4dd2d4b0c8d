"""Windowed front end for the emulator."""

import argparse

import pygame

from .emulator import GBA

SCREEN_WIDTH = 240
SCREEN_HEIGHT = 160
SCALE_FACTOR = 3
WINDOW_TITLE = "GBA Emulator"
DEBUG_MESSAGE = "GBA Emulator - Under Development"
_FPS = 60


class Game:
    """Connects an emulator to the display loop."""

    def __init__(self, emulator) -> None:
        self.emulator = emulator
        self._font = None

    def update(self) -> None:
        self.emulator.update()

    def draw(self, screen) -> None:
        """Draw the status message in the top-left corner of screen."""
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.Font(None, 16)
        text = self._font.render(DEBUG_MESSAGE, True, (255, 255, 255))
        screen.blit(text, (0, 0))

    def layout(self, outside_width: int, outside_height: int) -> tuple[int, int]:
        """Logical screen size, independent of the window size."""
        return SCREEN_WIDTH, SCREEN_HEIGHT


def main(argv=None) -> int:
    """Open the emulator window and run until it is closed."""
    parser = argparse.ArgumentParser(prog="pygba", description="Run the emulator.")
    parser.parse_args(argv)

    pygame.init()
    try:
        window = pygame.display.set_mode(
            (SCREEN_WIDTH * SCALE_FACTOR, SCREEN_HEIGHT * SCALE_FACTOR)
        )
        pygame.display.set_caption(WINDOW_TITLE)
        game = Game(GBA())
        clock = pygame.time.Clock()
        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
            game.update()
            frame = pygame.Surface(game.layout(*window.get_size()))
            game.draw(frame)
            pygame.transform.scale(frame, window.get_size(), window)
            pygame.display.flip()
            clock.tick(_FPS)
    finally:
        pygame.quit()
    return 0