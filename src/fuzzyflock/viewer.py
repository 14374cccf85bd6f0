"""pygame window that draws the flock and turns the mouse into the predator."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

import pygame

from .bird import PredatorInput
from .config import SimulationConfig
from .world import World

logger = logging.getLogger(__name__)

BIRD_SIZE = 5
BACKGROUND = (0, 0, 0)
PREDATOR_COLOR = (255, 60, 60)


class PointerHandler:
    """Maps pygame mouse events onto a predator input channel."""

    def __init__(self, predator_input: PredatorInput):
        self.predator_input = predator_input

    def handle_event(self, event: pygame.event.Event) -> bool:
        """
        Handle a single pygame event.
        Returns False if the viewer should quit, True otherwise.
        """
        if event.type == pygame.QUIT:
            return False
        if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            return False
        if event.type == pygame.MOUSEMOTION:
            self.predator_input.set_position(*event.pos)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            x, y = event.pos
            self.predator_input.set(x, y, True)
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self.predator_input.set_active(False)
        return True


class Viewer:
    def __init__(self, world: World, frame_rate: Optional[float] = None):
        self.world = world
        self.frame_rate = frame_rate if frame_rate is not None else 1.0 / world.config.time_step
        self.pointer = PointerHandler(world.predator_input)
        self.running = True

    def run(self) -> None:
        pygame.init()
        config = self.world.config
        screen = pygame.display.set_mode((int(config.width), int(config.height)))
        pygame.display.set_caption("Fuzzy flocking")
        clock = pygame.time.Clock()
        logger.info("viewer running at %.1f Hz", self.frame_rate)
        try:
            while self.running:
                for event in pygame.event.get():
                    if not self.pointer.handle_event(event):
                        self.running = False
                self.world.step(1.0 / self.frame_rate)
                self._draw(screen)
                pygame.display.flip()
                clock.tick(self.frame_rate)
        finally:
            pygame.quit()

    def _draw(self, screen: pygame.Surface) -> None:
        screen.fill(BACKGROUND)
        for bird in self.world.birds:
            rect = (round(bird.position.x), round(bird.position.y), BIRD_SIZE, BIRD_SIZE)
            screen.fill(bird.color, rect)
        predator = self.world.predator
        if predator.active:
            center = (round(predator.position.x), round(predator.position.y))
            pygame.draw.circle(screen, PREDATOR_COLOR, center, BIRD_SIZE * 2, 1)


def main() -> None:
    parser = argparse.ArgumentParser(description="Interactive fuzzy flocking viewer")
    parser.add_argument("--config", type=Path, default=None, help="YAML simulation config")
    parser.add_argument("--birds", type=int, default=None, help="Override the initial population")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    if args.birds is not None:
        config.initial_population = args.birds
    if args.seed is not None:
        config.seed = args.seed
    Viewer(World(config)).run()


if __name__ == "__main__":
    main()
