"""
Avoid - Dodge the Obstacles Game Mode.

The player steers a block around a 0-100 arena while four obstacles bounce
off the walls. Touching an obstacle loses; surviving GAME_DURATION wins.

Each frame:
1. Move the player from the held direction keys (clamped to the arena)
2. Move every obstacle, bouncing off the walls
3. Test the candidate player against every moved obstacle; on overlap
   report 'lose' and end
4. Otherwise commit the new positions
"""
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

import pygame

from models import MinigameResult, Rectangle
from macrogame.host import Minigame, MinigameHost
from macrogame.input import InputEvent, InputKind
from macrogame.logging import get_logger
from macrogame.scheduler import Scheduler
from games.Avoid import config, game_info

log = get_logger('avoid')

# Key names (pygame.key.name) per direction
UP_KEYS = {'w', 'up'}
DOWN_KEYS = {'s', 'down'}
LEFT_KEYS = {'a', 'left'}
RIGHT_KEYS = {'d', 'right'}

PLAYER_MAX_X = config.ARENA_SIZE - config.PLAYER_WIDTH
PLAYER_MAX_Y = config.ARENA_SIZE - config.PLAYER_HEIGHT
OBSTACLE_MAX_X = config.ARENA_SIZE - config.OBSTACLE_WIDTH
OBSTACLE_MAX_Y = config.ARENA_SIZE - config.OBSTACLE_HEIGHT


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


@dataclass
class Obstacle:
    """A bouncing obstacle. (dx, dy) is a unit direction."""
    x: float
    y: float
    dx: float
    dy: float
    speed: float

    @property
    def rect(self) -> Rectangle:
        return Rectangle(x=self.x, y=self.y, width=config.OBSTACLE_WIDTH, height=config.OBSTACLE_HEIGHT)

    def moved(self) -> 'Obstacle':
        """Position after one frame, with the direction flipped on each wall touched."""
        x = self.x + self.dx * self.speed
        y = self.y + self.dy * self.speed
        dx, dy = self.dx, self.dy

        if x <= 0 or x >= OBSTACLE_MAX_X:
            dx = -dx
        if y <= 0 or y >= OBSTACLE_MAX_Y:
            dy = -dy

        return Obstacle(
            x=_clamp(x, 0.0, OBSTACLE_MAX_X),
            y=_clamp(y, 0.0, OBSTACLE_MAX_Y),
            dx=dx,
            dy=dy,
            speed=self.speed,
        )


def create_obstacles(rng: random.Random) -> List[Obstacle]:
    """Four obstacles, one per corner, each with a random heading and speed."""
    inset = config.CORNER_INSET
    far_x = config.ARENA_SIZE - inset - config.OBSTACLE_WIDTH
    far_y = config.ARENA_SIZE - inset - config.OBSTACLE_HEIGHT

    obstacles = []
    for x, y in ((inset, inset), (far_x, inset), (inset, far_y), (far_x, far_y)):
        angle = rng.random() * 2 * math.pi
        speed = config.MIN_OBSTACLE_SPEED + rng.random() * (config.MAX_OBSTACLE_SPEED - config.MIN_OBSTACLE_SPEED)
        obstacles.append(Obstacle(x=x, y=y, dx=math.cos(angle), dy=math.sin(angle), speed=speed))
    return obstacles


class AvoidGame(Minigame):
    """
    Avoid game mode.

    Behind the overlay gate the game is frozen: no timers run and nothing
    moves until the first key or mouse press.

    Args:
        host: Contract for this instance
        scheduler: Clock for the win timer, countdown and frame loop
        rng: Random source for obstacle headings and speeds
    """

    GAME_ID = game_info.GAME_ID
    NAME = game_info.NAME
    DESCRIPTION = game_info.DESCRIPTION
    VERSION = game_info.VERSION
    AUTHOR = game_info.AUTHOR
    CONTROLS = game_info.CONTROLS

    def __init__(self, host: MinigameHost, scheduler: Scheduler, rng: Optional[random.Random] = None, **kwargs):
        super().__init__(host, scheduler, **kwargs)
        self._rng = rng or random.Random()

        self.player_x = (config.ARENA_SIZE - config.PLAYER_WIDTH) / 2
        self.player_y = (config.ARENA_SIZE - config.PLAYER_HEIGHT) / 2
        self.obstacles: List[Obstacle] = create_obstacles(self._rng)
        self.timer_width = 100.0

        self._keys: Set[str] = set()
        self._active = True
        self._paused = host.is_overlay_visible
        self._started = False
        self._images: Dict[str, Optional[pygame.Surface]] = {}

    # =========================================================================
    # State
    # =========================================================================

    @property
    def active(self) -> bool:
        """False once the game has ended."""
        return self._active

    @property
    def paused(self) -> bool:
        """True while frozen behind the overlay gate."""
        return self._paused

    @property
    def player(self) -> Rectangle:
        return Rectangle(x=self.player_x, y=self.player_y,
                         width=config.PLAYER_WIDTH, height=config.PLAYER_HEIGHT)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        self._started = True
        if not self._paused:
            self._begin()

    def _begin(self) -> None:
        """Start the win timer, countdown bar and frame loop."""
        log.debug("Avoid running (%.1fs)", config.GAME_DURATION)
        self._track(self._scheduler.call_later(config.GAME_DURATION, self._end_game, True, label='avoid-win'))
        self._track(self._scheduler.call_every(config.TIMER_STEP, self._tick_countdown, label='avoid-countdown'))
        self._track(self._scheduler.every_frame(self._step, label='avoid-frame'))

    def _tick_countdown(self) -> None:
        step = 100.0 / (config.GAME_DURATION / config.TIMER_STEP)
        self.timer_width = max(0.0, self.timer_width - step)

    def _end_game(self, win: bool) -> None:
        if not self._active:
            return
        self._active = False
        self.dispose()

        self._host.on_report_event('win' if win else 'lose')
        self._host.on_end(MinigameResult(win=win))

    # =========================================================================
    # Input
    # =========================================================================

    def handle_input(self, events: Sequence[InputEvent]) -> None:
        for event in events:
            if event.is_qualifying and self._paused and self._active:
                self._paused = False
                self._host.on_interaction()
                if self._started:
                    self._begin()

            if event.key is None:
                continue
            if event.kind == InputKind.KEY_DOWN:
                self._keys.add(event.key.lower())
            elif event.kind == InputKind.KEY_UP:
                self._keys.discard(event.key.lower())

    # =========================================================================
    # Simulation
    # =========================================================================

    def _step(self, dt: float) -> None:
        """Advance one frame. Motion is per frame, not per second."""
        if not self._active or self._paused:
            return

        next_x, next_y = self.player_x, self.player_y
        if self._keys & UP_KEYS:
            next_y -= config.PLAYER_SPEED
        if self._keys & DOWN_KEYS:
            next_y += config.PLAYER_SPEED
        if self._keys & LEFT_KEYS:
            next_x -= config.PLAYER_SPEED
        if self._keys & RIGHT_KEYS:
            next_x += config.PLAYER_SPEED
        next_x = _clamp(next_x, 0.0, PLAYER_MAX_X)
        next_y = _clamp(next_y, 0.0, PLAYER_MAX_Y)

        player_rect = Rectangle(x=next_x, y=next_y, width=config.PLAYER_WIDTH, height=config.PLAYER_HEIGHT)
        moved = [obstacle.moved() for obstacle in self.obstacles]

        if any(player_rect.overlaps(obstacle.rect) for obstacle in moved):
            log.debug("Collision at (%.1f, %.1f)", next_x, next_y)
            self._end_game(False)
            return

        self.player_x, self.player_y = next_x, next_y
        self.obstacles = moved

    # =========================================================================
    # Rendering
    # =========================================================================

    def _image(self, key: str) -> Optional[pygame.Surface]:
        """Skin image for an asset key, loaded once. None when unset or unreadable."""
        if key not in self._images:
            path = self._host.skin_config.get(key)
            image = None
            if path:
                try:
                    image = pygame.image.load(path)
                except (pygame.error, FileNotFoundError) as e:
                    log.warning("Could not load skin image '%s' (%s): %s", key, path, e)
            self._images[key] = image
        return self._images[key]

    def _to_screen(self, surface: pygame.Surface, x: float, y: float, w: float, h: float) -> pygame.Rect:
        sx = surface.get_width() / config.ARENA_SIZE
        sy = surface.get_height() / config.ARENA_SIZE
        return pygame.Rect(round(x * sx), round(y * sy), max(1, round(w * sx)), max(1, round(h * sy)))

    def _draw_entity(self, surface: pygame.Surface, rect: pygame.Rect, key: str, color) -> None:
        image = self._image(key)
        if image is not None:
            surface.blit(pygame.transform.smoothscale(image, rect.size), rect)
        else:
            pygame.draw.rect(surface, color, rect)

    def render(self, surface: pygame.Surface) -> None:
        background = self._image('background')
        if background is not None:
            surface.blit(pygame.transform.smoothscale(background, surface.get_size()), (0, 0))
        else:
            surface.fill(config.BACKGROUND_COLOR)

        player_rect = self._to_screen(surface, self.player_x, self.player_y,
                                      config.PLAYER_WIDTH, config.PLAYER_HEIGHT)
        self._draw_entity(surface, player_rect, 'player', config.PLAYER_COLOR)
        for obstacle in self.obstacles:
            rect = self._to_screen(surface, obstacle.x, obstacle.y,
                                   config.OBSTACLE_WIDTH, config.OBSTACLE_HEIGHT)
            self._draw_entity(surface, rect, 'obstacle', config.OBSTACLE_COLOR)

        # Countdown bar
        width, height = surface.get_size()
        track = pygame.Surface((width, config.TIMER_HEIGHT), pygame.SRCALPHA)
        track.fill(config.TIMER_TRACK_COLOR)
        surface.blit(track, (0, height - config.TIMER_HEIGHT))
        bar_width = int(width * self.timer_width / 100.0)
        if bar_width > 0:
            pygame.draw.rect(surface, config.TIMER_COLOR,
                             (0, height - config.TIMER_HEIGHT, bar_width, config.TIMER_HEIGHT))

        if self._paused:
            self._render_overlay(surface)

    def _render_overlay(self, surface: pygame.Surface) -> None:
        width, height = surface.get_size()
        overlay = pygame.Surface((width, height), pygame.SRCALPHA)
        overlay.fill(config.OVERLAY_COLOR)
        surface.blit(overlay, (0, 0))

        entry = self._host.game_data
        lines = [
            (entry.name, 56),
            (entry.controls or self.CONTROLS, 32),
            ("Press any key to start", 28),
        ]
        y = height // 2 - 60
        for text, size in lines:
            if not text:
                continue
            font = pygame.font.Font(None, size)
            rendered = font.render(text, True, config.TEXT_COLOR)
            surface.blit(rendered, rendered.get_rect(center=(width // 2, y)))
            y += size + 12
