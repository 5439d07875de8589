"""
pygame rendering of the static phase screens and the HUD chrome.

The renderer is a pure consumer of FlowController state: it reads the
current phase, entries and score and draws them. During the game phase the
mounted minigame draws itself into the game area.
"""
from typing import Dict, List, Optional, Tuple

import pygame

from models import MacrogameSession, Phase, ScreenConfig
from macrogame import config
from macrogame.flow import FlowController
from macrogame.logging import get_logger
from macrogame.rewards import MethodStatus, RewardBoard

log = get_logger('screens')

HUD_HEIGHT = 40


class ScreenRenderer:
    """Draws the current phase of a FlowController onto a pygame surface.

    Args:
        controller: Session to draw
        rewards: Reward board for the end screen, if a conversion screen is set
    """

    def __init__(self, controller: FlowController, rewards: Optional[RewardBoard] = None):
        self._controller = controller
        self._rewards = rewards
        self._fonts: Dict[int, pygame.font.Font] = {}
        self._images: Dict[str, Optional[pygame.Surface]] = {}

    @property
    def session(self) -> MacrogameSession:
        return self._controller.session

    def _font(self, size: int) -> pygame.font.Font:
        if size not in self._fonts:
            self._fonts[size] = pygame.font.Font(None, size)
        return self._fonts[size]

    def _image(self, path: Optional[str]) -> Optional[pygame.Surface]:
        if not path:
            return None
        if path not in self._images:
            try:
                self._images[path] = pygame.image.load(path)
            except (pygame.error, FileNotFoundError) as e:
                log.warning("Could not load image %s: %s", path, e)
                self._images[path] = None
        return self._images[path]

    def _text(self, surface: pygame.Surface, text: str, size: int, color: Tuple[int, int, int],
              center: Tuple[int, int]) -> int:
        """Draw centered text; returns the rendered height."""
        rendered = self._font(size).render(text, True, color)
        surface.blit(rendered, rendered.get_rect(center=center))
        return rendered.get_height()

    def _lines(self, surface: pygame.Surface, lines: List[Tuple[str, int, Tuple[int, int, int]]],
               top: Optional[int] = None) -> None:
        """Stack lines vertically around the middle of the surface."""
        width, height = surface.get_size()
        total = sum(size + 14 for text, size, _ in lines if text)
        y = top if top is not None else (height - total) // 2
        for text, size, color in lines:
            if not text:
                continue
            self._text(surface, text, size, color, (width // 2, y + size // 2))
            y += size + 14

    # =========================================================================
    # Frame
    # =========================================================================

    def game_area(self, surface: pygame.Surface) -> pygame.Surface:
        """Part of the window left for the minigame below the HUD."""
        if not self._hud_visible():
            return surface
        width, height = surface.get_size()
        return surface.subsurface(pygame.Rect(0, HUD_HEIGHT, width, height - HUD_HEIGHT))

    def render(self, surface: pygame.Surface) -> None:
        surface.fill(config.BACKGROUND_COLOR)
        phase = self._controller.view

        if phase == Phase.GAME and self._controller.minigame is not None:
            self._controller.minigame.render(self.game_area(surface))
        elif phase == Phase.INTRO:
            self._render_screen_config(surface, self.session.intro_screen)
        elif phase == Phase.PROMO:
            self._render_screen_config(surface, self.session.promo_screen)
        elif phase in (Phase.TITLE, Phase.CONTROLS, Phase.COMBINED):
            self._render_slot(surface, phase)
        elif phase == Phase.RESULT:
            self._render_result(surface)
        elif phase == Phase.END:
            self._render_end(surface)
        else:
            self._lines(surface, [("Loading...", config.FONT_SIZE_MEDIUM, config.TEXT_COLOR)])

        if self._hud_visible():
            self._render_hud(surface)

    def _hud_visible(self) -> bool:
        cfg = self.session.config
        return cfg.show_points or cfg.show_progress

    def _render_hud(self, surface: pygame.Surface) -> None:
        width = surface.get_width()
        bar = pygame.Surface((width, HUD_HEIGHT), pygame.SRCALPHA)
        bar.fill((0, 0, 0, 140))
        surface.blit(bar, (0, 0))

        cfg = self.session.config
        font = self._font(config.FONT_SIZE_SMALL)
        if cfg.show_points:
            text = font.render(f"Points: {self._controller.score}", True, config.HUD_TEXT_COLOR)
            surface.blit(text, (16, (HUD_HEIGHT - text.get_height()) // 2))
        if cfg.show_progress and self._controller.progress_text:
            text = font.render(self._controller.progress_text, True, config.HUD_TEXT_COLOR)
            surface.blit(text, (width - text.get_width() - 16, (HUD_HEIGHT - text.get_height()) // 2))
        if self._controller.muted:
            text = font.render("Muted", True, config.HUD_TEXT_COLOR)
            surface.blit(text, text.get_rect(center=(width // 2, HUD_HEIGHT // 2)))

    # =========================================================================
    # Phase screens
    # =========================================================================

    def _render_screen_config(self, surface: pygame.Surface, screen: ScreenConfig) -> None:
        width, height = surface.get_size()
        background = self._image(screen.background_image_url)
        if background is not None:
            surface.blit(pygame.transform.smoothscale(background, (width, height)), (0, 0))

        text_area = surface
        spotlight = self._image(screen.spotlight_image_url)
        if spotlight is not None:
            layout = screen.spotlight_image_layout or 'left'
            half_w, half_h = width // 2, height // 2
            if layout in ('left', 'right'):
                image_rect = pygame.Rect(0 if layout == 'left' else half_w, 0, half_w, height)
                text_rect = pygame.Rect(half_w if layout == 'left' else 0, 0, half_w, height)
            else:
                image_rect = pygame.Rect(0, 0 if layout == 'top' else half_h, width, half_h)
                text_rect = pygame.Rect(0, half_h if layout == 'top' else 0, width, half_h)
            surface.blit(pygame.transform.smoothscale(spotlight, image_rect.size), image_rect)
            text_area = surface.subsurface(text_rect)

        lines = [(line, config.FONT_SIZE_MEDIUM, config.TEXT_COLOR) for line in screen.text.splitlines()]
        if screen.click_to_continue:
            lines.append(("Press SPACE or click to continue", config.FONT_SIZE_SMALL, config.TEXT_COLOR))
        self._lines(text_area, lines)

    def _render_slot(self, surface: pygame.Surface, phase: Phase) -> None:
        entry = self._controller.active_entry
        if entry is None:
            return
        lines = []
        if phase in (Phase.TITLE, Phase.COMBINED):
            lines.append((entry.name, config.FONT_SIZE_HUGE, config.TEXT_COLOR))
        if phase in (Phase.CONTROLS, Phase.COMBINED):
            lines.append((entry.controls, config.FONT_SIZE_LARGE, config.TEXT_COLOR))
            if entry.description:
                lines.append((entry.description, config.FONT_SIZE_SMALL, config.TEXT_COLOR))
        self._lines(surface, lines)

    def _render_result(self, surface: pygame.Surface) -> None:
        result = self._controller.result
        if result is None:
            return
        if result.win:
            lines = [("YOU WIN!", config.FONT_SIZE_HUGE, config.WIN_COLOR)]
        else:
            lines = [("YOU LOSE", config.FONT_SIZE_HUGE, config.LOSE_COLOR)]
        if self.session.config.show_points:
            lines.append((f"Points: {self._controller.score}", config.FONT_SIZE_MEDIUM, config.TEXT_COLOR))
        self._lines(surface, lines)

    def _render_end(self, surface: pygame.Surface) -> None:
        screen = self.session.conversion_screen
        if screen is None:
            self._lines(surface, [
                ("Thanks for playing!", config.FONT_SIZE_LARGE, config.TEXT_COLOR),
                (f"Final score: {self._controller.score}", config.FONT_SIZE_MEDIUM, config.TEXT_COLOR),
            ])
            return

        lines = [
            (screen.headline, config.FONT_SIZE_LARGE, config.TEXT_COLOR),
            (screen.body_text, config.FONT_SIZE_SMALL, config.TEXT_COLOR),
        ]
        if self._rewards is not None:
            statuses = self._rewards.statuses()
            for number, status in enumerate(statuses, start=1):
                lines.append((f"{number}. {reward_label(status)}", config.FONT_SIZE_SMALL, config.TEXT_COLOR))
            if statuses:
                hint = "Press 1 to claim" if len(statuses) == 1 else f"Press 1-{min(len(statuses), 9)} to claim"
                lines.append((hint, config.FONT_SIZE_SMALL, config.TEXT_COLOR))
        self._lines(surface, lines)


def reward_label(status: MethodStatus) -> str:
    """End-screen text for one conversion method."""
    if status.completed:
        return f"{status.name} (claimed)"
    if status.locked and status.point_cost > 0:
        return f"[locked] {status.name} ({status.point_cost} pts)"
    if status.locked:
        return f"[locked] {status.name}"
    return status.name


def render_error(surface: pygame.Surface, message: str) -> None:
    """Full-window error screen for sessions that cannot start."""
    surface.fill(config.BACKGROUND_COLOR)
    width, height = surface.get_size()
    title = pygame.font.Font(None, config.FONT_SIZE_LARGE).render(
        "Session could not start", True, config.ERROR_TEXT_COLOR)
    surface.blit(title, title.get_rect(center=(width // 2, height // 2 - 40)))

    font = pygame.font.Font(None, config.FONT_SIZE_SMALL)
    y = height // 2 + 10
    for line in message.splitlines()[:8]:
        rendered = font.render(line, True, config.TEXT_COLOR)
        surface.blit(rendered, rendered.get_rect(center=(width // 2, y)))
        y += rendered.get_height() + 6
