#!/usr/bin/env python3
"""
Macrogame Launcher

Plays a macrogame session in a pygame window: intro, each minigame with its
title/controls/result screens, promo and the reward screen.

Usage:
    # List available minigames
    python play_macrogame.py --list-games

    # Play a session
    python play_macrogame.py sessions/demo.yaml

    # With custom resolution, muted
    python play_macrogame.py sessions/demo.yaml --resolution 1920x1080 --mute

Controls:
    ESC            quit
    M              toggle mute
    R              restart the session
    SPACE / click  continue from intro or promo screens
    1-9            claim a reward on the end screen
"""

import argparse
import os
import sys
from typing import Optional

import pygame

# Ensure project root is on path
_project_root = os.path.dirname(os.path.abspath(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from games.registry import get_registry
from macrogame import config
from macrogame.audio import NullAudioBackend, PygameAudioBackend
from macrogame.errors import SessionConfigError
from macrogame.flow import FlowController
from macrogame.input import convert_events
from macrogame.logging import configure_logging, get_logger, set_clock
from macrogame.music import MusicResolver
from macrogame.rewards import RewardBoard
from macrogame.scheduler import Scheduler
from macrogame.screens import ScreenRenderer, render_error
from macrogame.session import load_session
from models import Phase

log = get_logger('launcher')


def parse_resolution(value: str):
    """Parse WIDTHxHEIGHT."""
    try:
        width, height = value.lower().split('x')
        return int(width), int(height)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid resolution '{value}', expected WIDTHxHEIGHT (e.g., 1920x1080)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Macrogame Launcher - play a sequence of minigames',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python play_macrogame.py --list-games
  python play_macrogame.py sessions/demo.yaml
  python play_macrogame.py sessions/demo.yaml --fullscreen --mute
        """
    )
    parser.add_argument('session', nargs='?', help='Session file (YAML or JSON)')
    parser.add_argument('--list-games', '-l', action='store_true',
                        help='List all available minigames and exit')
    parser.add_argument('--resolution', '-r', type=parse_resolution,
                        default=(config.SCREEN_WIDTH, config.SCREEN_HEIGHT),
                        help=f'Window resolution as WIDTHxHEIGHT (default: {config.SCREEN_WIDTH}x{config.SCREEN_HEIGHT})')
    parser.add_argument('--fullscreen', '-f', action='store_true', help='Run in fullscreen mode')
    parser.add_argument('--mute', '-m', action='store_true', help='Start muted')
    parser.add_argument('--log-level', help='Default log level (TRACE, DEBUG, INFO, WARNING, ERROR, OFF)')
    return parser


def list_games(registry) -> None:
    print("\nAvailable Minigames")
    print("=" * 50)
    for game_id in registry.list_games():
        info = registry.get_game_info(game_id)
        print(f"\n  {game_id}")
        print(f"    Name: {info.name}")
        print(f"    Description: {info.description}")
        print(f"    Version: {info.version}")
        if info.controls:
            print(f"    Controls: {info.controls}")
    print()


def show_error(screen: pygame.Surface, message: str) -> None:
    """Show a configuration error until the window is closed."""
    clock = pygame.time.Clock()
    while True:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                return
        render_error(screen, message)
        pygame.display.flip()
        clock.tick(15)


def main() -> int:
    """Main entry point for the macrogame launcher."""
    args = build_parser().parse_args()
    if args.log_level:
        configure_logging(level=args.log_level)
    registry = get_registry()

    if args.list_games:
        list_games(registry)
        return 0
    if args.session is None:
        build_parser().print_help()
        return 1

    pygame.init()
    if args.fullscreen:
        screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
    else:
        screen = pygame.display.set_mode(args.resolution)
    width, height = screen.get_size()

    scheduler = Scheduler()
    set_clock(lambda: scheduler.now)
    try:
        session = load_session(args.session)
        backend = PygameAudioBackend() if config.AUDIO_ENABLED else NullAudioBackend()
        music = MusicResolver(session, backend)
        controller = FlowController(session, scheduler, registry, music=music)
    except SessionConfigError as e:
        log.error("Cannot start session: %s", e)
        pygame.display.set_caption("Macrogame - Error")
        show_error(screen, str(e))
        pygame.quit()
        return 1

    rewards = None
    if session.conversion_screen is not None:
        rewards = RewardBoard(session.conversion_screen, controller.ledger, session.point_costs)
    renderer = ScreenRenderer(controller, rewards)

    pygame.display.set_caption(f"{session.name or 'Macrogame'}")
    print("=" * 60)
    print(f"Macrogame: {session.name or session.id}")
    print("=" * 60)
    print(f"Resolution: {width}x{height}")
    print(f"Games: {', '.join(entry.id for entry in session.flow) or '(none)'}")
    print()
    print("Controls:")
    print("  - M to toggle mute")
    print("  - R to restart")
    print("  - SPACE / click to continue")
    print("  - 1-9 to claim a reward on the end screen")
    print("  - ESC to quit")
    print("=" * 60)

    if args.mute:
        controller.set_muted(True)
    controller.start()

    clock = pygame.time.Clock()
    running = True

    while running:
        dt = clock.tick(config.FPS) / 1000.0

        forwarded = []
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_m:
                muted = controller.toggle_mute()
                print(f"Muted: {muted}")
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_r:
                restart_session(controller, rewards)
                print("\n--- RESTARTED ---\n")
            elif (controller.view == Phase.INTRO and session.intro_screen.click_to_continue
                  and _is_continue(event)):
                controller.advance_from_intro()
            elif (controller.view == Phase.PROMO and session.promo_screen.click_to_continue
                  and _is_continue(event)):
                controller.advance_from_promo()
            elif controller.view == Phase.END and event.type == pygame.KEYDOWN:
                claim_reward(rewards, event.key)
            else:
                forwarded.append(event)

        controller.handle_input(convert_events(forwarded))
        scheduler.advance(dt)

        renderer.render(screen)
        pygame.display.flip()

    controller.close()
    print(f"\nFinal score: {controller.score}")
    pygame.quit()
    return 0


def claim_reward(rewards: Optional[RewardBoard], key: int) -> bool:
    """Number keys 1-9 pick the end-screen method at that position.

    Returns True when the method was purchased or completed.
    """
    if rewards is None or not pygame.K_1 <= key <= pygame.K_9:
        return False
    statuses = rewards.statuses()
    index = key - pygame.K_1
    if index >= len(statuses):
        return False
    claimed = rewards.activate(statuses[index].instance_id)
    if claimed:
        print(f"Claimed: {statuses[index].name}")
    return claimed


def restart_session(controller: FlowController, rewards: Optional[RewardBoard]) -> None:
    """Start the session over; purchases from the previous run are forgotten."""
    if rewards is not None:
        rewards.reset()
    controller.start()


def _is_continue(event: pygame.event.Event) -> bool:
    if event.type == pygame.KEYDOWN and event.key == pygame.K_SPACE:
        return True
    return event.type == pygame.MOUSEBUTTONDOWN


if __name__ == '__main__':
    sys.exit(main())
