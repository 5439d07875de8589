"""
Macrogame Logging

Print-based per-module loggers shared by the engine, the launcher and the
minigame plugins. Lines look like:

    [flow] INFO: title -> controls (game 0/3)
    [flow] INFO t=4.500: controls -> game (game 0/3)   # with a session clock

Usage:
    from macrogame.logging import get_logger

    log = get_logger('flow')
    log.info("Entering phase %s", phase)

Configuration:
    MACROGAME_LOG_LEVEL=DEBUG      # default level for every module
    MACROGAME_LOG_MUSIC=TRACE      # level for one module

    or configure_logging(level='DEBUG', modules={'music': 'INFO'})

set_clock() attaches a time source (normally Scheduler.now) so that every
line carries the virtual session time.
"""

import os
import sys
import traceback
from enum import IntEnum
from functools import lru_cache
from typing import Callable, Dict, Optional


class LogLevel(IntEnum):
    TRACE = 5
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50
    OFF = 100


_ENV_PREFIX = 'MACROGAME_LOG_'
_GLOBAL_KEY = _ENV_PREFIX + 'LEVEL'

_LABELS = {
    LogLevel.TRACE: 'TRACE',
    LogLevel.DEBUG: 'DEBUG',
    LogLevel.INFO: 'INFO',
    LogLevel.WARNING: 'WARN',
    LogLevel.ERROR: 'ERROR',
    LogLevel.CRITICAL: 'CRIT',
}

_default_level = LogLevel.INFO
_module_levels: Dict[str, LogLevel] = {}
_clock: Optional[Callable[[], float]] = None


def parse_level(name: str, fallback: LogLevel = LogLevel.INFO) -> LogLevel:
    """Level for a name such as 'debug' or 'WARN'; unknown names give fallback."""
    name = name.strip().upper()
    if name == 'WARN':
        return LogLevel.WARNING
    return LogLevel.__members__.get(name, fallback)


def configure_logging(level: Optional[str] = None, modules: Optional[Dict[str, str]] = None) -> None:
    """
    Set the default level and/or per-module levels.

    Args:
        level: Default level for modules without their own setting
        modules: module name -> level
    """
    global _default_level
    if level is not None:
        _default_level = parse_level(level)
    for module, module_level in (modules or {}).items():
        _module_levels[module.lower()] = parse_level(module_level)


def set_clock(clock: Optional[Callable[[], float]]) -> None:
    """Prefix every line with clock() seconds; None removes the prefix."""
    global _clock
    _clock = clock


def _load_env_config() -> None:
    if _GLOBAL_KEY in os.environ:
        configure_logging(level=os.environ[_GLOBAL_KEY])
    configure_logging(modules={
        key[len(_ENV_PREFIX):]: value
        for key, value in os.environ.items()
        if key.startswith(_ENV_PREFIX) and key != _GLOBAL_KEY
    })


_load_env_config()


class MacrogameLogger:
    """
    Logger for one module.

    Arguments are %-formatted only when the level is enabled. WARNING and
    above go to stderr.
    """

    def __init__(self, module: str):
        self.module = module
        self._key = module.lower().replace('.', '_')

    @property
    def level(self) -> LogLevel:
        return _module_levels.get(self._key, _default_level)

    def enabled(self, level: LogLevel) -> bool:
        return level >= self.level

    def _emit(self, level: LogLevel, msg: str, args: tuple) -> None:
        if not self.enabled(level):
            return
        if args:
            try:
                msg = msg % args
            except (TypeError, ValueError):
                msg = f"{msg} {args}"

        label = _LABELS[level]
        if _clock is not None:
            label = f"{label} t={_clock():.3f}"
        stream = sys.stderr if level >= LogLevel.WARNING else sys.stdout
        print(f"[{self.module}] {label}: {msg}", file=stream)

    def trace(self, msg: str, *args) -> None:
        """Per-tick detail: timer scheduling, unchanged tracks, unpriced events."""
        self._emit(LogLevel.TRACE, msg, args)

    def debug(self, msg: str, *args) -> None:
        self._emit(LogLevel.DEBUG, msg, args)

    def info(self, msg: str, *args) -> None:
        self._emit(LogLevel.INFO, msg, args)

    def warning(self, msg: str, *args) -> None:
        self._emit(LogLevel.WARNING, msg, args)

    def error(self, msg: str, *args) -> None:
        self._emit(LogLevel.ERROR, msg, args)

    def critical(self, msg: str, *args) -> None:
        self._emit(LogLevel.CRITICAL, msg, args)

    def exception(self, msg: str, *args) -> None:
        """Log at ERROR, followed by the traceback of the exception being handled."""
        self._emit(LogLevel.ERROR, msg, args)
        if sys.exc_info()[0] is None or not self.enabled(LogLevel.ERROR):
            return
        for line in traceback.format_exc().rstrip().splitlines():
            self._emit(LogLevel.ERROR, "  %s", (line,))


@lru_cache(maxsize=64)
def get_logger(module: str) -> MacrogameLogger:
    """Cached logger for a module name ('flow', 'music', 'avoid', ...)."""
    return MacrogameLogger(module)
