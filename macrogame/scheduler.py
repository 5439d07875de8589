"""
Cooperative scheduler for the macrogame engine.

Everything in a session runs on one thread. Phase timers, minigame timers and
per-frame loops are all tasks of a single Scheduler whose clock only moves when
the host calls advance(dt), once per rendered frame. Tests drive the same
clock by hand.

Usage:
    scheduler = Scheduler()
    handle = scheduler.call_later(1.5, on_timeout)
    frames = scheduler.every_frame(step)

    scheduler.advance(1 / 60)   # fires due timers, then frame tasks
    handle.cancel()             # never fires after this, even if already due
"""
import heapq
import itertools
from typing import Any, Callable, List, Optional, Tuple

from macrogame.logging import get_logger

log = get_logger('scheduler')

# Tolerance for accumulated float error in due times (0.1 * 10 != 1.0)
_EPSILON = 1e-9


class TaskHandle:
    """Cancellable handle for a scheduled task.

    Attributes:
        label: Human-readable name used in debug logs
    """

    __slots__ = ('label', '_cancelled', '_finished')

    def __init__(self, label: str = ''):
        self.label = label
        self._cancelled = False
        self._finished = False

    def cancel(self) -> None:
        """Cancel the task. Safe to call any number of times."""
        if not self._cancelled and not self._finished:
            log.trace("cancel %s", self.label or 'task')
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """True while the task may still fire."""
        return not self._cancelled and not self._finished

    def _finish(self) -> None:
        self._finished = True

    def __repr__(self) -> str:
        state = 'cancelled' if self._cancelled else 'finished' if self._finished else 'active'
        return f"TaskHandle({self.label!r}, {state})"


class _Timer:
    __slots__ = ('handle', 'callback', 'args', 'interval')

    def __init__(self, handle: TaskHandle, callback: Callable, args: Tuple, interval: Optional[float]):
        self.handle = handle
        self.callback = callback
        self.args = args
        self.interval = interval


class _FrameTask:
    __slots__ = ('handle', 'callback', 'first_tick')

    def __init__(self, handle: TaskHandle, callback: Callable[[float], Any], first_tick: int):
        self.handle = handle
        self.callback = callback
        self.first_tick = first_tick


class Scheduler:
    """Single-threaded virtual-time scheduler.

    Timers fire in due-time order (creation order breaks ties) and the clock is
    moved to each timer's due time while it runs, so a timer scheduled from
    inside another callback is measured from the moment that callback fired.
    Frame tasks run after timers, once per advance(); a frame task created
    during a tick first runs on the following tick.
    """

    def __init__(self, start_time: float = 0.0):
        self._now = start_time
        self._tick = 0
        self._seq = itertools.count()
        self._timers: List[Tuple[float, int, _Timer]] = []
        self._frames: List[_FrameTask] = []

    @property
    def now(self) -> float:
        """Current virtual time in seconds."""
        return self._now

    @property
    def pending(self) -> int:
        """Number of tasks that may still fire."""
        timers = sum(1 for _, _, t in self._timers if t.handle.active)
        frames = sum(1 for f in self._frames if f.handle.active)
        return timers + frames

    def call_later(self, delay: float, callback: Callable, *args, label: str = '') -> TaskHandle:
        """Run callback(*args) once after delay seconds."""
        return self._add_timer(delay, callback, args, None, label)

    def call_every(self, interval: float, callback: Callable, *args, label: str = '') -> TaskHandle:
        """Run callback(*args) every interval seconds until cancelled."""
        if interval <= 0:
            raise ValueError(f"Repeat interval must be positive, got {interval}")
        return self._add_timer(interval, callback, args, interval, label)

    def every_frame(self, callback: Callable[[float], Any], label: str = '') -> TaskHandle:
        """Run callback(dt) once per advance() until cancelled."""
        handle = TaskHandle(label)
        self._frames.append(_FrameTask(handle, callback, self._tick + 1))
        return handle

    def _add_timer(
        self,
        delay: float,
        callback: Callable,
        args: Tuple,
        interval: Optional[float],
        label: str,
    ) -> TaskHandle:
        handle = TaskHandle(label)
        timer = _Timer(handle, callback, args, interval)
        due = self._now + max(0.0, delay)
        heapq.heappush(self._timers, (due, next(self._seq), timer))
        log.trace("schedule %s at t=%.3f", label or 'timer', due)
        return handle

    def advance(self, dt: float) -> None:
        """Move the clock forward by dt seconds, firing everything that is due.

        Args:
            dt: Delta time in seconds since the previous frame
        """
        if dt < 0:
            raise ValueError(f"Cannot move the clock backwards (dt={dt})")

        self._tick += 1
        target = self._now + dt

        while self._timers and self._timers[0][0] <= target + _EPSILON:
            due, _, timer = heapq.heappop(self._timers)
            if not timer.handle.active:
                continue
            self._now = max(self._now, due)
            if timer.interval is None:
                timer.handle._finish()
            timer.callback(*timer.args)
            if timer.interval is not None and timer.handle.active:
                heapq.heappush(self._timers, (due + timer.interval, next(self._seq), timer))

        self._now = target

        # Snapshot: tasks added by callbacks below wait for the next tick
        for task in list(self._frames):
            if task.handle.active and task.first_tick <= self._tick:
                task.callback(dt)

        self._frames = [f for f in self._frames if f.handle.active]

    def cancel_all(self) -> None:
        """Cancel every outstanding task."""
        for _, _, timer in self._timers:
            timer.handle.cancel()
        for task in self._frames:
            task.handle.cancel()
        self._timers.clear()
        self._frames.clear()
