"""Timer directives: argument parsing, wall-clock runtime and per-page board.

A timer never counts by decrementing. While running it remembers the moment
it was (re)started and the value it had at that moment, and derives the
current value from the clock on every tick. Late ticks, a suspended process
or a page switch therefore cannot make it drift.
"""

import difflib
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from .classifier import LineType, timer_args
from .constants import EditorConstants

logger = logging.getLogger(__name__)

_POMODORO_RE = re.compile(r"^(\d+)\s+(\d+)$")
_CLOCK_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_MINUTES_RE = re.compile(r"^(\d+)$")

# Directive arguments that control the nearest preceding timer
CONTROL_TOKENS = {
    "p": "toggle",
    "r": "restart",
    "s": "stop",
}


class TimerMode(Enum):
    STOPWATCH = "stopwatch"
    COUNTDOWN = "countdown"
    POMODORO = "pomodoro"


class PomodoroPhase(Enum):
    WORK = "work"
    BREAK = "break"


@dataclass(frozen=True)
class TimerSpec:
    mode: TimerMode
    initial: int
    work: int = 0
    rest: int = 0


def parse_timer_spec(args: str, now: Optional[datetime] = None) -> TimerSpec:
    """Parse the argument string of a timer directive.

    Unrecognized arguments fall back to a stopwatch.
    """
    text = args.strip().lower()
    if not text:
        return TimerSpec(TimerMode.STOPWATCH, 0)

    if text == "pomo":
        work = EditorConstants.POMODORO_WORK_MINUTES * 60
        rest = EditorConstants.POMODORO_BREAK_MINUTES * 60
        return TimerSpec(TimerMode.POMODORO, work, work=work, rest=rest)

    m = _POMODORO_RE.match(text)
    if m:
        work = int(m.group(1)) * 60
        rest = int(m.group(2)) * 60
        return TimerSpec(TimerMode.POMODORO, work, work=work, rest=rest)

    m = _CLOCK_TIME_RE.match(text)
    if m:
        hour, minute = int(m.group(1)), int(m.group(2))
        if hour < 24 and minute < 60:
            now = now or datetime.now()
            target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
            if target <= now:
                target += timedelta(days=1)
            return TimerSpec(TimerMode.COUNTDOWN, max(0, int((target - now).total_seconds())))

    m = _MINUTES_RE.match(text)
    if m:
        return TimerSpec(TimerMode.COUNTDOWN, int(m.group(1)) * 60)

    return TimerSpec(TimerMode.STOPWATCH, 0)


def format_time(seconds: int) -> str:
    """Format seconds as MM:SS, or H:MM:SS from one hour up."""
    seconds = max(0, int(seconds))
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class TimerRuntime:
    """Running state of one timer line."""

    def __init__(self, spec: TimerSpec, clock: Callable[[], float] = time.time,
                 on_complete: Optional[Callable[["TimerRuntime"], None]] = None):
        self.spec = spec
        self._clock = clock
        self.on_complete = on_complete
        self.phase = PomodoroPhase.WORK
        self.done = False
        self.running = True
        self._base = spec.initial
        self._epoch: Optional[float] = self._clock()
        self.seconds = spec.initial

    @property
    def mode(self) -> TimerMode:
        return self.spec.mode

    def _elapsed(self) -> int:
        if self._epoch is None:
            return 0
        return max(0, int(self._clock() - self._epoch))

    def tick(self) -> int:
        """Re-sync the displayed value from the clock and return it."""
        if not self.running or self.done:
            return self.seconds
        elapsed = self._elapsed()
        if self.mode == TimerMode.STOPWATCH:
            self.seconds = self._base + elapsed
            return self.seconds

        remaining = self._base - elapsed
        if remaining > 0:
            self.seconds = remaining
            return self.seconds

        if self.mode == TimerMode.POMODORO:
            if self.phase == PomodoroPhase.WORK:
                self.phase = PomodoroPhase.BREAK
                self._base = self.spec.rest
            else:
                self.phase = PomodoroPhase.WORK
                self._base = self.spec.work
            self._epoch = self._clock()
            self.seconds = self._base
            logger.debug(f"Pomodoro phase switched to {self.phase.value}")
        else:
            self.done = True
            self.running = False
            self._epoch = None
            self.seconds = 0
        self._fire_complete()
        return self.seconds

    def _fire_complete(self) -> None:
        if self.on_complete is not None:
            self.on_complete(self)

    def pause(self) -> None:
        if not self.running:
            return
        elapsed = self._elapsed()
        if self.mode == TimerMode.STOPWATCH:
            self._base = self._base + elapsed
        else:
            self._base = max(0, self._base - elapsed)
        self.seconds = self._base
        self._epoch = None
        self.running = False

    def resume(self) -> None:
        if self.running:
            return
        if self.done:
            self.restart()
            return
        self._epoch = self._clock()
        self.running = True

    def toggle(self) -> None:
        """Pause a running timer, resume a paused one, restart a finished one."""
        if self.done:
            self.restart()
        elif self.running:
            self.pause()
        else:
            self.resume()

    def _reset(self) -> None:
        self.phase = PomodoroPhase.WORK
        self.done = False
        self._base = 0 if self.mode == TimerMode.STOPWATCH else self.spec.initial
        self.seconds = self._base

    def restart(self) -> None:
        self._reset()
        self._epoch = self._clock()
        self.running = True

    def stop(self) -> None:
        self._reset()
        self._epoch = None
        self.running = False

    def control(self, token: str) -> bool:
        """Apply a control token ('p', 'r' or 's'). Returns False if unknown."""
        action = CONTROL_TOKENS.get(token)
        if action is None:
            return False
        getattr(self, action)()
        return True

    @property
    def label(self) -> str:
        if self.mode == TimerMode.POMODORO:
            return "WORK" if self.phase == PomodoroPhase.WORK else "BREAK"
        if self.mode == TimerMode.COUNTDOWN:
            return "COUNTDOWN"
        return "STOPWATCH"

    @property
    def display(self) -> str:
        if self.done:
            return "00:00 ✓"
        return format_time(self.seconds)


class TimerBoard:
    """Runtimes for the timer lines of one page.

    Runtimes are matched to timer lines by their directive, in order of
    appearance, so a timer keeps running when lines (timer lines included)
    are inserted or removed around it. A timer whose directive changes gets
    a fresh runtime.
    """

    def __init__(self, clock: Callable[[], float] = time.time,
                 on_complete: Optional[Callable[[TimerRuntime], None]] = None):
        self._clock = clock
        self.on_complete = on_complete
        self._entries: list[tuple[str, TimerRuntime]] = []
        self._line_indices: list[int] = []

    def sync(self, lines: list[str], types: list[LineType],
             skip_line: Optional[int] = None) -> None:
        """Reconcile runtimes with the timer lines of the document.

        ``skip_line`` is a timer line still being typed; it gets no runtime.
        """
        indices = [i for i, line_type in enumerate(types)
                   if line_type == LineType.TIMER and i != skip_line]
        new_args = [timer_args(lines[i]) for i in indices]
        old_args = [args for args, _ in self._entries]
        # Unchanged directives keep their runtime, matched in document order
        kept: dict[int, TimerRuntime] = {}
        matcher = difflib.SequenceMatcher(None, old_args, new_args, autojunk=False)
        for a, b, size in matcher.get_matching_blocks():
            for k in range(size):
                kept[b + k] = self._entries[a + k][1]

        entries: list[tuple[str, TimerRuntime]] = []
        for slot, (i, args) in enumerate(zip(indices, new_args)):
            runtime = kept.get(slot)
            if runtime is None:
                runtime = TimerRuntime(parse_timer_spec(args), clock=self._clock,
                                       on_complete=self._complete)
                logger.debug(f"Started {runtime.mode.value} timer for line {i}")
            entries.append((args, runtime))
        self._entries = entries
        self._line_indices = indices

    def _complete(self, runtime: TimerRuntime) -> None:
        if self.on_complete is not None:
            self.on_complete(runtime)

    def runtime_for(self, line_index: int) -> Optional[TimerRuntime]:
        try:
            slot = self._line_indices.index(line_index)
        except ValueError:
            return None
        return self._entries[slot][1]

    def nearest_before(self, line_index: int) -> Optional[TimerRuntime]:
        """Return the runtime of the closest timer line above ``line_index``."""
        for slot in range(len(self._line_indices) - 1, -1, -1):
            if self._line_indices[slot] < line_index:
                return self._entries[slot][1]
        return None

    def tick_all(self) -> None:
        for _, runtime in self._entries:
            runtime.tick()

    def any_running(self) -> bool:
        return any(runtime.running for _, runtime in self._entries)

    def __len__(self) -> int:
        return len(self._entries)
