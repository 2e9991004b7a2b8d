"""Global game clock: one countdown per team, anchored at game start."""

import math
import time
from enum import Enum
from typing import Callable, Optional

TOTAL_DURATION_SEC = 5 * 60 * 60


class TimerStatus(str, Enum):
    NOT_STARTED = 'not_started'
    ACTIVE = 'active'
    EXPIRED = 'expired'


def _start_time(team) -> Optional[float]:
    if not getattr(team, 'game_loaded', False):
        return None
    raw = getattr(team, 'game_start_time', None)
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


class GameTimer:
    """Answers how much time a team has left.

    Works on anything exposing ``game_loaded`` and ``game_start_time``
    (epoch seconds): the ORM model or a ``TeamState``. Never mutates it.
    """

    def __init__(self, total_duration: float = TOTAL_DURATION_SEC, clock: Callable[[], float] = time.time):
        self.total_duration = float(total_duration)
        self.clock = clock

    def elapsed(self, team) -> Optional[float]:
        start = _start_time(team)
        if start is None:
            return None
        return self.clock() - start

    def status(self, team) -> TimerStatus:
        elapsed = self.elapsed(team)
        if elapsed is None:
            return TimerStatus.NOT_STARTED
        if elapsed >= self.total_duration:
            return TimerStatus.EXPIRED
        return TimerStatus.ACTIVE

    def remaining(self, team) -> float:
        elapsed = self.elapsed(team)
        if elapsed is None:
            return 0.0
        return max(0.0, self.total_duration - elapsed)

    def payload(self, team) -> dict:
        status = self.status(team)
        remaining = self.remaining(team)
        if status is TimerStatus.NOT_STARTED:
            display = 'Game Not Started'
        elif status is TimerStatus.EXPIRED:
            display = '00:00:00'
        else:
            display = format_remaining(remaining)
        return {
            'status': status.value,
            'time_remaining': remaining,
            'display': display,
        }


def format_remaining(seconds: float) -> str:
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
