"""Progression rules: level completion, checkpoint save and revert, game start.

All transitions are pure: they take a ``TeamState`` snapshot and return a new
one. Persisting the result (and guarding against replays) is the store's job.
"""

import math
from dataclasses import asdict, dataclass, fields, replace
from typing import FrozenSet, Iterable, Optional

from .scoring import LevelStats, ScoreBreakdown

TOTAL_LEVELS = 40
CHECKPOINT_LEVELS: FrozenSet[int] = frozenset({1, 5, 10, 15, 20, 25, 30, 35})
REVERT_PENALTY = 200


@dataclass(frozen=True)
class TeamState:
    team_code: str
    team_name: str
    score: int = 0
    current_level: int = 1
    checkpoint_level: int = 1
    checkpoint_score: int = 0
    correct_questions: int = 0
    incorrect_questions: int = 0
    skipped_questions: int = 0
    hint_count: int = 0
    game_loaded: bool = False
    game_start_time: Optional[float] = None

    @classmethod
    def from_dict(cls, data) -> 'TeamState':
        return cls(**{f.name: data[f.name] for f in fields(cls) if f.name in data})

    def to_dict(self):
        return asdict(self)

    @property
    def finished(self) -> bool:
        return self.current_level > TOTAL_LEVELS


def is_checkpoint_level(level: int, checkpoint_levels: Iterable[int] = CHECKPOINT_LEVELS) -> bool:
    return level in checkpoint_levels


def complete_level(state: TeamState, level_number: int, breakdown: ScoreBreakdown,
                   stats: LevelStats, checkpoint_levels: Iterable[int] = CHECKPOINT_LEVELS) -> TeamState:
    """Fold a finished level into the team's progress.

    The caller must already have checked ``state.current_level == level_number``.
    ``stats`` are the counters not yet folded into the team's lifetime totals.
    """
    new_score = state.score + breakdown.total_score
    new_level = level_number + 1
    changes = dict(
        score=new_score,
        current_level=new_level,
        correct_questions=state.correct_questions + stats.correct,
        incorrect_questions=state.incorrect_questions + stats.incorrect,
        skipped_questions=state.skipped_questions + stats.skipped,
        hint_count=state.hint_count + stats.hints_used,
    )
    if is_checkpoint_level(level_number, checkpoint_levels):
        changes.update(checkpoint_score=new_score, checkpoint_level=new_level)
    return replace(state, **changes)


def revert_to_checkpoint(state: TeamState, penalty: int = REVERT_PENALTY) -> TeamState:
    """Roll back to the last checkpoint, paying ``penalty``.

    From at or above the checkpoint score this is ``checkpoint_score - penalty``.
    The checkpoint itself is kept, so reverting again lands on the same level
    and pays the penalty again from the already reduced score. The result is
    not floored at zero.
    """
    return replace(
        state,
        score=min(state.score, state.checkpoint_score) - penalty,
        current_level=state.checkpoint_level,
    )


def start_game(state: TeamState, now: float) -> TeamState:
    """Start the team's clock. An existing start time is never moved."""
    if state.game_start_time is not None:
        if state.game_loaded:
            return state
        return replace(state, game_loaded=True)
    return replace(state, game_loaded=True, game_start_time=float(now))


def level_status(state: TeamState, level: int) -> str:
    if level < state.current_level:
        return 'completed'
    if level == state.current_level:
        return 'current'
    return 'locked'


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def completion_percentage(current_level: int, total_levels: int = TOTAL_LEVELS) -> int:
    return round_half_up((current_level - 1) / total_levels * 100)
