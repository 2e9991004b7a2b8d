"""Level session controller.

Drives one team through one level's fixed question sequence:

    loading -> question[0..N-1] -> completing -> completed
    loading -> blocked            (team is below or past this level)
    any     -> expired            (game clock ran out)

All mutable attempt data lives in a single ``LevelAttemptState``, changed only
by the transitions below. Per-question counter pushes are best effort; the
completion commit is mandatory and local progress never advances past
``completing`` until the store confirms it.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Set

from chronos.errors import (
    AttemptFinished,
    GameNotStarted,
    GameTimerExpired,
    LevelBlocked,
    StoreCommitError,
)
from .grading import grade
from .levels import LevelDefinition
from .scoring import LevelStats, ScoreBreakdown, calculate_level_score
from .timer import GameTimer, TimerStatus

logger = logging.getLogger(__name__)


class AttemptPhase(str, Enum):
    LOADING = 'loading'
    QUESTION = 'question'
    COMPLETING = 'completing'
    COMPLETED = 'completed'
    BLOCKED = 'blocked'
    EXPIRED = 'expired'


TERMINAL_PHASES = {AttemptPhase.COMPLETED, AttemptPhase.BLOCKED, AttemptPhase.EXPIRED}


@dataclass
class QuestionOutcome:
    index: int
    result: str  # correct | incorrect | skipped
    hinted: bool

    def to_dict(self):
        return {'index': self.index, 'result': self.result, 'hinted': self.hinted}


@dataclass
class LevelAttemptState:
    team_code: str
    level_number: int
    phase: AttemptPhase = AttemptPhase.LOADING
    question_index: int = 0
    stats: LevelStats = field(default_factory=LevelStats)
    # Portion of ``stats`` already added to the team's lifetime counters
    synced: LevelStats = field(default_factory=LevelStats)
    hinted: Set[int] = field(default_factory=set)
    outcomes: List[QuestionOutcome] = field(default_factory=list)
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    breakdown: Optional[ScoreBreakdown] = None
    blocked_reason: Optional[str] = None
    team_score: Optional[int] = None
    notices: List[str] = field(default_factory=list)

    @property
    def pending(self) -> LevelStats:
        return self.stats - self.synced


class LevelSession:
    """One team's attempt at one level."""

    def __init__(self, store, level: LevelDefinition, team_code: str,
                 timer: Optional[GameTimer] = None, clock: Optional[Callable[[], float]] = None):
        self.store = store
        self.level = level
        self.timer = timer or GameTimer()
        self.clock = clock or self.timer.clock or time.time
        self.state = LevelAttemptState(team_code=team_code, level_number=level.number)
        # Serializes transitions from concurrent requests on the same attempt
        self._lock = threading.Lock()

    @property
    def team_code(self) -> str:
        return self.state.team_code

    @property
    def current_question(self):
        if self.state.phase is not AttemptPhase.QUESTION:
            return None
        return self.level.questions[self.state.question_index]

    # ---- transitions ----

    def load(self) -> LevelAttemptState:
        with self._lock:
            return self._load()

    def _load(self) -> LevelAttemptState:
        if self.state.phase is not AttemptPhase.LOADING:
            return self.state
        team = self.store.get(self.team_code)
        self.state.team_code = team.team_code
        self.state.team_score = team.score
        status = self.timer.status(team)
        if status is TimerStatus.NOT_STARTED:
            raise GameNotStarted()
        if status is TimerStatus.EXPIRED:
            self._expire()
            return self.state
        if team.current_level < self.level.number:
            self._block('locked')
        elif team.current_level > self.level.number:
            self._block('completed')
        else:
            self.state.phase = AttemptPhase.QUESTION
            self.state.started_at = self.clock()
            logger.info(f"[attempt-start] team={self.team_code} level={self.level.number}")
        return self.state

    def request_hint(self) -> Optional[str]:
        with self._lock:
            question = self._active_question()
            index = self.state.question_index
            if index not in self.state.hinted:
                self.state.hinted.add(index)
                self.state.stats.hints_used += 1
            return question.hint

    def submit_answer(self, raw) -> bool:
        with self._lock:
            question = self._active_question()
            # Format errors propagate before any counter changes
            correct = grade(question, raw)
            if correct:
                self.state.stats.correct += 1
            else:
                self.state.stats.incorrect += 1
            self._advance('correct' if correct else 'incorrect')
            return correct

    def skip(self) -> None:
        with self._lock:
            self._active_question()
            self.state.stats.skipped += 1
            self._advance('skipped')

    def retry_commit(self) -> LevelAttemptState:
        with self._lock:
            if self.state.phase is not AttemptPhase.COMPLETING:
                raise AttemptFinished('There is no pending level result to save')
            self._commit()
            return self.state

    # ---- internals ----

    def _active_question(self):
        if self.state.phase in TERMINAL_PHASES or self.state.phase is AttemptPhase.COMPLETING:
            raise AttemptFinished()
        if self.state.phase is not AttemptPhase.QUESTION:
            raise AttemptFinished('The level has not been loaded')
        self._check_clock()
        return self.level.questions[self.state.question_index]

    def _check_clock(self) -> None:
        team = self.store.get(self.team_code)
        if self.timer.status(team) is TimerStatus.EXPIRED:
            self._expire()
            raise GameTimerExpired()

    def _advance(self, result: str) -> None:
        index = self.state.question_index
        self.state.outcomes.append(QuestionOutcome(index=index, result=result, hinted=index in self.state.hinted))
        self._push_question_stats()
        if index < len(self.level.questions) - 1:
            self.state.question_index += 1
            return
        self._begin_completion()

    def _push_question_stats(self) -> None:
        pending = self.state.pending
        if pending.is_empty():
            return
        try:
            self.store.update_stats(self.team_code, pending.as_increments())
        except StoreCommitError as exc:
            logger.warning(f"[stats-push-failed] team={self.team_code} level={self.level.number} error={exc}")
            self.state.notices.append('Could not save your progress for this question. It will be saved when the level ends.')
            return
        self.state.synced = self.state.synced + pending

    def _begin_completion(self) -> None:
        self.state.phase = AttemptPhase.COMPLETING
        self.state.finished_at = self.clock()
        minutes = (self.state.finished_at - (self.state.started_at or self.state.finished_at)) / 60
        # Computed once; the displayed result must equal the committed one
        self.state.breakdown = calculate_level_score(self.state.stats, minutes, self.level.scoring)
        self._commit()

    def _commit(self) -> None:
        pending = self.state.pending
        try:
            team = self.store.commit_level_completion(
                self.team_code, self.level.number, self.state.breakdown, pending,
            )
        except StoreCommitError as exc:
            logger.error(f"[complete-failed] team={self.team_code} level={self.level.number} error={exc}")
            self.state.notices.append('Failed to save progress. Please try again.')
            raise
        except LevelBlocked as exc:
            logger.warning(f"[complete-rejected] team={self.team_code} level={self.level.number} reason={exc.reason}")
            self._block(exc.reason)
            raise
        self.state.synced = self.state.synced + pending
        self.state.team_score = team.score
        self.state.phase = AttemptPhase.COMPLETED

    def _block(self, reason: str) -> None:
        self.state.phase = AttemptPhase.BLOCKED
        self.state.blocked_reason = reason
        if reason == 'locked':
            self.state.notices.append('You need to complete previous levels first!')
        else:
            self.state.notices.append("You've already completed this level!")

    def _expire(self) -> None:
        if self.state.phase is not AttemptPhase.EXPIRED:
            logger.info(f"[timer-expired] team={self.team_code} level={self.level.number}")
        self.state.phase = AttemptPhase.EXPIRED

    # ---- views ----

    def to_dict(self):
        state = self.state
        payload = {
            'team_code': state.team_code,
            'level': self.level.summary(),
            'phase': state.phase.value,
            'question_index': state.question_index,
            'question_count': len(self.level.questions),
            'stats': state.stats.to_dict(),
            'outcomes': [o.to_dict() for o in state.outcomes],
            'team_score': state.team_score,
            'notices': list(state.notices),
        }
        question = self.current_question
        if question is not None:
            payload['question'] = question.to_public_dict(state.question_index)
            payload['hint'] = question.hint if state.question_index in state.hinted else None
        if state.blocked_reason:
            payload['blocked_reason'] = state.blocked_reason
        if state.breakdown is not None:
            payload['score'] = state.breakdown.to_dict()
        return payload
