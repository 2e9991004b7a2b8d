"""Team progress store backed by SQLAlchemy.

Counter updates are sent as atomic ``col = col + n`` increments so that two
devices playing for the same team cannot overwrite each other's counts.
Absolute writes (score, level, checkpoint) go through the ORM and are guarded
by the team's version column; a write based on a stale read is retried from a
fresh read a bounded number of times.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from chronos import db
from chronos.errors import LevelBlocked, StoreCommitError, TeamNotFound, ValidationError
from chronos.models import COUNTER_FIELDS, Team, utcnow
from chronos.services.games import progression
from chronos.services.games.progression import TeamState
from chronos.services.games.scoring import LevelStats, ScoreBreakdown

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'team_name',
    'score',
    'game_loaded',
    'checkpoint_score',
    'checkpoint_level',
    'current_level',
) + COUNTER_FIELDS


def normalize_code(team_code) -> str:
    return str(team_code or '').strip().upper()


class TeamStore:
    def __init__(self, checkpoint_levels=progression.CHECKPOINT_LEVELS,
                 revert_penalty: int = progression.REVERT_PENALTY,
                 code_length: int = 6, max_attempts: int = 3,
                 clock: Callable[[], float] = time.time):
        self.checkpoint_levels = frozenset(checkpoint_levels)
        self.revert_penalty = revert_penalty
        self.code_length = code_length
        self.max_attempts = max(1, int(max_attempts))
        self.clock = clock

    @classmethod
    def from_config(cls, config) -> 'TeamStore':
        return cls(
            checkpoint_levels=config.get('CHECKPOINT_LEVELS', progression.CHECKPOINT_LEVELS),
            revert_penalty=int(config.get('REVERT_PENALTY', progression.REVERT_PENALTY)),
            code_length=int(config.get('TEAM_CODE_LENGTH', 6)),
            max_attempts=int(config.get('STORE_MAX_ATTEMPTS', 3)),
        )

    # ---- reads ----

    def find(self, team_code) -> Optional[Team]:
        return Team.query.filter_by(team_code=normalize_code(team_code)).first()

    def get(self, team_code) -> Team:
        team = self.find(team_code)
        if team is None:
            raise TeamNotFound()
        return team

    def list_all(self) -> List[Team]:
        return Team.query.order_by(Team.score.desc(), Team.created_at.asc(), Team.id.asc()).all()

    # ---- writes ----

    def create(self, team_name: str) -> Team:
        name = (team_name or '').strip()
        if not name:
            raise ValidationError('Team name is required')
        team = Team(team_name=name, code_length=self.code_length)
        db.session.add(team)
        self._commit('create', team.team_code)
        logger.info(f"[team-created] team={team.team_code} name={name!r}")
        return team

    def delete(self, team_code) -> None:
        team = self.get(team_code)
        db.session.delete(team)
        self._commit('delete', team.team_code)
        logger.info(f"[team-deleted] team={team.team_code}")

    def update_stats(self, team_code, increments: Dict[str, int]) -> None:
        """Atomically add non-negative deltas to the cumulative counters."""
        deltas = {k: int(v) for k, v in (increments or {}).items() if v}
        unknown = set(deltas) - set(COUNTER_FIELDS)
        if unknown:
            raise ValidationError('Unknown stats fields', details=sorted(unknown))
        if any(v < 0 for v in deltas.values()):
            raise ValidationError('Stats increments must be non-negative')
        code = normalize_code(team_code)
        if not deltas:
            self.get(code)
            return
        values = {getattr(Team, k): getattr(Team, k) + v for k, v in deltas.items()}
        values[Team.version] = Team.version + 1
        values[Team.updated_at] = utcnow()
        try:
            updated = Team.query.filter_by(team_code=code).update(values, synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error(f"[store-error] op=update_stats team={code} error={exc}")
            raise StoreCommitError() from exc
        if not updated:
            raise TeamNotFound()
        logger.info(f"[stats] team={code} increments={deltas}")

    def update_score(self, team_code, score: int, current_level: int) -> Team:
        return self._transition(
            team_code, 'update_score',
            lambda state: replace(state, score=int(score), current_level=int(current_level)),
        )

    def save_checkpoint(self, team_code, checkpoint_score: int, checkpoint_level: int) -> Team:
        return self._transition(
            team_code, 'save_checkpoint',
            lambda state: replace(state, checkpoint_score=int(checkpoint_score),
                                   checkpoint_level=int(checkpoint_level)),
        )

    def revert(self, team_code) -> Team:
        team = self._transition(
            team_code, 'revert',
            lambda state: progression.revert_to_checkpoint(state, self.revert_penalty),
        )
        logger.info(f"[revert] team={team.team_code} level={team.current_level} score={team.score}")
        return team

    def start_game(self, team_code) -> Team:
        now = self.clock()
        team = self._transition(team_code, 'start_game', lambda state: progression.start_game(state, now))
        logger.info(f"[game-start] team={team.team_code} start={team.game_start_time}")
        return team

    def update_fields(self, team_code, fields: Dict[str, object]) -> Team:
        changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        if not changes:
            raise ValidationError('No valid fields provided for update')
        if 'team_name' in changes:
            changes['team_name'] = str(changes['team_name']).strip()
        return self._transition(team_code, 'update_fields', lambda state: replace(state, **changes))

    def commit_level_completion(self, team_code, level_number: int,
                                breakdown: ScoreBreakdown, stats: LevelStats) -> Team:
        """Apply a finished level in one transaction.

        Rejected with ``LevelBlocked('completed')`` when the team's persisted
        level no longer matches, so a replayed or duplicate completion never
        adds score twice.
        """
        def apply(state: TeamState) -> TeamState:
            if state.current_level != level_number:
                reason = 'completed' if state.current_level > level_number else 'locked'
                raise LevelBlocked(reason, f"Level {level_number} can no longer be completed")
            return progression.complete_level(state, level_number, breakdown, stats, self.checkpoint_levels)

        team = self._transition(team_code, 'complete_level', apply)
        logger.info(
            f"[level-complete] team={team.team_code} level={level_number} "
            f"delta={breakdown.total_score} score={team.score} next={team.current_level}"
        )
        return team

    # ---- helpers ----

    def _transition(self, team_code, op: str, compute: Callable[[TeamState], TeamState]) -> Team:
        code = normalize_code(team_code)
        for attempt in range(1, self.max_attempts + 1):
            team = self.get(code)
            try:
                new_state = compute(team.to_state())
            except Exception:
                db.session.rollback()
                raise
            if new_state == team.to_state():
                return team
            team.apply_state(new_state)
            try:
                db.session.commit()
                return team
            except StaleDataError:
                db.session.rollback()
                logger.warning(f"[store-stale] op={op} team={code} attempt={attempt}")
            except SQLAlchemyError as exc:
                db.session.rollback()
                logger.error(f"[store-error] op={op} team={code} error={exc}")
                raise StoreCommitError() from exc
        raise StoreCommitError('Team was updated concurrently. Please try again.')

    def _commit(self, op: str, team_code: str) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.error(f"[store-error] op={op} team={team_code} error={exc}")
            raise StoreCommitError() from exc
