from datetime import datetime, timezone
import random
import string

from flask_login import UserMixin

from chronos import bcrypt, db
from chronos.services.games.progression import TeamState

TEAM_CODE_ALPHABET = string.ascii_uppercase + string.digits
COUNTER_FIELDS = ('correct_questions', 'incorrect_questions', 'skipped_questions', 'hint_count')


def utcnow():
    return datetime.now(timezone.utc)


class AdminUser(UserMixin, db.Model):
    __tablename__ = 'admin_user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


def generate_team_code(length=6):
    """Generate a unique, short team code."""
    while True:
        code = ''.join(random.choices(TEAM_CODE_ALPHABET, k=length))
        if not Team.query.filter_by(team_code=code).first():
            return code


class Team(db.Model):
    __tablename__ = 'team'
    id = db.Column(db.Integer, primary_key=True)
    team_code = db.Column(db.String(16), unique=True, nullable=False, index=True)
    team_name = db.Column(db.String(100), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    current_level = db.Column(db.Integer, nullable=False, default=1)
    checkpoint_level = db.Column(db.Integer, nullable=False, default=1)
    checkpoint_score = db.Column(db.Integer, nullable=False, default=0)
    correct_questions = db.Column(db.Integer, nullable=False, default=0)
    incorrect_questions = db.Column(db.Integer, nullable=False, default=0)
    skipped_questions = db.Column(db.Integer, nullable=False, default=0)
    hint_count = db.Column(db.Integer, nullable=False, default=0)
    game_loaded = db.Column(db.Boolean, nullable=False, default=False)
    # Epoch seconds; anchors the game timer
    game_start_time = db.Column(db.Float, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version}

    def __init__(self, **kwargs):
        code_length = kwargs.pop('code_length', 6)
        super(Team, self).__init__(**kwargs)
        if not self.team_code:
            self.team_code = generate_team_code(code_length)

    def to_state(self) -> TeamState:
        return TeamState(
            team_code=self.team_code,
            team_name=self.team_name,
            score=self.score,
            current_level=self.current_level,
            checkpoint_level=self.checkpoint_level,
            checkpoint_score=self.checkpoint_score,
            correct_questions=self.correct_questions,
            incorrect_questions=self.incorrect_questions,
            skipped_questions=self.skipped_questions,
            hint_count=self.hint_count,
            game_loaded=bool(self.game_loaded),
            game_start_time=self.game_start_time,
        )

    def apply_state(self, state: TeamState) -> None:
        for name, value in state.to_dict().items():
            if name == 'team_code':
                continue
            setattr(self, name, value)

    def to_dict(self):
        return {
            'id': self.id,
            'team_code': self.team_code,
            'team_name': self.team_name,
            'score': self.score,
            'current_level': self.current_level,
            'checkpoint_level': self.checkpoint_level,
            'checkpoint_score': self.checkpoint_score,
            'correct_questions': self.correct_questions,
            'incorrect_questions': self.incorrect_questions,
            'skipped_questions': self.skipped_questions,
            'hint_count': self.hint_count,
            'game_loaded': self.game_loaded,
            'game_start_time': self.game_start_time,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'version': self.version,
        }
