"""Level score calculation.

Every level converts its attempt counters and elapsed time into a
``ScoreBreakdown`` through one parameterized calculator. Levels differ only
in their ``ScoringTable``; the tables observed across the game are kept as
named presets so the catalog can refer to them by name.
"""

from dataclasses import asdict, dataclass, fields, replace
from typing import Dict, Tuple

DEFAULT_RATING = 'Needs Improvement'

TimeTier = Tuple[float, int]
RatingRule = Tuple[float, float, str]


@dataclass
class LevelStats:
    """Counters for one level attempt; reset to zero at level start."""

    correct: int = 0
    incorrect: int = 0
    skipped: int = 0
    hints_used: int = 0

    @property
    def answered(self) -> int:
        return self.correct + self.incorrect + self.skipped

    def __add__(self, other: 'LevelStats') -> 'LevelStats':
        return LevelStats(
            correct=self.correct + other.correct,
            incorrect=self.incorrect + other.incorrect,
            skipped=self.skipped + other.skipped,
            hints_used=self.hints_used + other.hints_used,
        )

    def __sub__(self, other: 'LevelStats') -> 'LevelStats':
        return LevelStats(
            correct=self.correct - other.correct,
            incorrect=self.incorrect - other.incorrect,
            skipped=self.skipped - other.skipped,
            hints_used=self.hints_used - other.hints_used,
        )

    def is_empty(self) -> bool:
        return not (self.correct or self.incorrect or self.skipped or self.hints_used)

    def as_increments(self) -> Dict[str, int]:
        """Map onto the team's cumulative counter columns, zero entries dropped."""
        columns = {
            'correct_questions': self.correct,
            'incorrect_questions': self.incorrect,
            'skipped_questions': self.skipped,
            'hint_count': self.hints_used,
        }
        return {k: v for k, v in columns.items() if v}

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class ScoringTable:
    points_per_correct: int = 1500
    points_per_correct_with_hint: int = 1000
    incorrect_penalty: int = 400
    skip_penalty: int = 750
    consecutive_bonus_unit: int = 200
    consecutive_bonus_block_size: int = 3
    time_bonus_tiers: Tuple[TimeTier, ...] = ()
    rating_rules: Tuple[RatingRule, ...] = ()

    def __post_init__(self):
        # Tiers are evaluated first-match in ascending threshold order
        tiers = tuple(sorted((float(t), int(p)) for t, p in self.time_bonus_tiers))
        rules = tuple((float(a), float(t), str(r)) for a, t, r in self.rating_rules)
        object.__setattr__(self, 'time_bonus_tiers', tiers)
        object.__setattr__(self, 'rating_rules', rules)

    def time_bonus(self, time_taken_minutes: float) -> int:
        for threshold, points in self.time_bonus_tiers:
            if time_taken_minutes < threshold:
                return points
        return 0

    def consecutive_bonus(self, correct: int) -> int:
        if self.consecutive_bonus_block_size <= 0:
            return 0
        return (correct // self.consecutive_bonus_block_size) * self.consecutive_bonus_unit

    def rate(self, accuracy: float, time_taken_minutes: float) -> str:
        for min_accuracy, max_minutes, rating in self.rating_rules:
            if accuracy >= min_accuracy and time_taken_minutes < max_minutes:
                return rating
        return DEFAULT_RATING

    @classmethod
    def from_config(cls, config) -> 'ScoringTable':
        """Build a table from a preset name or ``{"preset": name, **overrides}``."""
        if config is None:
            return SCORING_PRESETS['standard']
        if isinstance(config, str):
            try:
                return SCORING_PRESETS[config]
            except KeyError:
                raise ValueError(f"Unknown scoring preset: {config}") from None
        options = dict(config)
        base = cls.from_config(options.pop('preset', 'standard'))
        unknown = set(options) - {f.name for f in fields(cls)}
        if unknown:
            raise ValueError(f"Unknown scoring options: {', '.join(sorted(unknown))}")
        for key in ('time_bonus_tiers', 'rating_rules'):
            if key in options:
                options[key] = tuple(tuple(item) for item in options[key])
        return replace(base, **options)


@dataclass(frozen=True)
class ScoreBreakdown:
    base_score: int
    time_bonus: int
    consecutive_bonus: int
    penalties: int
    total_score: int
    accuracy: float
    performance_rating: str
    time_taken: float

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data) -> 'ScoreBreakdown':
        return cls(**{f.name: data[f.name] for f in fields(cls)})


def calculate_level_score(stats: LevelStats, time_taken_minutes: float, table: ScoringTable) -> ScoreBreakdown:
    """Convert one attempt's counters and elapsed minutes into a score.

    Hint-assisted answers are approximated as ``min(correct, hints_used)``:
    the counters carry no per-question link between hints and correct answers.
    """
    time_taken = max(0.0, float(time_taken_minutes))
    correct_without_hints = max(0, stats.correct - stats.hints_used)
    correct_with_hints = min(stats.correct, stats.hints_used)

    base_score = (
        correct_without_hints * table.points_per_correct
        + correct_with_hints * table.points_per_correct_with_hint
    )
    penalties = stats.incorrect * table.incorrect_penalty + stats.skipped * table.skip_penalty
    consecutive_bonus = table.consecutive_bonus(stats.correct)
    time_bonus = table.time_bonus(time_taken)

    total_questions = stats.answered
    accuracy = (stats.correct / total_questions) * 100 if total_questions > 0 else 0.0

    return ScoreBreakdown(
        base_score=base_score,
        time_bonus=time_bonus,
        consecutive_bonus=consecutive_bonus,
        penalties=penalties,
        total_score=max(0, base_score + consecutive_bonus + time_bonus - penalties),
        accuracy=accuracy,
        performance_rating=table.rate(accuracy, time_taken),
        time_taken=time_taken,
    )


_STANDARD_TIERS = (
    (1, 250), (1.5, 225), (2, 200), (2.5, 175), (3, 150),
    (3.5, 125), (4, 100), (4.5, 75), (5, 50), (5.5, 25),
)
_SHORT_TIERS = ((2, 500), (3, 400), (4, 300), (5, 200), (6, 100))

SCORING_PRESETS: Dict[str, ScoringTable] = {
    'standard': ScoringTable(
        time_bonus_tiers=_STANDARD_TIERS,
        rating_rules=(
            (90, 3, 'Excellent'),
            (90, 5, 'Good'),
            (70, 4, 'Good'),
            (50, 5, 'Average'),
        ),
    ),
    'classic': ScoringTable(
        time_bonus_tiers=_STANDARD_TIERS[:-1],
        rating_rules=((90, 2, 'Excellent'), (80, 3, 'Good'), (70, 4, 'Average')),
    ),
    'assisted': ScoringTable(
        time_bonus_tiers=_SHORT_TIERS,
        rating_rules=((90, 4, 'Excellent'), (80, 5, 'Good'), (70, 6, 'Average')),
    ),
    'brain': ScoringTable(
        points_per_correct=2000,
        points_per_correct_with_hint=2000,
        incorrect_penalty=500,
        skip_penalty=1000,
        consecutive_bonus_unit=300,
        time_bonus_tiers=((3, 500), (5, 400), (7, 300), (10, 200), (12, 100)),
        rating_rules=((90, 5, 'Excellent'), (80, 7, 'Good'), (70, 10, 'Average')),
    ),
    'sprint': ScoringTable(
        points_per_correct=2000,
        points_per_correct_with_hint=2000,
        incorrect_penalty=500,
        skip_penalty=750,
        consecutive_bonus_unit=0,
        time_bonus_tiers=_SHORT_TIERS,
        rating_rules=((90, 4, 'Excellent'), (80, 5, 'Good'), (70, 6, 'Average')),
    ),
    'logic': ScoringTable(
        points_per_correct=1600,
        points_per_correct_with_hint=1100,
        incorrect_penalty=450,
        skip_penalty=800,
        consecutive_bonus_unit=250,
        time_bonus_tiers=(
            (2, 300), (3, 275), (4, 250), (5, 225), (6, 200),
            (7, 175), (8, 150), (9, 125), (10, 100),
        ),
        rating_rules=((90, 4, 'Excellent'), (80, 6, 'Good'), (60, 8, 'Average')),
    ),
}
