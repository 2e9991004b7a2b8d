"""Level catalog: the static question tables fed into the level sessions."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from chronos.errors import LevelNotFound
from .grading import GRADERS, answer_format_hint
from .scoring import ScoringTable

BUNDLED_CATALOG = Path(__file__).resolve().parents[2] / 'data' / 'levels.json'


@dataclass(frozen=True)
class Question:
    type: str
    prompt: str
    answer: object
    hint: Optional[str] = None
    options: Tuple[str, ...] = ()
    alternates: Tuple[object, ...] = ()
    media: Optional[str] = None

    @property
    def accepted_answers(self):
        return (self.answer,) + tuple(self.alternates)

    @classmethod
    def from_dict(cls, data) -> 'Question':
        qtype = data.get('type', 'text')
        if qtype not in GRADERS:
            raise ValueError(f"Unsupported question type: {qtype}")
        answer = data['answer']
        if isinstance(answer, list):
            answer = tuple(answer)
        return cls(
            type=qtype,
            prompt=data['prompt'],
            answer=answer,
            hint=data.get('hint'),
            options=tuple(data.get('options') or ()),
            alternates=tuple(tuple(a) if isinstance(a, list) else a for a in data.get('alternates') or ()),
            media=data.get('media'),
        )

    def to_public_dict(self, index: int):
        """What a player may see; never includes the answer."""
        payload = {
            'index': index,
            'type': self.type,
            'prompt': self.prompt,
            'has_hint': bool(self.hint),
        }
        if self.options:
            payload['options'] = list(self.options)
        if self.media:
            payload['media'] = self.media
        if self.type == 'text':
            payload['answer_format'] = answer_format_hint(self.answer)
        return payload


@dataclass(frozen=True)
class LevelDefinition:
    number: int
    title: str
    scoring: ScoringTable
    questions: Tuple[Question, ...] = field(default_factory=tuple)
    kind: str = 'trivia'

    @classmethod
    def from_dict(cls, data) -> 'LevelDefinition':
        questions = tuple(Question.from_dict(q) for q in data.get('questions') or ())
        if not questions:
            raise ValueError(f"Level {data.get('number')} has no questions")
        return cls(
            number=int(data['number']),
            title=data.get('title') or f"Level {data['number']}",
            scoring=ScoringTable.from_config(data.get('scoring')),
            questions=questions,
            kind=data.get('kind', 'trivia'),
        )

    def summary(self):
        return {
            'number': self.number,
            'title': self.title,
            'kind': self.kind,
            'question_count': len(self.questions),
        }


class LevelCatalog:
    def __init__(self, levels):
        self._levels: Dict[int, LevelDefinition] = {}
        for level in levels:
            if level.number in self._levels:
                raise ValueError(f"Duplicate level number: {level.number}")
            self._levels[level.number] = level

    def __len__(self):
        return len(self._levels)

    def __contains__(self, number):
        return number in self._levels

    def get(self, number: int) -> LevelDefinition:
        try:
            return self._levels[int(number)]
        except (KeyError, TypeError, ValueError):
            raise LevelNotFound(f"Level {number} not found") from None

    def numbers(self):
        return sorted(self._levels)

    @classmethod
    def from_dict(cls, data) -> 'LevelCatalog':
        return cls(LevelDefinition.from_dict(level) for level in data.get('levels') or ())

    @classmethod
    def load(cls, path=None) -> 'LevelCatalog':
        source = Path(path) if path else BUNDLED_CATALOG
        with open(source, encoding='utf-8') as f:
            return cls.from_dict(json.load(f))
