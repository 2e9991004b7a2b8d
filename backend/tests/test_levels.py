import json

import pytest

from chronos.errors import LevelNotFound
from chronos.services.games.levels import LevelCatalog, LevelDefinition
from chronos.services.games.scoring import SCORING_PRESETS


def test_bundled_catalog_covers_every_level():
    catalog = LevelCatalog.load()
    assert catalog.numbers() == list(range(1, 41))
    assert catalog.get(14).scoring is SCORING_PRESETS['brain']
    assert catalog.get(15).scoring is SCORING_PRESETS['sprint']
    assert catalog.get(33).scoring is SCORING_PRESETS['logic']


def test_unknown_level_raises():
    catalog = LevelCatalog.load()
    with pytest.raises(LevelNotFound):
        catalog.get(99)
    with pytest.raises(LevelNotFound):
        catalog.get('nope')


def test_catalog_loads_from_path(tmp_path):
    path = tmp_path / 'levels.json'
    path.write_text(json.dumps({'levels': [{
        'number': 3,
        'title': 'Custom',
        'scoring': {'preset': 'classic', 'skip_penalty': 100},
        'questions': [{'type': 'text', 'prompt': 'Say hi', 'answer': 'HI'}],
    }]}))
    catalog = LevelCatalog.load(str(path))
    level = catalog.get(3)
    assert level.title == 'Custom'
    assert level.scoring.skip_penalty == 100
    assert 3 in catalog and len(catalog) == 1


def test_level_without_questions_is_rejected():
    with pytest.raises(ValueError):
        LevelDefinition.from_dict({'number': 1, 'questions': []})


def test_duplicate_level_numbers_are_rejected():
    level = {'number': 1, 'questions': [{'type': 'text', 'prompt': '?', 'answer': 'A'}]}
    with pytest.raises(ValueError):
        LevelCatalog.from_dict({'levels': [level, level]})


def test_public_question_hides_answer():
    level = LevelCatalog.load().get(3)
    public = level.questions[0].to_public_dict(0)
    assert 'answer' not in public
    assert public['answer_format'] == 'Two words separated by space'
    assert public['has_hint'] is True
