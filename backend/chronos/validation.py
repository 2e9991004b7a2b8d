"""Request payload validation.

Validators return a list of field-level messages; an empty list means the
payload may be applied. Nothing is mutated before validation passes.
"""

from chronos.models import COUNTER_FIELDS

MAX_TEAM_NAME_LENGTH = 100

_COUNTER_LABELS = {
    'correct_questions': 'Correct questions',
    'incorrect_questions': 'Incorrect questions',
    'skipped_questions': 'Skipped questions',
    'hint_count': 'Hint count',
}


def is_int(value) -> bool:
    # bool is an int subclass; JSON true/false must not pass as numbers
    return isinstance(value, int) and not isinstance(value, bool)


def validate_team_update(data, total_levels=40) -> list:
    errors = []

    if 'team_name' in data:
        name = data['team_name']
        if not isinstance(name, str) or not name.strip():
            errors.append('Team name must be a non-empty string')
        elif len(name.strip()) > MAX_TEAM_NAME_LENGTH:
            errors.append(f'Team name must be less than {MAX_TEAM_NAME_LENGTH} characters')

    # Scores can be negative after reverts
    if 'score' in data and not is_int(data['score']):
        errors.append('Score must be an integer')
    if 'checkpoint_score' in data and not is_int(data['checkpoint_score']):
        errors.append('Checkpoint score must be an integer')

    if 'game_loaded' in data and not isinstance(data['game_loaded'], bool):
        errors.append('Game loaded must be a boolean')

    for key, label in (('checkpoint_level', 'Checkpoint level'), ('current_level', 'Current level')):
        if key not in data:
            continue
        if not is_int(data[key]):
            errors.append(f'{label} must be an integer')
        elif not 1 <= data[key] <= total_levels:
            errors.append(f'{label} must be between 1 and {total_levels}')

    for key in COUNTER_FIELDS:
        if key in data and (not is_int(data[key]) or data[key] < 0):
            errors.append(f'{_COUNTER_LABELS[key]} must be a non-negative integer')

    return errors


def validate_stats_increments(data) -> list:
    errors = []
    unknown = sorted(set(data) - set(COUNTER_FIELDS))
    if unknown:
        errors.append(f"Unknown stats fields: {', '.join(unknown)}")
    for key in COUNTER_FIELDS:
        if key in data and (not is_int(data[key]) or data[key] < 0):
            errors.append(f'{_COUNTER_LABELS[key]} must be a non-negative integer')
    return errors


def validate_numbers(data, *keys) -> list:
    return [f'{key} must be an integer' for key in keys if not is_int(data.get(key))]


def validate_level_range(data, total_levels, *keys) -> list:
    # total_levels + 1 marks a finished game
    return [
        f'{key} must be between 1 and {total_levels + 1}'
        for key in keys
        if not 1 <= data[key] <= total_levels + 1
    ]
