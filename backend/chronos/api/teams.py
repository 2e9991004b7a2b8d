from typing import Dict, Optional, Tuple

from flask import Blueprint, current_app, jsonify, request

from chronos import socketio
from chronos.errors import (
    GameTimerExpired,
    LevelBlocked,
    StoreCommitError,
    TeamNotFound,
    ValidationError,
)
from chronos.services.games.progression import level_status
from chronos.services.games.scheduler import game_timer
from chronos.services.games.session import TERMINAL_PHASES, AttemptPhase, LevelSession
from chronos.services.games.timer import TimerStatus
from chronos.services.store import normalize_code
from chronos.validation import validate_level_range, validate_numbers, validate_stats_increments

teams = Blueprint('teams', __name__)

# Live level attempts (runtime-only), keyed by (team_code, level_number)
_attempts: Dict[Tuple[str, int], LevelSession] = {}


def _store():
    return current_app.extensions['chronos_store']


def _levels():
    return current_app.extensions['chronos_levels']


def _total_levels() -> int:
    return int(current_app.config.get('TOTAL_LEVELS', 40))


def _team_payload(team):
    payload = team.to_dict()
    payload['timer'] = game_timer(current_app).payload(team)
    return payload


def _require_running_clock(team) -> None:
    """Score-mutating requests are refused once the team's clock ran out."""
    if game_timer(current_app).status(team) is TimerStatus.EXPIRED:
        raise GameTimerExpired()


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _notify(team):
    socketio.emit('team_update', {'team_code': team.team_code}, to=f"team:{team.team_code}", namespace='/ws')


def drop_attempts(team_code: str, finished_only: bool = False) -> None:
    """Forget a team's live attempts, or only the finished ones."""
    code = normalize_code(team_code)
    for key, session in list(_attempts.items()):
        if key[0] != code:
            continue
        if finished_only and session.state.phase not in TERMINAL_PHASES:
            continue
        _attempts.pop(key, None)


@teams.route('/<string:team_code>', methods=['GET'])
def get_team(team_code):
    team = _store().get(team_code)
    return jsonify(_team_payload(team))


@teams.route('/start-game', methods=['POST'])
def start_game():
    data = request.get_json(silent=True) or {}
    team_code = data.get('team_code')
    if not team_code:
        return jsonify({'error': 'Team code is required'}), 400
    team = _store().start_game(team_code)
    _notify(team)
    return jsonify({'success': True, 'team': _team_payload(team)})


@teams.route('/<string:team_code>/stats', methods=['PUT'])
def update_stats(team_code):
    data = _json_body()
    errors = validate_stats_increments(data)
    if errors:
        raise ValidationError(details=errors)
    store = _store()
    _require_running_clock(store.get(team_code))
    store.update_stats(team_code, data)
    return jsonify({'success': True})


@teams.route('/<string:team_code>/score', methods=['PUT'])
def update_score(team_code):
    data = _json_body()
    errors = validate_numbers(data, 'score', 'current_level')
    if errors:
        raise ValidationError('Score and current_level must be numbers', details=errors)
    errors = validate_level_range(data, _total_levels(), 'current_level')
    if errors:
        raise ValidationError(errors[0], details=errors)
    store = _store()
    _require_running_clock(store.get(team_code))
    team = store.update_score(team_code, data['score'], data['current_level'])
    _notify(team)
    return jsonify({'success': True})


@teams.route('/<string:team_code>/checkpoint', methods=['PUT'])
def save_checkpoint(team_code):
    data = _json_body()
    errors = validate_numbers(data, 'checkpoint_score', 'checkpoint_level')
    if errors:
        raise ValidationError('Checkpoint score and level must be numbers', details=errors)
    errors = validate_level_range(data, _total_levels(), 'checkpoint_level')
    if errors:
        raise ValidationError(errors[0], details=errors)
    store = _store()
    _require_running_clock(store.get(team_code))
    store.save_checkpoint(team_code, data['checkpoint_score'], data['checkpoint_level'])
    return jsonify({'success': True})


@teams.route('/<string:team_code>/revert', methods=['PUT'])
def revert_to_checkpoint(team_code):
    store = _store()
    _require_running_clock(store.get(team_code))
    team = store.revert(team_code)
    drop_attempts(team.team_code)
    _notify(team)
    return jsonify({'success': True, 'team': _team_payload(team)})


@teams.route('/<string:team_code>/levels', methods=['GET'])
def level_map(team_code):
    team = _store().get(team_code)
    state = team.to_state()
    catalog = _levels()
    total_levels = _total_levels()
    levels = []
    for number in range(1, total_levels + 1):
        entry = {'number': number, 'status': level_status(state, number), 'available': number in catalog}
        if number in catalog:
            entry['title'] = catalog.get(number).title
        levels.append(entry)
    return jsonify({
        'team_code': team.team_code,
        'current_level': team.current_level,
        'completed': team.current_level - 1,
        'total_levels': total_levels,
        'levels': levels,
    })


# ---- Level attempts ----

def _get_attempt(team_code, level_number) -> Optional[LevelSession]:
    code = normalize_code(team_code)
    session = _attempts.get((code, level_number))
    if session is None:
        if _store().find(code) is None:
            raise TeamNotFound()
        return None
    return session


def _attempt_response(session: LevelSession, status=200, **extra):
    payload = session.to_dict()
    payload.update(extra)
    return jsonify(payload), status


def _run(session: LevelSession, action, **extra):
    """Apply one attempt transition, answering with the attempt state."""
    try:
        result = action()
    except (StoreCommitError, LevelBlocked, GameTimerExpired) as exc:
        body = session.to_dict()
        body.update(exc.to_dict())
        return jsonify(body), exc.status_code
    if isinstance(result, dict):
        extra.update(result)
    return _attempt_response(session, **extra)


@teams.route('/<string:team_code>/levels/<int:level_number>/attempt', methods=['POST'])
def start_attempt(team_code, level_number):
    code = normalize_code(team_code)
    level = _levels().get(level_number)
    existing = _attempts.get((code, level_number))
    if existing is not None and existing.state.phase not in TERMINAL_PHASES:
        return _attempt_response(existing)

    session = LevelSession(_store(), level, code, timer=game_timer(current_app))
    session.load()
    if session.state.phase is AttemptPhase.BLOCKED:
        return _attempt_response(session, 409, error=session.state.notices[-1])
    if session.state.phase is AttemptPhase.EXPIRED:
        return _attempt_response(session, 403, error=GameTimerExpired.default_message)
    drop_attempts(code, finished_only=True)
    _attempts[(code, level_number)] = session
    return _attempt_response(session, 201)


@teams.route('/<string:team_code>/levels/<int:level_number>/attempt', methods=['GET'])
def get_attempt(team_code, level_number):
    session = _get_attempt(team_code, level_number)
    if session is None:
        return jsonify({'error': 'No attempt in progress for this level'}), 404
    return _attempt_response(session)


@teams.route('/<string:team_code>/levels/<int:level_number>/attempt/hint', methods=['POST'])
def request_hint(team_code, level_number):
    session = _get_attempt(team_code, level_number)
    if session is None:
        return jsonify({'error': 'No attempt in progress for this level'}), 404
    return _run(session, lambda: {'hint': session.request_hint()})


@teams.route('/<string:team_code>/levels/<int:level_number>/attempt/answer', methods=['POST'])
def submit_answer(team_code, level_number):
    session = _get_attempt(team_code, level_number)
    if session is None:
        return jsonify({'error': 'No attempt in progress for this level'}), 404
    data = request.get_json(silent=True) or {}
    return _run(session, lambda: {'correct': session.submit_answer(data.get('answer'))})


@teams.route('/<string:team_code>/levels/<int:level_number>/attempt/skip', methods=['POST'])
def skip_question(team_code, level_number):
    session = _get_attempt(team_code, level_number)
    if session is None:
        return jsonify({'error': 'No attempt in progress for this level'}), 404
    return _run(session, session.skip)


@teams.route('/<string:team_code>/levels/<int:level_number>/attempt/commit', methods=['POST'])
def retry_commit(team_code, level_number):
    session = _get_attempt(team_code, level_number)
    if session is None:
        return jsonify({'error': 'No attempt in progress for this level'}), 404
    return _run(session, session.retry_commit)
