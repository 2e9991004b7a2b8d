from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from chronos import socketio
from chronos.api.teams import drop_attempts
from chronos.errors import ValidationError
from chronos.services.leaderboard import build_leaderboard
from chronos.validation import validate_team_update

admin = Blueprint('admin', __name__)


def _store():
    return current_app.extensions['chronos_store']


def _total_levels() -> int:
    return int(current_app.config.get('TOTAL_LEVELS', 40))


@admin.route('/teams', methods=['GET'])
@login_required
def list_teams():
    teams = _store().list_all()
    return jsonify({'success': True, 'teams': build_leaderboard(teams, _total_levels())})


@admin.route('/teams', methods=['POST'])
@login_required
def create_team():
    data = request.get_json(silent=True) or {}
    name = data.get('team_name')
    if not isinstance(name, str) or not name.strip():
        return jsonify({'error': 'Team name is required'}), 400
    errors = validate_team_update({'team_name': name}, _total_levels())
    if errors:
        raise ValidationError('Validation failed', details=errors)
    team = _store().create(name)
    current_app.logger.info(f"[admin-create-team] admin={current_user.username} team={team.team_code}")
    return jsonify({'success': True, 'team': team.to_dict()}), 201


@admin.route('/teams/<string:team_code>', methods=['DELETE'])
@login_required
def delete_team(team_code):
    store = _store()
    team = store.get(team_code)
    code = team.team_code
    store.delete(code)
    drop_attempts(code)
    current_app.logger.info(f"[admin-delete-team] admin={current_user.username} team={code}")
    return jsonify({'success': True, 'team_code': code})


@admin.route('/teams/<string:team_code>/update', methods=['PUT'])
@login_required
def update_team(team_code):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    store = _store()
    # 404 takes precedence over payload errors
    store.get(team_code)
    errors = validate_team_update(data, _total_levels())
    if errors:
        raise ValidationError('Validation failed', details=errors)
    team = store.update_fields(team_code, data)
    current_app.logger.info(
        f"[admin-update-team] admin={current_user.username} team={team.team_code} fields={sorted(data)}"
    )
    socketio.emit('team_update', {'team_code': team.team_code}, to=f"team:{team.team_code}", namespace='/ws')
    return jsonify({'success': True, 'team': team.to_dict()})


@admin.route('/teams/<string:team_code>/revert', methods=['PUT'])
@login_required
def revert_team(team_code):
    team = _store().revert(team_code)
    drop_attempts(team.team_code)
    current_app.logger.info(f"[admin-revert-team] admin={current_user.username} team={team.team_code}")
    socketio.emit('team_update', {'team_code': team.team_code}, to=f"team:{team.team_code}", namespace='/ws')
    return jsonify({'success': True, 'team': team.to_dict()})
