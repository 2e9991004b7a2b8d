from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from chronos.services.leaderboard import build_leaderboard

leaderboard = Blueprint('leaderboard', __name__)


@leaderboard.route('', methods=['GET'])
@leaderboard.route('/', methods=['GET'])
def get_leaderboard():
    teams = current_app.extensions['chronos_store'].list_all()
    rows = build_leaderboard(teams, int(current_app.config.get('TOTAL_LEVELS', 40)))
    return jsonify({
        'success': True,
        'data': rows,
        'total_teams': len(rows),
        'last_updated': datetime.now(timezone.utc).isoformat(),
    })
