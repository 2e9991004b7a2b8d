import time
from typing import Dict, Set

from chronos import socketio
from chronos.models import Team
from .timer import GameTimer, TimerStatus

# team_code -> number of sockets watching that team's clock
_watched_teams: Dict[str, int] = {}
_expired_notified: Set[str] = set()
_broadcast_started = False


def watch_team(team_code: str) -> None:
    _watched_teams[team_code] = _watched_teams.get(team_code, 0) + 1


def unwatch_team(team_code: str) -> None:
    remaining = _watched_teams.get(team_code, 0) - 1
    if remaining > 0:
        _watched_teams[team_code] = remaining
    else:
        _watched_teams.pop(team_code, None)


def watched_teams() -> Set[str]:
    return set(_watched_teams)


def game_timer(app) -> GameTimer:
    return GameTimer(total_duration=app.config.get('GAME_DURATION_SEC', 5 * 60 * 60))


def broadcast_timer_tick(app) -> None:
    """Emit one timer update to every watched team room.

    A team whose clock has run out also gets a single ``time_expired`` event.
    """
    codes = sorted(_watched_teams)
    if not codes:
        return
    timer = game_timer(app)
    with app.app_context():
        teams = Team.query.filter(Team.team_code.in_(codes)).all()
        for team in teams:
            payload = timer.payload(team)
            payload['team_code'] = team.team_code
            room = f"team:{team.team_code}"
            socketio.emit('timer_update', payload, to=room, namespace='/ws')
            if payload['status'] == TimerStatus.EXPIRED.value:
                if team.team_code not in _expired_notified:
                    _expired_notified.add(team.team_code)
                    app.logger.info(f"[timer-expired] team={team.team_code}")
                    socketio.emit('time_expired', {'team_code': team.team_code}, to=room, namespace='/ws')
            else:
                _expired_notified.discard(team.team_code)


def start_timer_broadcast(app) -> None:
    """Start the once-per-tick timer loop (runtime only; disabled in tests)."""
    global _broadcast_started
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return
    if _broadcast_started:
        return
    _broadcast_started = True
    tick = float(app.config.get('TIMER_TICK_SEC', 1))

    def _worker():
        app.logger.info(f"[timer-broadcast] started tick={tick}s")
        while True:
            started = time.time()
            try:
                broadcast_timer_tick(app)
            except Exception as exc:
                app.logger.error(f"[timer-broadcast] tick failed: {exc}")
            socketio.sleep(max(0.0, tick - (time.time() - started)))

    socketio.start_background_task(_worker)
