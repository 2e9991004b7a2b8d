from typing import Any, Dict

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from chronos import socketio
from chronos.models import Team
from chronos.services.games.scheduler import (
    game_timer,
    start_timer_broadcast,
    unwatch_team,
    watch_team,
)

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if ctx and ctx.get('team_code'):
        unwatch_team(ctx['team_code'])


def handle_join_team(data):
    team_code = ((data or {}).get('team_code') or '').strip().upper()
    if not team_code:
        emit('error', {'message': 'team_code is required'})
        return
    team = Team.query.filter_by(team_code=team_code).first()
    if not team:
        emit('error', {'message': 'Team not found'})
        return
    previous = _sid_to_ctx.get(_get_sid())
    if previous and previous.get('team_code') != team_code:
        leave_room(f"team:{previous['team_code']}")
        unwatch_team(previous['team_code'])
        previous = None
    room = f"team:{team_code}"
    join_room(room)
    if not previous:
        watch_team(team_code)
    _sid_to_ctx[_get_sid()] = {'team_code': team_code}
    payload = game_timer(current_app).payload(team)
    payload['team_code'] = team_code
    emit('joined', {'room': room, 'timer': payload})
    start_timer_broadcast(current_app._get_current_object())


def handle_leave_team(data):
    team_code = ((data or {}).get('team_code') or '').strip().upper()
    if not team_code:
        emit('error', {'message': 'team_code is required'})
        return
    room = f"team:{team_code}"
    leave_room(room)
    ctx = _sid_to_ctx.get(_get_sid())
    if ctx and ctx.get('team_code') == team_code:
        _sid_to_ctx.pop(_get_sid(), None)
        unwatch_team(team_code)
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('disconnect', handle_disconnect, namespace='/ws')
    socketio.on_event('join_team', handle_join_team, namespace='/ws')
    socketio.on_event('leave_team', handle_leave_team, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('disconnect', handle_disconnect, namespace='/')
        socketio.on_event('join_team', handle_join_team, namespace='/')
        socketio.on_event('leave_team', handle_leave_team, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
