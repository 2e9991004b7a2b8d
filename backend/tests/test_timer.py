from types import SimpleNamespace

from chronos.services.games.progression import TeamState
from chronos.services.games.timer import GameTimer, TimerStatus, format_remaining

FIVE_HOURS = 5 * 60 * 60
NOW = 1_700_000_000.0


def _timer():
    return GameTimer(FIVE_HOURS, clock=lambda: NOW)


def test_not_loaded_is_not_started_regardless_of_start_time():
    team = SimpleNamespace(game_loaded=False, game_start_time=NOW - 10)
    timer = _timer()
    assert timer.status(team) is TimerStatus.NOT_STARTED
    assert timer.remaining(team) == 0
    assert timer.payload(team)['display'] == 'Game Not Started'


def test_malformed_start_time_is_not_started():
    timer = _timer()
    for raw in (None, 'yesterday', True, 'inf', '-inf', 'nan', float('inf'), float('nan')):
        team = SimpleNamespace(game_loaded=True, game_start_time=raw)
        assert timer.status(team) is TimerStatus.NOT_STARTED
        assert timer.payload(team) == {'status': 'not_started', 'time_remaining': 0.0, 'display': 'Game Not Started'}


def test_expired_one_second_past_duration():
    team = TeamState(team_code='T1', team_name='Late', game_loaded=True,
                     game_start_time=NOW - FIVE_HOURS - 1)
    timer = _timer()
    assert timer.status(team) is TimerStatus.EXPIRED
    assert timer.remaining(team) == 0
    assert timer.payload(team) == {'status': 'expired', 'time_remaining': 0.0, 'display': '00:00:00'}


def test_expires_exactly_at_duration():
    team = SimpleNamespace(game_loaded=True, game_start_time=NOW - FIVE_HOURS)
    assert _timer().status(team) is TimerStatus.EXPIRED


def test_active_payload_formats_remaining_time():
    team = SimpleNamespace(game_loaded=True, game_start_time=NOW - 3661)
    timer = _timer()
    assert timer.status(team) is TimerStatus.ACTIVE
    assert timer.remaining(team) == FIVE_HOURS - 3661
    assert timer.payload(team)['display'] == '03:58:59'


def test_start_time_accepts_numeric_strings():
    team = SimpleNamespace(game_loaded=True, game_start_time=str(NOW - 60))
    assert _timer().remaining(team) == FIVE_HOURS - 60


def test_format_remaining():
    assert format_remaining(0) == '00:00:00'
    assert format_remaining(59.9) == '00:00:59'
    assert format_remaining(FIVE_HOURS) == '05:00:00'
    assert format_remaining(-5) == '00:00:00'
