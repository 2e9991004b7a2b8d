import time

from chronos import db
from chronos.api import teams as teams_api


def test_admin_routes_require_login(client):
    assert client.get('/api/admin/teams').status_code == 401
    assert client.get('/api/admin/auth/check').status_code == 401
    assert client.post('/api/admin/teams', json={'team_name': 'Sneaky'}).status_code == 401


def test_login_rejects_bad_credentials(admin_client, client):
    res = client.post('/api/admin/auth/login', json={'username': 'admin', 'password': 'wrong'})
    assert res.status_code == 401
    assert res.get_json()['error'] == 'Invalid credentials'
    assert client.post('/api/admin/auth/login', json={'username': 'admin'}).status_code == 400


def test_login_check_and_logout(admin_client):
    res = admin_client.get('/api/admin/auth/check')
    assert res.status_code == 200
    assert res.get_json()['admin']['username'] == 'admin'
    assert admin_client.post('/api/admin/auth/logout').status_code == 200
    assert admin_client.get('/api/admin/auth/check').status_code == 401


def test_create_and_list_teams(admin_client):
    res = admin_client.post('/api/admin/teams', json={'team_name': 'Paradox Pals'})
    assert res.status_code == 201
    team = res.get_json()['team']
    assert len(team['team_code']) == 6

    res = admin_client.get('/api/admin/teams')
    teams = res.get_json()['teams']
    assert [t['team_name'] for t in teams] == ['Paradox Pals']
    assert teams[0]['rank'] == 1

    assert admin_client.post('/api/admin/teams', json={'team_name': ' '}).status_code == 400
    res = admin_client.post('/api/admin/teams', json={'team_name': 'x' * 120})
    assert res.status_code == 400
    assert res.get_json()['details'] == ['Team name must be less than 100 characters']


def test_update_team_validates_everything_first(admin_client, store):
    code = store.create('Editable').team_code
    res = admin_client.put(f'/api/admin/teams/{code}/update', json={
        'score': 500,
        'current_level': 41,
        'hint_count': -1,
        'game_loaded': 'yes',
    })
    assert res.status_code == 400
    body = res.get_json()
    assert body['error'] == 'Validation failed'
    assert 'Current level must be between 1 and 40' in body['details']
    assert 'Hint count must be a non-negative integer' in body['details']
    assert 'Game loaded must be a boolean' in body['details']
    # nothing was applied
    assert store.get(code).score == 0


def test_update_team_applies_fields(admin_client, store):
    code = store.create('Editable').team_code
    res = admin_client.put(f'/api/admin/teams/{code}/update', json={
        'team_name': 'Edited',
        'score': -150,
        'current_level': 12,
        'checkpoint_level': 10,
        'checkpoint_score': 8000,
    })
    assert res.status_code == 200
    team = res.get_json()['team']
    assert team['team_name'] == 'Edited'
    assert team['score'] == -150
    assert team['current_level'] == 12
    assert store.get(code).checkpoint_score == 8000


def test_update_missing_team_is_404(admin_client):
    res = admin_client.put('/api/admin/teams/NOPE00/update', json={'score': 1})
    assert res.status_code == 404


def test_update_without_known_fields_is_400(admin_client, store):
    code = store.create('Editable').team_code
    res = admin_client.put(f'/api/admin/teams/{code}/update', json={'colour': 'red'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'No valid fields provided for update'


def test_admin_revert_and_delete(admin_client, store):
    code = store.create('Doomed').team_code
    store.update_fields(code, {'score': 1000, 'current_level': 9, 'checkpoint_level': 6, 'checkpoint_score': 600})
    res = admin_client.put(f'/api/admin/teams/{code}/revert')
    assert res.status_code == 200
    assert res.get_json()['team']['score'] == 400

    assert admin_client.delete(f'/api/admin/teams/{code}').status_code == 200
    assert admin_client.delete(f'/api/admin/teams/{code}').status_code == 404


def test_unloading_game_keeps_start_time(admin_client, store):
    code = store.create('Rewinders').team_code
    admin_client.post('/api/teams/start-game', json={'team_code': code})
    team = store.get(code)
    team.game_start_time = time.time() - 60 * 60
    db.session.commit()
    started_at = team.game_start_time

    res = admin_client.put(f'/api/admin/teams/{code}/update', json={'game_loaded': False})
    assert res.get_json()['team']['game_loaded'] is False
    res = admin_client.post('/api/teams/start-game', json={'team_code': code})
    team = res.get_json()['team']
    assert team['game_loaded'] is True
    assert team['game_start_time'] == started_at
    assert team['timer']['time_remaining'] <= 4 * 60 * 60


def test_admin_revert_and_delete_drop_live_attempts(admin_client, store):
    code = store.create('Forgotten').team_code
    admin_client.post('/api/teams/start-game', json={'team_code': code})
    assert admin_client.post(f'/api/teams/{code}/levels/1/attempt').status_code == 201
    assert (code, 1) in teams_api._attempts

    assert admin_client.put(f'/api/admin/teams/{code}/revert').status_code == 200
    assert (code, 1) not in teams_api._attempts
    assert admin_client.get(f'/api/teams/{code}/levels/1/attempt').status_code == 404

    assert admin_client.post(f'/api/teams/{code}/levels/1/attempt').status_code == 201
    assert admin_client.delete(f'/api/admin/teams/{code}').status_code == 200
    assert not [key for key in teams_api._attempts if key[0] == code]
