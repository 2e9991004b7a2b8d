import os
import sys
import pytest

# Ensure the backend root (containing the `chronos` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from chronos import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    BCRYPT_LOG_ROUNDS = 4
    GAME_DURATION_SEC = 5 * 60 * 60
    TOTAL_LEVELS = 40
    ADMIN_USERNAME = 'admin'
    ADMIN_PASSWORD = 'secret-pass'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import chronos.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
    # Runtime registries live at module level; keep tests independent
    from chronos.api import teams as teams_api
    from chronos.services.games import scheduler
    teams_api._attempts.clear()
    scheduler._watched_teams.clear()
    scheduler._expired_notified.clear()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def store(flask_app):
    return flask_app.extensions['chronos_store']


@pytest.fixture()
def admin_client(flask_app):
    from chronos.models import AdminUser
    admin_user = AdminUser(username='admin')
    admin_user.set_password('secret-pass')
    db.session.add(admin_user)
    db.session.commit()
    test_client = flask_app.test_client()
    res = test_client.post('/api/admin/auth/login', json={'username': 'admin', 'password': 'secret-pass'})
    assert res.status_code == 200
    return test_client


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
