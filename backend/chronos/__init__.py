from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Level catalog and the progress store are shared by every request
    from chronos.services.games.levels import LevelCatalog
    from chronos.services.store import TeamStore
    flask_app.extensions['chronos_levels'] = LevelCatalog.load(flask_app.config.get('LEVEL_CONTENT_PATH'))
    flask_app.extensions['chronos_store'] = TeamStore.from_config(flask_app.config)

    from chronos.routes import main
    flask_app.register_blueprint(main)

    from chronos.api.teams import teams
    flask_app.register_blueprint(teams, url_prefix='/api/teams')

    from chronos.api.leaderboard import leaderboard
    flask_app.register_blueprint(leaderboard, url_prefix='/api/leaderboard')

    from chronos.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    from chronos.errors import ChronosError

    @flask_app.errorhandler(ChronosError)
    def handle_chronos_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    from chronos.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Flask-Login user loader
    from chronos.models import AdminUser

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(AdminUser, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Unauthorized'}), 401

    def _create_admin(username, password):
        admin_user = AdminUser.query.filter_by(username=username).first()
        if admin_user is None:
            admin_user = AdminUser(username=username)
        admin_user.set_password(password)
        db.session.add(admin_user)
        db.session.commit()
        return admin_user

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            _create_admin(flask_app.config['ADMIN_USERNAME'], flask_app.config['ADMIN_PASSWORD'])
            click.echo('Database has been reset and seeded!')

    @click.command('create-admin')
    @click.argument('username')
    @click.argument('password')
    def create_admin_command(username, password):
        """Creates an admin user, or resets the password of an existing one."""
        with flask_app.app_context():
            admin_user = _create_admin(username, password)
            click.echo(f"Admin '{admin_user.username}' is ready.")

    @click.command('create-team')
    @click.argument('team_name')
    def create_team_command(team_name):
        """Registers a team and prints its code."""
        with flask_app.app_context():
            team = flask_app.extensions['chronos_store'].create(team_name)
            click.echo(f"Team '{team.team_name}' created with code: {team.team_code}")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(create_admin_command)
    flask_app.cli.add_command(create_team_command)

    return flask_app
