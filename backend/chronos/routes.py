from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from chronos.models import AdminUser

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to The Chronos Cypher server!'})


@main.route('/api/admin/auth/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    username = data.get('username')
    password = data.get('password')
    if not username or not password:
        return jsonify({'error': 'Username and password are required'}), 400

    admin_user = AdminUser.query.filter_by(username=username).first()
    if admin_user and admin_user.check_password(password):
        login_user(admin_user, remember=True)
        current_app.logger.info(f"[admin-login] user={admin_user.username}")
        return jsonify({'success': True, 'admin': admin_user.to_dict()})
    current_app.logger.warning(f"[admin-login-failed] user={username}")
    return jsonify({'error': 'Invalid credentials'}), 401


@main.route('/api/admin/auth/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@main.route('/api/admin/auth/check', methods=['GET'])
@login_required
def check_login():
    return jsonify({'success': True, 'admin': current_user.to_dict()})
