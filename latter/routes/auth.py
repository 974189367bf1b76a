from flask import Blueprint, jsonify, redirect, url_for

from latter.auth_utils import current_player, login_player, logout_player
from latter.routes.helpers import request_data
from latter.services.players import bootstrap_admin, find_player_by_email

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/', methods=['GET'])
def index():
    if current_player() is not None:
        return redirect(url_for('players.get_standings'))
    return jsonify({
        'authenticated': False,
        'message': 'Log in with your registered email address',
    })


@auth_bp.route('/setup', methods=['GET'])
def setup():
    """Create the Admin player on an empty ladder."""
    admin = bootstrap_admin()
    return jsonify({
        'created': admin is not None,
        'admin': admin.to_summary() if admin else None,
    })


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request_data()
    player = find_player_by_email(data.get('email'))
    if not player:
        return jsonify({'error': 'No player is registered with that email'}), 401
    token = login_player(player)
    return jsonify({'player': player.to_dict(), 'token': token})


@auth_bp.route('/logout', methods=['GET', 'POST'])
def logout():
    logout_player()
    return redirect(url_for('auth.index'))


@auth_bp.route('/me', methods=['GET'])
def me():
    return jsonify({'player': current_player().to_dict()})
