import re

import jwt
from flask import current_app, jsonify, request, session

from latter.app import db
from latter.models import Player

_PUBLIC_PATHS = (
    re.compile(r'\A/\Z'),
    re.compile(r'\A/login\Z'),
    re.compile(r'\A/setup'),
)


def generate_token(player_id):
    """Generate a JWT token for a player."""
    from datetime import datetime, timedelta, timezone
    payload = {
        'player_id': player_id,
        'exp': datetime.now(timezone.utc) + timedelta(
            hours=current_app.config.get('JWT_EXPIRATION_HOURS', 24)
        ),
    }
    return jwt.encode(payload, current_app.config['SECRET_KEY'], algorithm='HS256')


def _normalize_bearer_token(raw_token):
    token = str(raw_token or '').strip()
    if token.startswith('Bearer '):
        token = token.split(' ', 1)[1].strip()
    return token


def _player_id_from_token(token):
    normalized = _normalize_bearer_token(token)
    if not normalized:
        return None
    try:
        payload = jwt.decode(
            normalized, current_app.config['SECRET_KEY'], algorithms=['HS256']
        )
    except jwt.InvalidTokenError:
        return None
    return payload.get('player_id')


def resolve_current_player():
    """Look up the player for this request from a bearer token or the session."""
    player_id = _player_id_from_token(request.headers.get('Authorization', ''))
    if player_id is None:
        player_id = session.get('player_id')
    if player_id is None:
        return None
    return db.session.get(Player, player_id)


def current_player():
    """The logged-in player for this request, resolved once per request."""
    if not hasattr(request, 'current_player'):
        request.current_player = resolve_current_player()
    return request.current_player


def requires_auth(path):
    """Every path except the landing page, login and setup needs a player."""
    return not any(pattern.match(path or '') for pattern in _PUBLIC_PATHS)


def login_player(player):
    session['player_id'] = player.id
    request.current_player = player
    return generate_token(player.id)


def logout_player():
    session.pop('player_id', None)
    request.current_player = None


def enforce_authentication():
    """``before_request`` hook: resolve the player and gate protected paths."""
    player = current_player()
    if request.method == 'OPTIONS' or not requires_auth(request.path):
        return None
    if player is None:
        return jsonify({'error': 'Authentication required'}), 401
    return None

