"""Player records and the win-count standings."""
import re

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from latter.app import db
from latter.errors import NotFoundError, ValidationError
from latter.models import Challenge, Player

_EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
_MAX_NAME_LENGTH = 120
_MAX_EMAIL_LENGTH = 120
_EDITABLE_FIELDS = ('name', 'email')


def normalize_email(raw_value):
    return str(raw_value or '').strip().lower()


def _clean_email(raw_value, errors):
    email = normalize_email(raw_value)
    if not email:
        errors.append('Email is required')
    elif len(email) > _MAX_EMAIL_LENGTH or not _EMAIL_RE.match(email):
        errors.append('Email is invalid')
    return email


def _clean_name(raw_value, errors):
    if raw_value is None:
        return ''
    if not isinstance(raw_value, str):
        errors.append('Name must be text')
        return ''
    name = raw_value.strip()
    if len(name) > _MAX_NAME_LENGTH:
        errors.append(f'Name must be at most {_MAX_NAME_LENGTH} characters')
    return name


def _email_taken(email, exclude_id=None):
    query = Player.query.filter(Player.email == email)
    if exclude_id is not None:
        query = query.filter(Player.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def _commit_or_reject(message):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(details=[message])


def get_player(player_id):
    player = db.session.get(Player, player_id) if player_id is not None else None
    if not player:
        raise NotFoundError()
    return player


def find_player_by_email(email):
    normalized = normalize_email(email)
    if not normalized:
        return None
    return Player.query.filter_by(email=normalized).first()


def list_players():
    return Player.query.order_by(Player.id.asc()).all()


def create_player(data):
    data = data or {}
    errors = []
    email = _clean_email(data.get('email'), errors)
    name = _clean_name(data.get('name'), errors)
    if not errors and _email_taken(email):
        errors.append('Email is already registered')
    if errors:
        raise ValidationError(details=errors)

    player = Player(name=name or email.split('@', 1)[0], email=email)
    db.session.add(player)
    _commit_or_reject('Email is already registered')
    return player


def update_player(player_id, data):
    """Apply a partial update; on any invalid field nothing is changed."""
    player = get_player(player_id)
    data = data or {}
    changes = {}
    errors = []
    if 'name' in data:
        changes['name'] = _clean_name(data.get('name'), errors)
    if 'email' in data:
        email = _clean_email(data.get('email'), errors)
        if not errors and _email_taken(email, exclude_id=player.id):
            errors.append('Email is already registered')
        changes['email'] = email
    if errors:
        raise ValidationError(details=errors)
    if 'name' in changes and not changes['name']:
        changes['name'] = changes.get('email', player.email).split('@', 1)[0]

    for field in _EDITABLE_FIELDS:
        if field in changes:
            setattr(player, field, changes[field])
    _commit_or_reject('Email is already registered')
    return player


def delete_player(player_id):
    """Delete a player who has no challenges on record."""
    player = get_player(player_id)
    referenced = db.session.query(
        Challenge.query.filter(
            or_(Challenge.from_player_id == player.id, Challenge.to_player_id == player.id)
        ).exists()
    ).scalar()
    if referenced:
        raise ValidationError(details=['Player has challenges on record and cannot be deleted'])
    db.session.delete(player)
    db.session.commit()
    return player


def bootstrap_admin():
    """Create the Admin player when the ladder has nobody yet."""
    if Player.query.count():
        return None
    admin = Player(
        name=current_app.config.get('ADMIN_NAME', 'Admin'),
        email=normalize_email(current_app.config.get('ADMIN_EMAIL', 'admin@example.org')),
    )
    db.session.add(admin)
    db.session.commit()
    current_app.logger.info('Created bootstrap admin player %s', admin.email)
    return admin


def rank_players():
    """Return ``(player, total_wins)`` pairs ordered by wins, most first.

    Wins are counted from completed challenges at query time. Players with
    the same number of wins keep registration order.
    """
    wins = db.session.query(
        Challenge.winner_id.label('player_id'),
        func.count(Challenge.id).label('wins'),
    ).filter(
        Challenge.completed.is_(True),
    ).group_by(Challenge.winner_id).subquery()

    win_count = func.coalesce(wins.c.wins, 0)
    rows = db.session.query(Player, win_count).outerjoin(
        wins, wins.c.player_id == Player.id,
    ).order_by(win_count.desc(), Player.id.asc()).all()
    return [(player, int(total)) for player, total in rows]


def standings():
    """Rank rows for the standings view; equal wins share a rank."""
    played = _challenges_played_by_player()
    rows = []
    previous_wins = None
    rank = 0
    for position, (player, wins) in enumerate(rank_players(), 1):
        if wins != previous_wins:
            rank = position
            previous_wins = wins
        games = played.get(player.id, 0)
        rows.append({
            'rank': rank, 'player_id': player.id,
            'name': player.name or player.email,
            'email': player.email,
            'total_wins': wins, 'total_losses': games - wins,
            'challenges_played': games,
            'win_rate': round((wins / games) * 100) if games > 0 else 0,
        })
    return rows


def _challenges_played_by_player():
    counts = {}
    for column in (Challenge.from_player_id, Challenge.to_player_id):
        rows = db.session.query(column, func.count(Challenge.id)).filter(
            Challenge.completed.is_(True),
        ).group_by(column).all()
        for player_id, total in rows:
            counts[player_id] = counts.get(player_id, 0) + int(total)
    return counts
