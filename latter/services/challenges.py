"""Challenge lifecycle: a challenge is created pending and scored exactly once."""
from sqlalchemy import or_

from latter.app import db
from latter.errors import AlreadyCompletedError, NotFoundError, ValidationError
from latter.models import Challenge, Player, utcnow_naive

_MIN_SCORE = 0
_MAX_SCORE = 99
_STATUSES = {'pending', 'completed'}


def _parse_player_id(raw_value, label, errors):
    if raw_value is None or (isinstance(raw_value, str) and not raw_value.strip()):
        errors.append(f'{label} is required')
        return None
    if isinstance(raw_value, bool) or (isinstance(raw_value, float) and not raw_value.is_integer()):
        errors.append(f'{label} is invalid')
        return None
    try:
        value = int(raw_value.strip()) if isinstance(raw_value, str) else int(raw_value)
    except (TypeError, ValueError):
        errors.append(f'{label} is invalid')
        return None
    if value <= 0:
        errors.append(f'{label} is invalid')
        return None
    return value


def _parse_score(raw_value, label, errors):
    if isinstance(raw_value, bool) or (isinstance(raw_value, float) and not raw_value.is_integer()):
        errors.append(f'{label} must be an integer')
        return None
    try:
        value = int(str(raw_value).strip()) if isinstance(raw_value, str) else int(raw_value)
    except (TypeError, ValueError):
        errors.append(f'{label} must be an integer')
        return None
    if value < _MIN_SCORE:
        errors.append(f'{label} must be non-negative')
    elif value > _MAX_SCORE:
        errors.append(f'{label} must be at most {_MAX_SCORE}')
    return value


def get_challenge(challenge_id):
    challenge = db.session.get(Challenge, challenge_id) if challenge_id is not None else None
    if not challenge:
        raise NotFoundError()
    return challenge


def list_challenges(player_id=None, status=None):
    query = Challenge.query
    if player_id:
        query = query.filter(
            or_(Challenge.from_player_id == player_id, Challenge.to_player_id == player_id)
        )
    if status:
        status = str(status).strip().lower()
        if status not in _STATUSES:
            raise ValidationError(details=['Status must be pending or completed'])
        query = query.filter(Challenge.completed.is_(status == 'completed'))
    return query.order_by(Challenge.created_at.desc(), Challenge.id.desc()).all()


def create_challenge(from_player_id, to_player_id):
    """Create a pending challenge from one registered player to another."""
    errors = []
    from_id = _parse_player_id(from_player_id, 'Challenging player', errors)
    to_id = _parse_player_id(to_player_id, 'Challenged player', errors)
    if errors:
        raise ValidationError(details=errors)
    if from_id == to_id:
        raise ValidationError(details=['Players cannot challenge themselves'])

    from_player = db.session.get(Player, from_id)
    to_player = db.session.get(Player, to_id)
    if not from_player:
        errors.append('Challenging player not found')
    if not to_player:
        errors.append('Challenged player not found')
    if errors:
        raise ValidationError(details=errors)

    challenge = Challenge(
        from_player_id=from_player.id,
        to_player_id=to_player.id,
        completed=False,
    )
    db.session.add(challenge)
    db.session.commit()
    return challenge


def winner_for_scores(challenge, from_score, to_score):
    """Return the id of the player with the strictly higher score."""
    if from_score == to_score:
        raise ValidationError(details=['Scores cannot be tied, there must be a winner'])
    return challenge.from_player_id if from_score > to_score else challenge.to_player_id


def set_score_and_complete(challenge_id, from_score, to_score):
    """Record the result of a pending challenge and mark it completed.

    Scores, winner and the completed flag are written by a single UPDATE that
    only matches while the row is still pending, so a challenge can only ever
    receive one result. Any failure leaves the stored row as it was.
    """
    challenge = get_challenge(challenge_id)
    if challenge.completed:
        raise AlreadyCompletedError()

    errors = []
    from_value = _parse_score(from_score, 'Challenging player score', errors)
    to_value = _parse_score(to_score, 'Challenged player score', errors)
    if errors:
        raise ValidationError(details=errors)
    winner_id = winner_for_scores(challenge, from_value, to_value)

    now = utcnow_naive()
    updated = Challenge.query.filter(
        Challenge.id == challenge.id,
        Challenge.completed.is_(False),
    ).update({
        Challenge.from_player_score: from_value,
        Challenge.to_player_score: to_value,
        Challenge.winner_id: winner_id,
        Challenge.completed: True,
        Challenge.completed_at: now,
        Challenge.updated_at: now,
    }, synchronize_session=False)
    if updated != 1:
        db.session.rollback()
        raise AlreadyCompletedError()

    db.session.commit()
    return challenge
