"""Challenge routes: issue a challenge, record its result, browse them."""
from flask import Blueprint, jsonify, request

from latter.auth_utils import current_player
from latter.routes.helpers import emit_ladder_update, nested_fields, request_data
from latter.services.challenges import (
    create_challenge, get_challenge, list_challenges, set_score_and_complete,
)
from latter.services.notifications import ChallengeNotice, notify_challenge

challenges_bp = Blueprint('challenges', __name__)


@challenges_bp.route('', methods=['GET'])
def get_challenges():
    challenges = list_challenges(
        player_id=request.args.get('player_id', type=int),
        status=request.args.get('status', ''),
    )
    return jsonify({'challenges': [c.to_dict() for c in challenges]})


@challenges_bp.route('', methods=['POST'])
def issue_challenge():
    """Challenge another player; the challenger defaults to the logged-in player."""
    data = nested_fields(request_data(), 'challenge')
    from_player_id = data.get('from_player_id')
    if from_player_id in (None, ''):
        from_player_id = current_player().id

    challenge = create_challenge(from_player_id, data.get('to_player_id'))
    notified = notify_challenge(challenge, ChallengeNotice.NEW_CHALLENGE)
    emit_ladder_update(reason='challenge_created', challenge_id=challenge.id)
    return jsonify({'challenge': challenge.to_dict(), 'notified': notified}), 201


@challenges_bp.route('/<int:challenge_id>', methods=['GET'])
def show_challenge(challenge_id):
    return jsonify({'challenge': get_challenge(challenge_id).to_dict()})


@challenges_bp.route('/<int:challenge_id>/score', methods=['POST'])
@challenges_bp.route('/<int:challenge_id>/update', methods=['POST'])
def score_challenge(challenge_id):
    """Record the final score; a challenge accepts exactly one result."""
    data = nested_fields(request_data(), 'challenge')
    challenge = set_score_and_complete(
        challenge_id,
        data.get('from_player_score'),
        data.get('to_player_score'),
    )
    notified = notify_challenge(challenge, ChallengeNotice.CHALLENGE_UPDATED)
    emit_ladder_update(reason='challenge_completed', challenge_id=challenge.id)
    return jsonify({'challenge': challenge.to_dict(), 'notified': notified})
