from flask import Blueprint, jsonify

from latter.routes.helpers import emit_ladder_update, nested_fields, request_data
from latter.services.players import (
    create_player, delete_player, get_player, standings, update_player,
)

players_bp = Blueprint('players', __name__)


@players_bp.route('', methods=['GET'])
def get_standings():
    """All players ranked by completed challenge wins."""
    return jsonify({'players': standings()})


@players_bp.route('', methods=['POST'])
def register_player():
    player = create_player(nested_fields(request_data(), 'player'))
    emit_ladder_update(reason='player_created')
    return jsonify({'player': player.to_dict()}), 201


@players_bp.route('/<int:player_id>', methods=['GET'])
def show_player(player_id):
    return jsonify({'player': get_player(player_id).to_dict()})


@players_bp.route('/<int:player_id>', methods=['POST', 'PATCH'])
@players_bp.route('/<int:player_id>/update', methods=['POST'])
def edit_player(player_id):
    player = update_player(player_id, nested_fields(request_data(), 'player'))
    emit_ladder_update(reason='player_updated')
    return jsonify({'player': player.to_dict()})


@players_bp.route('/<int:player_id>', methods=['DELETE'])
@players_bp.route('/<int:player_id>/delete', methods=['POST'])
def remove_player(player_id):
    delete_player(player_id)
    emit_ladder_update(reason='player_deleted')
    return jsonify({'message': 'Player deleted'})
