from flask import Blueprint, current_app, jsonify

from cardduel import get_registry

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the card duel server!'})

@main.route('/health')
def health():
    registry = get_registry(current_app)
    return jsonify({
        'status': 'ok',
        'rooms': registry.room_count,
        'players': registry.player_count,
    })
