from flask import Blueprint, current_app, jsonify

from cardduel import get_registry

rooms = Blueprint('rooms', __name__)


@rooms.route('', methods=['GET'])
@rooms.route('/', methods=['GET'])
def list_rooms():
    return jsonify({'rooms': get_registry(current_app).list_rooms()})


@rooms.route('/<int:room_id>', methods=['GET'])
def get_room(room_id):
    room = get_registry(current_app).get_room(room_id)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(room.to_summary())
