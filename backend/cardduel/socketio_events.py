from flask import current_app, request
from flask_socketio import emit
from typing import Any, Dict, Optional

from cardduel import get_registry, socketio
from cardduel.errors import SILENT_ERRORS, DuelError, NotInRoom
from cardduel.models import RoomState

NAMESPACE = '/ws'


def handle_connect(auth=None):
    player = _registry().connect(_get_sid())
    emit('welcome', {'playerId': player.id})


def handle_disconnect(reason=None):
    registry = _registry()
    player = registry.disconnect(_get_sid())
    if player is not None:
        registry.publish_rooms()


def handle_create_room(data=None):
    payload, player = _prepare(data)
    if player is None:
        return
    try:
        room_id = _registry().create_room(player, payload.get('name'), payload.get('mode'))
    except DuelError as exc:
        _reject(player, exc)
        return
    emit('room_created', {'roomId': room_id})
    _registry().publish_rooms()


def handle_join_room(data=None):
    payload, player = _prepare(data)
    if player is None:
        return
    room_id = _as_room_id(payload.get('roomId'))
    if room_id is None:
        _drop('join_room', 'missing or invalid roomId')
        return
    try:
        _registry().join_room(player, room_id, payload.get('name'))
    except DuelError as exc:
        _reject(player, exc)
        return
    _registry().publish_rooms()


def handle_hit(data=None):
    _turn_action('hit', data)


def handle_stand(data=None):
    _turn_action('stand', data)


def handle_rematch(data=None):
    _, player = _prepare(data)
    if player is None:
        return
    registry = _registry()
    room = registry.room_for(player)
    if room is None:
        _reject(player, NotInRoom())
        return
    try:
        registry.coordinator.rematch(room, player)
    except DuelError as exc:
        _reject(player, exc)
        return
    if room.state is RoomState.RUNNING:
        registry.publish_rooms()


def handle_get_rooms(data=None):
    _, player = _prepare(data)
    if player is None:
        return
    emit('room_list', {'rooms': _registry().list_rooms()})


def handle_leave_room(data=None):
    _, player = _prepare(data)
    if player is None:
        return
    try:
        room = _registry().leave_room(player)
    except DuelError as exc:
        _reject(player, exc)
        return
    emit('left_room', {'roomId': room.id})
    _registry().publish_rooms()


def handle_message(data=None):
    """Single-channel clients send {type: ..., ...}; route to the named handler."""
    if not isinstance(data, dict):
        _drop('message', 'payload is not an object')
        return
    handler = _HANDLERS_BY_TYPE.get(data.get('type'))
    if handler is None:
        _drop('message', f"unknown type {data.get('type')!r}")
        return
    handler(data)


# ---- helpers ----

def _registry():
    return get_registry(current_app)


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _prepare(data):
    """Validate the payload shape and resolve the sender. (None, None) means drop."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        _drop('event', 'payload is not an object')
        return None, None
    player = _registry().get_player(_get_sid())
    if player is None:
        _drop('event', 'unknown sender')
        return None, None
    return data, player


def _turn_action(action: str, data) -> None:
    _, player = _prepare(data)
    if player is None:
        return
    registry = _registry()
    room = registry.room_for(player)
    if room is None:
        _drop(action, f"player={player.id} not in a room")
        return
    try:
        getattr(registry.coordinator, action)(room, player)
    except DuelError as exc:
        _reject(player, exc)
        return
    if room.state is RoomState.GAME_OVER:
        registry.publish_rooms()


def _reject(player, exc: DuelError) -> None:
    if isinstance(exc, SILENT_ERRORS):
        current_app.logger.debug(f"[rejected] player={player.id} reason={exc.__class__.__name__}")
        return
    current_app.logger.info(f"[rejected] player={player.id} reason={exc.__class__.__name__} message={exc.message}")
    emit('error', {'message': exc.message})


def _drop(event: str, why: str) -> None:
    current_app.logger.debug(f"[dropped] event={event} sid={_get_sid()} {why}")


def _as_room_id(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        # isdigit() also accepts non-ASCII digits such as '²'
        if text.isascii() and text.isdigit():
            try:
                return int(text)
            except ValueError:
                # Longer than the interpreter's int conversion limit
                return None
    return None


_HANDLERS_BY_TYPE: Dict[str, Any] = {
    'create_room': handle_create_room,
    'join_room': handle_join_room,
    'hit': handle_hit,
    'stand': handle_stand,
    'rematch': handle_rematch,
    'get_rooms': handle_get_rooms,
    'leave_room': handle_leave_room,
}


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('message', handle_message, namespace=NAMESPACE)
    for event, handler in _HANDLERS_BY_TYPE.items():
        socketio.on_event(event, handler, namespace=NAMESPACE)
