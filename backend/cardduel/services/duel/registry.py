import itertools
import threading
from typing import Dict, List, Optional

from cardduel.errors import AlreadyInRoom, NotInRoom, RoomNotJoinable
from cardduel.models import Player, Room
from .coordinator import SessionCoordinator

DEFAULT_MODE = 'classic'
MODE_MAX_LENGTH = 24


class RoomRegistry:
    """Process-scoped table of connected players and open rooms.

    Built once by create_app and torn down with shutdown(). Room and player
    ids come from monotonic counters and are never reused.
    """

    def __init__(self, coordinator: SessionCoordinator, logger):
        self.coordinator = coordinator
        self.logger = logger
        self._rooms: Dict[int, Room] = {}
        self._players: Dict[str, Player] = {}
        self._room_ids = itertools.count(1)
        self._player_ids = itertools.count(1)
        self._lock = threading.RLock()

    # ---- players ----

    def connect(self, sid: str) -> Player:
        with self._lock:
            player = Player(next(self._player_ids), sid)
            self._players[sid] = player
        self.logger.info(f"[connect] player={player.id} sid={sid}")
        return player

    def get_player(self, sid: str) -> Optional[Player]:
        with self._lock:
            return self._players.get(sid)

    def disconnect(self, sid: str) -> Optional[Player]:
        with self._lock:
            player = self._players.pop(sid, None)
        if player is None:
            return None
        self.logger.info(f"[disconnect] player={player.id} room={player.room_id}")
        room = self.room_for(player)
        if room is not None:
            self._teardown(room, player)
        return player

    @property
    def player_count(self) -> int:
        with self._lock:
            return len(self._players)

    # ---- rooms ----

    def create_room(self, player: Player, display_name=None, mode=None) -> int:
        with self._lock:
            if player.room_id is not None:
                raise AlreadyInRoom()
            player.set_name(display_name)
            room = Room(next(self._room_ids), player, mode=_clean_mode(mode))
            player.room_id = room.id
            self._rooms[room.id] = room
        self.logger.info(f"[room-create] room={room.id} player={player.id} mode={room.mode}")
        return room.id

    def join_room(self, player: Player, room_id, display_name=None) -> Room:
        with self._lock:
            if player.room_id is not None:
                raise AlreadyInRoom()
            room = self._rooms.get(room_id)
            if room is None:
                raise RoomNotJoinable(f"Room {room_id} not found")
            with room.lock:
                room.add_player(player)
                player.set_name(display_name)
        self.logger.info(f"[room-join] room={room.id} player={player.id}")
        if room.is_full:
            self.coordinator.start_game(room)
        return room

    def leave_room(self, player: Player) -> Room:
        room = self.room_for(player)
        if room is None:
            raise NotInRoom()
        self._teardown(room, player)
        return room

    def get_room(self, room_id) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(room_id)

    def room_for(self, player: Player) -> Optional[Room]:
        if player.room_id is None:
            return None
        return self.get_room(player.room_id)

    def list_rooms(self) -> List[dict]:
        # Snapshot so callers never iterate the live table
        with self._lock:
            rooms = list(self._rooms.values())
        return [room.to_summary() for room in rooms]

    @property
    def room_count(self) -> int:
        with self._lock:
            return len(self._rooms)

    def publish_rooms(self) -> None:
        self.coordinator.notifier.broadcast('room_list', {'rooms': self.list_rooms()})

    def shutdown(self) -> None:
        with self._lock:
            rooms = list(self._rooms.values())
            self._rooms.clear()
            self._players.clear()
        for room in rooms:
            with room.lock:
                self.coordinator.scheduler.cancel(room)
        self.logger.info(f"[shutdown] released rooms={len(rooms)}")

    def _teardown(self, room: Room, player: Player) -> None:
        # Unlist first so the lobby never shows a room mid-teardown
        with self._lock:
            self._rooms.pop(room.id, None)
        self.coordinator.abandon(room, player)


def _clean_mode(mode) -> str:
    if not isinstance(mode, str) or not mode.strip():
        return DEFAULT_MODE
    return mode.strip()[:MODE_MAX_LENGTH]
