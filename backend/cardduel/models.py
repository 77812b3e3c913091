"""In-memory game entities.

Nothing here is persisted: rooms and players live for the lifetime of the
process and are owned by the room registry.
"""
import threading
from collections import namedtuple
from enum import Enum
from typing import Dict, List, Optional, Set

from cardduel.errors import RoomNotJoinable

ROOM_CAPACITY = 2
NAME_MAX_LENGTH = 32


class Card(namedtuple('Card', ['rank', 'suit'])):
    """An immutable playing card. Only the rank matters for scoring."""

    __slots__ = ()

    def to_dict(self):
        return {'rank': self.rank, 'suit': self.suit}


class Player:
    """A connected client. `sid` references the transport channel; the core never owns it."""

    def __init__(self, player_id: int, sid: str):
        self.id = player_id
        self.sid = sid
        self.name: Optional[str] = None
        self.room_id: Optional[int] = None

    def set_name(self, name) -> None:
        cleaned = name.strip()[:NAME_MAX_LENGTH] if isinstance(name, str) else ''
        self.name = cleaned or f"Player {self.id}"

    @property
    def display_name(self) -> str:
        return self.name or f"Player {self.id}"

    def to_dict(self):
        return {'id': self.id, 'name': self.display_name}


class RoomState(str, Enum):
    WAITING = 'waiting'
    RUNNING = 'running'
    RESOLVING = 'round_resolving'
    GAME_OVER = 'game_over'


class Room:
    def __init__(self, room_id: int, owner: Player, mode: str = 'classic'):
        self.id = room_id
        self.players: List[Player] = [owner]
        self.mode = mode
        self.state = RoomState.WAITING
        self.deck = None
        self.hands: Dict[int, list] = {}
        self.stood: Dict[int, bool] = {}
        self.turn_player_id: Optional[int] = None
        self.health: Dict[int, int] = {}
        self.round = 1
        self.rematch_votes: Set[int] = set()
        # Delayed next-round deal, owned by the room so teardown can cancel it
        self.pending_transition = None
        # Serialises handlers and timer callbacks touching this room
        self.lock = threading.RLock()

    @property
    def is_full(self) -> bool:
        return len(self.players) >= ROOM_CAPACITY

    @property
    def resolving(self) -> bool:
        return self.state is RoomState.RESOLVING

    def has_player(self, player: Player) -> bool:
        return any(p.id == player.id for p in self.players)

    def opponent_of(self, player: Player) -> Optional[Player]:
        for p in self.players:
            if p.id != player.id:
                return p
        return None

    def add_player(self, player: Player) -> None:
        if self.state is not RoomState.WAITING:
            raise RoomNotJoinable(f"Room {self.id} is not waiting for players")
        if self.is_full:
            raise RoomNotJoinable(f"Room {self.id} is full")
        self.players.append(player)
        player.room_id = self.id

    def remove_player(self, player: Player) -> None:
        self.players = [p for p in self.players if p.id != player.id]
        self.hands.pop(player.id, None)
        self.stood.pop(player.id, None)
        self.health.pop(player.id, None)
        self.rematch_votes.discard(player.id)
        if player.room_id == self.id:
            player.room_id = None

    def apply_damage(self, player_id: int, amount: int) -> int:
        self.health[player_id] = max(0, self.health.get(player_id, 0) - amount)
        return self.health[player_id]

    def eliminated(self) -> Optional[Player]:
        for p in self.players:
            if self.health.get(p.id, 0) <= 0:
                return p
        return None

    def to_summary(self):
        return {
            'roomId': self.id,
            'players': [p.display_name for p in self.players],
            'state': self.state.value,
            'mode': self.mode,
        }
