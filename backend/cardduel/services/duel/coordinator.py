from typing import Callable, Optional

from cardduel.errors import DeckExhausted, NotYourTurn, RoomNotRunning
from cardduel.models import Player, Room, RoomState
from .cards import hand_value, is_bust, new_deck
from .notifier import Notifier
from .scheduler import RoundScheduler

INITIAL_HAND_SIZE = 2


class SessionCoordinator:
    """Drives a room through waiting -> running -> round_resolving -> running | game_over.

    Every public operation takes the room lock, so socket handlers and the
    round-transition timer never interleave inside a room. Turn and state
    checks happen before any mutation; a rejected action raises and leaves
    no trace.
    """

    def __init__(self, notifier: Notifier, scheduler: RoundScheduler, logger,
                 starting_health: int = 7, damage_cap: int = 7,
                 deck_factory: Callable = new_deck):
        self.notifier = notifier
        self.scheduler = scheduler
        self.logger = logger
        self.starting_health = starting_health
        self.damage_cap = damage_cap
        self.deck_factory = deck_factory

    def damage_for(self, round_number: int) -> int:
        return min(round_number, self.damage_cap)

    # ---- match lifecycle ----

    def start_game(self, room: Room) -> None:
        """Begin a fresh match: full health, round 1, new deal. Also used for rematches."""
        with room.lock:
            if not room.is_full:
                raise RoomNotRunning(f"Room {room.id} needs two players to start")
            self.scheduler.cancel(room)
            room.round = 1
            room.rematch_votes.clear()
            room.health = {p.id: self.starting_health for p in room.players}
            self._deal(room)
            room.state = RoomState.RUNNING
            self.logger.info(
                f"[game-start] room={room.id} players={[p.id for p in room.players]} turn={room.turn_player_id}"
            )
            self._announce_deal(room, 'game_start')

    def deal_next_round(self, room: Room) -> None:
        with room.lock:
            if not room.resolving or not room.is_full:
                self.logger.info(f"[next-round-skip] room={room.id} state={room.state.value}")
                return
            room.round += 1
            self._deal(room)
            # Releases the resolution guard
            room.state = RoomState.RUNNING
            self.logger.info(f"[round-start] room={room.id} round={room.round} turn={room.turn_player_id}")
            self._announce_deal(room, 'round_start')

    def rematch(self, room: Room, player: Player) -> None:
        with room.lock:
            if room.state is not RoomState.GAME_OVER or not room.has_player(player):
                raise RoomNotRunning('Rematch is only available after game over')
            room.rematch_votes.add(player.id)
            votes = len(room.rematch_votes)
            self.logger.info(f"[rematch-vote] room={room.id} player={player.id} votes={votes}")
            self._broadcast(room, 'rematch_vote', {'playerId': player.id, 'votes': votes})
            if room.is_full and {p.id for p in room.players} <= room.rematch_votes:
                self.start_game(room)

    def abandon(self, room: Room, leaving: Player) -> Optional[Player]:
        """Tear the room down after `leaving` quit. Returns the notified opponent, if any."""
        with room.lock:
            self.scheduler.cancel(room)
            opponent = room.opponent_of(leaving)
            previous_state = room.state
            room.remove_player(leaving)
            if opponent is not None:
                room.remove_player(opponent)
                self._send(opponent, 'opponent_left', {
                    'playerId': leaving.id,
                    'message': 'Your opponent left the game.',
                })
            room.state = RoomState.GAME_OVER
            self.logger.info(
                f"[room-teardown] room={room.id} left={leaving.id} prev_state={previous_state.value} "
                f"notified={opponent.id if opponent else None}"
            )
            return opponent

    # ---- turn actions ----

    def hit(self, room: Room, player: Player) -> None:
        with room.lock:
            self._require_turn(room, player)
            try:
                card = room.deck.draw()
            except DeckExhausted:
                self.logger.warning(f"[deck-exhausted] room={room.id} round={room.round} player={player.id}")
                raise
            hand = room.hands[player.id]
            hand.append(card)
            value = hand_value(hand)
            self.logger.info(
                f"[hit] room={room.id} player={player.id} card={card.rank}{card.suit} value={value} "
                f"left={room.deck.remaining()}"
            )
            self._broadcast(room, 'hit_result', {
                'playerId': player.id,
                'card': card.to_dict(),
                'newValue': value,
            })
            if is_bust(hand):
                self.resolve_round(room, busted_player_id=player.id)
            else:
                self._pass_turn(room, player)

    def stand(self, room: Room, player: Player) -> None:
        with room.lock:
            self._require_turn(room, player)
            room.stood[player.id] = True
            self.logger.info(f"[stand] room={room.id} player={player.id}")
            self._broadcast(room, 'stand_result', {'playerId': player.id})
            opponent = room.opponent_of(player)
            if room.stood.get(opponent.id):
                self.resolve_round(room)
            else:
                self._pass_turn(room, player)

    # ---- round resolution ----

    def resolve_round(self, room: Room, busted_player_id: Optional[int] = None) -> bool:
        """Settle the current round exactly once. Returns False if it was already settled."""
        with room.lock:
            if room.state is not RoomState.RUNNING:
                self.logger.info(
                    f"[resolve-skip] room={room.id} round={room.round} state={room.state.value}"
                )
                return False
            # Guard: set before anything else so a second trigger is a no-op
            room.state = RoomState.RESOLVING

            first, second = room.players
            values = {p.id: hand_value(room.hands[p.id]) for p in room.players}
            winner = None
            if busted_player_id is not None:
                reason = 'bust'
                winner = second if busted_player_id == first.id else first
            else:
                reason = 'both_stand'
                if values[first.id] > values[second.id]:
                    winner = first
                elif values[second.id] > values[first.id]:
                    winner = second

            damage = 0
            if winner is not None:
                damage = self.damage_for(room.round)
                room.apply_damage(room.opponent_of(winner).id, damage)

            self.logger.info(
                f"[round-end] room={room.id} round={room.round} reason={reason} "
                f"winner={winner.id if winner else None} damage={damage} health={room.health}"
            )
            hands = {str(pid): [c.to_dict() for c in hand] for pid, hand in room.hands.items()}
            for p in list(room.players):
                opponent = room.opponent_of(p)
                self._send(p, 'round_end', {
                    'roomId': room.id,
                    'reason': reason,
                    'winnerId': winner.id if winner else None,
                    'values': {str(pid): v for pid, v in values.items()},
                    'hands': hands,
                    'health': {'you': room.health[p.id], 'opponent': room.health[opponent.id]},
                    'damage': damage,
                    'round': room.round,
                })

            loser = room.eliminated()
            if loser is not None:
                victor = room.opponent_of(loser)
                room.state = RoomState.GAME_OVER
                self.logger.info(f"[game-over] room={room.id} winner={victor.id} loser={loser.id} round={room.round}")
                self._broadcast(room, 'game_over', {'winnerId': victor.id, 'loserId': loser.id})
                return True

            self.scheduler.schedule(room, self.deal_next_round)
            return True

    # ---- helpers ----

    def _require_turn(self, room: Room, player: Player) -> None:
        if room.state is not RoomState.RUNNING or not room.has_player(player):
            raise RoomNotRunning()
        if room.turn_player_id != player.id:
            raise NotYourTurn()

    def _pass_turn(self, room: Room, player: Player) -> None:
        opponent = room.opponent_of(player)
        # A player who has stood takes no further turns this round
        room.turn_player_id = player.id if room.stood.get(opponent.id) else opponent.id
        self._broadcast(room, 'turn_change', {'currentTurnPlayerId': room.turn_player_id})

    def _deal(self, room: Room) -> None:
        room.deck = self.deck_factory()
        room.hands = {}
        room.stood = {}
        for p in room.players:
            room.hands[p.id] = [room.deck.draw() for _ in range(INITIAL_HAND_SIZE)]
            room.stood[p.id] = False
        room.turn_player_id = room.players[0].id

    def _announce_deal(self, room: Room, event: str) -> None:
        damage = self.damage_for(room.round)
        for p in list(room.players):
            opponent = room.opponent_of(p)
            hand = room.hands[p.id]
            self._send(p, event, {
                'roomId': room.id,
                'mode': room.mode,
                'you': p.to_dict(),
                'opponent': opponent.to_dict(),
                'yourHand': [c.to_dict() for c in hand],
                'yourValue': hand_value(hand),
                'opponentCardCount': len(room.hands[opponent.id]),
                'health': {'you': room.health[p.id], 'opponent': room.health[opponent.id]},
                'round': room.round,
                'damage': damage,
                'currentTurnPlayerId': room.turn_player_id,
            })

    def _broadcast(self, room: Room, event: str, payload) -> None:
        for p in list(room.players):
            self._send(p, event, payload)

    def _send(self, player: Player, event: str, payload) -> None:
        try:
            self.notifier.send(player, event, payload)
        except Exception as exc:
            self.logger.warning(f"[notify-failed] player={player.id} event={event} error={exc}")
