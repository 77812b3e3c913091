"""Duel domain services: cards, round timers, session state machine and matchmaking.

This package contains the game core. Socket handlers and HTTP routes call
into it; it never imports Flask or Socket.IO directly, it talks to clients
only through a Notifier.
"""
from .cards import Deck, hand_value, new_deck
from .coordinator import SessionCoordinator
from .notifier import Notifier, SocketIONotifier
from .registry import RoomRegistry
from .scheduler import PendingTransition, RoundScheduler
