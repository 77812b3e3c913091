import random
from typing import Iterable, List, Optional

from cardduel.errors import DeckExhausted
from cardduel.models import Card

RANKS = ['2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K', 'A']
SUITS = ['H', 'D', 'C', 'S']
BUST_THRESHOLD = 21
ACE = 'A'
FACE_RANKS = {'J', 'Q', 'K'}


class Deck:
    """Shuffled, consumable sequence of cards. A fresh deck is built for every round."""

    def __init__(self, cards: Optional[Iterable[Card]] = None, rng: Optional[random.Random] = None):
        if cards is None:
            cards = [Card(rank, suit) for suit in SUITS for rank in RANKS]
            self.cards: List[Card] = list(cards)
            (rng or random).shuffle(self.cards)
        else:
            # Pre-ordered deck, top card first
            self.cards = list(reversed(list(cards)))

    def draw(self) -> Card:
        if not self.cards:
            raise DeckExhausted()
        return self.cards.pop()

    def remaining(self) -> int:
        return len(self.cards)

    def __len__(self):
        return len(self.cards)


def new_deck(rng: Optional[random.Random] = None) -> Deck:
    return Deck(rng=rng)


def draw(deck: Deck) -> Card:
    return deck.draw()


def card_value(rank: str) -> int:
    if rank == ACE:
        return 11
    if rank in FACE_RANKS:
        return 10
    return int(rank)


def hand_value(hand: Iterable[Card]) -> int:
    """Blackjack total with aces demoted from 11 to 1 only as far as needed to stay <= 21."""
    total = 0
    aces = 0
    for card in hand:
        total += card_value(card.rank)
        if card.rank == ACE:
            aces += 1
    while total > BUST_THRESHOLD and aces > 0:
        total -= 10
        aces -= 1
    return total


def is_bust(hand: Iterable[Card]) -> bool:
    return hand_value(hand) > BUST_THRESHOLD
