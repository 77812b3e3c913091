import itertools
import random

import pytest

from cardduel.errors import DeckExhausted
from cardduel.models import Card
from cardduel.services.duel.cards import RANKS, card_value, draw, hand_value, is_bust, new_deck


def hand(*ranks):
    return [Card(rank, 'H') for rank in ranks]


@pytest.mark.parametrize('ranks,expected', [
    (('A', 'K'), 21),
    (('A', 'A'), 12),
    (('A', 'A', 'K'), 12),
    (('A', '9', 'A'), 21),
    (('K', 'Q', '2'), 22),
    (('5', '6'), 11),
    (('A', '5', '5'), 21),
    (('A', '5', '6'), 12),
    (('A', 'A', 'A', 'A', 'K', '9'), 23),
])
def test_hand_value(ranks, expected):
    assert hand_value(hand(*ranks)) == expected


def test_face_cards_count_ten():
    for rank in ('10', 'J', 'Q', 'K'):
        assert card_value(rank) == 10
    assert card_value('A') == 11
    assert card_value('7') == 7


def test_aces_demoted_before_bust():
    # Any hand over 21 must be over 21 even with every ace counted as 1
    for size in (2, 3, 4):
        for ranks in itertools.combinations_with_replacement(RANKS, size):
            value = hand_value(hand(*ranks))
            hard_total = sum(1 if r == 'A' else card_value(r) for r in ranks)
            if value > 21:
                assert hard_total > 21
            else:
                assert value >= hard_total


def test_hand_value_ignores_card_order():
    ranks = ['A', '7', 'A', '3']
    values = {hand_value(hand(*perm)) for perm in itertools.permutations(ranks)}
    assert values == {12}


def test_is_bust():
    assert is_bust(hand('K', 'Q', '5'))
    assert not is_bust(hand('K', 'A'))


def test_new_deck_is_full_and_distinct():
    deck = new_deck(random.Random(7))
    assert len(deck) == 52
    cards = [draw(deck) for _ in range(52)]
    assert len(set(cards)) == 52
    for rank in RANKS:
        assert sum(1 for c in cards if c.rank == rank) == 4


def test_draw_from_empty_deck_raises():
    deck = new_deck()
    for _ in range(52):
        deck.draw()
    assert deck.remaining() == 0
    with pytest.raises(DeckExhausted):
        deck.draw()
