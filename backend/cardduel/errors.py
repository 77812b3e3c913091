"""Failures scoped to a single room or a single player action."""


class DuelError(Exception):
    message = 'Action not allowed'

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class AlreadyInRoom(DuelError):
    message = 'You are already in a room'


class RoomNotJoinable(DuelError):
    message = 'Room cannot be joined'


class NotInRoom(DuelError):
    message = 'You are not in a room'


class NotYourTurn(DuelError):
    message = 'It is not your turn'


class RoomNotRunning(DuelError):
    message = 'Room is not running'


class DeckExhausted(DuelError):
    message = 'Deck is empty'


# Rejections that are never echoed back to the client
SILENT_ERRORS = (NotYourTurn, RoomNotRunning, DeckExhausted)
