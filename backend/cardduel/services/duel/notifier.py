from typing import Any, Dict


class Notifier:
    """Outbound delivery to a single player. Implementations must not raise into game code."""

    def send(self, player, event: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    def broadcast(self, event: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError


class SocketIONotifier(Notifier):
    def __init__(self, socketio, logger, namespace: str = '/ws'):
        self.socketio = socketio
        self.logger = logger
        self.namespace = namespace

    def send(self, player, event, payload):
        # Use socketio.emit since this may be called from a background task
        try:
            self.socketio.emit(event, payload, to=player.sid, namespace=self.namespace)
        except Exception as exc:
            self.logger.warning(f"[emit-failed] player={player.id} event={event} error={exc}")

    def broadcast(self, event, payload):
        try:
            self.socketio.emit(event, payload, namespace=self.namespace)
        except Exception as exc:
            self.logger.warning(f"[broadcast-failed] event={event} error={exc}")
