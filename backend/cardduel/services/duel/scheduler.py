import time
from typing import Callable


class PendingTransition:
    """Handle for one scheduled next-round deal. Cancelling it turns the callback into a no-op."""

    def __init__(self, room_id: int, round_number: int, delay: float):
        self.room_id = room_id
        self.round_number = round_number
        self.delay = delay
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class RoundScheduler:
    """Runs round transitions after a display delay without blocking the event loop.

    - `start_task(fn, *args)` launches fn in the background (socketio.start_background_task)
    - `sleep(seconds)` must be the cooperative sleep of the async mode in use
    - When `synchronous` is set (testing), the transition runs inline
    """

    def __init__(self, start_task: Callable, sleep: Callable = time.sleep, delay: float = 3.0,
                 logger=None, synchronous: bool = False):
        self.start_task = start_task
        self.sleep = sleep
        self.delay = delay
        self.logger = logger
        self.synchronous = synchronous

    def schedule(self, room, callback: Callable) -> PendingTransition:
        # One pending transition per room; a newer one supersedes the old
        if room.pending_transition is not None:
            room.pending_transition.cancel()
        task = PendingTransition(room.id, room.round, self.delay)
        room.pending_transition = task
        self._log(f"[timer-set] room={room.id} round={room.round} delay={self.delay}s")
        if self.synchronous:
            self._worker(room, task, callback)
        else:
            self.start_task(self._worker, room, task, callback)
        return task

    def cancel(self, room) -> None:
        task = room.pending_transition
        if task is None:
            return
        task.cancel()
        room.pending_transition = None
        self._log(f"[timer-cancel] room={room.id} round={task.round_number}")

    def _worker(self, room, task: PendingTransition, callback: Callable) -> None:
        if task.delay > 0 and not self.synchronous:
            self.sleep(task.delay)
        with room.lock:
            if task.cancelled or room.pending_transition is not task or room.round != task.round_number:
                self._log(f"[timer-abort] room={task.room_id} round={task.round_number} stale transition")
                return
            room.pending_transition = None
            self._log(f"[timer-fire] room={room.id} round={room.round}")
            callback(room)

    def _log(self, message: str) -> None:
        if self.logger is not None:
            self.logger.info(message)
