"""
Room update notifications.

Fire-and-forget fan-out to external listeners (websocket bridges, caches,
analytics). Publishing happens only after the transaction has committed, and
a failing listener is logged but never undoes the state change that
triggered it.
"""
import logging
import threading
from typing import Callable, List

logger = logging.getLogger(__name__)

RoomListener = Callable[[int, str], None]

_listeners: List[RoomListener] = []
_listeners_lock = threading.Lock()


def subscribe(listener: RoomListener) -> None:
    with _listeners_lock:
        if listener not in _listeners:
            _listeners.append(listener)


def unsubscribe(listener: RoomListener) -> None:
    with _listeners_lock:
        if listener in _listeners:
            _listeners.remove(listener)


def publish_room_update(room_id: int, reason: str) -> None:
    """
    Notify every listener that ``room_id`` changed.

    ``reason`` is a short event name such as ``player_joined``,
    ``turn_advanced``, ``player_eliminated``, ``score_updated`` or
    ``game_finished``.
    """
    with _listeners_lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(room_id, reason)
        except Exception as e:
            logger.warning(
                f"Room update listener {listener!r} failed for room {room_id} ({reason}): {e}",
                exc_info=True
            )
