"""
Room state version.

Every committed mutation of a room bumps ``Room.state_version`` inside the
same transaction, so short-polling clients can compare versions from
``GET /api/rooms/{id}/state`` instead of holding a socket open.
"""
import logging

from models import Room

logger = logging.getLogger(__name__)


def bump_state_version(room: Room, reason: str) -> int:
    room.state_version = (room.state_version or 0) + 1
    logger.debug(f"Room {room.id} state_version -> {room.state_version} ({reason})")
    return room.state_version
