"""
Room 狀態機

合法轉換：
    WAITING  -> PLAYING   （外部的開始遊戲操作）
    PLAYING  -> FINISHED  （存活者勝利 或 分數達標勝利）

FINISHED 是終點，任何操作都不能離開。
"""
import logging

from models import Room, RoomStatus
from core.exceptions import InvalidStateTransition

logger = logging.getLogger(__name__)


class RoomStateMachine:
    """集中管理 Room.status 的所有轉換"""

    TRANSITIONS = {
        RoomStatus.WAITING: {RoomStatus.PLAYING},
        RoomStatus.PLAYING: {RoomStatus.FINISHED},
        RoomStatus.FINISHED: set(),
    }

    @classmethod
    def can_transition(cls, current: RoomStatus, target: RoomStatus) -> bool:
        return target in cls.TRANSITIONS.get(current, set())

    @classmethod
    def transition(cls, room: Room, target: RoomStatus) -> Room:
        """
        轉換房間狀態

        參數：
            room: 已經被鎖定的 Room
            target: 目標狀態

        返回：
            更新後的 Room（尚未 commit）

        異常：
            InvalidStateTransition: 轉換不合法（例如 finished -> 任何狀態）
        """
        if not cls.can_transition(room.status, target):
            raise InvalidStateTransition(
                f"Room {room.id} cannot transition from {room.status.value} to {target.value}"
            )

        logger.info(f"Room {room.id} state: {room.status.value} -> {target.value}")
        room.status = target
        return room
