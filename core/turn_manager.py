"""
Turn Manager：回合擁有權與輪轉

職責：
1. 驗證「現在是不是這位玩家的回合」
2. 依輪轉順序（joined_at）找出下一位存活玩家並寫入 room.current_turn_user_id
3. 跳過回合（SkipTurn）
"""
from typing import List, Optional
from sqlalchemy.orm import Session
import logging

from models import Room, RoomPlayer, RoomStatus
from core.locks import room_serialized, with_room_lock
from core.exceptions import (
    RoomNotFound,
    WrongState,
    NotYourTurn,
    NoActivePlayers
)
from services.ring_service import turn_order, active_user_ids, next_in_ring
from services.state_service import bump_state_version
from services.notification_service import publish_room_update
from database import transactional

logger = logging.getLogger(__name__)


class TurnManager:
    """回合管理器"""

    @staticmethod
    def validate_turn(room: Room, user_id: int) -> None:
        """
        驗證是否輪到此玩家

        異常：
            WrongState: 房間不在 PLAYING
            NotYourTurn: current_turn_user_id 不是此玩家
        """
        if room.status != RoomStatus.PLAYING:
            raise WrongState(f"Room {room.id} is not in playing state (status: {room.status.value})")

        if room.current_turn_user_id != user_id:
            logger.warning(
                f"Turn check failed in room {room.id}: "
                f"current={room.current_turn_user_id}, requested by={user_id}"
            )
            raise NotYourTurn(room.id, user_id)

    @staticmethod
    def get_ordered_players(db: Session, room_id: int) -> List[RoomPlayer]:
        """房間所有成員（包含已淘汰），依 (joined_at, id) 排序"""
        return db.query(RoomPlayer).filter(
            RoomPlayer.room_id == room_id
        ).order_by(RoomPlayer.joined_at, RoomPlayer.id).all()

    @staticmethod
    def next_turn_holder(players: List[RoomPlayer], from_user_id: int) -> Optional[int]:
        """
        從 from_user_id 往後找下一位存活玩家

        返回：
            下一位 user_id；沒有其他存活玩家時返回 None
        """
        return next_in_ring(turn_order(players), from_user_id, active_user_ids(players))

    @staticmethod
    def advance_turn(db: Session, room: Room, from_user_id: int) -> int:
        """
        把回合交給下一位存活玩家

        必須在呼叫者的房間鎖與 transaction 內執行

        規則：
        - 依加入順序循環，跳過已淘汰的玩家
        - 只剩 from_user_id 一位存活時，回合留在他身上

        返回：
            新的 current_turn_user_id

        異常：
            NoActivePlayers: 房間內沒有任何存活玩家
        """
        players = TurnManager.get_ordered_players(db, room.id)
        active = active_user_ids(players)
        if not active:
            raise NoActivePlayers(room.id)

        next_user_id = TurnManager.next_turn_holder(players, from_user_id)
        if next_user_id is None:
            next_user_id = from_user_id

        room.current_turn_user_id = next_user_id
        bump_state_version(room, "turn_advanced")

        logger.info(f"Room {room.id} turn: {from_user_id} -> {next_user_id}")
        return next_user_id

    @staticmethod
    def skip_turn(db: Session, room_id: int, user_id: int) -> int:
        """
        跳過回合（答完題目後把回合交出去）

        前置條件：
        1. 房間必須存在          -> RoomNotFound
        2. 房間必須是 PLAYING     -> WrongState
        3. 必須輪到此玩家        -> NotYourTurn

        效果：
        - 只改 current_turn_user_id，不改任何玩家狀態

        參數：
            db: SQLAlchemy Session
            room_id: Room ID
            user_id: 目前行動的玩家

        返回：
            下一位玩家的 user ID
        """
        next_user_id = TurnManager._skip(db, room_id, user_id)
        publish_room_update(room_id, "turn_advanced")
        return next_user_id

    @staticmethod
    @room_serialized
    @transactional
    def _skip(db: Session, room_id: int, user_id: int) -> int:
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

        TurnManager.validate_turn(room, user_id)
        return TurnManager.advance_turn(db, room, user_id)
