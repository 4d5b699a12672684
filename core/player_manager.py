"""
Player Manager：玩家加入房間

所有檢查與寫入都在同一把房間鎖內完成，
避免兩個同時加入的請求都通過人數檢查而超過上限。
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from models import RoomPlayer, RoomStatus, PlayerStatus, User, utcnow
from core.locks import room_serialized, with_room_lock
from core.exceptions import (
    RoomNotFound,
    UserNotFound,
    RoomNotAcceptingPlayers,
    RoomFull,
    AlreadyInRoom
)
from services.state_service import bump_state_version
from services.notification_service import publish_room_update
from database import transactional, get_settings

logger = logging.getLogger(__name__)


class PlayerManager:
    """房間成員管理器"""

    @staticmethod
    def join_room(db: Session, room_id: int, user_id: int) -> RoomPlayer:
        """
        加入房間

        前置條件（同一個快照內檢查）：
        1. 房間必須存在                 -> RoomNotFound
        2. 房間狀態必須是 WAITING        -> RoomNotAcceptingPlayers
        3. 存活玩家數 < 上限（預設 4）     -> RoomFull
        4. 使用者必須存在               -> UserNotFound
        5. 使用者還不是房間成員          -> AlreadyInRoom

        流程：
        1. 鎖定房間並檢查
        2. 建立 RoomPlayer（status=active, joined_at=now）
        3. commit 之後通知外部 listener（失敗不會 rollback）

        參數：
            db: SQLAlchemy Session
            room_id: Room ID
            user_id: 使用者 ID

        返回：
            新建立的 RoomPlayer
        """
        player = PlayerManager._admit(db, room_id, user_id)
        publish_room_update(room_id, "player_joined")
        return player

    @staticmethod
    @room_serialized
    @transactional
    def _admit(db: Session, room_id: int, user_id: int) -> RoomPlayer:
        # 1. 鎖定房間
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

        # 2. 檢查房間狀態
        if room.status != RoomStatus.WAITING:
            raise RoomNotAcceptingPlayers(
                f"Room {room_id} is not accepting new players (status: {room.status.value})"
            )

        # 3. 檢查人數
        capacity = get_settings().max_players_per_room
        active_count = db.query(RoomPlayer).filter(
            RoomPlayer.room_id == room_id,
            RoomPlayer.status == PlayerStatus.ACTIVE
        ).count()
        if active_count >= capacity:
            raise RoomFull(room_id, capacity)

        # 4. 檢查使用者
        if db.query(User).filter(User.id == user_id).first() is None:
            raise UserNotFound(user_id)

        # 5. 檢查是否已加入
        existing = db.query(RoomPlayer).filter(
            RoomPlayer.room_id == room_id,
            RoomPlayer.user_id == user_id
        ).first()
        if existing:
            raise AlreadyInRoom(room_id, user_id)

        # 6. 建立成員
        player = RoomPlayer(
            room_id=room_id,
            user_id=user_id,
            status=PlayerStatus.ACTIVE,
            joined_at=utcnow()
        )
        db.add(player)
        try:
            db.flush()
        except IntegrityError:
            # 另一個 worker 行程搶先寫入（unique constraint uq_room_player）
            raise AlreadyInRoom(room_id, user_id)

        bump_state_version(room, "player_joined")

        logger.info(
            f"User {user_id} joined room {room_id} ({active_count + 1}/{capacity} players)"
        )
        return player
