"""
Elimination Manager：玩家淘汰自己

流程（同一把房間鎖、同一個 transaction）：
1. 驗證回合
2. 玩家 status: active -> dead（不可逆）
3. 重新計算存活玩家
4a. 只剩一位 -> 存活者勝利，結束遊戲
4b. 一位都不剩 -> 平手結束（房間只剩呼叫者一人時）
4c. 其他情況 -> 從被淘汰者的位置沿輪轉順序往後找下一位存活玩家

下一位一定沿輪轉順序走，不取「存活列表的第一位」，
否則淘汰者不在列表開頭時會跳錯人。
"""
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.orm import Session
import logging

from models import RoomPlayer, PlayerStatus
from core.locks import room_serialized, with_room_lock
from core.exceptions import RoomNotFound, PlayerNotFound
from core.turn_manager import TurnManager
from core.room_manager import RoomManager
from services.ring_service import active_user_ids
from services.state_service import bump_state_version
from services.notification_service import publish_room_update
from database import transactional

logger = logging.getLogger(__name__)


@dataclass
class EliminationOutcome:
    game_ended: bool
    winner_id: Optional[int]
    next_turn_user_id: Optional[int]
    remaining_active: int


class EliminationManager:
    """淘汰管理器"""

    @staticmethod
    def mark_dead(db: Session, room_id: int, user_id: int) -> EliminationOutcome:
        """
        淘汰目前行動的玩家

        前置條件：
        1. 房間必須存在       -> RoomNotFound
        2. 房間必須是 PLAYING  -> WrongState
        3. 必須輪到此玩家     -> NotYourTurn
           （已淘汰的玩家永遠不會是 current_turn，所以重複呼叫一定是 NotYourTurn）

        參數：
            db: SQLAlchemy Session
            room_id: Room ID
            user_id: 淘汰自己的玩家

        返回：
            EliminationOutcome
        """
        outcome = EliminationManager._eliminate(db, room_id, user_id)
        publish_room_update(room_id, "game_finished" if outcome.game_ended else "player_eliminated")
        return outcome

    @staticmethod
    @room_serialized
    @transactional
    def _eliminate(db: Session, room_id: int, user_id: int) -> EliminationOutcome:
        # 1. 鎖定房間並驗證回合
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

        TurnManager.validate_turn(room, user_id)

        # 2. 淘汰
        players = TurnManager.get_ordered_players(db, room_id)
        player: Optional[RoomPlayer] = next((p for p in players if p.user_id == user_id), None)
        if player is None:
            raise PlayerNotFound(room_id, user_id)

        player.status = PlayerStatus.DEAD
        bump_state_version(room, "player_eliminated")
        logger.info(f"User {user_id} eliminated in room {room_id}")

        # 3. 重新計算存活玩家
        active = active_user_ids(players)
        remaining = len(active)

        # 4a. 存活者勝利
        if remaining == 1:
            winner_id = next(iter(active))
            RoomManager.finish_game(db, room, winner_id)
            return EliminationOutcome(
                game_ended=True,
                winner_id=winner_id,
                next_turn_user_id=None,
                remaining_active=1
            )

        # 4b. 沒有人存活（只有一位玩家的房間）
        if remaining == 0:
            RoomManager.finish_game(db, room, None)
            return EliminationOutcome(
                game_ended=True,
                winner_id=None,
                next_turn_user_id=None,
                remaining_active=0
            )

        # 4c. 沿輪轉順序交給下一位
        next_user_id = TurnManager.next_turn_holder(players, user_id)
        room.current_turn_user_id = next_user_id
        logger.info(f"Room {room_id} turn: {user_id} -> {next_user_id} ({remaining} players remain)")

        return EliminationOutcome(
            game_ended=False,
            winner_id=None,
            next_turn_user_id=next_user_id,
            remaining_active=remaining
        )
