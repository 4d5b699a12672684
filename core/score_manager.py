"""
Score Manager：答對題目加分，分數達標即勝利
"""
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.orm import Session
import logging

from models import GameOutcome, GameResult, RoomPlayer, RoomStatus, utcnow
from core.locks import room_serialized, with_room_lock
from core.exceptions import (
    RoomNotFound,
    PlayerNotFound,
    WrongState,
    InvalidScoreDelta
)
from core.room_manager import RoomManager
from services.state_service import bump_state_version
from services.notification_service import publish_room_update
from database import transactional, get_settings

logger = logging.getLogger(__name__)


@dataclass
class ScoreOutcome:
    new_score: int
    game_ended: bool
    winner_id: Optional[int] = None


class ScoreManager:
    """分數管理器"""

    @staticmethod
    def validate_delta(delta) -> int:
        # bool 是 int 的子類別，要特別排除
        if isinstance(delta, bool) or not isinstance(delta, int) or delta <= 0:
            raise InvalidScoreDelta(delta)
        return delta

    @staticmethod
    def apply_score(db: Session, room_id: int, user_id: int, delta: int) -> ScoreOutcome:
        """
        為玩家加分

        前置條件：
        1. delta 必須是正整數      -> InvalidScoreDelta
        2. 房間必須存在          -> RoomNotFound
        3. 房間必須是 PLAYING     -> WrongState（已結束的房間不會被重複結算）
        4. 使用者必須是房間成員    -> PlayerNotFound

        流程：
        1. 讀取或建立 GameResult（新建時分數直接達標則 result=win，否則 lose）
        2. 累加分數，更新 finished_at
        3. 分數 >= win_score（預設 10）時結束遊戲：
           - 此玩家為勝利者，其他參與者 lose
           - 每位參與者（包含勝利者）累加一次 UserStats

        參數：
            db: SQLAlchemy Session
            room_id: Room ID
            user_id: 答對的玩家
            delta: 加分（正整數）

        返回：
            ScoreOutcome
        """
        ScoreManager.validate_delta(delta)
        outcome = ScoreManager._apply(db, room_id, user_id, delta)
        publish_room_update(room_id, "game_finished" if outcome.game_ended else "score_updated")
        return outcome

    @staticmethod
    @room_serialized
    @transactional
    def _apply(db: Session, room_id: int, user_id: int, delta: int) -> ScoreOutcome:
        # 1. 鎖定房間
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)

        if room.status != RoomStatus.PLAYING:
            raise WrongState(f"Room {room_id} is not in playing state (status: {room.status.value})")

        member = db.query(RoomPlayer).filter(
            RoomPlayer.room_id == room_id,
            RoomPlayer.user_id == user_id
        ).first()
        if member is None:
            raise PlayerNotFound(room_id, user_id)

        win_score = get_settings().win_score

        # 2. 讀取或建立 GameResult
        result = db.query(GameResult).filter(
            GameResult.room_id == room_id,
            GameResult.user_id == user_id
        ).first()

        if result is None:
            new_score = delta
            result = GameResult(
                room_id=room_id,
                user_id=user_id,
                score=new_score,
                result=GameOutcome.WIN if new_score >= win_score else GameOutcome.LOSE,
                finished_at=utcnow()
            )
            db.add(result)
            logger.info(f"Created game result with score {new_score} for user {user_id} in room {room_id}")
        else:
            new_score = result.score + delta
            result.score = new_score
            result.finished_at = utcnow()
            logger.info(f"Updated score to {new_score} for user {user_id} in room {room_id}")

        db.flush()
        bump_state_version(room, "score_updated")

        # 3. 分數達標
        if new_score >= win_score:
            logger.info(f"User {user_id} reached {new_score} points and won room {room_id}")
            RoomManager.finish_game(db, room, user_id)
            return ScoreOutcome(new_score=new_score, game_ended=True, winner_id=user_id)

        return ScoreOutcome(new_score=new_score, game_ended=False)
