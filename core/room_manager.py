"""
Room Manager：管理 Room 的完整生命週期

職責：
1. 建立 Room（房主自動成為第一位玩家）
2. 結束遊戲（存活者勝利與分數達標勝利共用）
3. 查詢 Room 資訊與完整狀態

原則：
- 所有狀態變更經過 RoomStateMachine
- 結束遊戲只會發生一次：在同一把房間鎖內先檢查 status != FINISHED
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
import logging

from models import (
    GameOutcome,
    GameResult,
    Room,
    RoomPlayer,
    RoomStatus,
    PlayerStatus,
    User,
    utcnow,
)
from core.state_machine import RoomStateMachine
from core.exceptions import (
    RoomNotFound,
    UserNotFound,
    InvalidStateTransition
)
from services.naming_service import generate_room_code, room_code_taken
from services.state_service import bump_state_version
from services.stats_service import roll_up_user_stats
from services.notification_service import publish_room_update
from database import transactional

logger = logging.getLogger(__name__)


@dataclass
class FinishSummary:
    room_id: int
    winner_id: Optional[int]
    participants: int


class RoomManager:
    """Room 生命週期管理器"""

    @staticmethod
    def create_room(db: Session, owner_id: int) -> Room:
        """
        建立新房間（房主自動加入）

        流程：
        1. 確認房主存在
        2. 生成唯一的房間代碼
        3. 建立 Room（WAITING）
        4. 建立房主的 RoomPlayer（輪轉順序第一位）

        參數：
            db: SQLAlchemy Session
            owner_id: 房主 user ID

        返回：
            Room

        異常：
            UserNotFound: 房主不存在
        """
        room = RoomManager._create_room(db, owner_id)
        publish_room_update(room.id, "room_created")
        return room

    @staticmethod
    @transactional
    def _create_room(db: Session, owner_id: int) -> Room:
        if db.query(User).filter(User.id == owner_id).first() is None:
            raise UserNotFound(owner_id)

        # 1. 生成唯一的房間代碼
        code = generate_room_code()
        while room_code_taken(code, db):
            code = generate_room_code()
            logger.warning(f"Room code collision detected, regenerating: {code}")

        # 2. 建立 Room
        room = Room(code=code, status=RoomStatus.WAITING, owner_id=owner_id, state_version=0)
        db.add(room)
        db.flush()  # 取得 room.id

        # 3. 房主成為第一位玩家
        db.add(RoomPlayer(
            room_id=room.id,
            user_id=owner_id,
            status=PlayerStatus.ACTIVE,
            joined_at=utcnow()
        ))
        bump_state_version(room, "room_created")

        logger.info(f"Created room {room.id} with code {code} (owner={owner_id})")
        return room

    @staticmethod
    def finish_game(db: Session, room: Room, winner_id: Optional[int]) -> FinishSummary:
        """
        結束遊戲（狀態轉換 PLAYING -> FINISHED）

        必須在呼叫者的房間鎖與 transaction 內執行（不自行 commit）

        流程：
        1. 檢查房間還沒結束（防止重複結算）
        2. 透過 StateMachine 轉換狀態，設定 winner，清空 current_turn
        3. 為從未得分的成員補上 0 分的 GameResult
        4. 勝利者 result=win，其他人 lose（沒有勝利者時全部 draw）
        5. 每位參與者累加一次 UserStats

        參數：
            db: SQLAlchemy Session
            room: 已鎖定的 Room
            winner_id: 勝利者 user ID（沒有存活者時為 None）

        返回：
            FinishSummary

        異常：
            InvalidStateTransition: 房間已經結束，或不在 PLAYING
        """
        if room.status == RoomStatus.FINISHED:
            raise InvalidStateTransition(f"Room {room.id} is already finished")

        RoomStateMachine.transition(room, RoomStatus.FINISHED)
        room.winner_id = winner_id
        room.current_turn_user_id = None

        members = db.query(RoomPlayer).filter(RoomPlayer.room_id == room.id).all()
        results = {
            r.user_id: r
            for r in db.query(GameResult).filter(GameResult.room_id == room.id).all()
        }

        now = utcnow()
        for member in members:
            if member.user_id not in results:
                result = GameResult(room_id=room.id, user_id=member.user_id, score=0, finished_at=now)
                db.add(result)
                results[member.user_id] = result

        for user_id, result in results.items():
            if winner_id is None:
                result.result = GameOutcome.DRAW
            elif user_id == winner_id:
                result.result = GameOutcome.WIN
            else:
                result.result = GameOutcome.LOSE

        db.flush()

        final_scores = [(user_id, result.score) for user_id, result in results.items()]
        roll_up_user_stats(db, final_scores, winner_id)
        bump_state_version(room, "game_finished")

        logger.info(f"Game finished for room {room.id}, winner={winner_id}, participants={len(final_scores)}")
        return FinishSummary(room_id=room.id, winner_id=winner_id, participants=len(final_scores))

    @staticmethod
    def get_room_by_code(db: Session, code: str) -> Room:
        """
        透過房間代碼取得 Room

        參數：
            db: SQLAlchemy Session
            code: 6 位房間代碼（不分大小寫）

        返回：
            Room object

        異常：
            RoomNotFound: Room 不存在
        """
        room = db.query(Room).filter(Room.code == code.upper()).first()
        if not room:
            raise RoomNotFound(f"with code {code}")
        return room

    @staticmethod
    def get_room_by_id(db: Session, room_id: int) -> Room:
        """
        透過 ID 取得 Room

        異常：
            RoomNotFound: Room 不存在
        """
        room = db.query(Room).filter(Room.id == room_id).first()
        if not room:
            raise RoomNotFound(room_id)
        return room

    @staticmethod
    def get_room_state(db: Session, room_id: int) -> Dict[str, Any]:
        """
        取得房間完整狀態（房間摘要 + 依加入順序的玩家列表）

        每位玩家包含：狀態、加入時間、分數（還沒得分為 0）、勝負

        異常：
            RoomNotFound: Room 不存在
        """
        room = RoomManager.get_room_by_id(db, room_id)

        rows = (
            db.query(RoomPlayer, User.username)
            .join(User, RoomPlayer.user_id == User.id)
            .filter(RoomPlayer.room_id == room_id)
            .order_by(RoomPlayer.joined_at, RoomPlayer.id)
            .all()
        )
        results = {
            r.user_id: r
            for r in db.query(GameResult).filter(GameResult.room_id == room_id).all()
        }

        players = []
        for player, username in rows:
            result = results.get(player.user_id)
            players.append({
                "user_id": player.user_id,
                "username": username,
                "status": player.status,
                "joined_at": player.joined_at,
                "score": result.score if result else 0,
                "result": result.result if result and room.status == RoomStatus.FINISHED else None,
            })

        return {
            "room": {
                "room_id": room.id,
                "room_code": room.code,
                "status": room.status,
                "owner_id": room.owner_id,
                "current_turn_user_id": room.current_turn_user_id,
                "winner_id": room.winner_id,
                "created_at": room.created_at,
                "state_version": room.state_version,
                "player_count": len(players),
                "active_count": sum(1 for p in players if p["status"] == PlayerStatus.ACTIVE),
            },
            "players": players,
        }
