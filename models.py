"""
ORM 模型

資料表：
- users：外部身分系統的使用者（核心只讀取）
- rooms：一場遊戲（狀態、輪到誰、勝利者）
- room_players：房間成員，joined_at 決定輪轉順序
- game_results：玩家在某房間的累積分數與勝負
- user_stats：玩家終身統計
"""
import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoomStatus(str, enum.Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class PlayerStatus(str, enum.Enum):
    ACTIVE = "active"
    DEAD = "dead"


class GameOutcome(str, enum.Enum):
    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(6), unique=True, nullable=False, index=True)
    status = Column(Enum(RoomStatus), nullable=False, default=RoomStatus.WAITING)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # playing 時必須指向 active 成員；finished 時必須為 NULL
    current_turn_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    # 只在轉換為 finished 時設定一次
    winner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    # 每次狀態變更 +1，前端用短輪詢比對版本
    state_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    owner = relationship("User", foreign_keys=[owner_id])
    players = relationship(
        "RoomPlayer",
        back_populates="room",
        order_by="RoomPlayer.joined_at"
    )


class RoomPlayer(Base):
    __tablename__ = "room_players"
    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_room_player"),
    )

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # active -> dead 單向
    status = Column(Enum(PlayerStatus), nullable=False, default=PlayerStatus.ACTIVE)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    room = relationship("Room", back_populates="players")
    user = relationship("User")


class GameResult(Base):
    __tablename__ = "game_results"
    __table_args__ = (
        UniqueConstraint("room_id", "user_id", name="uq_game_result"),
    )

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    score = Column(Integer, nullable=False, default=0)
    result = Column(Enum(GameOutcome), nullable=False, default=GameOutcome.LOSE)
    finished_at = Column(DateTime(timezone=True), default=utcnow)

    room = relationship("Room")


class UserStats(Base):
    __tablename__ = "user_stats"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    total_games_played = Column(Integer, nullable=False, default=0)
    total_wins = Column(Integer, nullable=False, default=0)
    total_score = Column(Integer, nullable=False, default=0)
