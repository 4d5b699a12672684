"""
API 請求 / 回應資料模式（pydantic）
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from models import RoomStatus, PlayerStatus, GameOutcome


# ============ Room ============

class RoomCreate(BaseModel):
    owner_id: int


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    status: RoomStatus
    owner_id: int
    current_turn_user_id: Optional[int] = None
    winner_id: Optional[int] = None
    state_version: int
    created_at: Optional[datetime] = None


class RoomSummary(BaseModel):
    room_id: int
    room_code: str
    status: RoomStatus
    owner_id: int
    current_turn_user_id: Optional[int] = None
    winner_id: Optional[int] = None
    created_at: Optional[datetime] = None
    state_version: int
    player_count: int
    active_count: int


class PlayerState(BaseModel):
    user_id: int
    username: str
    status: PlayerStatus
    joined_at: datetime
    score: int
    result: Optional[GameOutcome] = None


class RoomStateResponse(BaseModel):
    room: RoomSummary
    players: List[PlayerState]


# ============ Player ============

class PlayerJoin(BaseModel):
    user_id: int


class RoomPlayerJoin(BaseModel):
    room_id: int
    user_id: int


class RoomPlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    room_id: int
    user_id: int
    status: PlayerStatus
    joined_at: datetime


# ============ Turn ============

class TurnAction(BaseModel):
    user_id: int


class SkipTurnResponse(BaseModel):
    message: str
    next_turn_user_id: int


class MarkDeadResponse(BaseModel):
    message: str
    game_ended: bool
    winner_id: Optional[int] = None
    next_turn_user_id: Optional[int] = None
    remaining_active: int


class ScoreUpdate(BaseModel):
    user_id: int
    score_increment: int


class ScoreResponse(BaseModel):
    message: str
    new_score: int
    game_ended: bool
    winner_id: Optional[int] = None


# ============ Profile ============

class UserStatsResponse(BaseModel):
    user_id: int
    total_games_played: int
    total_wins: int
    total_score: int


class GameHistoryEntry(BaseModel):
    result_id: int
    room_id: int
    room_code: str
    score: int
    result: GameOutcome
    finished_at: Optional[datetime] = None
