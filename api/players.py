"""
Player API Endpoints

職責：
1. 玩家加入房間（兩種路徑：/api/rooms/{id}/join 與 /api/room-players）
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import PlayerJoin, RoomPlayerJoin, RoomPlayerResponse
from core.player_manager import PlayerManager
from core.exceptions import QuizGameException

router = APIRouter(prefix="/api/rooms", tags=["players"])
room_players_router = APIRouter(prefix="/api/room-players", tags=["players"])
logger = logging.getLogger(__name__)


def _join(db: Session, room_id: int, user_id: int) -> RoomPlayerResponse:
    try:
        player = PlayerManager.join_room(db, room_id, user_id)
        return RoomPlayerResponse.model_validate(player)

    except QuizGameException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to join room: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to join room")


@router.post("/{room_id}/join", response_model=RoomPlayerResponse, status_code=201)
def join_room(room_id: int, player_data: PlayerJoin, db: Session = Depends(get_db)):
    """
    加入房間

    錯誤：
    - 404：房間或使用者不存在
    - 400：房間已開始 / 已滿
    - 409：已經在房間內
    """
    return _join(db, room_id, player_data.user_id)


@room_players_router.post("", response_model=RoomPlayerResponse, status_code=201)
def join_room_by_body(player_data: RoomPlayerJoin, db: Session = Depends(get_db)):
    """加入房間（room_id 放在 body）"""
    return _join(db, player_data.room_id, player_data.user_id)
