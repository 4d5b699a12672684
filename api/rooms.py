"""
Room API Endpoints

職責：
1. 建立房間
2. 查詢房間（代碼 / 完整狀態）
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import RoomCreate, RoomResponse, RoomStateResponse
from core.room_manager import RoomManager
from core.exceptions import QuizGameException

router = APIRouter(prefix="/api/rooms", tags=["rooms"])
logger = logging.getLogger(__name__)


@router.post("", response_model=RoomResponse, status_code=201)
def create_room(room_data: RoomCreate, db: Session = Depends(get_db)):
    """
    建立房間（房主自動加入，成為輪轉順序第一位）
    """
    try:
        room = RoomManager.create_room(db, room_data.owner_id)
        return RoomResponse.model_validate(room)

    except QuizGameException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create room: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/code/{code}", response_model=RoomResponse)
def get_room_by_code(code: str, db: Session = Depends(get_db)):
    """
    透過 6 位房間代碼找到房間（掃 QR code 或手動輸入）
    """
    try:
        room = RoomManager.get_room_by_code(db, code)
        return RoomResponse.model_validate(room)

    except QuizGameException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get room by code: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{room_id}/state", response_model=RoomStateResponse)
def get_room_state(room_id: int, db: Session = Depends(get_db)):
    """
    取得房間完整狀態（短輪詢用）

    返回：
        - room: 房間摘要（status、current_turn_user_id、winner_id、state_version...）
        - players: 依加入順序的玩家列表（狀態、分數、勝負）
    """
    try:
        return RoomManager.get_room_state(db, room_id)

    except QuizGameException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to get room state: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
