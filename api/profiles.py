"""
Profile API Endpoints

職責：
1. 終身統計
2. 最近的遊戲紀錄
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db, get_settings
from schemas import UserStatsResponse, GameHistoryEntry
from services.stats_service import get_user_stats
from services.history_service import get_user_game_history

router = APIRouter(prefix="/api/profile", tags=["profile"])
logger = logging.getLogger(__name__)


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
def get_stats(user_id: int, db: Session = Depends(get_db)):
    """取得終身統計（沒玩過的使用者全部為 0）"""
    try:
        return get_user_stats(db, user_id)
    except Exception as e:
        logger.error(f"Error fetching user stats: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch user stats")


@router.get("/{user_id}/history", response_model=List[GameHistoryEntry])
def get_history(user_id: int, db: Session = Depends(get_db)):
    """取得最近的遊戲紀錄（新到舊）"""
    try:
        return get_user_game_history(user_id, db, limit=get_settings().history_limit)
    except Exception as e:
        logger.error(f"Error fetching game history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch game history")
