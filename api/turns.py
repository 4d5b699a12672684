"""
Turn API Endpoints

職責：
1. 跳過回合（答完題目交出回合）
2. 淘汰自己
3. 答對加分

所有業務邏輯集中在 TurnManager / EliminationManager / ScoreManager，
這裡只負責把異常轉成 HTTP 狀態碼。
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    TurnAction,
    SkipTurnResponse,
    MarkDeadResponse,
    ScoreUpdate,
    ScoreResponse
)
from core.turn_manager import TurnManager
from core.elimination_manager import EliminationManager
from core.score_manager import ScoreManager
from core.exceptions import QuizGameException

router = APIRouter(prefix="/api/rooms", tags=["turns"])
logger = logging.getLogger(__name__)


@router.post("/{room_id}/skip-turn", response_model=SkipTurnResponse)
def skip_turn(room_id: int, action: TurnAction, db: Session = Depends(get_db)):
    """
    跳過回合

    錯誤：
    - 404：房間不存在
    - 400：房間不在 playing
    - 403：不是你的回合
    """
    try:
        next_user_id = TurnManager.skip_turn(db, room_id, action.user_id)
        return SkipTurnResponse(
            message="Turn skipped successfully",
            next_turn_user_id=next_user_id
        )

    except QuizGameException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Skip turn error: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to skip turn")


@router.post("/{room_id}/mark-dead", response_model=MarkDeadResponse)
def mark_dead(room_id: int, action: TurnAction, db: Session = Depends(get_db)):
    """
    淘汰自己

    返回：
        - game_ended: 遊戲是否結束
        - winner_id: 存活者（遊戲結束時）
        - next_turn_user_id: 下一位玩家（遊戲繼續時）
        - remaining_active: 剩餘存活人數
    """
    try:
        outcome = EliminationManager.mark_dead(db, room_id, action.user_id)
        return MarkDeadResponse(
            message="Player marked as dead. Game over!" if outcome.game_ended
            else "Player marked as dead successfully",
            game_ended=outcome.game_ended,
            winner_id=outcome.winner_id,
            next_turn_user_id=outcome.next_turn_user_id,
            remaining_active=outcome.remaining_active
        )

    except QuizGameException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Mark dead error: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to mark player as dead")


@router.post("/{room_id}/update-score", response_model=ScoreResponse)
def update_score(room_id: int, score_data: ScoreUpdate, db: Session = Depends(get_db)):
    """
    答對加分

    錯誤：
    - 404：房間不存在 / 不是房間成員
    - 400：加分不是正整數 / 房間不在 playing
    """
    try:
        outcome = ScoreManager.apply_score(
            db, room_id, score_data.user_id, score_data.score_increment
        )
        return ScoreResponse(
            message="Score updated successfully",
            new_score=outcome.new_score,
            game_ended=outcome.game_ended,
            winner_id=outcome.winner_id
        )

    except QuizGameException as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating score: {e}", exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to update score")
