"""
Player game history service.

Builds the per-user list of recent games (one GameResult row per room) so
the profile page can render results straight from the server.
"""
from typing import List, Dict, Any

from sqlalchemy.orm import Session

from models import GameResult, Room


def get_user_game_history(user_id: int, db: Session, limit: int = 20) -> List[Dict[str, Any]]:
    """
    Return the user's most recent games, newest ``finished_at`` first.

    Each entry carries the room code so the frontend can label the game
    without a second request.
    """
    rows = (
        db.query(GameResult, Room.code)
        .join(Room, GameResult.room_id == Room.id)
        .filter(GameResult.user_id == user_id)
        .order_by(GameResult.finished_at.desc(), GameResult.id.desc())
        .limit(limit)
        .all()
    )

    history: List[Dict[str, Any]] = []
    for result, room_code in rows:
        history.append({
            "result_id": result.id,
            "room_id": result.room_id,
            "room_code": room_code,
            "score": result.score,
            "result": result.result,
            "finished_at": result.finished_at,
        })

    return history
