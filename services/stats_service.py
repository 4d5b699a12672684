"""
終身統計服務：遊戲結束時累加每位參與者的 UserStats

規則：
- 每場結束的遊戲，每位參與者只累加一次
- total_games_played +1
- total_wins +1（只有勝利者）
- total_score + 該玩家在房間內的最終分數
- 只增不減

累加使用「insert 或 increment」的 upsert：
- SQLite / PostgreSQL：INSERT ... ON CONFLICT DO UPDATE（單一陳述式，跨房間同時結束也不會遺失更新）
- 其他資料庫：鎖定該列後讀取再累加
"""
import logging
from typing import Dict, Iterable, Tuple

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from models import UserStats

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def increment_user_stats(db: Session, user_id: int, won: bool, score: int) -> None:
    """
    為一位使用者累加一場遊戲

    參數：
        db: SQLAlchemy Session（由呼叫者的 transaction 負責 commit）
        user_id: 使用者 ID
        won: 是否為勝利者
        score: 此場最終分數
    """
    wins = 1 if won else 0
    insert = _UPSERT_DIALECTS.get(db.get_bind().dialect.name)

    if insert is None:
        _increment_user_stats_orm(db, user_id, wins, score)
        return

    stmt = insert(UserStats).values(
        user_id=user_id,
        total_games_played=1,
        total_wins=wins,
        total_score=score
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[UserStats.user_id],
        set_={
            "total_games_played": UserStats.total_games_played + 1,
            "total_wins": UserStats.total_wins + wins,
            "total_score": UserStats.total_score + score,
        }
    )
    db.execute(stmt)


def _increment_user_stats_orm(db: Session, user_id: int, wins: int, score: int) -> None:
    stats = db.query(UserStats).filter(
        UserStats.user_id == user_id
    ).with_for_update(nowait=False).first()

    if stats is None:
        db.add(UserStats(
            user_id=user_id,
            total_games_played=1,
            total_wins=wins,
            total_score=score
        ))
        return

    stats.total_games_played += 1
    stats.total_wins += wins
    stats.total_score += score


def roll_up_user_stats(db: Session, final_scores: Iterable[Tuple[int, int]], winner_id) -> int:
    """
    遊戲結束時為所有參與者累加統計

    參數：
        db: SQLAlchemy Session
        final_scores: (user_id, 最終分數) 列表，每位參與者一筆
        winner_id: 勝利者 user_id（平手時為 None）

    返回：
        累加的參與者人數

    注意：
        - 呼叫者必須保證同一個房間只呼叫一次（見 RoomManager.finish_game）
    """
    count = 0
    for user_id, score in final_scores:
        increment_user_stats(db, user_id, user_id == winner_id, score or 0)
        count += 1

    db.flush()
    logger.info(f"Rolled up user stats for {count} players (winner={winner_id})")
    return count


def get_user_stats(db: Session, user_id: int) -> Dict[str, int]:
    """
    取得使用者終身統計

    還沒有完成過任何遊戲的使用者返回全 0，前端不需要特別處理
    """
    stats = db.query(UserStats).filter(UserStats.user_id == user_id).first()
    if stats is None:
        return {
            "user_id": user_id,
            "total_games_played": 0,
            "total_wins": 0,
            "total_score": 0,
        }

    return {
        "user_id": stats.user_id,
        "total_games_played": stats.total_games_played,
        "total_wins": stats.total_wins,
        "total_score": stats.total_score,
    }
