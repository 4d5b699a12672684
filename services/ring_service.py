"""
輪轉服務：計算下一位輪到的玩家

純計算邏輯，不涉及資料庫

輪轉順序（turn ring）：
- 房間成員依 joined_at 排序（同時間以 id 排序）
- 走到最後一位之後回到第一位
- 已淘汰（dead）的玩家會被跳過
- 順序不存成「下一位」指標，每次操作都重新計算，所以淘汰玩家不需要修補指標
"""
from typing import Iterable, Optional, Sequence, Set

from models import PlayerStatus, RoomPlayer


def turn_order(players: Iterable[RoomPlayer]) -> list:
    """
    依加入順序排列的所有成員 user_id（包含已淘汰的）

    參數：
        players: 已依 (joined_at, id) 排序的房間成員（見 TurnManager.get_ordered_players）

    返回：
        user_id 列表
    """
    return [p.user_id for p in players]


def active_user_ids(players: Iterable[RoomPlayer]) -> Set[int]:
    return {p.user_id for p in players if p.status == PlayerStatus.ACTIVE}


def next_in_ring(order: Sequence[int], from_user_id: int, active_ids: Set[int]) -> Optional[int]:
    """
    從 from_user_id 的位置往前走，找到下一位存活玩家

    規則：
    - 循環走訪，最多走一整圈
    - 跳過不在 active_ids 內的玩家
    - from_user_id 本身不算（走一圈回到自己就停）

    參數：
        order: 依加入順序排列的 user_id（包含已淘汰的）
        from_user_id: 目前行動的玩家
        active_ids: 存活玩家的 user_id

    返回：
        下一位玩家的 user_id，沒有其他存活玩家時返回 None

    範例：
        order = [A, B, C, D], active = {A, C, D}
        next_in_ring(order, A, active) -> C   （B 已淘汰，跳過）
        next_in_ring(order, D, active) -> A   （繞回開頭）

    異常：
        ValueError: from_user_id 不在 order 內
    """
    if from_user_id not in order:
        raise ValueError(f"User {from_user_id} is not in the turn ring")

    start = order.index(from_user_id)
    size = len(order)
    for step in range(1, size):
        candidate = order[(start + step) % size]
        if candidate in active_ids:
            return candidate
    return None
