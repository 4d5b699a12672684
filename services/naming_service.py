"""
命名服務：生成 Room Code

純計算邏輯，不涉及狀態轉換
"""
import random
import string

from sqlalchemy.orm import Session

from models import Room


def generate_room_code() -> str:
    """
    生成隨機的 6 位大寫字母房間代碼

    範例：ABCDEF, XYZABC

    注意：
    - 不檢查唯一性（由呼叫者負責，見 room_code_taken）
    - 26^6 = 308,915,776 種可能，碰撞機率極低
    """
    return ''.join(random.choices(string.ascii_uppercase, k=6))


def room_code_taken(code: str, db: Session) -> bool:
    return db.query(Room).filter(Room.code == code).first() is not None
