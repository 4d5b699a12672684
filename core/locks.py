"""
並發控制工具

每個房間是一個互斥單位，所有會修改房間的操作（加入、跳過、淘汰、加分）
都必須在同一把鎖內完成「讀取 -> 檢查 -> 計算 -> 寫入 -> commit」。

兩層鎖：
1. room_serialized：行程內的 per-room mutex（SQLite 不支援 FOR UPDATE，靠這層）
2. with_room_lock：PostgreSQL 的 SELECT ... FOR UPDATE（多個 worker 行程時靠這層）

不同房間的操作彼此獨立，可以完全並行。
"""
import threading
import weakref
from functools import wraps

from sqlalchemy.orm import Session, Query

from models import Room

_registry_lock = threading.Lock()
_room_mutexes: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()


def get_room_mutex(room_id: int) -> threading.Lock:
    """
    取得某房間的 mutex（沒有人持有時會被回收）

    參數：
        room_id: Room ID

    返回：
        threading.Lock
    """
    with _registry_lock:
        mutex = _room_mutexes.get(room_id)
        if mutex is None:
            mutex = threading.Lock()
            _room_mutexes[room_id] = mutex
        return mutex


def room_serialized(func):
    """
    Per-room 序列化 decorator

    使用方式（放在 @transactional 外層，確保 commit 也在鎖內）：
        @staticmethod
        @room_serialized
        @transactional
        def mark_dead(db: Session, room_id: int, user_id: int):
            ...

    注意：
        - 第二個參數（或 kwargs）必須是 room_id
        - 不可重入：被裝飾的函式內不要再呼叫同房間的被裝飾函式
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        if 'room_id' in kwargs:
            room_id = kwargs['room_id']
        elif len(args) >= 2:
            room_id = args[1]
        else:
            raise ValueError(
                f"@room_serialized requires 'room_id' as second argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        mutex = get_room_mutex(room_id)
        with mutex:
            return func(*args, **kwargs)

    return wrapper


def with_room_lock(room_id: int, db: Session) -> Query:
    """
    鎖定一個 Room（行級鎖）

    使用場景：
    - 修改 Room 狀態、輪到誰、勝利者時
    - 需要確保 Room 在整個 transaction 期間不被其他請求修改

    範例：
        room = with_room_lock(room_id, db).first()
        if not room:
            raise RoomNotFound(room_id)
        room.current_turn_user_id = next_user_id

    參數：
        room_id: Room ID
        db: SQLAlchemy Session

    返回：
        Query object（需要呼叫 .first() 或 .one() 來取得結果）

    注意：
        - nowait=False 表示如果鎖被佔用，會等待
        - 必須在 transaction 內使用（確保有 commit 或 rollback）
        - SQLite 會忽略 FOR UPDATE
        - populate_existing 確保拿到的是資料庫最新值，而不是 session 內的舊物件
    """
    return db.query(Room).filter(
        Room.id == room_id
    ).with_for_update(nowait=False).populate_existing()
