"""
自定義異常類別

集中管理所有業務邏輯異常，方便 API 層統一處理

每個異常帶有：
- kind：錯誤種類（not_found / invalid_state / ...）
- status_code：API 層對應的 HTTP 狀態碼
"""


class QuizGameException(Exception):
    """所有遊戲異常的基類"""
    kind = "error"
    status_code = 400


# ============ NotFound ============

class NotFound(QuizGameException):
    kind = "not_found"
    status_code = 404


class RoomNotFound(NotFound):
    """房間不存在"""
    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class UserNotFound(NotFound):
    """使用者不存在"""
    def __init__(self, user_id):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class PlayerNotFound(NotFound):
    """使用者不是此房間的成員"""
    def __init__(self, room_id, user_id):
        self.room_id = room_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not a player in room {room_id}")


# ============ 狀態相關異常 ============

class InvalidState(QuizGameException):
    kind = "invalid_state"
    status_code = 400


class RoomNotAcceptingPlayers(InvalidState):
    """房間不接受新玩家加入（已經開始遊戲）"""
    pass


class WrongState(InvalidState):
    """房間不在 playing 狀態"""
    kind = "wrong_state"


class InvalidStateTransition(InvalidState):
    """非法的狀態轉換"""
    pass


# ============ 回合相關異常 ============

class NotYourTurn(QuizGameException):
    """不是這位玩家的回合"""
    kind = "not_your_turn"
    status_code = 403

    def __init__(self, room_id, user_id):
        self.room_id = room_id
        self.user_id = user_id
        super().__init__("It's not your turn")


class NoActivePlayers(QuizGameException):
    """playing 狀態下找不到任何存活玩家（理論上不會發生）"""
    kind = "no_active_players"
    status_code = 400

    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"No active players found in room {room_id}")


# ============ 加入房間相關異常 ============

class AlreadyInRoom(QuizGameException):
    """使用者已經在房間內"""
    kind = "conflict"
    status_code = 409

    def __init__(self, room_id, user_id):
        self.room_id = room_id
        self.user_id = user_id
        super().__init__("User is already in this room")


class RoomFull(QuizGameException):
    """房間人數已滿"""
    kind = "full"
    status_code = 400

    def __init__(self, room_id, capacity):
        self.room_id = room_id
        self.capacity = capacity
        super().__init__(f"Room is full (maximum {capacity} players)")


# ============ 輸入相關異常 ============

class InvalidInput(QuizGameException):
    kind = "invalid_input"
    status_code = 400


class InvalidScoreDelta(InvalidInput):
    """加分必須是正整數"""
    def __init__(self, delta):
        self.delta = delta
        super().__init__(f"Score increment must be a positive integer, got {delta!r}")
