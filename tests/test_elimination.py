import pytest

from models import (
    GameOutcome,
    GameResult,
    Room,
    RoomPlayer,
    RoomStatus,
    PlayerStatus,
    UserStats,
)
from core.elimination_manager import EliminationManager
from core.score_manager import ScoreManager
from core.exceptions import NotYourTurn, WrongState, RoomNotFound


def _player_status(db, room_id, user_id):
    return db.query(RoomPlayer).filter(
        RoomPlayer.room_id == room_id,
        RoomPlayer.user_id == user_id
    ).one().status


def test_elimination_passes_turn_to_next_in_ring(db, playing_room):
    room, (a, b, c) = playing_room(3)

    outcome = EliminationManager.mark_dead(db, room.id, a.id)

    assert outcome.game_ended is False
    assert outcome.remaining_active == 2
    assert outcome.next_turn_user_id == b.id
    assert outcome.winner_id is None

    db.expire_all()
    room = db.get(Room, room.id)
    assert room.status == RoomStatus.PLAYING
    assert room.current_turn_user_id == b.id
    assert _player_status(db, room.id, a.id) == PlayerStatus.DEAD


def test_elimination_walks_ring_from_eliminated_seat(db, make_user, make_room):
    # A B C D with B already out and C acting: next is D, not the first active player A
    a, b, c, d = [make_user() for _ in range(4)]
    room = make_room([a, b, c, d], status=RoomStatus.PLAYING, current_turn=c, dead=[b])

    outcome = EliminationManager.mark_dead(db, room.id, c.id)

    assert outcome.next_turn_user_id == d.id
    assert outcome.remaining_active == 2


def test_elimination_wraps_to_start_of_ring(db, make_user, make_room):
    a, b, c = [make_user() for _ in range(3)]
    room = make_room([a, b, c], status=RoomStatus.PLAYING, current_turn=c)

    outcome = EliminationManager.mark_dead(db, room.id, c.id)

    assert outcome.next_turn_user_id == a.id


def test_survivor_wins_when_one_player_left(db, playing_room):
    room, (a, b) = playing_room(2)

    outcome = EliminationManager.mark_dead(db, room.id, a.id)

    assert outcome.game_ended is True
    assert outcome.winner_id == b.id
    assert outcome.next_turn_user_id is None
    assert outcome.remaining_active == 1

    db.expire_all()
    room = db.get(Room, room.id)
    assert room.status == RoomStatus.FINISHED
    assert room.winner_id == b.id
    assert room.current_turn_user_id is None

    results = {r.user_id: r.result for r in db.query(GameResult).filter(GameResult.room_id == room.id)}
    assert results == {a.id: GameOutcome.LOSE, b.id: GameOutcome.WIN}


def test_sequential_eliminations_finish_with_single_winner(db, playing_room):
    room, users = playing_room(4)
    room_id = room.id
    ScoreManager.apply_score(db, room_id, users[1].id, 3)

    holder_id = users[0].id
    outcome = None
    for _ in range(3):
        outcome = EliminationManager.mark_dead(db, room_id, holder_id)
        holder_id = outcome.next_turn_user_id

    assert outcome.game_ended is True
    assert outcome.winner_id == users[3].id

    db.expire_all()
    room = db.get(Room, room_id)
    assert room.status == RoomStatus.FINISHED
    assert room.winner_id == users[3].id

    rows = db.query(GameResult).filter(GameResult.room_id == room_id).all()
    assert len(rows) == 4
    assert {r.user_id: r.result for r in rows} == {
        users[0].id: GameOutcome.LOSE,
        users[1].id: GameOutcome.LOSE,
        users[2].id: GameOutcome.LOSE,
        users[3].id: GameOutcome.WIN,
    }

    stats = {s.user_id: s for s in db.query(UserStats).all()}
    assert all(stats[u.id].total_games_played == 1 for u in users)
    assert stats[users[3].id].total_wins == 1
    assert stats[users[1].id].total_score == 3
    assert sum(s.total_wins for s in stats.values()) == 1


def test_dead_player_can_not_eliminate_again(db, playing_room):
    room, (a, b, c) = playing_room(3)
    EliminationManager.mark_dead(db, room.id, a.id)

    with pytest.raises(NotYourTurn):
        EliminationManager.mark_dead(db, room.id, a.id)

    db.expire_all()
    assert db.get(Room, room.id).current_turn_user_id == b.id


def test_only_turn_holder_may_eliminate(db, playing_room):
    room, (a, b, c) = playing_room(3)

    with pytest.raises(NotYourTurn):
        EliminationManager.mark_dead(db, room.id, c.id)

    db.expire_all()
    assert _player_status(db, room.id, c.id) == PlayerStatus.ACTIVE


def test_finished_room_is_frozen(db, playing_room):
    room, (a, b) = playing_room(2)
    EliminationManager.mark_dead(db, room.id, a.id)

    with pytest.raises(WrongState):
        EliminationManager.mark_dead(db, room.id, b.id)

    db.expire_all()
    room = db.get(Room, room.id)
    assert room.winner_id == b.id
    assert _player_status(db, room.id, b.id) == PlayerStatus.ACTIVE
    assert db.get(UserStats, b.id).total_games_played == 1


def test_last_player_eliminating_self_ends_in_draw(db, make_user, make_room):
    solo = make_user()
    room = make_room([solo], status=RoomStatus.PLAYING, current_turn=solo)

    outcome = EliminationManager.mark_dead(db, room.id, solo.id)

    assert outcome.game_ended is True
    assert outcome.winner_id is None
    assert outcome.remaining_active == 0

    db.expire_all()
    room = db.get(Room, room.id)
    assert room.status == RoomStatus.FINISHED
    assert room.winner_id is None
    result = db.query(GameResult).filter(GameResult.room_id == room.id).one()
    assert result.result == GameOutcome.DRAW
    assert db.get(UserStats, solo.id).total_wins == 0


def test_eliminate_in_missing_room(db, make_user):
    with pytest.raises(RoomNotFound):
        EliminationManager.mark_dead(db, 77, make_user().id)
