import pytest

from models import GameOutcome, GameResult, Room, RoomStatus, UserStats
from core.score_manager import ScoreManager
from core.room_manager import RoomManager
from core.locks import with_room_lock
from core.exceptions import (
    InvalidScoreDelta,
    InvalidStateTransition,
    PlayerNotFound,
    RoomNotFound,
    WrongState
)


def _results(db, room_id):
    return {r.user_id: r for r in db.query(GameResult).filter(GameResult.room_id == room_id)}


def test_threshold_victory_scenario(db, playing_room):
    room, (a, b, c) = playing_room(3)
    room_id = room.id
    ScoreManager.apply_score(db, room_id, b.id, 4)

    first = ScoreManager.apply_score(db, room_id, a.id, 9)
    assert first.new_score == 9
    assert first.game_ended is False

    second = ScoreManager.apply_score(db, room_id, a.id, 1)
    assert second.new_score == 10
    assert second.game_ended is True
    assert second.winner_id == a.id

    db.expire_all()
    room = db.get(Room, room_id)
    assert room.status == RoomStatus.FINISHED
    assert room.winner_id == a.id
    assert room.current_turn_user_id is None

    results = _results(db, room_id)
    assert results[a.id].result == GameOutcome.WIN
    assert results[b.id].result == GameOutcome.LOSE
    assert results[c.id].result == GameOutcome.LOSE
    assert results[c.id].score == 0

    stats = {s.user_id: s for s in db.query(UserStats).all()}
    assert {uid: s.total_games_played for uid, s in stats.items()} == {a.id: 1, b.id: 1, c.id: 1}
    assert stats[a.id].total_wins == 1
    assert stats[b.id].total_wins == 0
    assert stats[c.id].total_wins == 0
    assert stats[a.id].total_score == 10
    assert stats[b.id].total_score == 4


def test_first_score_creates_result_row(db, playing_room):
    room, (a, b, c) = playing_room(3)

    outcome = ScoreManager.apply_score(db, room.id, b.id, 2)

    assert outcome.new_score == 2
    row = _results(db, room.id)[b.id]
    assert row.score == 2
    assert row.result == GameOutcome.LOSE
    assert row.finished_at is not None


def test_single_big_score_wins_immediately(db, playing_room):
    room, (a, b) = playing_room(2)

    outcome = ScoreManager.apply_score(db, room.id, b.id, 12)

    assert outcome.game_ended is True
    db.expire_all()
    assert db.get(Room, room.id).winner_id == b.id
    assert _results(db, room.id)[b.id].result == GameOutcome.WIN


@pytest.mark.parametrize("delta", [0, -3, True, 2.5, "3", None])
def test_delta_must_be_positive_integer(db, playing_room, delta):
    room, (a, b) = playing_room(2)

    with pytest.raises(InvalidScoreDelta) as exc_info:
        ScoreManager.apply_score(db, room.id, a.id, delta)

    assert exc_info.value.kind == "invalid_input"
    assert db.query(GameResult).count() == 0


def test_score_for_missing_room(db, make_user):
    with pytest.raises(RoomNotFound):
        ScoreManager.apply_score(db, 31337, make_user().id, 1)


def test_score_for_non_member(db, playing_room, make_user):
    room, _ = playing_room(2)
    outsider = make_user()

    with pytest.raises(PlayerNotFound):
        ScoreManager.apply_score(db, room.id, outsider.id, 1)


def test_finished_room_is_never_finalized_twice(db, playing_room):
    room, (a, b) = playing_room(2)
    room_id = room.id
    ScoreManager.apply_score(db, room_id, a.id, 10)

    with pytest.raises(WrongState):
        ScoreManager.apply_score(db, room_id, b.id, 10)

    db.expire_all()
    assert db.get(Room, room_id).winner_id == a.id
    assert db.get(UserStats, b.id).total_games_played == 1
    assert _results(db, room_id)[b.id].score == 0


def test_finish_game_guard(db, playing_room):
    room, (a, b) = playing_room(2)
    ScoreManager.apply_score(db, room.id, a.id, 10)

    locked = with_room_lock(room.id, db).first()
    with pytest.raises(InvalidStateTransition):
        RoomManager.finish_game(db, locked, b.id)
    db.rollback()


def test_stats_accumulate_across_games(db, make_user, make_room):
    a, b = make_user(), make_user()
    first = make_room([a, b], status=RoomStatus.PLAYING, current_turn=a)
    second = make_room([a, b], status=RoomStatus.PLAYING, current_turn=b)

    ScoreManager.apply_score(db, first.id, a.id, 10)
    ScoreManager.apply_score(db, second.id, a.id, 6)
    ScoreManager.apply_score(db, second.id, b.id, 11)

    db.expire_all()
    stats_a = db.get(UserStats, a.id)
    stats_b = db.get(UserStats, b.id)
    assert (stats_a.total_games_played, stats_a.total_wins, stats_a.total_score) == (2, 1, 16)
    assert (stats_b.total_games_played, stats_b.total_wins, stats_b.total_score) == (2, 1, 11)
