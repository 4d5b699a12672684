import os
import sys
import itertools
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure the project root (containing models.py, core/, services/) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from database import Base, get_db
from models import User, Room, RoomPlayer, RoomStatus, PlayerStatus


@pytest.fixture()
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def make_user(db):
    counter = itertools.count(1)

    def _make(username=None):
        user = User(username=username or f"player{next(counter)}")
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture()
def make_room(db):
    """Room whose members joined one second apart, in the order given."""
    codes = itertools.count(1)

    def _make(users, status=RoomStatus.WAITING, current_turn=None, dead=()):
        room = Room(
            code=f"ROOM{next(codes):02d}",
            status=status,
            owner_id=users[0].id,
            current_turn_user_id=current_turn.id if current_turn else None,
            state_version=0
        )
        db.add(room)
        db.flush()

        dead_ids = {u.id for u in dead}
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for i, user in enumerate(users):
            db.add(RoomPlayer(
                room_id=room.id,
                user_id=user.id,
                status=PlayerStatus.DEAD if user.id in dead_ids else PlayerStatus.ACTIVE,
                joined_at=base + timedelta(seconds=i)
            ))
        db.commit()
        return room

    return _make


@pytest.fixture()
def playing_room(make_user, make_room):
    """Playing room with ``n`` players; the first to join holds the turn."""
    def _make(n=3):
        users = [make_user() for _ in range(n)]
        room = make_room(users, status=RoomStatus.PLAYING, current_turn=users[0])
        return room, users

    return _make


@pytest.fixture()
def client(session_factory):
    from fastapi.testclient import TestClient
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
