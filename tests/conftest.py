import os

# Settings are read at import time; point them at SQLite before cineseat loads.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CREATE_DATABASE_ON_STARTUP"] = "false"
os.environ["SECRET_KEY"] = "test-secret"

import uuid
from datetime import datetime, time, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from cineseat.core.security import create_access_token
from cineseat.db.base import Base
from cineseat.db.session import get_db
from cineseat.main import app
from cineseat.models import Movie, Showtime, User
from cineseat.utils import showtimes as showtime_utils

FIXED_NOW = datetime(2030, 1, 15, 12, 0)
TODAY = FIXED_NOW.date()
TOMORROW = TODAY + timedelta(days=1)
YESTERDAY = TODAY - timedelta(days=1)

PRICE_MAP = {"Classic": "800", "Prime": "1200", "Superior": "1500"}


@pytest.fixture(autouse=True)
def frozen_now(monkeypatch):
    """Pin the venue clock so expiry checks are deterministic."""
    monkeypatch.setattr(showtime_utils, "venue_now", lambda: FIXED_NOW)
    return FIXED_NOW


@pytest.fixture()
def engine(tmp_path):
    # File-backed so separate sessions get separate connections.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'cineseat.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_user(db, role="user", email=None):
    user = User(
        email=email or (None if role == "guest" else f"{uuid.uuid4().hex[:8]}@example.com"),
        full_name=None if role == "guest" else "Test User",
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_movie(db, title="Arrival"):
    movie = Movie(title=title, description="First contact.", duration_mins=116)
    db.add(movie)
    db.commit()
    db.refresh(movie)
    return movie


def make_showtime(db, movie, show_date=TOMORROW, start_time=time(19, 30), seats_reserved=None, price_map=None):
    showtime = Showtime(
        movie_id=movie.id,
        show_date=show_date,
        start_time=start_time,
        price_map=dict(price_map or PRICE_MAP),
        seats_reserved=list(seats_reserved or []),
    )
    db.add(showtime)
    db.commit()
    db.refresh(showtime)
    return showtime


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}


@pytest.fixture()
def buyer(db):
    return make_user(db)


@pytest.fixture()
def admin(db):
    return make_user(db, role="admin")


@pytest.fixture()
def movie(db):
    return make_movie(db)


@pytest.fixture()
def showtime(db, movie):
    return make_showtime(db, movie)
