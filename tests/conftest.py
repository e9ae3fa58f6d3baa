import os
from datetime import date, time

# Settings are read at import time; point the app at a throwaway database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("REDIS_URL", None)
os.environ.pop("REDIS_HOST", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models, models_booking  # noqa: F401
from app.database import Base, get_db
from app.domain.scheduling.lifecycle import BookingLifecycle
from app.domain.scheduling.policy import BookingPolicy
from app.domain.scheduling.router import get_booking_lifecycle, public_booking_limit
from app.main import app
from app.models import Member
from app.models_booking import MeetingRoom

TODAY = date(2030, 6, 3)
BOOKING_DATE = date(2030, 6, 10)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def policy():
    return BookingPolicy()


@pytest.fixture
def room(db):
    room = MeetingRoom(
        name="Boardroom",
        hourly_rate=500.0,
        capacity=8,
        open_time=time(9, 0),
        close_time=time(18, 0),
        amenities=["projector", "whiteboard"],
    )
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@pytest.fixture
def member(db):
    member = Member(full_name="Ana Reyes", email="ana@example.com", company="Reyes Studio")
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


@pytest.fixture
def lifecycle(db, policy):
    return BookingLifecycle(db, policy=policy, today=lambda: TODAY)


@pytest.fixture
def client(session_factory, policy):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def override_lifecycle():
        session = session_factory()
        try:
            yield BookingLifecycle(session, policy=policy, today=lambda: TODAY)
        finally:
            session.close()

    async def no_rate_limit():
        return None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_booking_lifecycle] = override_lifecycle
    app.dependency_overrides[public_booking_limit] = no_rate_limit
    yield TestClient(app)
    app.dependency_overrides.clear()
