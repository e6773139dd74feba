import os
import tempfile
from typing import Optional

# the app module builds its engine and log file at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("API_LOG_PATH", os.path.join(tempfile.gettempdir(), "rankfeed-tests", "api.log"))

import pytest
from fastapi import Header
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import models
from database import Base, get_db
from services.identity import get_current_principal


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db(engine) -> Session:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db: Session):
    def _make_user(username: str, is_private: bool = False) -> models.User:
        user = models.User(firebase_uid=f"uid-{username}", username=username, name=username.title(), is_private=is_private)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


def _principal_from_header(x_test_principal: Optional[str] = Header(None)) -> Optional[str]:
    return x_test_principal


@pytest.fixture()
def client(db: Session):
    from main import app

    def _get_test_db():
        yield db

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_current_principal] = _principal_from_header
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def as_user():
    """Request headers that sign in as a given user."""

    def _as_user(user: models.User) -> dict:
        return {"X-Test-Principal": user.firebase_uid}

    return _as_user
