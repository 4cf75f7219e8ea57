import os

os.environ.setdefault("PYTHON_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import StaticPool
from sqlmodel import create_engine, SQLModel, Session
from fastapi.testclient import TestClient

from db import get_session
from music_info_client import get_music_info_client
from server import app
from tests.helpers import FakeMusicInfo

@pytest.fixture(scope="session")
def test_engine():
    """Create a shared in-memory SQLite engine for the test session"""
    engine = create_engine("sqlite:///:memory:", poolclass=StaticPool, connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    return engine

@pytest.fixture(autouse=True)
def clean_tables(test_engine):
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

@pytest.fixture(scope="function")
def test_session(test_engine):
    """Create a new session for each test function"""
    with Session(test_engine) as session:
        yield session

@pytest.fixture(scope="function")
def music_info():
    return FakeMusicInfo()

@pytest.fixture(scope="function")
def client(test_session, music_info):
    """Override FastAPI session and music info dependencies"""
    def override_get_session():
        yield test_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_music_info_client] = lambda: music_info
    yield TestClient(app)
    app.dependency_overrides.clear()
