import os

# 必須在 import app 之前設定：測試不啟動排程、不寫檔案資料庫
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, configure_sqlite_locking, get_db, get_settings
from main import app
from schemas import ItemSubmit


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_locking(test_engine)
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


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
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_auth():
    settings = get_settings()
    return (settings.admin_username, settings.admin_password)


@pytest.fixture
def make_item():
    def _make(name: str, clue_count: int = 3) -> ItemSubmit:
        return ItemSubmit(
            name=name,
            submitted_by="tester",
            clues=[f"{name} clue {i}" for i in range(clue_count)],
        )
    return _make
