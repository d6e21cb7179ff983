import os
import pytest
from fastapi.testclient import TestClient

# Set test database before any imports
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

from app.main import create_app
from app.config import get_settings
from app.core.context import clear_context
from db.base import Base
from db.session import engine


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create all tables before tests run, drop after all tests complete."""
    # Import models to ensure they are registered with Base
    from db.models import MintRequest, ToolCall  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    """Clean tables between tests to ensure isolation."""
    yield
    from db.session import SessionLocal
    from db.models import MintRequest, ToolCall

    with SessionLocal() as db:
        db.query(ToolCall).delete()
        db.query(MintRequest).delete()
        db.commit()


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch):
    monkeypatch.setenv("LANGSMITH_TRACING", "false")
    monkeypatch.setenv("POLL_INTERVAL_S", "0")
    monkeypatch.setenv("CREDIT_BACKOFF_UNIT_S", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    clear_context()


@pytest.fixture
def db():
    from db.session import SessionLocal

    with SessionLocal() as session:
        yield session


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
