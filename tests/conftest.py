"""Pytest configuration and shared fixtures."""

import os
from datetime import datetime, timezone
from typing import Generator

# Configure the application before any value_ledger module is imported
os.environ.setdefault("VALUE_LEDGER_DATABASE_URL", "sqlite://")
os.environ.setdefault("VALUE_LEDGER_LOG_TO_FILE", "0")
os.environ.setdefault(
    "VALUE_LEDGER_JWT_SECRET_KEY",
    "t3st-s1gning-k3y-Qm9vWx7Zr2Lp8Kd4Jh6Gf1Sa5Nc0Vb3Ye9Tu2Io7Pl4Mk8",
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from value_ledger.config import ValueLedgerConfig
from value_ledger.db.database import init_database
from value_ledger.db.models import BatchMember, Token
from value_ledger.domain.records import Identity
from value_ledger.repositories.memory_impl import (
    MemoryBatchMemberRepository,
    MemoryTokenRepository,
)
from value_ledger.store.acceptance import AcceptanceWorkflow
from value_ledger.store.ledger import TokenLedger
from value_ledger.store.roster import RosterService


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "integration: HTTP API tests")


@pytest.fixture
def test_db():
    """Session factory bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_database(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    yield TestingSessionLocal

    engine.dispose()


@pytest.fixture
def db_session(test_db):
    """Create a database session for direct repository tests."""
    session = test_db()

    yield session

    session.close()


@pytest.fixture
def identity() -> Identity:
    return Identity(id="user-ana", email="ana@example.com", first_name="Ana", last_name="Silva")


@pytest.fixture
def other_identity() -> Identity:
    return Identity(id="user-ben", email="ben@example.com", first_name="Ben", last_name="Okafor")


@pytest.fixture
def client(test_db) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override."""
    from value_ledger.main import app
    from value_ledger.db.database import get_db

    def override_get_db():
        # Use a fresh session per request in tests
        db = test_db()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    # Clear overrides to avoid affecting other tests
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client, identity) -> TestClient:
    """Test client whose requests are authenticated as ``identity``."""
    from value_ledger.main import app
    from value_ledger.auth.dependencies import get_current_identity

    app.dependency_overrides[get_current_identity] = lambda: identity
    return client


@pytest.fixture
def login_as(client):
    """Switch the authenticated identity of ``client``."""
    from value_ledger.main import app
    from value_ledger.auth.dependencies import get_current_identity

    def _login(who: Identity) -> TestClient:
        app.dependency_overrides[get_current_identity] = lambda: who
        return client

    return _login


@pytest.fixture
def make_member(test_db):
    """Insert a roster entry directly."""

    def _make(folder_id: int = 1, name: str = "Ana Silva", email=None, user_id=None) -> BatchMember:
        db = test_db()
        member = BatchMember(
            folder_id=folder_id,
            name=name,
            email=email,
            user_id=user_id,
            created_at=datetime.now(timezone.utc),
        )
        db.add(member)
        db.commit()
        db.refresh(member)
        db.expunge(member)
        db.close()
        return member

    return _make


@pytest.fixture
def make_token(test_db):
    """Insert a token directly, bypassing ledger validation."""

    def _make(**fields) -> Token:
        values = {
            "from_user_id": "user-ben",
            "to_user_id": "Ana",
            "sender_name": "Ben Okafor",
            "receiver_name": "Ana",
            "receiver_email": None,
            "amount": 10_000,
            "category": "growth",
            "message": "",
            "status": "pending",
            "batch_id": 1,
            "created_at": datetime.now(timezone.utc),
        }
        values.update(fields)
        db = test_db()
        token = Token(**values)
        db.add(token)
        db.commit()
        db.refresh(token)
        db.expunge(token)
        db.close()
        return token

    return _make


@pytest.fixture
def fast_config() -> ValueLedgerConfig:
    """Configuration with retry delays removed."""
    config = ValueLedgerConfig.from_dict({})
    config.app.cascade_retry_base_delay = 0.0
    config.app.cascade_retry_max_delay = 0.0
    return config


@pytest.fixture
def token_repo() -> MemoryTokenRepository:
    return MemoryTokenRepository()


@pytest.fixture
def member_repo() -> MemoryBatchMemberRepository:
    return MemoryBatchMemberRepository()


@pytest.fixture
def ledger(token_repo, member_repo, fast_config) -> TokenLedger:
    return TokenLedger(token_repo, member_repo, fast_config)


@pytest.fixture
def workflow(ledger) -> AcceptanceWorkflow:
    return AcceptanceWorkflow(ledger)


@pytest.fixture
def roster(ledger) -> RosterService:
    return RosterService(ledger)
