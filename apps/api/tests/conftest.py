"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema rebuilt for each test
- Row factories for conversations, messages, events and platform customers
- JWT token minting for authenticated tests
- HTTPX AsyncClient with the session cookie
"""
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session

# Must be set before the settings module is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CUSTOMER_METADATA_API_URL"] = ""
os.environ.pop("VIP_THRESHOLD", None)

from inbox.core.deps import COOKIE_NAME, get_db
from inbox.core.security import create_session_token
from inbox.db.base import Base
from inbox.db.enums import ConversationEventType, ConversationStatus, MessageRole
from inbox.db.models import Conversation, ConversationEvent, Message, PlatformCustomer, User
from inbox.db.session import SessionLocal, engine
from inbox.main import app


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates a fresh schema and session for each test.

    Tests flush instead of commit; the schema is dropped afterwards.
    """
    Base.metadata.create_all(engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def test_user(db: Session) -> User:
    """Create an active staff user."""
    user = User(
        id=uuid.uuid4(),
        email=f"agent-{uuid.uuid4().hex[:8]}@test.com",
        display_name="Test Agent",
    )
    db.add(user)
    db.flush()
    return user


@pytest.fixture(scope="function")
def other_user(db: Session) -> User:
    """A second staff user for assignment filters."""
    user = User(
        id=uuid.uuid4(),
        email=f"other-{uuid.uuid4().hex[:8]}@test.com",
        display_name="Other Agent",
    )
    db.add(user)
    db.flush()
    return user


# =============================================================================
# Row factories
# =============================================================================

def ts(day: int, hour: int = 0, minute: int = 0) -> datetime:
    """A UTC timestamp in January 2025."""
    return datetime(2025, 1, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def make_conversation(db: Session):
    def _make(**overrides) -> Conversation:
        values = {
            "slug": f"conv-{uuid.uuid4().hex[:12]}",
            "status": ConversationStatus.OPEN,
            "email_from": f"customer-{uuid.uuid4().hex[:6]}@example.com",
            "created_at": ts(1),
        }
        values.update(overrides)
        conversation = Conversation(**values)
        db.add(conversation)
        db.flush()
        return conversation

    return _make


@pytest.fixture(scope="function")
def make_message(db: Session):
    def _make(conversation: Conversation, **overrides) -> Message:
        values = {
            "conversation_id": conversation.id,
            "role": MessageRole.USER,
            "cleaned_up_text": "Hello, I need some help",
            "created_at": ts(1),
        }
        values.update(overrides)
        message = Message(**values)
        db.add(message)
        db.flush()
        return message

    return _make


@pytest.fixture(scope="function")
def make_event(db: Session):
    def _make(conversation: Conversation, **overrides) -> ConversationEvent:
        values = {
            "conversation_id": conversation.id,
            "type": ConversationEventType.UPDATE,
            "changes": {},
            "created_at": ts(1),
        }
        values.update(overrides)
        event = ConversationEvent(**values)
        db.add(event)
        db.flush()
        return event

    return _make


@pytest.fixture(scope="function")
def make_customer(db: Session):
    def _make(email: str, value: int | None, **overrides) -> PlatformCustomer:
        customer = PlatformCustomer(email=email, value=value, **overrides)
        db.add(customer)
        db.flush()
        return customer

    return _make


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    token: str
    cookie_name: str = COOKIE_NAME


@pytest.fixture(scope="function")
def test_auth(test_user: User) -> TestAuth:
    """Create JWT token for test user."""
    token = create_session_token(
        user_id=test_user.id,
        token_version=test_user.token_version,
    )
    return TestAuth(user=test_user, token=token)


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    db: Session,
    test_auth: TestAuth
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create authenticated AsyncClient with the session cookie.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={test_auth.cookie_name: test_auth.token},
    ) as c:
        yield c

    app.dependency_overrides.clear()
