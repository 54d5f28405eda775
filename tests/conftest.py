"""
Test configuration and fixtures
In-memory SQLite per test, fakeredis for cache and rate limiting
"""

import os

# Set test environment before the app modules read settings
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-jwt-signing-0123456789"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "true"
os.environ["LOG_FORMAT"] = "text"

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import fakeredis
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

# Import all models BEFORE creating fixtures (critical for create_all to work)
from app.core.database import Base
from app.models import Event, Registration, WaitingList, User, PaymentType, UserRole
from app.core.redis import set_redis
from app.core.security import get_password_hash, token_for_user
from app.services.history_service import history_service


@pytest_asyncio.fixture(scope="function")
async def test_db():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_db) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async_session_maker = async_sessionmaker(
        test_db,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest_asyncio.fixture
async def redis_client():
    """fakeredis installed as the global client"""
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    set_redis(client)
    yield client
    await client.flushall()
    set_redis(None)
    await client.aclose()


@pytest.fixture(autouse=True)
def reset_history():
    history_service.reset()
    yield
    history_service.reset()


@pytest_asyncio.fixture
async def client(db_session, redis_client):
    """Create test client with dependency override"""
    from app.main import app
    from app.core.database import get_session
    from app.core.redis import get_redis

    async def override_get_session():
        yield db_session

    async def override_get_redis():
        return redis_client

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_redis] = override_get_redis

    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


# User fixtures
async def _create_user(session: AsyncSession, role: UserRole, first_name: str) -> User:
    user = User(
        email=f"{first_name.lower()}_{uuid4().hex[:8]}@example.com",
        password_hash=get_password_hash("TestPass123"),
        first_name=first_name,
        last_name="Tester",
        phone_number="+420777000111",
        role=role,
        payment_preference=PaymentType.CASH,
        is_active=True
    )
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def test_user(db_session):
    return await _create_user(db_session, UserRole.USER, "Petr")


@pytest_asyncio.fixture
async def test_admin(db_session):
    return await _create_user(db_session, UserRole.ADMIN, "Alena")


@pytest_asyncio.fixture
async def test_moderator(db_session):
    return await _create_user(db_session, UserRole.MODERATOR, "Marek")


@pytest.fixture
def user_headers(test_user):
    return {"Authorization": f"Bearer {token_for_user(test_user)}"}


@pytest.fixture
def admin_headers(test_admin):
    return {"Authorization": f"Bearer {token_for_user(test_admin)}"}


@pytest.fixture
def moderator_headers(test_moderator):
    return {"Authorization": f"Bearer {token_for_user(test_moderator)}"}


# Event fixtures
@pytest.fixture
def make_event(db_session):
    """Factory creating events directly in the database"""

    async def _make_event(
        capacity: int = 10,
        auto_promote: bool = False,
        starts_in: timedelta = timedelta(days=7),
        visible: bool = True,
        price: Decimal = Decimal("150.00"),
        title: str = "Volleyball Tuesday",
        bank_account_id=None
    ) -> Event:
        start = datetime.now(timezone.utc) + starts_in
        event = Event(
            title=title,
            description="Indoor volleyball",
            price=price,
            place="Sportovni hala",
            capacity=capacity,
            from_time=start,
            to_time=start + timedelta(hours=2),
            visible=visible,
            auto_promote=auto_promote,
            bank_account_id=bank_account_id,
        )
        db_session.add(event)
        await db_session.commit()
        return event

    return _make_event


@pytest.fixture
def add_registration(db_session):
    """Factory adding a registration row without going through the service"""

    async def _add(event: Event, first_name: str, email: str = None, last_name: str = "Novak",
                   payment_type: PaymentType = PaymentType.CASH, attended: bool = False) -> Registration:
        registration = Registration(
            event_id=event.id,
            first_name=first_name,
            last_name=last_name,
            email=email or f"{first_name.lower()}@example.com",
            payment_type=payment_type,
            attended=attended,
        )
        db_session.add(registration)
        await db_session.commit()
        return registration

    return _add


@pytest.fixture
def add_waiting(db_session):
    """Factory adding waiting list rows with explicit, increasing created_at"""
    base = datetime.now(timezone.utc) - timedelta(hours=1)
    counter = {"n": 0}

    async def _add(event: Event, first_name: str, email: str = None, created_at: datetime = None,
                   payment_type: PaymentType = PaymentType.CASH) -> WaitingList:
        counter["n"] += 1
        entry = WaitingList(
            event_id=event.id,
            first_name=first_name,
            last_name="Waiter",
            email=email or f"{first_name.lower()}@example.com",
            payment_type=payment_type,
            created_at=created_at or base + timedelta(minutes=counter["n"]),
        )
        db_session.add(entry)
        await db_session.commit()
        return entry

    return _add
