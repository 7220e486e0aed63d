import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Settings are read at import time; tests never touch the configured database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["RESEND_API_KEY"] = ""

from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.clock import FrozenClock, get_clock
from app.core.redis_client import CacheManager, get_cache_manager
from app.core.security import create_access_token
from app.database import get_db
from app.main import app
from app.models import metadata, treatments, users
from app.services.email_service import EmailService, get_email_service

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Tuesday 10 March 2026, 09:00 clinic time
NOW = datetime(2026, 3, 10, 9, 0)


class RecordingEmailService(EmailService):
    """Email service that records messages instead of calling Resend."""

    def __init__(self):
        super().__init__(api_key="", from_address="test@zennara.test")
        self.sent: list[dict] = []

    def _send(self, to: str, subject: str, html: str) -> None:
        self.sent.append({"to": to, "subject": subject, "html": html})

    def subjects(self) -> list[str]:
        return [message["subject"] for message in self.sent]


@pytest.fixture
def clock() -> FrozenClock:
    """Clinic clock pinned to NOW."""
    return FrozenClock(NOW)


@pytest.fixture
def email_service() -> RecordingEmailService:
    return RecordingEmailService()


@pytest.fixture
def mock_redis() -> MagicMock:
    """Redis stand-in that always misses."""
    redis = MagicMock()
    redis.get.return_value = None
    redis.keys.return_value = []
    return redis


@pytest.fixture
def cache_manager(mock_redis) -> CacheManager:
    return CacheManager(redis_client=mock_redis)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    clock: FrozenClock,
    email_service: RecordingEmailService,
    cache_manager: CacheManager,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_cache_manager] = lambda: cache_manager

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, email: str, full_name: str, role: str) -> dict:
    user_data = {
        "id": uuid4(),
        "email": email,
        "full_name": full_name,
        "phone": "+919876543210",
        "role": role,
        "is_active": True,
    }
    await db_session.execute(insert(users).values(**user_data))
    await db_session.commit()
    return user_data


def _headers_for(user: dict) -> dict:
    token = create_access_token(
        data={"sub": str(user["id"]), "role": user["role"]},
        expires_delta=timedelta(minutes=30),
    )
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user(db_session) -> dict:
    """Create a customer in the database."""
    return await _create_user(db_session, "priya@example.com", "Priya Sharma", "customer")


@pytest_asyncio.fixture
async def other_user(db_session) -> dict:
    return await _create_user(db_session, "rahul@example.com", "Rahul Verma", "customer")


@pytest_asyncio.fixture
async def staff_user(db_session) -> dict:
    return await _create_user(db_session, "desk@zennara.com", "Front Desk", "staff")


@pytest_asyncio.fixture
async def admin_user(db_session) -> dict:
    return await _create_user(db_session, "admin@zennara.com", "Clinic Admin", "admin")


@pytest.fixture
def auth_headers(test_user) -> dict:
    """Create authentication headers for testing protected endpoints."""
    return _headers_for(test_user)


@pytest.fixture
def other_headers(other_user) -> dict:
    return _headers_for(other_user)


@pytest.fixture
def staff_headers(staff_user) -> dict:
    return _headers_for(staff_user)


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return _headers_for(admin_user)


@pytest_asyncio.fixture
async def treatment(db_session) -> dict:
    """An active treatment offered at every location."""
    data = {
        "id": uuid4(),
        "name": "HydraFacial",
        "category": "Facials",
        "description": "Deep cleansing facial",
        "price": 4500.0,
        "price_display": "₹4,500",
        "duration": 60,
        "duration_display": "60 mins",
        "is_active": True,
        "is_popular": True,
        "available_locations": ["Jubilee Hills", "Kokapet", "Kondapur"],
    }
    await db_session.execute(insert(treatments).values(**data))
    await db_session.commit()
    return data


@pytest.fixture
def booking_payload(treatment) -> dict:
    """Valid booking request for tomorrow at 11:00."""
    return {
        "treatment_id": str(treatment["id"]),
        "personal_details": {
            "full_name": "Priya Sharma",
            "mobile_number": "+919876543210",
            "email": "Priya@Example.com",
        },
        "location": "Jubilee Hills",
        "appointment_date": "2026-03-11",
        "appointment_time": "11:00",
        "special_requests": "Sensitive skin",
    }
