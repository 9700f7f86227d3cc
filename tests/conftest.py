"""
TrackMyStartup - Test Configuration

Pytest fixtures and configuration.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key")
os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "testing")

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Dict
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_async_session
from app.models.cap_table import StartupShares
from app.models.startup import Startup
from app.models.user import User, UserRole
from app.services.auth_events import AuthEventBroker
from app.services.email_service import EmailService
from app.services.file_storage_service import FileStorageService, file_storage_service
from app.utils.security import create_access_token, get_password_hash
from main import app


TEST_PASSWORD = "TestPassword123"


# Create test engine (one shared in-memory connection)
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def storage_root(tmp_path, monkeypatch):
    """Point the shared file store at a per-test directory."""
    root = tmp_path / "uploads"
    monkeypatch.setattr(file_storage_service, "local_storage_path", root)
    return root


@pytest.fixture
def storage(storage_root) -> FileStorageService:
    return FileStorageService(root=str(storage_root))


@pytest.fixture
def events() -> AuthEventBroker:
    return AuthEventBroker()


@pytest.fixture
def mailer() -> EmailService:
    """Mailer with no SMTP server configured; messages land in its outbox."""
    service = EmailService()
    service.smtp_host = ""
    return service


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Founder account with a complete registration."""
    user = User(
        id=uuid4(),
        email="founder@example.com",
        hashed_password=get_password_hash(TEST_PASSWORD),
        full_name="Test Founder",
        role=UserRole.STARTUP,
        government_id="GOV-123",
        startup_name="Acme Labs",
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_startup(db_session: AsyncSession, test_user: User) -> Startup:
    startup = Startup(
        id=uuid4(),
        user_id=test_user.id,
        name="Acme Labs",
        country="India",
        registration_date=date(2020, 1, 1),
        current_valuation=Decimal("1000000"),
        total_funding=Decimal("0"),
    )
    db_session.add(startup)
    await db_session.commit()
    await db_session.refresh(startup)
    return startup


@pytest_asyncio.fixture
async def test_shares(db_session: AsyncSession, test_startup: Startup) -> StartupShares:
    """100,000 shares at 10.00 with a 10,000 share ESOP pool (reserved value 100,000)."""
    shares = StartupShares(
        startup_id=test_startup.id,
        total_shares=100_000,
        esop_reserved_shares=10_000,
        price_per_share=Decimal("10"),
    )
    db_session.add(shares)
    await db_session.commit()
    await db_session.refresh(shares)
    return shares


@pytest_asyncio.fixture
async def investor_user(db_session: AsyncSession) -> User:
    user = User(
        id=uuid4(),
        email="investor@example.com",
        hashed_password=get_password_hash(TEST_PASSWORD),
        full_name="Test Investor",
        role=UserRole.INVESTOR,
        government_id="GOV-456",
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def bearer(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": str(user.id), "email": user.email, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_user: User) -> Dict[str, str]:
    return bearer(test_user)


@pytest.fixture
def investor_headers(investor_user: User) -> Dict[str, str]:
    return bearer(investor_user)
