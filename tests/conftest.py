"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import date, time
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from clinic_ledger.core.security import create_access_token, hash_password
from clinic_ledger.db.base import Base
from clinic_ledger.db.session import get_db
from clinic_ledger.main import app
from clinic_ledger.models.catalog import CatalogItem
from clinic_ledger.models.scheduling import ScheduleSlot, SlotOccupancy
from clinic_ledger.models.user import User, UserRole


# Use SQLite for testing (simpler than spinning up postgres)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BOOKING_DAY = date(2030, 3, 14)
NEXT_DAY = date(2030, 3, 15)


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def async_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture(scope="function")
async def client(async_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create API test client sharing the test session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


async def create_user(
    session: AsyncSession,
    username: str,
    role: UserRole,
    full_name: str | None = None,
    password: str = "password123",
) -> User:
    user = User(
        username=username,
        full_name=full_name or username.title(),
        hashed_password=hash_password(password),
        role=role,
        is_active=True,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest.fixture
async def owner(async_session: AsyncSession) -> User:
    return await create_user(async_session, "owner", UserRole.OWNER, "Clinic Owner")


@pytest.fixture
async def director(async_session: AsyncSession) -> User:
    return await create_user(async_session, "director", UserRole.DIRECTOR, "Dina Director")


@pytest.fixture
async def doctor(async_session: AsyncSession) -> User:
    return await create_user(async_session, "doctor", UserRole.DOCTOR, "Dr. Karimov")


@pytest.fixture
async def second_doctor(async_session: AsyncSession) -> User:
    return await create_user(async_session, "doctor2", UserRole.DOCTOR, "Dr. Petrova")


@pytest.fixture
async def cashier(async_session: AsyncSession) -> User:
    return await create_user(async_session, "cashier", UserRole.CASHIER, "Carl Cashier")


@pytest.fixture
async def patient(async_session: AsyncSession) -> User:
    return await create_user(async_session, "patient", UserRole.PATIENT, "Pat Patient")


@pytest.fixture
async def second_patient(async_session: AsyncSession) -> User:
    return await create_user(async_session, "patient2", UserRole.PATIENT, "Olga Other")


@pytest.fixture
async def item(async_session: AsyncSession) -> CatalogItem:
    """A catalog item priced 100 that takes five days."""
    catalog_item = CatalogItem(
        name="Dental cleaning",
        description="Full cleaning",
        price=Decimal("100.00"),
        duration_days=5,
        payment_type="card",
    )
    async_session.add(catalog_item)
    await async_session.commit()
    await async_session.refresh(catalog_item)
    return catalog_item


@pytest.fixture
async def cheap_item(async_session: AsyncSession) -> CatalogItem:
    catalog_item = CatalogItem(
        name="Consultation",
        price=Decimal("30.00"),
        duration_days=0,
    )
    async_session.add(catalog_item)
    await async_session.commit()
    await async_session.refresh(catalog_item)
    return catalog_item


async def create_slot(session: AsyncSession, doctor: User, day: date) -> ScheduleSlot:
    slot = ScheduleSlot(
        doctor_id=doctor.id,
        date=day,
        start_time=time(9, 0),
        finish_time=time(18, 0),
        break_start=time(13, 0),
        break_end=time(14, 0),
        occupancy=SlotOccupancy.FREE,
    )
    session.add(slot)
    await session.commit()
    await session.refresh(slot)
    return slot


@pytest.fixture
async def slot(async_session: AsyncSession, doctor: User) -> ScheduleSlot:
    """The doctor's free slot on BOOKING_DAY."""
    return await create_slot(async_session, doctor, BOOKING_DAY)


@pytest.fixture
async def next_slot(async_session: AsyncSession, doctor: User) -> ScheduleSlot:
    """The doctor's free slot on NEXT_DAY."""
    return await create_slot(async_session, doctor, NEXT_DAY)


def create_test_token(user: User) -> str:
    """Create a test JWT token for a user."""
    return create_access_token(
        subject=user.id,
        additional_claims={"role": UserRole(user.role).value},
    )


def auth_headers(user: User) -> dict[str, str]:
    """Create authorization headers for a user."""
    return {"Authorization": f"Bearer {create_test_token(user)}"}
