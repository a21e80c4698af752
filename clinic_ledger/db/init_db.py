"""Database initialization utilities."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.config import settings
from clinic_ledger.core.security import hash_password
from clinic_ledger.db.base import Base
from clinic_ledger.db.session import engine
from clinic_ledger.models.user import User, UserRole

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def create_initial_owner(session: AsyncSession) -> User | None:
    """Create the clinic owner account if none exists.

    Returns:
        Created owner or None if an owner already exists
    """
    result = await session.execute(
        select(User)
        .where(
            User.role == UserRole.OWNER,
            User.is_deleted == False,  # noqa: E712
        )
        .limit(1)
    )
    if result.scalar_one_or_none():
        logger.info("Owner account already exists, skipping creation")
        return None

    owner = User(
        username=settings.owner_username.lower(),
        full_name=settings.owner_full_name,
        hashed_password=hash_password(settings.owner_password),
        role=UserRole.OWNER,
        is_active=True,
    )
    session.add(owner)
    await session.commit()
    await session.refresh(owner)

    if settings.owner_password == "CHANGE_ME_IMMEDIATELY":
        logger.warning(
            "Created owner account with default password. "
            "CHANGE THE PASSWORD IMMEDIATELY!"
        )
    return owner


async def init_db(session: AsyncSession) -> None:
    """Create tables and seed the owner account."""
    await create_tables()
    await create_initial_owner(session)
    logger.info("Database initialization complete")
