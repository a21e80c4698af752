"""Authentication service for staff and patients."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.security import create_access_token, verify_password
from clinic_ledger.models.user import User, UserRole


class AuthService:
    """Service for handling authentication operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def authenticate(
        self,
        username: str,
        password: str,
    ) -> User | None:
        """Authenticate a user with username and password.

        Returns:
            User if credentials valid, None otherwise
        """
        result = await self.session.execute(
            select(User).where(
                User.username == username.lower(),
                User.is_deleted == False,  # noqa: E712
            )
        )
        user = result.scalar_one_or_none()

        if not user:
            return None

        if not user.is_active:
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    def create_token(self, user: User) -> str:
        """Create JWT access token for a user."""
        return create_access_token(
            subject=user.id,
            additional_claims={"role": UserRole(user.role).value},
        )

    async def get_user_by_id(self, user_id: str) -> User | None:
        result = await self.session.execute(
            select(User).where(
                User.id == user_id,
                User.is_deleted == False,  # noqa: E712
            )
        )
        return result.scalar_one_or_none()
