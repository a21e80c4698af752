"""Identity lookups and user registration."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.errors import NoPermission, UserAlreadyExists, UserNotFound
from clinic_ledger.core.logging import audit_logger
from clinic_ledger.core.security import hash_password
from clinic_ledger.db.queries import exists_active, get_active, list_active
from clinic_ledger.models.user import User, UserRole

logger = logging.getLogger(__name__)


class IdentityService:
    """Resolves users and their roles for the booking and ledger services."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_user(self, user_id: str) -> User | None:
        return await get_active(self.session, User, user_id)

    async def resolve_user(self, user_id: str) -> User:
        """Get a non-deleted user or raise UserNotFound."""
        user = await self.get_user(user_id)
        if not user:
            raise UserNotFound(f"User {user_id} not found")
        return user

    async def resolve_with_role(self, user_id: str, role: UserRole) -> User:
        """Resolve a user that must hold ``role``.

        Raises:
            UserNotFound: If the user does not exist
            NoPermission: If the user exists with another role
        """
        user = await self.resolve_user(user_id)
        if user.role != role:
            raise NoPermission(f"User {user_id} is not a {role.value}")
        return user

    async def register(
        self,
        username: str,
        password: str,
        full_name: str,
        role: UserRole = UserRole.PATIENT,
        created_by: str | None = None,
    ) -> User:
        """Create a user with a unique username."""
        username = username.lower()
        if await exists_active(self.session, User, username=username):
            raise UserAlreadyExists(f"Username {username} is taken")

        user = User(
            username=username,
            full_name=full_name,
            hashed_password=hash_password(password),
            role=role,
            is_active=True,
            created_by=created_by,
        )
        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)

        audit_logger.log(
            action="user_registered",
            actor_id=created_by,
            entity_type="user",
            entity_id=user.id,
            metadata={"role": UserRole(user.role).value},
        )
        return user

    async def list_users(
        self,
        role: UserRole | None = None,
        search: str | None = None,
        page: int = 0,
        size: int = 20,
    ) -> list[User]:
        criteria = []
        if role is not None:
            criteria.append(User.role == role)
        if search:
            criteria.append(User.full_name.ilike(f"%{search}%"))
        return list(
            await list_active(
                self.session, User, *criteria, order_by=User.full_name, page=page, size=size
            )
        )
