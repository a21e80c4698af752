"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_ledger.core.config import settings
from clinic_ledger.core.security import decode_access_token
from clinic_ledger.db.session import get_db
from clinic_ledger.models.user import User
from clinic_ledger.services.auth import AuthService
from clinic_ledger.services.rbac import Permission, RBACService

# Security scheme
security = HTTPBearer(auto_error=False)

SUPPORTED_LOCALES = ("en", "ru", "uz")


async def get_current_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict | None:
    """Extract and decode the current JWT token.

    Returns:
        Decoded token payload or None
    """
    if not credentials:
        return None

    return decode_access_token(credentials.credentials)


async def get_current_user(
    token: Annotated[dict | None, Depends(get_current_token)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get the current authenticated user.

    Raises:
        HTTPException: If not authenticated or the account is disabled
    """
    if not token or token.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    auth_service = AuthService(session)
    user = await auth_service.get_user_by_id(token["sub"])

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


def require_permissions(*permissions: Permission):
    """Create a dependency that requires specific permissions.

    Usage:
        @router.post("/", dependencies=[Depends(require_permissions(Permission.CATALOG_WRITE))])

    Args:
        permissions: Required permissions (user must have all)

    Returns:
        Dependency function
    """

    async def permission_checker(
        user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if not RBACService.has_all_permissions(user.role, list(permissions)):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return permission_checker


def get_locale(request: Request) -> str:
    """Pick the error message locale from the Accept-Language header."""
    header = request.headers.get("Accept-Language", "")
    for part in header.split(","):
        tag = part.split(";")[0].strip().lower()[:2]
        if tag in SUPPORTED_LOCALES:
            return tag
    return settings.default_locale


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
