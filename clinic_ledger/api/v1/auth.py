"""Authentication endpoints."""

import logging

from fastapi import APIRouter, status

from clinic_ledger.api.deps import DbSession
from clinic_ledger.core.config import settings
from clinic_ledger.core.errors import InvalidCredentials
from clinic_ledger.core.logging import audit_logger
from clinic_ledger.schemas.auth import LoginRequest, TokenResponse
from clinic_ledger.services.auth import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Login",
    description="Authenticate with username and password",
)
async def login(
    credentials: LoginRequest,
    session: DbSession,
) -> TokenResponse:
    """Authenticate a user and return a JWT token.

    Raises:
        InvalidCredentials: If the username or password is wrong
    """
    auth_service = AuthService(session)
    user = await auth_service.authenticate(
        username=credentials.username,
        password=credentials.password,
    )

    if not user:
        logger.info(f"Failed login for {credentials.username.lower()}")
        raise InvalidCredentials("Invalid username or password")

    access_token = auth_service.create_token(user)
    audit_logger.log("login_success", user.id, "user", user.id)

    return TokenResponse(
        access_token=access_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )
