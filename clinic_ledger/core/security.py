"""Password hashing and bearer tokens for staff and patient logins."""

from datetime import timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from clinic_ledger.core.config import settings
from clinic_ledger.utils.time import utc_now

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    subject: str,
    token_type: str = "access",
    expires_delta: timedelta | None = None,
    additional_claims: dict | None = None,
) -> str:
    """Sign a token for a user.

    Args:
        subject: User id, stored as ``sub``
        token_type: Value of the ``type`` claim; the API accepts only "access"
        expires_delta: Lifetime, defaults to ``access_token_expire_minutes``
        additional_claims: Extra claims such as the user's ``role``

    Returns:
        Encoded JWT
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    issued_at = utc_now()
    claims = {
        "sub": subject,
        "type": token_type,
        "exp": issued_at + expires_delta,
        "iat": issued_at,
    }
    if additional_claims:
        claims.update(additional_claims)

    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> dict | None:
    """Return the token's claims, or None when it is expired or forged."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
