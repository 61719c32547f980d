"""
Bearer Credentials

Resolves the principal behind a bearer JWT. Session issuance (login,
registration) lives outside this service; ``create_access_token`` exists
for operators and tests.
"""

import logging
from datetime import UTC, datetime, timedelta

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from notesync.core.config import Settings, settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: str,
    expires_delta: timedelta | None = None,
    *,
    config: Settings | None = None,
) -> str:
    """
    Create a signed access token whose ``sub`` claim is the principal.

    Args:
        user_id: Principal identifier.
        expires_delta: Custom lifetime. Falls back to config default.
        config: Optional settings override (useful for testing).
    """
    config = config or settings
    expire = datetime.now(UTC) + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=config.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    claims = {"sub": user_id, "exp": expire}
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str, *, config: Settings | None = None) -> str:
    """
    Verify a token and return its principal.

    Raises:
        JWTError: Bad signature, expired token or missing subject.
    """
    config = config or settings
    payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    user_id = payload.get("sub")
    if not user_id:
        raise JWTError("Token has no subject")
    return user_id


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """FastAPI dependency: principal of the request, 401 otherwise."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(credentials.credentials)
    except JWTError as e:
        logger.warning("Rejected bearer token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
