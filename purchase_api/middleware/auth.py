from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
import structlog

from purchase_api.config import settings
from purchase_api.errors import Unauthenticated
from purchase_api.services.auth_service import Identity, verify_session_token

logger = structlog.get_logger()

security = HTTPBearer(auto_error=False)


async def get_optional_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Identity]:
    """Resolve the caller from the bearer header or the session cookie, if any."""
    token = credentials.credentials if credentials else request.cookies.get(
        settings.SESSION_COOKIE_NAME
    )
    if not token:
        return None
    try:
        identity = verify_session_token(token)
    except JWTError as e:
        logger.warning("session_token_invalid", error=str(e))
        return None
    return identity if identity.is_complete else None


async def get_current_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    """FastAPI dependency: the authenticated caller, or 401."""
    if identity is None:
        raise Unauthenticated()
    return identity
