from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
import structlog

from purchase_api.config import settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as yielded by the identity provider."""

    display_name: str
    emails: tuple[str, ...] = field(default_factory=tuple)

    @property
    def email(self) -> Optional[str]:
        return self.emails[0] if self.emails else None

    @property
    def is_complete(self) -> bool:
        return bool(self.display_name) and bool(self.email)

    def to_profile(self) -> dict:
        return {
            "displayName": self.display_name,
            "emails": [{"value": e} for e in self.emails],
        }


# ---------- token generation ----------

def create_session_token(identity: Identity) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": identity.email,
        "name": identity.display_name,
        "emails": list(identity.emails),
        "iat": now,
        "exp": now + timedelta(minutes=settings.SESSION_EXPIRE_MINUTES),
        "type": "session",
    }
    return jwt.encode(claims, settings.SESSION_SECRET, algorithm=settings.JWT_ALGORITHM)


def create_state_token(state: str) -> str:
    """Short-lived token binding the OAuth ``state`` to the browser."""
    now = datetime.now(timezone.utc)
    claims = {
        "state": state,
        "iat": now,
        "exp": now + timedelta(minutes=10),
        "type": "oauth_state",
    }
    return jwt.encode(claims, settings.SESSION_SECRET, algorithm=settings.JWT_ALGORITHM)


# ---------- token verification ----------

def decode_token(token: str) -> dict:
    """Decode and verify a JWT token. Raises JWTError on failure."""
    return jwt.decode(token, settings.SESSION_SECRET, algorithms=[settings.JWT_ALGORITHM])


def verify_session_token(token: str) -> Identity:
    """Verify a session token and return the identity it carries."""
    payload = decode_token(token)
    if payload.get("type") != "session":
        raise JWTError("Not a session token")
    emails = tuple(payload.get("emails") or ())
    return Identity(display_name=payload.get("name") or "", emails=emails)


def verify_state_token(token: Optional[str], state: Optional[str]) -> bool:
    if not token or not state:
        return False
    try:
        payload = decode_token(token)
    except JWTError as e:
        logger.warning("oauth_state_invalid", error=str(e))
        return False
    return payload.get("type") == "oauth_state" and payload.get("state") == state
