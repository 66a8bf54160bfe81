from html import escape
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
import structlog

from purchase_api.config import settings
from purchase_api.middleware.auth import get_current_identity, get_optional_identity
from purchase_api.schemas.auth import UserResponse
from purchase_api.services.auth_service import (
    Identity,
    create_session_token,
    create_state_token,
    verify_state_token,
)
from purchase_api.services.identity_provider import (
    IdentityProviderError,
    build_authorization_url,
    exchange_code_for_identity,
    new_state,
)
from purchase_api.services.notification_service import background_notifier

logger = structlog.get_logger()

router = APIRouter()


def _frontend(path: str = "") -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}{path}"


@router.get("/auth/google")
async def login_with_google():
    """Send the browser to the Google consent screen."""
    state = new_state()
    response = RedirectResponse(build_authorization_url(state))
    response.set_cookie(
        settings.OAUTH_STATE_COOKIE_NAME,
        create_state_token(state),
        max_age=600,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.get("/auth/callback")
async def auth_callback(
    request: Request,
    background_tasks: BackgroundTasks,
    code: Optional[str] = None,
    state: Optional[str] = None,
):
    """Complete the OAuth flow, open a session and notify the user."""
    failure = RedirectResponse(_frontend())
    failure.delete_cookie(settings.OAUTH_STATE_COOKIE_NAME)

    state_cookie = request.cookies.get(settings.OAUTH_STATE_COOKIE_NAME)
    if not code or not verify_state_token(state_cookie, state):
        logger.warning("oauth_callback_rejected", has_code=bool(code))
        return failure

    try:
        identity = await exchange_code_for_identity(code)
    except IdentityProviderError as e:
        logger.warning("oauth_callback_failed", error=str(e))
        return failure

    response = RedirectResponse(_frontend("/choose-role"))
    response.delete_cookie(settings.OAUTH_STATE_COOKIE_NAME)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        create_session_token(identity),
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    background_notifier(background_tasks)("login", [identity.email], {})

    logger.info("user_logged_in", email=identity.email)
    return response


@router.get("/logout")
async def logout(
    background_tasks: BackgroundTasks,
    identity: Optional[Identity] = Depends(get_optional_identity),
):
    response = RedirectResponse(_frontend("/"))
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    if identity is not None:
        background_notifier(background_tasks)("logout", [identity.email], {})
        logger.info("user_logged_out", email=identity.email)
    return response


@router.get("/user", response_model=UserResponse)
async def get_user(identity: Identity = Depends(get_current_identity)):
    """Get the authenticated caller's identity."""
    return UserResponse.model_validate(identity.to_profile())


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(identity: Identity = Depends(get_current_identity)):
    return f"<h1>Welcome {escape(identity.display_name)}</h1>"
