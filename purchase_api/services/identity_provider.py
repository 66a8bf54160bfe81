"""
Google OAuth 2.0 authorization-code flow.

The provider is treated as a black box: it sends the browser to Google,
exchanges the returned code for an access token and reads the userinfo
profile, yielding an ``Identity``.
"""

import secrets
from typing import Optional
from urllib.parse import urlencode

import httpx
import structlog

from purchase_api.config import settings
from purchase_api.services.auth_service import Identity

logger = structlog.get_logger()

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SCOPES = "openid email profile"

_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, connect=5.0),
        )
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None and not _http_client.is_closed:
        await _http_client.aclose()
    _http_client = None


class IdentityProviderError(Exception):
    """The provider refused the code or returned an unusable profile."""


def new_state() -> str:
    return secrets.token_urlsafe(24)


def build_authorization_url(state: str) -> str:
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID or "",
        "redirect_uri": settings.oauth_redirect_uri,
        "response_type": "code",
        "scope": SCOPES,
        "state": state,
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def identity_from_userinfo(userinfo: dict) -> Identity:
    email = userinfo.get("email")
    name = userinfo.get("name") or email
    if not email:
        raise IdentityProviderError("Provider profile has no email address")
    return Identity(display_name=name, emails=(email,))


async def exchange_code_for_identity(code: str) -> Identity:
    """Trade an authorization code for the caller's identity."""
    client = get_http_client()
    try:
        token_resp = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.GOOGLE_CLIENT_ID or "",
                "client_secret": settings.GOOGLE_CLIENT_SECRET or "",
                "redirect_uri": settings.oauth_redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        if token_resp.status_code != 200:
            logger.warning(
                "oauth_token_exchange_failed",
                status_code=token_resp.status_code,
                response=token_resp.text[:500],
            )
            raise IdentityProviderError("Token exchange failed")

        access_token = token_resp.json().get("access_token")
        userinfo_resp = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
    except httpx.HTTPError as exc:
        logger.warning("oauth_network_error", error=str(exc))
        raise IdentityProviderError(str(exc)) from exc

    if userinfo_resp.status_code != 200:
        logger.warning("oauth_userinfo_failed", status_code=userinfo_resp.status_code)
        raise IdentityProviderError("Userinfo request failed")

    return identity_from_userinfo(userinfo_resp.json())
