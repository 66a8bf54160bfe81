from typing import List, Optional

import httpx
import structlog

from purchase_api.config import settings

logger = structlog.get_logger()

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"

# Module-level singleton: reuses TLS connections across calls
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


def build_payload(
    to_emails: List[str],
    subject: str,
    text_content: str,
    html_content: Optional[str] = None,
    sender_name: str = settings.APP_NAME,
    sender_email: str = settings.EMAIL_FROM_ADDRESS,
) -> dict:
    payload = {
        "sender": {"name": sender_name, "email": sender_email},
        "to": [{"email": email} for email in to_emails],
        "subject": subject,
        "textContent": text_content,
    }
    if html_content:
        payload["htmlContent"] = html_content
    return payload


async def send_email(
    to_emails: List[str],
    subject: str,
    text_content: str,
    html_content: Optional[str] = None,
) -> bool:
    """
    Send email using the Brevo REST API.

    Single attempt. Returns True if the message was accepted by Brevo,
    False otherwise; never raises.
    """
    if not settings.BREVO_API_KEY:
        logger.warning("brevo_api_key_missing", message="Email sending skipped", to=to_emails)
        return False

    if not to_emails:
        logger.warning("email_no_recipients")
        return False

    headers = {
        "accept": "application/json",
        "api-key": settings.BREVO_API_KEY,
        "content-type": "application/json",
    }
    payload = build_payload(to_emails, subject, text_content, html_content)

    try:
        response = await get_http_client().post(BREVO_API_URL, headers=headers, json=payload)
    except httpx.HTTPError as exc:
        logger.error("email_network_error", error=str(exc), to=to_emails, subject=subject)
        return False

    if response.status_code in (201, 202):
        logger.info(
            "email_sent_brevo",
            to=to_emails,
            subject=subject,
            message_id=response.json().get("messageId"),
        )
        return True

    logger.error(
        "email_failed_brevo",
        status_code=response.status_code,
        response=response.text[:500],
        to=to_emails,
        subject=subject,
    )
    return False
