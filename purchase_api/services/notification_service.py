"""
Notification service: template rendering + dispatch via email.

Recipients and context are resolved during the request, then delivery is
handed to BackgroundTasks (fire-and-forget). Nothing here raises to the caller.
"""

from html import escape
from typing import Callable, Optional

from fastapi import BackgroundTasks
import structlog

from purchase_api.config import settings
from purchase_api.services.email_service import send_email

logger = structlog.get_logger()

Notify = Callable[[str, list[str], dict], None]

# ---------- Template registry ----------

TEMPLATES = {
    "pr_created": {
        "subject": "Purchase Request Created",
        "text": "Your request for {item_name} has been created.",
    },
    "pr_approval_needed": {
        "subject": "Approval Needed",
        "text": (
            "A purchase request for {item_name} needs your approval. "
            "Click here: {approval_link}"
        ),
        "html": (
            "<p>A purchase request for {item_name} needs your approval.</p>"
            "<p><a href=\"{approval_link}\" style=\"display: inline-block; "
            "padding: 5px 10px; font-size: 16px; color: #ffffff; "
            "background-color: #f86011; text-decoration: none; "
            "border-radius: 5px;\">Review and Approve</a></p>"
        ),
    },
    "pr_decision_confirmation": {
        "subject": "Purchase Request {decision}",
        "text": "You have {decision_verb} the request for {item_name}.",
    },
    "pr_decided": {
        "subject": "Request {decision}",
        "text": "Your request for {item_name} has been {decision_verb}.",
    },
    "login": {
        "subject": "Login Successful",
        "text": "You have successfully logged in.",
    },
    "logout": {
        "subject": "Log-Out Successful",
        "text": "You have successfully logged out.",
    },
}


def render(template_id: str, context: dict) -> tuple[str, str, Optional[str]]:
    """Return (subject, text, html) for a template. Raises KeyError on unknown ids."""
    template = TEMPLATES[template_id]
    ctx = {"approval_link": settings.FRONTEND_URL, **context}
    subject = template["subject"].format(**ctx)
    text = template["text"].format(**ctx)
    html = None
    if "html" in template:
        html = template["html"].format(**{k: escape(str(v)) for k, v in ctx.items()})
    return subject, text, html


async def send_notification(
    template_id: str,
    recipient_emails: list[str],
    context: dict,
) -> bool:
    """Render template and dispatch email. Failures are logged, never raised."""
    if template_id not in TEMPLATES:
        logger.warning("notification_template_not_found", template_id=template_id)
        return False

    emails = [e for e in recipient_emails if e]
    if not emails:
        logger.warning("notification_no_recipients", template_id=template_id)
        return False

    try:
        subject, text, html = render(template_id, context)
    except KeyError as e:
        logger.error("notification_template_render_error", template_id=template_id, missing_key=str(e))
        return False

    try:
        result = await send_email(emails, subject, text, html)
    except Exception as exc:
        logger.error("notification_dispatch_failed", template_id=template_id, error=str(exc))
        return False

    logger.info(
        "notification_sent",
        template_id=template_id,
        recipients=emails,
        success=result,
    )
    return result


def background_notifier(background_tasks: BackgroundTasks) -> Notify:
    """Adapt BackgroundTasks into the ``notify`` callable the lifecycle service takes."""

    def notify(template_id: str, recipient_emails: list[str], context: dict) -> None:
        background_tasks.add_task(
            send_notification,
            template_id=template_id,
            recipient_emails=list(recipient_emails),
            context=dict(context),
        )

    return notify
