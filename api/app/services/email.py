"""
Transactional email via the Resend HTTP API.

Invitation emails are fire-and-forget: failures are logged and swallowed so
an email outage never undoes the invitation that was just written. Support
requests report success or failure back to the caller.
"""

import html
import logging
import re

import requests

from app.core.config import settings

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_SUPPORT_MESSAGE_LENGTH = 10


def _send(payload: dict) -> bool:
    """POST one email to Resend. Returns True on success, False on any error (logs the reason)."""
    if not settings.resend_api_key:
        logger.warning("Email not sent (RESEND_API_KEY not configured): %s", payload.get("subject"))
        return False
    try:
        resp = requests.post(
            settings.resend_api_url,
            json=payload,
            headers={"Authorization": f"Bearer {settings.resend_api_key}"},
            timeout=10,
        )
        if resp.status_code in (200, 201, 202):
            return True
        logger.warning("Resend returned %d: %s", resp.status_code, resp.text[:200])
        return False
    except requests.RequestException as exc:
        logger.warning("Email send failed (to=%s): %s", payload.get("to"), exc)
        return False


def invitation_html(household_name: str, inviter_name: str) -> str:
    link = f"{settings.app_url.rstrip('/')}/household"
    return (
        "<div style=\"font-family: sans-serif; line-height: 1.5;\">"
        "<h2>You've been invited!</h2>"
        f"<p><strong>{html.escape(inviter_name)}</strong> has invited you to join the "
        f"<strong>\"{html.escape(household_name)}\"</strong> household on WorthWatch.</p>"
        "<p>Sign in (or create an account with this email address) to accept the invitation:</p>"
        f"<p><a href=\"{link}\">{link}</a></p>"
        "</div>"
    )


def send_invitation_email(invited_email: str, household_name: str, inviter_name: str) -> None:
    sent = _send({
        "from": settings.invitation_sender,
        "to": [invited_email],
        "subject": f"You're invited to join \"{household_name}\" on WorthWatch!",
        "html": invitation_html(household_name, inviter_name),
    })
    if sent:
        logger.info("Invitation email sent to %s for household %r", invited_email, household_name)


def send_verification_email(email: str, full_name: str, token: str) -> bool:
    link = f"{settings.app_url.rstrip('/')}/verify-email?token={token}"
    return _send({
        "from": settings.invitation_sender,
        "to": [email],
        "subject": "Verify your WorthWatch email address",
        "html": (
            f"<p>Hi {html.escape(full_name)},</p>"
            "<p>Confirm your email address to finish setting up your account:</p>"
            f"<p><a href=\"{link}\">{link}</a></p>"
            f"<p>The link expires in {settings.verification_token_expire_hours} hours.</p>"
        ),
    })


def send_support_email(topic: str, message: str, user_email: str) -> tuple[bool, str]:
    """Forward a support request to the support inbox. Returns (success, user-facing message)."""
    if not topic or not topic.strip():
        return False, "Please choose a topic."
    if not message or len(message.strip()) < MIN_SUPPORT_MESSAGE_LENGTH:
        return False, f"Message must be at least {MIN_SUPPORT_MESSAGE_LENGTH} characters."
    if not user_email or not _EMAIL_RE.match(user_email):
        return False, "A valid reply-to email address is required."

    sent = _send({
        "from": settings.support_sender,
        "to": [settings.support_inbox],
        "reply_to": user_email,
        "subject": f"Support: {topic}",
        "html": (
            f"<p><strong>From:</strong> {html.escape(user_email)}</p>"
            f"<p><strong>Topic:</strong> {html.escape(topic)}</p>"
            f"<p>{html.escape(message).replace(chr(10), '<br>')}</p>"
        ),
    })
    if not sent:
        return False, "Your message could not be sent. Please try again later."
    return True, "Thanks! Your message has been sent."
