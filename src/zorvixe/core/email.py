"""
Email Service using Resend

Sends access-link notifications for the payment and onboarding workflows.
All user-supplied values are HTML-escaped before they reach a template.
"""

import asyncio
import logging
from datetime import datetime
from html import escape

import resend

from zorvixe.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

_BASE_STYLE = """
    body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
    .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
    .header { color: #0f172a; margin-bottom: 24px; }
    .button { display: inline-block; background-color: #2563eb; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }
    .summary-box { background-color: #f9fafb; border: 1px solid #e5e7eb; padding: 16px; border-radius: 8px; margin: 16px 0; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


async def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Send an email using Resend.

    When no API key is configured the email is logged instead of sent, so
    local development works without credentials.

    Returns:
        True if the email was sent (or logged), False on delivery failure
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def _format_expiry(expires_at: datetime) -> str:
    return expires_at.strftime("%d %b %Y, %H:%M UTC")


def _render(title: str, greeting_name: str, body_html: str, url: str, button: str, expires_at: datetime) -> str:
    safe_url = escape(url)
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_BASE_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{escape(title)}</h1>

            <p>Hello {escape(greeting_name)},</p>

            {body_html}

            <a href="{safe_url}" class="button">{escape(button)}</a>

            <p>Or copy and paste this link into your browser:</p>
            <p style="word-break: break-all; color: #2563eb;">{safe_url}</p>

            <p><strong>This link can be used once and expires on {_format_expiry(expires_at)}.</strong></p>

            <div class="footer">
                <p>If you were not expecting this email, you can safely ignore it.</p>
                <p>Zorvixe Technologies</p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_payment_link(
    to_email: str,
    client_name: str,
    project_name: str,
    project_id: str,
    amount: str,
    link_url: str,
    expires_at: datetime,
) -> bool:
    """Send a payment-registration link to a client."""
    body = f"""
            <p>Your payment registration link for <strong>{escape(project_name)}</strong> is ready.</p>

            <div class="summary-box">
                <p><strong>Project ID:</strong> {escape(project_id)}</p>
                <p><strong>Amount:</strong> {escape(amount)}</p>
            </div>

            <p>Use the button below to submit your payment receipt:</p>
    """
    html_content = _render(
        "Payment Registration", client_name, body, link_url, "Register Payment", expires_at
    )
    return await send_email(
        to_email=to_email,
        subject=f"Payment registration for {escape(project_name)}",
        html_content=html_content,
    )


async def send_onboarding_link(
    to_email: str,
    candidate_name: str,
    position: str,
    link_url: str,
    expires_at: datetime,
) -> bool:
    """Send a document-onboarding link to a candidate."""
    body = f"""
            <p>Welcome aboard! To complete your onboarding for the <strong>{escape(position)}</strong>
            position, please upload your certificates as a single PDF file.</p>
    """
    html_content = _render(
        "Complete Your Onboarding", candidate_name, body, link_url, "Upload Documents", expires_at
    )
    return await send_email(
        to_email=to_email,
        subject="Complete your Zorvixe onboarding",
        html_content=html_content,
    )


async def send_link_reminder(
    to_email: str,
    recipient_name: str,
    action: str,
    link_url: str,
    expires_at: datetime,
) -> bool:
    """Remind a link holder that their link is about to expire."""
    body = f"""
            <p>This is a reminder that you still need to <strong>{escape(action)}</strong>.</p>
            <p>Your link will expire soon.</p>
    """
    html_content = _render(
        "Your Link Expires Soon", recipient_name, body, link_url, "Open Link", expires_at
    )
    return await send_email(
        to_email=to_email,
        subject="Reminder: your Zorvixe link expires soon",
        html_content=html_content,
    )
