"""
Email Service
Sends notification emails over SMTP (Gmail, Outlook, SES SMTP, ...).
Connection details come from the SMTP_* settings.
"""
import logging
import smtplib
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from app.core.config import settings

logger = logging.getLogger(__name__)


def send_email(
    to_email: str,
    subject: str,
    body_html: str,
    body_text: Optional[str] = None,
) -> bool:
    """
    Send an email using the configured SMTP server.

    Args:
        to_email: Recipient email address
        subject: Email subject
        body_html: HTML email body
        body_text: Plain text alternative (optional)

    Returns:
        bool: True if email sent successfully, False otherwise
    """
    if not settings.SMTP_HOST or not settings.SMTP_FROM_EMAIL:
        logger.warning(f"SMTP not configured, skipping email to {to_email}")
        return False

    msg = MIMEMultipart("alternative")
    msg["From"] = settings.SMTP_FROM_EMAIL
    msg["To"] = to_email
    msg["Subject"] = subject

    if body_text:
        msg.attach(MIMEText(body_text, "plain"))
    msg.attach(MIMEText(body_html, "html"))

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            server.starttls()
            if settings.SMTP_USERNAME:
                server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD or "")
            server.send_message(msg)

        logger.info(f"Email sent successfully to {to_email}")
        return True

    except smtplib.SMTPAuthenticationError as e:
        logger.error(f"SMTP authentication failed: {str(e)}")
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"SMTP error: {str(e)}")
        return False


def _due_phrase(days_until_due: int) -> str:
    if days_until_due <= 0:
        return "today"
    if days_until_due == 1:
        return "tomorrow"
    return f"in {days_until_due} days"


def send_debt_reminder_email(
    user_email: str,
    debt_name: str,
    creditor_name: str,
    amount_due: float,
    due_date: date,
    days_until_due: int,
    currency: str = settings.DEFAULT_CURRENCY,
) -> bool:
    """Remind a user that a debt payment is coming due."""
    due_display = due_date.strftime("%B %d, %Y")
    when = _due_phrase(days_until_due)

    html_body = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
            .header {{ background-color: #2563eb; color: white; padding: 20px; text-align: center; border-radius: 8px 8px 0 0; }}
            .content {{ background-color: #f8fafc; padding: 20px; border-radius: 0 0 8px 8px; }}
            .due-box {{ background-color: white; padding: 15px; border-radius: 8px; margin: 15px 0; border-left: 4px solid #f59e0b; }}
            .footer {{ text-align: center; margin-top: 20px; color: #64748b; font-size: 12px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>Payment Reminder</h1>
                <p>{debt_name}</p>
            </div>
            <div class="content">
                <p>Hello,</p>
                <p>Your payment to <strong>{creditor_name}</strong> is due <strong>{when}</strong>.</p>
                <div class="due-box">
                    <p style="font-size: 20px; font-weight: bold;">Minimum payment: {currency} {amount_due:,.2f}</p>
                    <p>Due date: {due_display}</p>
                </div>
                <p>Log the payment once it's made so your balance stays up to date.</p>
            </div>
            <div class="footer">
                <p>This is an automated email from {settings.PROJECT_NAME}.</p>
                <p>You can turn these reminders off in your notification settings.</p>
            </div>
        </div>
    </body>
    </html>
    """

    text_body = f"""
Payment Reminder - {debt_name}

Your payment to {creditor_name} is due {when}.

Minimum payment: {currency} {amount_due:,.2f}
Due date: {due_display}

This is an automated email from {settings.PROJECT_NAME}.
"""

    return send_email(
        to_email=user_email,
        subject=f"Payment due {when}: {debt_name}",
        body_html=html_body,
        body_text=text_body,
    )
