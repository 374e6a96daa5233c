"""
Transactional email (verification code, welcome)
Sent from a background task; logged only when SMTP is not configured
"""

import logging
import smtplib
from email.message import EmailMessage

from intellecta.core.config import (
    SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, FROM_EMAIL, FRONTEND_URL,
    VERIFICATION_CODE_TTL_MINUTES,
)

logger = logging.getLogger(__name__)


def _layout(title: str, body_html: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 560px; margin: 0 auto;">
      <div style="background: #4f46e5; color: #fff; padding: 24px; border-radius: 8px 8px 0 0;">
        <h1 style="margin: 0;">Intellecta</h1>
      </div>
      <div style="padding: 24px; border: 1px solid #e5e7eb; border-top: none; border-radius: 0 0 8px 8px;">
        <h2>{title}</h2>
        {body_html}
        <p style="color: #6b7280; font-size: 12px;">If you did not request this email you can ignore it.</p>
      </div>
    </div>
    """


def send_email(to: str, subject: str, html: str) -> bool:
    if not SMTP_HOST:
        logger.info("SMTP not configured, skipping email to %s: %s", to, subject)
        return False

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = FROM_EMAIL
    message["To"] = to
    message.set_content("This email requires an HTML capable client.")
    message.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=15) as smtp:
            smtp.starttls()
            if SMTP_USER:
                smtp.login(SMTP_USER, SMTP_PASSWORD)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email to %s: %s", to, e)
        return False

    logger.info("Email sent to %s: %s", to, subject)
    return True


def send_verification_email(to: str, name: str, code: str) -> bool:
    html = _layout(
        "Verify your email",
        f"""
        <p>Hi {name},</p>
        <p>Use the code below to verify your Intellecta account:</p>
        <p style="font-size: 32px; letter-spacing: 8px; font-weight: bold;">{code}</p>
        <p>The code expires in {VERIFICATION_CODE_TTL_MINUTES} minutes.</p>
        """,
    )
    return send_email(to, "Verify your Intellecta account", html)


def send_welcome_email(to: str, name: str) -> bool:
    html = _layout(
        f"Welcome to Intellecta, {name}!",
        f"""
        <p>Your email is verified and your account is ready.</p>
        <p>Pick a course, keep your streak alive with the daily challenge
        and climb the leaderboard.</p>
        <p><a href="{FRONTEND_URL}">Start learning</a></p>
        """,
    )
    return send_email(to, "Welcome to Intellecta", html)
