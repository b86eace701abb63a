"""
Transactional email (Resend).

Without ``RESEND_API_KEY`` the message is logged instead of sent, so local
development and tests never need network access.
"""

import logging
from html import escape

import resend

from app.core.config import EMAIL_FROM, RESEND_API_KEY, VERIFICATION_CODE_TTL

logger = logging.getLogger(__name__)


def _verification_html(code: str) -> str:
    minutes = int(VERIFICATION_CODE_TTL.total_seconds() // 60)
    safe_code = escape(code)
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: #681618; text-align: center;">Welcome to Wheeliz!</h2>
        <p>Hello,</p>
        <p>Thank you for signing up. Please use the following verification code to complete your registration:</p>
        <div style="background-color: #f4f4f4; padding: 15px; text-align: center; font-size: 24px; font-weight: bold; letter-spacing: 5px;">
            {safe_code}
        </div>
        <p>This code will expire in {minutes} minutes.</p>
        <p>If you didn't create an account, you can safely ignore this email.</p>
        <p>Best regards,<br>The Wheeliz Team</p>
    </div>
    """


class Mailer:
    def __init__(self, api_key: str | None = RESEND_API_KEY, sender: str = EMAIL_FROM):
        self.api_key = api_key
        self.sender = sender

    def send(self, to_email: str, subject: str, html_content: str) -> bool:
        """Send one email. Returns False (and logs) on delivery failure."""
        if not self.api_key:
            logger.warning("RESEND_API_KEY not set - logging email instead of sending")
            logger.info("EMAIL TO: %s | SUBJECT: %s", to_email, subject)
            return True

        resend.api_key = self.api_key
        params: resend.Emails.SendParams = {
            "from": self.sender,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        try:
            email = resend.Emails.send(params)
        except Exception as e:
            logger.error("Failed to send email to %s: %s", to_email, e)
            return False

        logger.info("Email sent to %s, id: %s", to_email, email["id"])
        return True

    def send_verification_email(self, to_email: str, code: str) -> bool:
        return self.send(
            to_email=to_email,
            subject="Verify your Wheeliz account",
            html_content=_verification_html(code),
        )
