import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import urlencode

from estatehub.core.config import Settings

logger = logging.getLogger(__name__)

PASSWORD_RESET_SUBJECT = "Reset your EstateHub password"

PASSWORD_RESET_TEXT = """Hello {username},

You requested a password reset for your EstateHub account.

Open the link below to choose a new password (valid for {minutes} minutes):
{reset_link}

If you didn't request this, you can safely ignore this email.

-- EstateHub
"""


class EmailService:
    """Sends transactional email. Runs as a background task, never raises."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def reset_link(self, token: str) -> str:
        base = self._settings.frontend_base_url.rstrip("/")
        return f"{base}/reset-password?{urlencode({'token': token})}"

    def send_password_reset(self, to_email: str, username: str, token: str) -> None:
        body = PASSWORD_RESET_TEXT.format(
            username=username,
            minutes=self._settings.password_reset_expire_minutes,
            reset_link=self.reset_link(token),
        )
        self._send_email(to_email, PASSWORD_RESET_SUBJECT, body)

    def _send_email(self, to_email: str, subject: str, text_body: str) -> None:
        if not self._settings.smtp_enabled:
            logger.info("SMTP disabled, email %r to %s not sent", subject, to_email)
            return

        if not self._settings.smtp_host:
            logger.error("SMTP host not configured")
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._settings.smtp_from_email
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain"))

        try:
            with smtplib.SMTP(self._settings.smtp_host, self._settings.smtp_port, timeout=10) as server:
                if self._settings.smtp_use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self._settings.smtp_user and self._settings.smtp_password:
                    server.login(
                        self._settings.smtp_user,
                        self._settings.smtp_password.get_secret_value(),
                    )
                server.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s", to_email)
            return

        logger.info("Email %r sent to %s", subject, to_email)
