"""
Delivery channels for password reset codes.
"""
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from agro_auth.core.config import settings
from agro_auth.core.security import mask_email
from agro_auth.logging import get_logger

logger = get_logger("mailer")

OTP_EMAIL_SUBJECT = "{app_name} - Password Reset Code"

OTP_EMAIL_BODY = """
<html>
    <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2>Password Reset</h2>
        <p>We received a request to reset the password for your account.</p>
        <p>Your verification code is: <strong style="letter-spacing: 8px;">{otp}</strong></p>
        <p>This code is valid for {ttl_minutes} minutes.</p>
        <p>If you didn't request a password reset, please ignore this email.</p>
        <hr>
        <p><small>{app_name} - Please do not reply to this email</small></p>
    </body>
</html>
"""


class CodeDeliveryChannel(Protocol):
    async def send(self, email: str, otp: str) -> bool: ...


def build_otp_message(email: str, otp: str, from_email: str) -> MIMEMultipart:
    msg = MIMEMultipart()
    msg['From'] = f"{settings.SMTP_FROM_NAME} <{from_email}>"
    msg['To'] = email
    msg['Subject'] = OTP_EMAIL_SUBJECT.format(app_name=settings.APP_NAME)
    body = OTP_EMAIL_BODY.format(
        otp=otp,
        ttl_minutes=settings.RESET_CODE_TTL_MINUTES,
        app_name=settings.APP_NAME,
    )
    msg.attach(MIMEText(body, 'html'))
    return msg


class SmtpCodeDelivery:
    """Sends the code by e-mail over SMTP with STARTTLS."""

    def __init__(
        self,
        server: str = None,
        port: int = None,
        username: str = None,
        password: str = None,
        from_email: str = None,
        timeout: float = None,
    ):
        self.server = server or settings.SMTP_SERVER
        self.port = port or settings.SMTP_PORT
        self.username = username or settings.SMTP_USERNAME
        self.password = password or settings.SMTP_PASSWORD
        self.from_email = from_email or settings.SMTP_FROM_EMAIL or self.username
        self.timeout = timeout or settings.SMTP_TIMEOUT

    async def send(self, email: str, otp: str) -> bool:
        if not self.username or not self.password:
            logger.error("SMTP credentials not configured", exc_info=False)
            return False
        try:
            await run_in_threadpool(self._send_sync, email, otp)
        except (smtplib.SMTPException, OSError, UnicodeError) as e:
            logger.error("Failed to send reset code", exc_info=False, email=mask_email(email), error=str(e))
            return False
        logger.info("Reset code e-mail sent", email=mask_email(email))
        return True

    def _send_sync(self, email: str, otp: str) -> None:
        msg = build_otp_message(email, otp, self.from_email)
        with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
            server.starttls()
            server.login(self.username, self.password)
            server.sendmail(self.from_email, email, msg.as_string())


class ConsoleCodeDelivery:
    """Simulated delivery for local development: writes the code to the log."""

    async def send(self, email: str, otp: str) -> bool:
        logger.info(
            "=== SIMULATED EMAIL ===",
            to=email,
            subject=OTP_EMAIL_SUBJECT.format(app_name=settings.APP_NAME),
            code=otp,
        )
        return True


def get_delivery_channel() -> CodeDeliveryChannel:
    if settings.EMAIL_BACKEND.lower() == "console":
        return ConsoleCodeDelivery()
    return SmtpCodeDelivery()
