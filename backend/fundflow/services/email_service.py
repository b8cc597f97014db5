"""
FundFlow Backend — Email Service
==================================

What:  Sends one-time passcodes for email verification.
How:   Builds an HTML EmailMessage and sends it over SMTP (STARTTLS + login)
       in Starlette's threadpool so the event loop is never blocked.
"""

import logging
import smtplib
from email.message import EmailMessage

from starlette.concurrency import run_in_threadpool

from fundflow.config import settings
from fundflow.exceptions import IntegrationError

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Confirm your registration - OTP Code"

OTP_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Confirm your registration</h2>
  <p>Your OTP code is:</p>
  <div style="font-size: 32px; font-weight: bold; color: #4CAF50; text-align: center;
              padding: 20px; background: #f5f5f5; border-radius: 8px; margin: 20px 0;">
    {otp}
  </div>
  <p>This code expires in {minutes} minutes.</p>
  <p>If you did not sign up, please ignore this email.</p>
</div>
"""


class EmailService:
    def build_otp_message(self, to_address: str, otp: str) -> EmailMessage:
        sender = settings.email_sender or settings.smtp_user
        message = EmailMessage()
        message["From"] = sender
        message["To"] = to_address
        message["Subject"] = OTP_SUBJECT
        message.set_content(
            f"Your OTP code is {otp}. It expires in {settings.otp_expire_minutes} minutes."
        )
        message.add_alternative(
            OTP_TEMPLATE.format(otp=otp, minutes=settings.otp_expire_minutes),
            subtype="html",
        )
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_user:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.send_message(message)

    async def send_otp_email(self, to_address: str, otp: str) -> None:
        """
        Raises:
            IntegrationError: SMTP not configured or the send failed
        """
        if not settings.smtp_host or not (settings.email_sender or settings.smtp_user):
            raise IntegrationError(service="email", message="Email delivery is not configured")

        message = self.build_otp_message(to_address, otp)
        try:
            await run_in_threadpool(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send OTP email: %s", e)
            raise IntegrationError(
                service="email",
                message="Failed to send the verification email",
                context={"error_type": type(e).__name__},
            )
        logger.info("OTP email sent")


email_service = EmailService()
