# ===== booking_engine/services/email/email_service.py =====
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional
import logging

from booking_engine.config.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class EmailAttachment:
    filename: str
    content: str
    mime_subtype: str = "calendar"
    method: Optional[str] = None  # iTIP method for calendar attachments


class EmailService:
    """Service for sending emails via SMTP"""

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except Exception as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def build_message(
            to_email: str,
            subject: str,
            plain_text: str,
            attachments: Optional[List[EmailAttachment]] = None
    ) -> MIMEMultipart:
        msg = MIMEMultipart("mixed")
        msg["Subject"] = subject
        msg["From"] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
        msg["To"] = to_email
        msg.attach(MIMEText(plain_text, "plain", "utf-8"))

        for attachment in attachments or []:
            part = MIMEText(attachment.content, attachment.mime_subtype, "utf-8")
            part.add_header("Content-Disposition", "attachment", filename=attachment.filename)
            if attachment.method:
                part.set_param("method", attachment.method)
            msg.attach(part)

        return msg

    @staticmethod
    def send_email(
            to_email: str,
            subject: str,
            plain_text: str,
            attachments: Optional[List[EmailAttachment]] = None
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            plain_text: Message body
            attachments: Files to attach (e.g. .ics invitations)

        Returns:
            bool: True if sent, False if email delivery is disabled
        """
        if not settings.EMAIL_ENABLED:
            logger.info(f"Email disabled, not sending '{subject}' to {to_email}")
            return False

        msg = EmailService.build_message(to_email, subject, plain_text, attachments)

        try:
            server = EmailService._get_smtp_connection()
            server.sendmail(settings.EMAIL_FROM_ADDRESS, [to_email], msg.as_string())
            server.quit()

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise
