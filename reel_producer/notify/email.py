"""
Email Notifier
==============

Sends approval emails over SMTP with a fixed retry schedule.

smtplib is blocking, so each delivery runs in a worker thread.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional, List

from . import templates
from ..core.config import EmailSettings
from ..core.exceptions import NotificationError, ValidationError

logger = logging.getLogger(__name__)


CONTENT_SUBJECT = "Your Automated Content is Ready!"
APPROVAL_SUBJECT = "Content Approval Request"


class EmailNotifier:
    """Approval-email sender."""

    def __init__(self, settings: Optional[EmailSettings] = None):
        self.settings = settings or EmailSettings()

    def build_message(self, recipient: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.settings.sender_name, self.settings.username))
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        """Blocking SMTP delivery of one message."""
        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=self.settings.timeout) as smtp:
            if self.settings.use_tls:
                smtp.starttls()
            if self.settings.username and self.settings.password:
                smtp.login(self.settings.username, self.settings.password)
            smtp.send_message(message)

    async def _send_with_retry(self, recipient: str, subject: str, html: str) -> None:
        """
        Deliver a message, retrying with linear backoff.

        Raises:
            NotificationError: After every attempt fails
        """
        if not recipient:
            raise ValidationError("Recipient email is required", field="recipient")

        message = self.build_message(recipient, subject, html)
        attempts = self.settings.max_attempts
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            logger.info(f"Attempt {attempt}/{attempts}: sending email to {recipient}")
            try:
                await asyncio.to_thread(self._deliver, message)
                logger.info(f"Email sent to {recipient} on attempt {attempt}")
                return
            except (smtplib.SMTPException, OSError) as e:
                last_error = e
                logger.warning(f"Email attempt {attempt}/{attempts} failed: {e}")
                if attempt < attempts:
                    wait = attempt * self.settings.backoff_step
                    logger.info(f"Waiting {wait}s before retry")
                    await asyncio.sleep(wait)

        logger.error(f"All {attempts} email attempts failed. Last error: {last_error}")
        raise NotificationError(
            f"Email delivery failed after {attempts} attempts: {last_error}",
            recipient=recipient,
            attempts=attempts,
        )

    async def send_approval(self, recipient: str) -> None:
        """Send a plain approve/reject request."""
        await self._send_with_retry(
            recipient,
            APPROVAL_SUBJECT,
            templates.approval_request_html(self.settings.base_url),
        )

    async def send_content_package(
        self,
        recipient: str,
        video_url: str,
        caption: str,
        hashtags: List[str],
    ) -> None:
        """
        Send the generated video, caption and hashtags for approval.

        Args:
            recipient: Destination address
            video_url: Generated video URL
            caption: Caption text
            hashtags: Hashtags

        Raises:
            NotificationError: If delivery fails after all attempts
        """
        await self._send_with_retry(
            recipient,
            CONTENT_SUBJECT,
            templates.content_package_html(self.settings.base_url, video_url, caption, hashtags),
        )
