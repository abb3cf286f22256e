"""
Result notification for reviewed submissions.

The channel is chosen by NOTIFICATION_CHANNEL:

- "log" (default): the composed message is logged and returned; nothing is
  transmitted. This keeps the send step an explicit simulation.
- "smtp": the same message is delivered over SMTP with STARTTLS.

No "sent" flag is stored on the submission.
"""
import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from psychevaluator.core.config import settings
from psychevaluator.core.error_responses import ErrorMessages
from psychevaluator.models import AnalysisStatus, TestSubmission

# SMTP connection timeout in seconds
SMTP_TIMEOUT_SECONDS = 10

logger = logging.getLogger(__name__)

RESULT_SUBJECT_TEMPLATE = "Your results for {test_title}"

RESULT_TEXT_TEMPLATE = """Hello {full_name},

Thank you for taking "{test_title}". Our team has reviewed your responses.

{notes}

---
This is an automated message from {app_name}. Please do not reply to this message.
"""


@dataclass(frozen=True)
class NotificationMessage:
    """A composed result notification."""

    recipient: str
    subject: str
    body: str


@dataclass(frozen=True)
class NotificationReceipt:
    """What happened to a notification."""

    message: NotificationMessage
    channel: str
    delivered: bool


class NotificationDeliveryError(Exception):
    """The configured channel could not deliver the message."""


def notify_rejection_reason(submission: TestSubmission) -> Optional[str]:
    """
    Why a submission may not be notified yet, or None if it may.

    Notes are checked first, then the status.
    """
    if not (submission.manual_analysis_notes or "").strip():
        return ErrorMessages.NOTIFY_REQUIRES_NOTES
    status = AnalysisStatus(submission.analysis_status)
    if status != AnalysisStatus.MANUAL_REVIEW_COMPLETED:
        return ErrorMessages.notify_requires_status(status.value)
    return None


def compose_result_message(
    submission: TestSubmission, test_title: Optional[str]
) -> NotificationMessage:
    """Build the recipient, subject, and plain-text body for a reviewed submission."""
    title = test_title or "your test"
    return NotificationMessage(
        recipient=submission.email,
        subject=RESULT_SUBJECT_TEMPLATE.format(test_title=title),
        body=RESULT_TEXT_TEMPLATE.format(
            full_name=submission.full_name,
            test_title=title,
            notes=(submission.manual_analysis_notes or "").strip(),
            app_name=settings.APP_NAME,
        ),
    )


def _send_smtp(message: NotificationMessage) -> None:
    msg = MIMEText(message.body, "plain")
    msg["Subject"] = message.subject
    msg["From"] = formataddr((settings.SMTP_FROM_NAME, settings.SMTP_FROM_EMAIL))
    # formataddr encodes the address to prevent header injection
    msg["To"] = formataddr(("", message.recipient))

    with smtplib.SMTP(
        settings.SMTP_HOST, settings.SMTP_PORT, timeout=SMTP_TIMEOUT_SECONDS
    ) as server:
        server.starttls()
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)


async def send_result_notification(
    message: NotificationMessage,
    submission_id: str,
    channel: Optional[str] = None,
) -> NotificationReceipt:
    """
    Send (or, on the "log" channel, record) a result notification.

    Args:
        message: The composed notification
        submission_id: Submission the message is about, for log correlation
        channel: Override for NOTIFICATION_CHANNEL

    Returns:
        NotificationReceipt; ``delivered`` is False on the simulated channel

    Raises:
        NotificationDeliveryError: If SMTP delivery fails
    """
    channel = channel or settings.NOTIFICATION_CHANNEL
    log_extra = {"submission_id": submission_id}

    if channel != "smtp":
        logger.info(
            f"Simulated notification for submission {submission_id} "
            f"to {message.recipient}: {message.subject}",
            extra=log_extra,
        )
        logger.debug(f"Notification body:\n{message.body}", extra=log_extra)
        return NotificationReceipt(message=message, channel="log", delivered=False)

    try:
        # smtplib blocks; keep it off the event loop
        await asyncio.to_thread(_send_smtp, message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(
            f"SMTP error sending notification for submission {submission_id} "
            f"to {message.recipient}: {e}",
            extra=log_extra,
        )
        raise NotificationDeliveryError(str(e)) from e

    logger.info(
        f"Notification for submission {submission_id} sent to {message.recipient}",
        extra=log_extra,
    )
    return NotificationReceipt(message=message, channel="smtp", delivered=True)
