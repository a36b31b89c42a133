"""Notification payload construction."""

from __future__ import annotations

from reporter.schemas import NotificationPayload, ReportSubmission

AUTOMATIC_TITLE = "Automatic Report"
MANUAL_TITLE = "Manual Report"


def build_payload(submission: ReportSubmission, sender_name: str, avatar_url: str) -> NotificationPayload:
    """Map a report to the notification sent to the webhook."""
    return NotificationPayload(
        sender_name=sender_name,
        avatar_url=avatar_url,
        title=AUTOMATIC_TITLE if submission.is_automatic else MANUAL_TITLE,
        description=submission.message,
        footer=f"v{submission.ext_version}",
    )
