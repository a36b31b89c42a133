"""Dedup-and-dispatch decision for incoming reports."""

from __future__ import annotations

import asyncio
import logging
from typing import Literal, Protocol

from reporter.dedup import DedupCache, dedup_key
from reporter.payload import build_payload
from reporter.schemas import NotificationPayload, ReportSubmission

LOGGER = logging.getLogger(__name__)

DispatchOutcome = Literal["dispatched", "suppressed"]


class NotificationFailed(Exception):
    """The notification sink did not deliver the payload."""


class NotificationSink(Protocol):
    """Delivers one notification; raises NotificationFailed on failure."""

    async def send(self, payload: NotificationPayload) -> None:
        ...


class ReportDispatcher:
    """Decides whether a report is forwarded and forwards it.

    Automatic reports are checked against the shared ``DedupCache``; only the
    first report for a key reaches the sink. Manual reports skip the cache.
    The key is recorded before the sink is called and stays recorded if the
    sink fails, so a failed automatic report is not delivered on resubmission.
    """

    def __init__(
        self,
        cache: DedupCache,
        sink: NotificationSink,
        sender_name: str,
        avatar_url: str,
    ) -> None:
        self.cache = cache
        self.sink = sink
        self.sender_name = sender_name
        self.avatar_url = avatar_url
        self._lock = asyncio.Lock()

    @property
    def cache_locked(self) -> bool:
        """True while a check-and-insert is in progress."""
        return self._lock.locked()

    async def _claim(self, key: str) -> bool:
        """Atomically record key; False when it was already present."""
        async with self._lock:
            if self.cache.contains(key):
                return False
            self.cache.insert(key)
            return True

    async def handle(self, submission: ReportSubmission) -> DispatchOutcome:
        """Forward the report unless it is a repeated automatic report."""
        if submission.is_automatic:
            key = dedup_key(submission)
            if not await self._claim(key):
                LOGGER.info(
                    "report suppressed",
                    extra={
                        "event": "report_suppressed",
                        "context": {"ext_version": submission.ext_version},
                    },
                )
                return "suppressed"

        payload = build_payload(submission, self.sender_name, self.avatar_url)
        try:
            await self.sink.send(payload)
        except NotificationFailed as exc:
            LOGGER.error(
                "notification failed",
                extra={
                    "event": "notification_failed",
                    "context": {"kind": submission.kind, "ext_version": submission.ext_version, "error": str(exc)},
                },
            )
            raise

        LOGGER.info(
            "report dispatched",
            extra={
                "event": "report_dispatched",
                "context": {"kind": submission.kind, "ext_version": submission.ext_version},
            },
        )
        return "dispatched"
