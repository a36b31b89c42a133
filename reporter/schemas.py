"""Pydantic schemas for the report API and outbound notifications."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ReportKind = Literal["manual", "automatic"]


class ReportSubmission(BaseModel):
    """Incoming report posted by the extension."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    kind: ReportKind = Field(..., alias="type")
    message: str
    ext_version: str = Field(..., alias="extVersion")

    @property
    def is_automatic(self) -> bool:
        return self.kind == "automatic"


class NotificationPayload(BaseModel):
    """Notification handed to the sink."""

    model_config = ConfigDict(frozen=True)

    sender_name: str
    avatar_url: str
    title: str
    description: str
    footer: str


class HealthResponse(BaseModel):
    """Healthcheck response model."""

    status: Literal["ok"] = "ok"
    app: str
    cached_reports: int = 0
