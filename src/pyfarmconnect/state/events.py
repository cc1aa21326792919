"""Notifications emitted by the request store."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from pyfarmconnect.models.request import Request


class NotificationKind(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    COMPLETION_PENDING = "completion_pending"
    COMPLETED = "completed"


class RequestNotification(BaseModel):
    """A passive notice about a change the user may want to see."""

    model_config = ConfigDict(frozen=True)

    kind: NotificationKind
    request: Request
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class PendingCompletion(BaseModel):
    """A terminal stream update waiting for user acknowledgment.

    The visible request keeps its current status until the completion is
    acknowledged.
    """

    model_config = ConfigDict(frozen=True)

    request: Request
    """The stream patch to apply on acknowledgment."""
    received_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def request_id(self) -> str:
        return self.request.id
