"""Outgoing queue entry model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OutgoingQueueEntry(BaseModel):
    """A locally created request waiting for (or recording) server confirmation."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    local_id: int
    """Creation time in epoch milliseconds, strictly increasing per queue."""
    payload: dict[str, Any] = Field(default_factory=dict)
    """Fields as submitted to the backend."""
    created_req_id: str | None = None
    """Server-assigned id once the submission was confirmed."""
    confirmed: bool = False
    """Backend accepted the submission, whether or not it echoed an id."""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("created_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed or bool(self.created_req_id)
