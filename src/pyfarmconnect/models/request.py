"""Normalized request model shared by every ingestion path."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class RequestKind(enum.StrEnum):
    FUEL = "fuel"
    LOGISTICS = "logistics"


class RequestStatus(enum.StrEnum):
    """Request lifecycle status.

    Transitions only move forward: ``pending`` → ``approved`` → ``done``.
    """

    PENDING = "pending"
    APPROVED = "approved"
    DONE = "done"

    @classmethod
    def normalize(cls, value: Any) -> RequestStatus:
        """Map a free-form backend status onto the three known states."""
        text = str(value if value is not None else "").strip().lower()
        if text == "approved":
            return cls.APPROVED
        if text in {"done", "completed", "complete"}:
            return cls.DONE
        return cls.PENDING

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self is RequestStatus.DONE


_STATUS_RANK: dict[RequestStatus, int] = {
    RequestStatus.PENDING: 0,
    RequestStatus.APPROVED: 1,
    RequestStatus.DONE: 2,
}


class Request(BaseModel):
    """A fuel or logistics request as shown in the driver's request list.

    ``None`` on any optional field means "not known"; merges never let a
    ``None`` overwrite a known value.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    id: str
    """Stable identity key (plan id, or a synthesized composite key)."""
    kind: RequestKind
    status: RequestStatus = RequestStatus.PENDING
    title: str | None = None
    activity: str | None = None
    """Backend activity label, echoed back on status updates."""
    request_ref: str | None = None
    """Backend plan id, required for status mutations."""
    request_id: str | None = None
    """Server-assigned request id, required for status mutations."""
    note: str | None = None
    location: str | None = None
    date: str | None = None
    time: str | None = None
    amount: str | None = None
    vehicle_id: str | None = None
    vehicle_number: str | None = None

    @field_validator("id")
    @classmethod
    def _id_non_empty(cls, value: str) -> str:
        key = value.strip()
        if not key:
            raise ValueError("id must be non-empty")
        return key

    @property
    def is_done(self) -> bool:
        return self.status is RequestStatus.DONE

    def defined_fields(self) -> dict[str, Any]:
        """Fields carrying a value, i.e. the patch this record contributes to a merge."""
        return self.model_dump(exclude_none=True)
