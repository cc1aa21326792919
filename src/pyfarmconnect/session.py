"""Session state after a successful driver login."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Session(BaseModel):
    """Identity of the logged-in driver.

    Parameters
    ----------
    staff_id : str
        Backend staff identifier; scopes every query and stream filter.
    user_name : str
        Login name the session was created with.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the session
        was created. Defaults to *now* if not provided.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    staff_id: str
    user_name: str = ""
    created_at: float = Field(default_factory=time.monotonic)

    @field_validator("staff_id")
    @classmethod
    def _staff_id_non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("staff_id must be non-empty")
        return value
