"""Base model for farm-connect backend payloads.

Every backend schema inherits from :class:`FarmBaseModel` which provides:

* A ``model_validator(mode="before")`` that drops sentinel values
  (``None``, ``""``, ``"null"``, ``"undefined"``) so field defaults apply.
* A ``raw`` dict that captures the original payload.

Identifier fields arrive as strings or numbers depending on the endpoint;
:data:`LooseStr` coerces either to a stripped string.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from pyfarmconnect.ingestion.normalize import safe_str

LooseStr = Annotated[str | None, BeforeValidator(safe_str)]
"""Annotated type that coerces ids/numbers/strings to a stripped ``str`` or ``None``."""


class FarmBaseModel(BaseModel):
    """Base for backend payload models.

    Handles:
    * sentinel values → dropped so the field default is used instead
    * stashes the original backend dict in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original backend dict."""

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and safe_str(value) is None:
                continue
            cleaned[key] = value
        # Keep an explicit raw= from kwargs construction.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
