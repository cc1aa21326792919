"""Client configuration for pyfarmconnect."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyfarmconnect._constants import (
    BASE_URL,
    RECONNECT_BASE_DELAY,
    RECONNECT_MAX_ATTEMPT,
    RECONNECT_MAX_DELAY,
)
from pyfarmconnect.exceptions import FarmConnectConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class FarmConnectConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        REST base URL. The event stream URL is derived from it by
        scheme substitution (``https`` → ``wss``, ``http`` → ``ws``).
    staff_id : str or None
        Runtime staff identity override. Used when no login session is
        active and takes precedence over a persisted ``STAFF_ID``.
    storage_path : str or None
        Path of the JSON file backing local durable storage. ``None``
        keeps storage in memory for the lifetime of the client.
    stream_enabled : bool
        Start the live event stream listeners from ``start_streams``.
    reconnect_base_delay : float
        First reconnect delay in seconds; doubled per consecutive failure.
    reconnect_max_delay : float
        Ceiling for the reconnect delay in seconds.
    reconnect_max_attempt : int
        Cap for the consecutive-failure counter used in the backoff exponent.
    flush_queue_on_connect : bool
        Resubmit queued outgoing requests whenever an event stream opens.
    api_trace_enabled : bool
        Log redacted request/response bodies at DEBUG level.
    """

    base_url: str = BASE_URL
    staff_id: str | None = None
    storage_path: str | None = None
    stream_enabled: bool = True
    reconnect_base_delay: float = RECONNECT_BASE_DELAY
    reconnect_max_delay: float = RECONNECT_MAX_DELAY
    reconnect_max_attempt: int = RECONNECT_MAX_ATTEMPT
    flush_queue_on_connect: bool = False
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        base = (self.base_url or "").strip().rstrip("/")
        if not base:
            raise FarmConnectConfigError("base_url must be non-empty")
        object.__setattr__(self, "base_url", base)
        if self.reconnect_base_delay < 0 or self.reconnect_max_delay < 0:
            raise FarmConnectConfigError("reconnect delays must be non-negative")
        if self.reconnect_max_attempt < 0:
            raise FarmConnectConfigError("reconnect_max_attempt must be non-negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> FarmConnectConfig:
        """Create configuration from environment variables.

        Reads ``FARMCONNECT_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        FarmConnectConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FARMCONNECT_BASE_URL": "base_url",
            "FARMCONNECT_STAFF_ID": "staff_id",
            "FARMCONNECT_STORAGE_PATH": "storage_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in (
            ("FARMCONNECT_RECONNECT_BASE_DELAY", "reconnect_base_delay"),
            ("FARMCONNECT_RECONNECT_MAX_DELAY", "reconnect_max_delay"),
        ):
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise FarmConnectConfigError(f"{env_key} must be a number, got {val!r}") from exc

        if "stream_enabled" not in overrides:
            config_kwargs["stream_enabled"] = _env_bool(env.get("FARMCONNECT_STREAM_ENABLED"), True)

        if "flush_queue_on_connect" not in overrides:
            config_kwargs["flush_queue_on_connect"] = _env_bool(
                env.get("FARMCONNECT_FLUSH_QUEUE_ON_CONNECT"),
                False,
            )

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("FARMCONNECT_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
