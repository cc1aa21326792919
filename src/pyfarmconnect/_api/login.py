"""Driver login endpoint.

Endpoint:
  - /admin_vehicles/driver_app_login
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pyfarmconnect._constants import LOGIN_ENDPOINT
from pyfarmconnect._redact import redact_for_log
from pyfarmconnect._transport import Transport
from pyfarmconnect.exceptions import FarmConnectAuthenticationError
from pyfarmconnect.models.backend import LoginResponse
from pyfarmconnect.session import Session

_logger = logging.getLogger(__name__)


def build_login_request(user_name: str, password: str) -> dict[str, Any]:
    return {"user_name": user_name.strip(), "password": password}


def parse_login_response(response: dict[str, Any], user_name: str = "") -> Session:
    """Parse a login response into a :class:`Session`.

    Raises
    ------
    FarmConnectAuthenticationError
        If the backend did not report success or returned no staff id.
    """
    try:
        parsed = LoginResponse.model_validate(response)
    except ValidationError as exc:
        raise FarmConnectAuthenticationError(f"Malformed login response: {exc}", endpoint=LOGIN_ENDPOINT) from exc

    if not parsed.success:
        raise FarmConnectAuthenticationError("Login failed: invalid credentials", endpoint=LOGIN_ENDPOINT)
    if not parsed.staff_id:
        raise FarmConnectAuthenticationError("Login response missing staff_id", endpoint=LOGIN_ENDPOINT)
    return Session(staff_id=parsed.staff_id, user_name=user_name.strip())


async def login(transport: Transport, user_name: str, password: str) -> Session:
    """Authenticate a driver and return the new session."""
    if not user_name.strip() or not password:
        raise FarmConnectAuthenticationError("User name and password are required", endpoint=LOGIN_ENDPOINT)
    response = await transport.post_json(LOGIN_ENDPOINT, build_login_request(user_name, password))
    _logger.debug("Login response parsed=%s", redact_for_log(response))
    return parse_login_response(response, user_name)
