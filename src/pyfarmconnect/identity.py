"""Staff identity resolution."""

from __future__ import annotations

import logging
from collections.abc import Callable

from pyfarmconnect._constants import STAFF_ID_KEY
from pyfarmconnect.exceptions import FarmConnectStorageError
from pyfarmconnect.storage import KeyValueStore

_logger = logging.getLogger(__name__)


class StaffIdentityResolver:
    """Resolves the acting staff id without touching the network.

    Precedence: active session, runtime override, persisted ``STAFF_ID``.
    An empty string means "not authenticated"; callers skip network and
    stream work in that case.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        *,
        session_staff_id: Callable[[], str | None] = lambda: None,
        override: str | None = None,
    ) -> None:
        self._storage = storage
        self._session_staff_id = session_staff_id
        self._override = override

    def _stored(self) -> str | None:
        try:
            return self._storage.get_item(STAFF_ID_KEY)
        except FarmConnectStorageError:
            _logger.debug("Stored staff id unreadable", exc_info=True)
            return None

    def resolve(self) -> str:
        for candidate in (self._session_staff_id(), self._override):
            value = (candidate or "").strip()
            if value:
                return value
        return (self._stored() or "").strip()

    def remember(self, staff_id: str) -> None:
        """Persist *staff_id* for later launches; failures are logged."""
        value = staff_id.strip()
        if not value:
            return
        try:
            self._storage.set_item(STAFF_ID_KEY, value)
        except FarmConnectStorageError:
            _logger.warning("Failed to persist staff id", exc_info=True)

    def forget(self) -> None:
        try:
            self._storage.remove_item(STAFF_ID_KEY)
        except FarmConnectStorageError:
            _logger.warning("Failed to remove stored staff id", exc_info=True)
