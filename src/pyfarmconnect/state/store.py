"""Request store.

This is the only component allowed to replace the request collection. It
applies the pure functions from :mod:`pyfarmconnect.state.merge` and tells
listeners about the result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from pyfarmconnect.models.request import Request, RequestStatus
from pyfarmconnect.state.events import NotificationKind, PendingCompletion, RequestNotification
from pyfarmconnect.state.merge import RequestCollection, find, reconcile_snapshot, upsert

_logger = logging.getLogger(__name__)

ChangeListener = Callable[[RequestCollection], None]
NotificationListener = Callable[[RequestNotification], None]


class RequestStore:
    """Owner of the merged, most-recent-first request collection.

    Invariant: no two entries share an ``id``.
    """

    def __init__(
        self,
        initial: Iterable[Request] = (),
        *,
        on_change: ChangeListener | None = None,
        on_notification: NotificationListener | None = None,
    ) -> None:
        self._requests: RequestCollection = reconcile_snapshot((), initial)
        self._pending: dict[str, PendingCompletion] = {}
        self._change_listeners: list[ChangeListener] = [on_change] if on_change else []
        self._notification_listeners: list[NotificationListener] = [on_notification] if on_notification else []

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_change_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that removes it."""
        self._change_listeners.append(listener)
        return lambda: self._remove(self._change_listeners, listener)

    def add_notification_listener(self, listener: NotificationListener) -> Callable[[], None]:
        self._notification_listeners.append(listener)
        return lambda: self._remove(self._notification_listeners, listener)

    @staticmethod
    def _remove(listeners: list, listener: Callable) -> None:
        if listener in listeners:
            listeners.remove(listener)

    def _set(self, collection: RequestCollection) -> bool:
        if collection is self._requests or collection == self._requests:
            return False
        self._requests = collection
        for listener in list(self._change_listeners):
            try:
                listener(collection)
            except Exception:
                _logger.debug("Request change listener failed", exc_info=True)
        return True

    def _notify(self, kind: NotificationKind, request: Request) -> None:
        notification = RequestNotification(kind=kind, request=request)
        for listener in list(self._notification_listeners):
            try:
                listener(notification)
            except Exception:
                _logger.debug("Request notification listener failed", exc_info=True)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def requests(self) -> RequestCollection:
        return self._requests

    def get(self, request_id: str) -> Request | None:
        return find(self._requests, request_id)

    def pending_completions(self) -> tuple[PendingCompletion, ...]:
        return tuple(self._pending.values())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def upsert(self, request: Request) -> Request:
        """Merge or prepend *request*; returns the record now stored."""
        self._set(upsert(self._requests, request))
        stored = self.get(request.id)
        assert stored is not None  # noqa: S101
        return stored

    def reconcile(self, fetched: Iterable[Request]) -> RequestCollection:
        """Fold a snapshot into the collection; never removes entries."""
        self._set(reconcile_snapshot(self._requests, fetched))
        return self._requests

    def apply_created(self, request: Request) -> Request:
        """Apply a stream "created" event immediately."""
        is_new = self.get(request.id) is None
        stored = self.upsert(request)
        if is_new:
            self._notify(NotificationKind.CREATED, stored)
        return stored

    def apply_update(self, request: Request) -> Request | None:
        """Apply a stream "updated" event.

        Non-terminal updates are merged at once. A terminal update is held
        as a :class:`PendingCompletion` until :meth:`acknowledge`; the
        visible status stays as it is. Returns the stored record for
        applied updates and ``None`` for held ones.
        """
        if request.status.is_terminal:
            current = self.get(request.id)
            if current is not None and current.is_done:
                return current
            self._pending[request.id] = PendingCompletion(request=request)
            self._notify(NotificationKind.COMPLETION_PENDING, current or request)
            return None

        stored = self.upsert(request)
        self._notify(NotificationKind.UPDATED, stored)
        return stored

    def acknowledge(self, request_id: str) -> Request | None:
        """Commit a held terminal update; ``None`` if nothing is pending."""
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return None
        stored = self.upsert(pending.request.model_copy(update={"status": RequestStatus.DONE}))
        self._notify(NotificationKind.COMPLETED, stored)
        return stored

    def dismiss(self, request_id: str) -> bool:
        """Drop a held terminal update without changing the request."""
        return self._pending.pop(request_id, None) is not None

    def complete(self, request: Request) -> Request:
        """Record a server-confirmed ``done`` transition.

        For a stored record only the status changes; other fields stay.
        A request not in the collection yet is added whole.
        """
        self._pending.pop(request.id, None)
        if self.get(request.id) is None:
            return self.upsert(request.model_copy(update={"status": RequestStatus.DONE}))
        return self.upsert(Request(id=request.id, kind=request.kind, status=RequestStatus.DONE))

    def clear(self) -> None:
        self._pending.clear()
        self._set(())
