"""pyfarmconnect - Async Python request sync engine for the farm-connect driver API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfarmconnect")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfarmconnect._api.requests import SubmitResult
from pyfarmconnect._api.status import MutationResult
from pyfarmconnect._stream import ConnectionState, EventStreamClient, ReconnectPolicy, StreamMessage, build_stream_url
from pyfarmconnect.client import FarmConnectClient
from pyfarmconnect.config import FarmConnectConfig
from pyfarmconnect.exceptions import (
    FarmConnectApiError,
    FarmConnectAuthenticationError,
    FarmConnectConfigError,
    FarmConnectError,
    FarmConnectMissingDataError,
    FarmConnectNotAuthenticatedError,
    FarmConnectStorageError,
    FarmConnectTransportError,
    FarmConnectUnsupportedOperationError,
)
from pyfarmconnect.identity import StaffIdentityResolver
from pyfarmconnect.ingestion.snapshot import SnapshotResult, SnapshotScope
from pyfarmconnect.models import OutgoingQueueEntry, Request, RequestKind, RequestStatus
from pyfarmconnect.outgoing import FlushReport, OutgoingQueue
from pyfarmconnect.session import Session
from pyfarmconnect.state.events import NotificationKind, PendingCompletion, RequestNotification
from pyfarmconnect.state.merge import merge_request, reconcile_snapshot, upsert
from pyfarmconnect.state.store import RequestStore
from pyfarmconnect.storage import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "__version__",
    "ConnectionState",
    "EventStreamClient",
    "FarmConnectApiError",
    "FarmConnectAuthenticationError",
    "FarmConnectClient",
    "FarmConnectConfig",
    "FarmConnectConfigError",
    "FarmConnectError",
    "FarmConnectMissingDataError",
    "FarmConnectNotAuthenticatedError",
    "FarmConnectStorageError",
    "FarmConnectTransportError",
    "FarmConnectUnsupportedOperationError",
    "FlushReport",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "MutationResult",
    "NotificationKind",
    "OutgoingQueue",
    "OutgoingQueueEntry",
    "PendingCompletion",
    "ReconnectPolicy",
    "Request",
    "RequestKind",
    "RequestNotification",
    "RequestStatus",
    "RequestStore",
    "Session",
    "SnapshotResult",
    "SnapshotScope",
    "StaffIdentityResolver",
    "StreamMessage",
    "SubmitResult",
    "build_stream_url",
    "merge_request",
    "reconcile_snapshot",
    "upsert",
]
