"""Data models for farm-connect payloads and the normalized request view."""

from pyfarmconnect.models._base import FarmBaseModel, LooseStr
from pyfarmconnect.models.backend import (
    LoginResponse,
    MakeRequestResponse,
    OutgoingRequestRecord,
    OutgoingRequestsResponse,
    PendingTask,
    StatusUpdateResponse,
    TaskListResponse,
)
from pyfarmconnect.models.queue import OutgoingQueueEntry
from pyfarmconnect.models.request import Request, RequestKind, RequestStatus
from pyfarmconnect.models.stream import (
    FuelRequestUpdatedMessage,
    FuelUpdateData,
    LogisticsCreatedData,
    LogisticsCreatedMessage,
    PlanEntry,
)

__all__ = [
    "FarmBaseModel",
    "FuelRequestUpdatedMessage",
    "FuelUpdateData",
    "LoginResponse",
    "LogisticsCreatedData",
    "LogisticsCreatedMessage",
    "LooseStr",
    "MakeRequestResponse",
    "OutgoingQueueEntry",
    "OutgoingRequestRecord",
    "OutgoingRequestsResponse",
    "PendingTask",
    "PlanEntry",
    "Request",
    "RequestKind",
    "RequestStatus",
    "StatusUpdateResponse",
    "TaskListResponse",
]
