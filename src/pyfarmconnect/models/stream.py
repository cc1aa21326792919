"""Schemas for event stream messages."""

from __future__ import annotations

from pydantic import Field

from pyfarmconnect.models._base import FarmBaseModel, LooseStr


class PlanEntry(FarmBaseModel):
    status: LooseStr = None
    requested_location: LooseStr = None
    staff_name: LooseStr = None
    staff_contact: LooseStr = None
    request: LooseStr = None


class LogisticsCreatedData(FarmBaseModel):
    staff_id: LooseStr = None
    plan_id: LooseStr = None
    plan_entry: PlanEntry = Field(default_factory=PlanEntry)
    date: LooseStr = None
    vehicle_id: LooseStr = None
    farm_id: LooseStr = None
    status: LooseStr = None


class LogisticsCreatedMessage(FarmBaseModel):
    """``LOGISTICS_REQUEST_CREATED`` message from ``/ws/logistics``."""

    event: LooseStr = None
    plan_id: LooseStr = None
    data: LogisticsCreatedData = Field(default_factory=LogisticsCreatedData)


class FuelUpdateData(FarmBaseModel):
    staff_id: LooseStr = None
    request_id: LooseStr = None
    new_status: LooseStr = None
    vehicle_number: LooseStr = None
    vehicle_id: LooseStr = None


class FuelRequestUpdatedMessage(FarmBaseModel):
    """``fuel_request_updated`` message from ``/ws/fuel_requests``."""

    event: LooseStr = None
    data: FuelUpdateData = Field(default_factory=FuelUpdateData)
