from __future__ import annotations

import math

import pytest

from pyfarmconnect.ingestion.normalize import (
    compose_note,
    is_fuel_activity,
    is_logistics_activity,
    parse_logistics_location,
    safe_flag,
    safe_str,
    synthesize_request_id,
)
from pyfarmconnect.models.request import RequestStatus


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (" 42 ", "42"),
        (42, "42"),
        (42.0, "42"),
        (4.5, "4.5"),
        ("", None),
        ("null", None),
        ("undefined", None),
        (None, None),
        (math.nan, None),
        ({"a": 1}, None),
    ],
)
def test_safe_str(value: object, expected: str | None) -> None:
    assert safe_str(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(True, True), (False, False), (1, True), (0, False), ("true", True), (" YES ", True), ("false", False), (None, False)],
)
def test_safe_flag(value: object, expected: bool) -> None:
    assert safe_flag(value) is expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("approved", RequestStatus.APPROVED),
        (" Approved ", RequestStatus.APPROVED),
        ("DONE", RequestStatus.DONE),
        ("completed", RequestStatus.DONE),
        ("complete", RequestStatus.DONE),
        ("pending", RequestStatus.PENDING),
        ("rejected", RequestStatus.PENDING),
        (None, RequestStatus.PENDING),
    ],
)
def test_status_normalization(value: object, expected: RequestStatus) -> None:
    assert RequestStatus.normalize(value) is expected


def test_status_rank_orders_lifecycle() -> None:
    assert RequestStatus.PENDING.rank < RequestStatus.APPROVED.rank < RequestStatus.DONE.rank
    assert RequestStatus.DONE.is_terminal
    assert not RequestStatus.APPROVED.is_terminal


def test_activity_classification_is_trimmed_and_case_insensitive() -> None:
    assert is_logistics_activity("  Logistics Request ")
    assert is_logistics_activity("LOGISTICS")
    assert not is_logistics_activity("Spraying")
    assert is_fuel_activity("Fuel Request")
    assert not is_fuel_activity(None)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Depot -> North Field", "North Field"),
        ("Depot -> Barn -> Silo 2 ", "Silo 2"),
        ("Depot -> ", "Depot"),
        ("  East Gate  ", "East Gate"),
        ("", None),
        (None, None),
    ],
)
def test_parse_logistics_location(value: str | None, expected: str | None) -> None:
    assert parse_logistics_location(value) == expected


def test_synthesize_request_id_prefers_plan_id() -> None:
    assert synthesize_request_id(101, "V1", "2024-05-01", "Farm") == "101"
    assert synthesize_request_id(None, "V1", "2024-05-01", "Farm") == "V1_2024-05-01_Farm"
    assert synthesize_request_id("", None, "2024-05-01", None) == "_2024-05-01_"


def test_compose_note_skips_missing_parts() -> None:
    assert compose_note(Name="Asha", Contact=None, Request="Move sacks") == "Name: Asha\nRequest: Move sacks"
    assert compose_note(Name=None, Contact="") is None
