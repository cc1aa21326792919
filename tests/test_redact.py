from __future__ import annotations

from pyfarmconnect._redact import redact_for_log


def test_redact_for_log_redacts_credentials() -> None:
    payload = {
        "user_name": "driver07",
        "password": "pw",
        "nested": {"Token": "abc", "staff_id": "S1"},
    }

    redacted = redact_for_log(payload)
    assert redacted["password"] == "<redacted>"
    assert redacted["nested"]["Token"] == "<redacted>"
    assert redacted["nested"]["staff_id"] == "S1"
    assert redacted["user_name"] == "******07"


def test_redact_for_log_masks_contact_details_in_lists() -> None:
    payload = {"entries": [{"staff_contact": 9845012345}, {"staff_contact": "12"}]}

    redacted = redact_for_log(payload)
    assert redacted["entries"][0]["staff_contact"] == "********45"
    assert redacted["entries"][1]["staff_contact"] == "**"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]
