from datetime import time

import pytest

from app.domain.scheduling.policy import CAPACITY_REJECT, BookingPolicy
from app.domain.scheduling.references import extract_sequence, format_reference
from app.shared.validators import validate_email, validate_mobile, validate_operating_window


def test_email_is_normalised():
    assert validate_email("  Ana@Example.COM ") == "ana@example.com"
    assert validate_email(None) is None
    with pytest.raises(ValueError):
        validate_email("ana@")


def test_mobile_keeps_plus_and_digits():
    assert validate_mobile("+63 (917) 555-0101") == "+639175550101"
    assert validate_mobile("0917-555-0101") == "09175550101"
    with pytest.raises(ValueError):
        validate_mobile("12345")


def test_operating_window():
    validate_operating_window(time(9, 0), time(18, 0))
    validate_operating_window(time(9, 0), None)
    with pytest.raises(ValueError):
        validate_operating_window(time(18, 0), time(18, 0))


def test_reference_codes():
    assert format_reference("mrb_kita", 2030, 7) == "mrb_kita_2030_007"
    assert format_reference("mrb_kita", 2030, 1234) == "mrb_kita_2030_1234"
    assert extract_sequence("mrb_kita_2030_042") == 42
    assert extract_sequence("mrb_kita_2030_x") == 0
    assert extract_sequence("") == 0


def test_admin_policy_only_relaxes_past_dates():
    policy = BookingPolicy(max_hours=6)
    admin = policy.for_admin()

    assert admin.allow_past_dates
    assert not policy.allow_past_dates
    assert admin.max_hours == 6
    assert admin.capacity_policy == CAPACITY_REJECT


def test_unknown_capacity_policy_falls_back_to_reject(monkeypatch):
    from app import config

    monkeypatch.setattr(config, "CAPACITY_POLICY", "shrug")

    assert BookingPolicy.from_config().capacity_policy == CAPACITY_REJECT
