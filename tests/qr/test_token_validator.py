from __future__ import annotations

import pytest

from turnqr.core.enums import RejectionReason
from turnqr.core.exceptions import TokenRejected
from turnqr.employees.model import Employee
from turnqr.core.enums import JobTitle
from turnqr.qr.validator import TokenValidator, extract_token, presented_token
from turnqr.settings.model import AppSettings


@pytest.mark.parametrize(
    "payload, expected",
    [
        ("https://fichar.example.com/clock?point=tok-centro", "tok-centro"),
        ("https://fichar.example.com/#/clock?point=tok%20playa", "tok playa"),
        ("/clock?point=abc", "abc"),
        ("https://fichar.example.com/clock", None),
        ("  raw-token  ", "raw-token"),
        ("", None),
        (None, None),
    ],
)
def test_extract_token(payload, expected):
    assert extract_token(payload) == expected


def test_presented_token_prefers_fresh_scan():
    assert presented_token("https://x/clock?point=new", "cached") == "new"
    assert presented_token(None, "cached") == "cached"
    assert presented_token(None, None) is None


def test_unconfigured_when_no_token_anywhere(locations_repo, settings_repo):
    locations_repo.rows.clear()
    check = TokenValidator(locations_repo, settings_repo).check("anything")

    assert not check.accepted
    assert check.reason == RejectionReason.UNCONFIGURED


def test_absent_token(locations_repo, settings_repo):
    check = TokenValidator(locations_repo, settings_repo).check(None)

    assert check.reason == RejectionReason.ABSENT


def test_mismatched_token(locations_repo, settings_repo):
    check = TokenValidator(locations_repo, settings_repo).check("tok-centro ")

    assert check.reason == RejectionReason.MISMATCHED


def test_unassigned_location(locations_repo, settings_repo, ana):
    check = TokenValidator(locations_repo, settings_repo).check("tok-playa", employee=ana)

    assert check.reason == RejectionReason.UNASSIGNED_LOCATION
    assert check.location_id == "loc-playa"


def test_accepts_matching_token_and_reports_location(locations_repo, settings_repo, ana):
    check = TokenValidator(locations_repo, settings_repo).check("tok-centro", employee=ana)

    assert check.accepted
    assert check.location_id == "loc-centro"


def test_employee_without_assignments_may_use_any_location(locations_repo, settings_repo):
    newcomer = Employee(employee_id="emp-new", name="Nuevo", job_title=JobTitle.EMPLOYEE)

    assert TokenValidator(locations_repo, settings_repo).check("tok-playa", employee=newcomer).accepted


def test_global_settings_token_when_no_location_tokens(locations_repo, settings_repo):
    locations_repo.rows.clear()
    settings_repo.row = AppSettings(qr_token="GLOBAL")
    validator = TokenValidator(locations_repo, settings_repo)

    check = validator.check("GLOBAL")

    assert check.accepted
    assert check.location_id is None


def test_require_raises_with_reason(locations_repo, settings_repo):
    with pytest.raises(TokenRejected) as exc:
        TokenValidator(locations_repo, settings_repo).require("wrong")

    assert exc.value.reason == RejectionReason.MISMATCHED
    assert str(exc.value)
