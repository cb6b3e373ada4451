from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from turnqr.core.enums import AuditAction, ClockAction, RejectionReason, SessionStatus
from turnqr.core.exceptions import NotFoundError, TokenRejected, ValidationError
from turnqr.sessions.service import SessionService

UTC = timezone.utc


def test_clock_in_opens_session(container, sessions_repo, fixed_now):
    s = container.session_service.clock_in("emp-ana", location_id="loc-centro")

    assert s.is_open
    assert s.status == SessionStatus.OPEN
    assert s.clock_in == fixed_now
    assert sessions_repo.get_open_for_employee("emp-ana") == s


def test_clock_in_twice_returns_existing_session(container, sessions_repo, fixed_now):
    svc = container.session_service
    first = svc.clock_in("emp-ana", now=fixed_now)
    second = svc.clock_in("emp-ana", now=fixed_now + timedelta(minutes=5))

    assert second.session_id == first.session_id
    assert second.clock_in == fixed_now
    assert len(sessions_repo.rows) == 1


def test_clock_out_without_open_session_is_noop(container, sessions_repo):
    assert container.session_service.clock_out("emp-ana") is None
    assert sessions_repo.rows == {}


def test_clock_out_closes_session(container, fixed_now):
    svc = container.session_service
    svc.clock_in("emp-ana", now=fixed_now)
    closed = svc.clock_out("emp-ana", now=fixed_now + timedelta(hours=8))

    assert closed.status == SessionStatus.CLOSED
    assert closed.clock_out == fixed_now + timedelta(hours=8)
    assert svc.get_current_open_session("emp-ana") is None


def test_clock_out_never_before_clock_in(container, fixed_now):
    svc = container.session_service
    svc.clock_in("emp-ana", now=fixed_now)
    closed = svc.clock_out("emp-ana", now=fixed_now - timedelta(minutes=1))

    assert closed.clock_out == fixed_now


def test_concurrent_clock_in_yields_one_open_session(container, sessions_repo, fixed_now):
    svc = container.session_service
    results = []

    def tap():
        results.append(svc.clock_in("emp-ana", now=fixed_now))

    threads = [threading.Thread(target=tap) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len({r.session_id for r in results}) == 1
    assert len([s for s in sessions_repo.rows.values() if s.is_open]) == 1


def test_clock_in_recovers_when_store_rejects_second_open(container, sessions_repo, fixed_now):
    svc = container.session_service
    other = sessions_repo.create(
        session_id="other-device",
        employee_id="emp-ana",
        clock_in=fixed_now,
        clock_out=None,
        status=SessionStatus.OPEN,
    )

    original = sessions_repo.get_open_for_employee
    calls = {"n": 0}

    def stale_then_fresh(employee_id):
        # First lookup misses the row another device just inserted.
        calls["n"] += 1
        return None if calls["n"] == 1 else original(employee_id)

    sessions_repo.get_open_for_employee = stale_then_fresh

    assert svc.clock_in("emp-ana").session_id == other.session_id


def test_history_newest_first_with_limit(container, fixed_now):
    svc = container.session_service
    for day in range(3):
        start = fixed_now + timedelta(days=day)
        svc.clock_in("emp-ana", now=start)
        svc.clock_out("emp-ana", now=start + timedelta(hours=1))

    history = svc.get_history("emp-ana", limit=2)

    assert [s.clock_in for s in history] == [fixed_now + timedelta(days=2), fixed_now + timedelta(days=1)]


def test_clock_with_token_toggles(container, fixed_now):
    svc = container.session_service

    first = svc.clock_with_token("emp-ana", "tok-centro", now=fixed_now)
    second = svc.clock_with_token("emp-ana", "tok-centro", now=fixed_now + timedelta(hours=4))

    assert first.action == ClockAction.IN
    assert first.session.location_id == "loc-centro"
    assert second.action == ClockAction.OUT
    assert second.session.session_id == first.session.session_id
    assert second.session.clock_out == fixed_now + timedelta(hours=4)


def test_clock_with_token_rejects_wrong_location(container, sessions_repo):
    with pytest.raises(TokenRejected) as exc:
        container.session_service.clock_with_token("emp-ana", "tok-playa")

    assert exc.value.reason == RejectionReason.UNASSIGNED_LOCATION
    assert sessions_repo.rows == {}


def test_clock_with_token_unknown_employee(container):
    with pytest.raises(NotFoundError):
        container.session_service.clock_with_token("ghost", "tok-centro")


def test_manual_session_is_closed_and_audited(container, audit_repo, fixed_now):
    created = container.session_service.manual_session(
        actor_id="admin",
        employee_id="emp-luis",
        clock_in=fixed_now,
        clock_out=fixed_now + timedelta(hours=6),
        location_id="loc-centro",
        reason="olvidó fichar",
    )

    assert created.status == SessionStatus.CLOSED
    [entry] = audit_repo.list_for_session(created.session_id)
    assert entry.action == AuditAction.MANUAL_CREATE
    assert entry.actor_id == "admin"
    assert entry.reason == "olvidó fichar"


def test_manual_session_may_overlap_open_session(container, fixed_now):
    svc = container.session_service
    svc.clock_in("emp-luis", now=fixed_now)

    svc.manual_session(
        actor_id="admin",
        employee_id="emp-luis",
        clock_in=fixed_now - timedelta(hours=1),
        clock_out=fixed_now + timedelta(hours=1),
        location_id="loc-centro",
    )

    assert svc.get_current_open_session("emp-luis") is not None


def test_manual_session_rejects_inverted_interval(container, fixed_now):
    with pytest.raises(ValidationError):
        container.session_service.manual_session(
            actor_id="admin",
            employee_id="emp-luis",
            clock_in=fixed_now,
            clock_out=fixed_now - timedelta(minutes=1),
            location_id="loc-centro",
        )


def test_edit_session_reopen_conflicts_with_other_open(container, fixed_now):
    svc = container.session_service
    svc.clock_in("emp-ana", now=fixed_now - timedelta(days=1))
    old = svc.clock_out("emp-ana", now=fixed_now - timedelta(hours=20))
    svc.clock_in("emp-ana", now=fixed_now)

    with pytest.raises(ValidationError):
        svc.edit_session(old.session_id, actor_id="admin", clock_in=old.clock_in, clock_out=None)


def test_edit_session_reopen_when_no_other_open(container, audit_repo, fixed_now):
    svc = container.session_service
    svc.clock_in("emp-ana", now=fixed_now)
    closed = svc.clock_out("emp-ana", now=fixed_now + timedelta(hours=1))

    edited = svc.edit_session(closed.session_id, actor_id="admin", clock_in=fixed_now, clock_out=None)

    assert edited.status == SessionStatus.OPEN
    assert svc.get_current_open_session("emp-ana").session_id == closed.session_id
    assert audit_repo.entries[-1].action == AuditAction.EDIT


def test_edit_missing_session(container, fixed_now):
    with pytest.raises(NotFoundError):
        container.session_service.edit_session("nope", actor_id="admin", clock_in=fixed_now, clock_out=None)


def test_delete_session_keeps_audit_snapshot(container, sessions_repo, audit_repo, fixed_now):
    svc = container.session_service
    svc.clock_in("emp-ana", now=fixed_now)
    closed = svc.clock_out("emp-ana", now=fixed_now + timedelta(hours=2))

    svc.delete_session(closed.session_id, actor_id="admin", reason="duplicado")

    assert closed.session_id not in sessions_repo.rows
    [entry] = svc.audit_trail(closed.session_id)
    assert entry.action == AuditAction.DELETE
    assert entry.clock_out == fixed_now + timedelta(hours=2)

    with pytest.raises(NotFoundError):
        svc.delete_session(closed.session_id, actor_id="admin")


def test_list_sessions_newest_first(container, fixed_now):
    svc = container.session_service
    svc.manual_session(actor_id="a", employee_id="emp-ana", clock_in=fixed_now, clock_out=fixed_now, location_id="loc-centro")
    later = svc.manual_session(
        actor_id="a",
        employee_id="emp-luis",
        clock_in=fixed_now + timedelta(hours=1),
        clock_out=fixed_now + timedelta(hours=2),
        location_id="loc-centro",
    )

    rows = svc.list_sessions(start=datetime(2024, 1, 1, tzinfo=UTC), end=datetime(2024, 1, 31, tzinfo=UTC))

    assert rows[0].session_id == later.session_id
    assert len(rows) == 2


def test_times_are_kept_to_milliseconds(sessions_repo, audit_repo, employees_repo):
    clock = lambda: datetime(2024, 1, 15, 10, 0, 0, 123456, tzinfo=UTC)
    svc = SessionService(sessions_repo, audit_repo, employees_repo, clock=clock)

    opened = svc.clock_in("emp-ana")

    assert opened.clock_in.microsecond == 123000
    assert svc.get_history("emp-ana", limit=1)[0].clock_in == opened.clock_in

    closed = svc.clock_out("emp-ana", now=opened.clock_in + timedelta(hours=2, microseconds=999))
    assert closed.clock_out == datetime(2024, 1, 15, 12, 0, 0, 123000, tzinfo=UTC)

    manual = svc.manual_session(
        actor_id="admin",
        employee_id="emp-luis",
        clock_in=datetime(2024, 1, 14, 9, 0, 0, 500999, tzinfo=UTC),
        clock_out=datetime(2024, 1, 14, 17, 0, 0, 1, tzinfo=UTC),
        location_id="loc-centro",
    )
    assert manual.clock_in.microsecond == 500000
    assert manual.clock_out.microsecond == 0
    assert audit_repo.entries[-1].created_at.microsecond == 123000
