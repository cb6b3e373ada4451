from __future__ import annotations

from datetime import timedelta

import pytest
from werkzeug.security import generate_password_hash

from turnqr.core.constants import QR_SESSION_KEY
from turnqr.core.enums import Role
from turnqr.main import create_app
from turnqr.qr.images import render_qr_png
from turnqr.users.model import Account


@pytest.fixture
def app(container):
    return create_app(container, settings_module="turnqr.config.testing")


@pytest.fixture
def client(app):
    return app.test_client()


def _login_as(client, user_id: str, role: Role, name: str = "Test"):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["email"] = f"{user_id}@bar.es"
        sess["name"] = name
        sess["role"] = role.value


@pytest.fixture
def employee_client(client):
    _login_as(client, "emp-ana", Role.EMPLOYEE, "Ana")
    return client


@pytest.fixture
def admin_client(client):
    _login_as(client, "admin", Role.ADMIN, "Admin")
    return client


def test_login_and_me(client, accounts_repo):
    accounts_repo.rows["emp-ana"] = Account(
        user_id="emp-ana", email="ana@bar.es", password_hash=generate_password_hash("secreto"), role=Role.EMPLOYEE
    )

    bad = client.post("/api/auth/login", json={"email": "ana@bar.es", "password": "nope"})
    assert bad.status_code == 401
    assert bad.get_json()["success"] is False

    ok = client.post("/api/auth/login", json={"email": "ana@bar.es", "password": "secreto"})
    assert ok.status_code == 200
    assert ok.get_json()["user"]["name"] == "Ana"

    me = client.get("/api/me").get_json()
    assert me["employee"]["job_title"] == "Cocinero"
    assert me["employee"]["location_ids"] == ["loc-centro"]


def test_requires_login(client):
    assert client.get("/api/history").status_code == 401
    assert client.post("/api/clock", json={}).status_code == 401


def test_employee_cannot_reach_admin_routes(employee_client):
    assert employee_client.get("/api/admin/dashboard").status_code == 403


def test_clock_toggle_with_scanned_url(employee_client):
    first = employee_client.post("/api/clock", json={"qr_code": "http://testserver/clock?point=tok-centro"})
    assert first.status_code == 200
    assert first.get_json()["action"] == "in"
    assert first.get_json()["session"]["location_id"] == "loc-centro"

    # Cached token: the second tap needs no new scan.
    second = employee_client.post("/api/clock", json={})
    assert second.get_json()["action"] == "out"
    assert second.get_json()["session"]["status"] == "closed"


def test_clock_rejected_reason(employee_client, sessions_repo):
    resp = employee_client.post("/api/clock", json={"qr_code": "tok-playa"})

    assert resp.status_code == 400
    assert resp.get_json()["reason"] == "unassigned_location"
    assert sessions_repo.rows == {}


def test_clock_without_token(employee_client):
    resp = employee_client.post("/api/clock", json={})

    assert resp.status_code == 400
    assert resp.get_json()["reason"] == "absent"


def test_rejected_token_is_dropped_from_session(employee_client, locations_repo):
    assert employee_client.post("/api/clock", json={"qr_code": "tok-centro"}).status_code == 200
    locations_repo.set_token("loc-centro", "tok-rotated")

    resp = employee_client.post("/api/clock", json={})

    assert resp.status_code == 400
    assert resp.get_json()["reason"] == "mismatched"
    with employee_client.session_transaction() as sess:
        assert QR_SESSION_KEY not in sess

    again = employee_client.post("/api/clock", json={})
    assert again.get_json()["reason"] == "absent"


def test_clock_in_route_drops_rejected_token(employee_client):
    with employee_client.session_transaction() as sess:
        sess[QR_SESSION_KEY] = "tok-playa"

    resp = employee_client.post("/api/clock/in", json={})

    assert resp.status_code == 400
    assert resp.get_json()["reason"] == "unassigned_location"
    with employee_client.session_transaction() as sess:
        assert QR_SESSION_KEY not in sess


def test_clock_status_caches_point_param(employee_client):
    resp = employee_client.get("/api/clock?point=tok-centro")

    assert resp.get_json()["has_token"] is True
    assert resp.get_json()["open_session"] is None
    with employee_client.session_transaction() as sess:
        assert sess[QR_SESSION_KEY] == "tok-centro"


def test_clock_by_uploaded_image(employee_client):
    png = render_qr_png("http://testserver/clock?point=tok-centro")

    resp = employee_client.post(
        "/api/clock/image",
        data={"qr_image": (png, "qr.png")},
        content_type="multipart/form-data",
    )

    assert resp.status_code == 200
    assert resp.get_json()["action"] == "in"


def test_clock_out_noop_and_history(employee_client, container, fixed_now):
    assert employee_client.post("/api/clock/out").get_json()["session"] is None

    container.session_service.clock_in("emp-ana", now=fixed_now - timedelta(hours=3))
    container.session_service.clock_out("emp-ana", now=fixed_now)

    sessions = employee_client.get("/api/history").get_json()["sessions"]
    assert len(sessions) == 1
    assert sessions[0]["clock_out"] == "2024-01-15T09:00:00Z"


def test_admin_manual_edit_delete(admin_client, audit_repo):
    created = admin_client.post(
        "/api/admin/sessions",
        json={"employee_id": "emp-luis", "clock_in": "2024-01-10T09:00", "clock_out": "2024-01-10T17:00", "reason": "olvido"},
    )
    assert created.status_code == 201
    body = created.get_json()["session"]
    # Naive admin input is Madrid time.
    assert body["clock_in"] == "2024-01-10T08:00:00Z"
    assert body["location_id"] == "loc-centro"

    sid = body["session_id"]
    edited = admin_client.put(f"/api/admin/sessions/{sid}", json={"clock_in": "2024-01-10T10:00:00Z", "clock_out": ""})
    assert edited.get_json()["session"]["status"] == "open"

    assert admin_client.delete(f"/api/admin/sessions/{sid}", json={"reason": "error"}).status_code == 200
    assert admin_client.delete(f"/api/admin/sessions/{sid}").status_code == 404

    audit = admin_client.get(f"/api/admin/sessions/{sid}/audit").get_json()["entries"]
    assert [e["action"] for e in audit] == ["manual_create", "edit", "delete"]


def test_admin_manual_inverted_interval(admin_client):
    resp = admin_client.post(
        "/api/admin/sessions",
        json={"employee_id": "emp-luis", "clock_in": "2024-01-10T17:00:00Z", "clock_out": "2024-01-10T09:00:00Z"},
    )

    assert resp.status_code == 400


def test_admin_sessions_listing(admin_client, container, fixed_now):
    container.session_service.clock_in("emp-ana", location_id="loc-centro", now=fixed_now)

    resp = admin_client.get("/api/admin/sessions?start=2024-01-01&end=2024-01-31")
    assert len(resp.get_json()["sessions"]) == 1

    assert admin_client.get("/api/admin/sessions?start=2024-02-01&end=2024-01-01").status_code == 400
    assert len(admin_client.get("/api/admin/sessions/open").get_json()["sessions"]) == 1


def test_reports_json_and_downloads(admin_client, container, fixed_now):
    container.session_service.clock_in("emp-ana", location_id="loc-centro", now=fixed_now - timedelta(hours=8))
    container.session_service.clock_out("emp-ana", now=fixed_now)

    report = admin_client.get("/api/admin/reports/hours?start=2024-01-01&end=2024-01-31").get_json()["report"]
    assert report["total_hours_label"] == "8,00"
    assert report["average_hours_label"] == "4,00"

    pdf = admin_client.get("/api/admin/reports/hours.pdf?start=2024-01-01&end=2024-01-31")
    assert pdf.mimetype == "application/pdf"
    assert pdf.data.startswith(b"%PDF")
    assert "reporte-horas-2024-01-01-a-2024-01-31.pdf" in pdf.headers["Content-Disposition"]

    csv_resp = admin_client.get("/api/admin/reports/hours.csv?month=0")
    assert "reporte-horas-2024-01-01-a-2024-01-31.csv" in csv_resp.headers["Content-Disposition"]


def test_settings_version_conflict(admin_client):
    current = admin_client.get("/api/admin/settings").get_json()["settings"]

    ok = admin_client.put("/api/admin/settings", json={"business_name": "Bar Dos", "updated_at": current["updated_at"]})
    assert ok.status_code == 200

    stale = admin_client.put("/api/admin/settings", json={"business_name": "Bar Tres", "updated_at": current["updated_at"]})
    assert stale.status_code == 409


def test_settings_qr_png(admin_client):
    assert admin_client.get("/api/admin/settings/qr.png").status_code == 404

    admin_client.post("/api/admin/settings/qr/regenerate", json={})
    resp = admin_client.get("/api/admin/settings/qr.png")
    assert resp.mimetype == "image/png"


def test_location_admin_routes(admin_client):
    created = admin_client.post("/api/admin/locations", json={"name": "Puerto"})
    assert created.status_code == 201
    location_id = created.get_json()["location"]["location_id"]

    qr = admin_client.get(f"/api/admin/locations/{location_id}/qr.png")
    assert qr.mimetype == "image/png"

    names = [l["name"] for l in admin_client.get("/api/locations").get_json()["locations"]]
    assert names == ["Centro", "Playa", "Puerto"]


def test_employee_admin_routes(admin_client, employees_repo):
    resp = admin_client.patch("/api/admin/employees/emp-luis", json={"job_title": "Encargado de turno", "is_active": False})
    assert resp.get_json()["employee"]["job_title"] == "Encargado de turno"
    assert resp.get_json()["employee"]["is_active"] is False

    resp = admin_client.put("/api/admin/employees/emp-luis/locations", json={"location_ids": ["loc-playa"]})
    assert resp.get_json()["employee"]["primary_location_id"] == "loc-playa"

    assert admin_client.delete("/api/admin/employees/emp-luis").status_code == 200
    assert admin_client.delete("/api/admin/employees/emp-luis").status_code == 404


def test_dashboard(admin_client, container, fixed_now):
    container.session_service.clock_in("emp-ana", location_id="loc-centro", now=fixed_now - timedelta(hours=13))

    body = admin_client.get("/api/admin/dashboard").get_json()

    assert body["active_count"] == 1
    assert body["overdue_count"] == 1
    assert body["active_shifts"][0]["clock_in_label"] == "21:00"
