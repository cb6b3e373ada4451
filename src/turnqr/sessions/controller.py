from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..container import Container
from ..common.datetime_utils import parse_iso_date, parse_optional_timestamp, parse_timestamp, range_bounds, to_iso
from ..common.web import admin_required, current_principal, json_error, login_required
from ..core.constants import QR_POINT_PARAM, QR_SESSION_KEY
from ..core.exceptions import TokenRejected, ValidationError
from ..qr.images import decode_qr_image
from ..qr.validator import extract_token, presented_token
from .model import SessionAuditEntry, WorkSession


def session_to_json(s: WorkSession) -> dict:
    return {
        "session_id": s.session_id,
        "employee_id": s.employee_id,
        "clock_in": to_iso(s.clock_in),
        "clock_out": to_iso(s.clock_out),
        "status": s.status.value,
        "location_id": s.location_id,
    }


def _audit_to_json(entry: SessionAuditEntry) -> dict:
    return {
        "session_id": entry.session_id,
        "employee_id": entry.employee_id,
        "action": entry.action.value,
        "actor_id": entry.actor_id,
        "created_at": to_iso(entry.created_at),
        "clock_in": to_iso(entry.clock_in),
        "clock_out": to_iso(entry.clock_out),
        "reason": entry.reason,
    }


def register(app: Flask, container: Container) -> None:
    service = container.session_service
    tz = container.tz

    def _toggle(payload):
        """Clock in or out with the presented token, remembering it for reloads."""
        principal = current_principal()
        token = presented_token(payload, session.get(QR_SESSION_KEY))
        try:
            result = service.clock_with_token(principal.user_id, token)
        except TokenRejected:
            # A rejected token is never reused on the next request.
            session.pop(QR_SESSION_KEY, None)
            raise

        session[QR_SESSION_KEY] = token
        return jsonify(
            {
                "success": True,
                "action": result.action.value,
                "session": session_to_json(result.session),
            }
        )

    @app.route("/api/clock", methods=["GET"], endpoint="clock_status")
    @login_required
    def clock_status():
        principal = current_principal()
        scanned = extract_token(request.args.get(QR_POINT_PARAM))
        if scanned:
            session[QR_SESSION_KEY] = scanned

        current = service.get_current_open_session(principal.user_id)
        return jsonify(
            {
                "success": True,
                "has_token": bool(session.get(QR_SESSION_KEY)),
                "open_session": session_to_json(current) if current else None,
            }
        )

    @app.route("/api/clock", methods=["POST"], endpoint="clock_toggle")
    @login_required
    def clock_toggle():
        data = request.get_json(silent=True) or {}
        payload = data.get("qr_code") or data.get("token") or request.args.get(QR_POINT_PARAM)
        return _toggle(payload)

    @app.route("/api/clock/image", methods=["POST"], endpoint="clock_image")
    @login_required
    def clock_image():
        if "qr_image" not in request.files:
            return json_error("No se ha enviado ninguna imagen", 400)

        upload = request.files["qr_image"]
        if upload.filename == "":
            return json_error("No se ha seleccionado ningún archivo", 400)

        payload = decode_qr_image(upload.stream)
        if payload is None:
            return json_error("No se encontró ningún código QR en la imagen", 400)
        return _toggle(payload)

    @app.route("/api/clock/in", methods=["POST"], endpoint="clock_in")
    @login_required
    def clock_in():
        principal = current_principal()
        employee = container.employee_service.get(principal.user_id)
        data = request.get_json(silent=True) or {}
        token = presented_token(data.get("qr_code") or data.get("token"), session.get(QR_SESSION_KEY))
        try:
            check = container.token_validator.require(token, employee=employee)
        except TokenRejected:
            session.pop(QR_SESSION_KEY, None)
            raise

        opened = service.clock_in(principal.user_id, location_id=check.location_id)
        session[QR_SESSION_KEY] = token
        return jsonify({"success": True, "session": session_to_json(opened)})

    @app.route("/api/clock/out", methods=["POST"], endpoint="clock_out")
    @login_required
    def clock_out():
        principal = current_principal()
        closed = service.clock_out(principal.user_id)
        return jsonify({"success": True, "session": session_to_json(closed) if closed else None})

    @app.route("/api/history", endpoint="history")
    @login_required
    def history():
        principal = current_principal()
        limit = request.args.get("limit", type=int)
        rows = service.get_history(principal.user_id, limit=limit) if limit else service.get_history(principal.user_id)
        return jsonify({"success": True, "sessions": [session_to_json(s) for s in rows]})

    # ----- administrator -----

    @app.route("/api/admin/sessions", methods=["GET"], endpoint="admin_sessions")
    @admin_required
    def admin_sessions():
        start = parse_iso_date(request.args.get("start"))
        end = parse_iso_date(request.args.get("end"))
        range_start, range_end = range_bounds(start, end, tz)
        rows = service.list_sessions(
            start=range_start,
            end=range_end,
            location_id=request.args.get("location_id") or container.settings_service.resolve_active_location_id(),
            employee_id=request.args.get("employee_id") or None,
        )
        return jsonify({"success": True, "sessions": [session_to_json(s) for s in rows]})

    @app.route("/api/admin/sessions/open", methods=["GET"], endpoint="admin_open_sessions")
    @admin_required
    def admin_open_sessions():
        rows = service.list_open_sessions(location_id=request.args.get("location_id") or None)
        return jsonify({"success": True, "sessions": [session_to_json(s) for s in rows]})

    @app.route("/api/admin/sessions", methods=["POST"], endpoint="admin_manual_session")
    @admin_required
    def admin_manual_session():
        data = request.get_json(silent=True) or {}
        employee_id = (data.get("employee_id") or "").strip()
        if not employee_id:
            raise ValidationError("Por favor rellena todos los campos para el fichaje manual.")

        created = service.manual_session(
            actor_id=current_principal().user_id,
            employee_id=employee_id,
            clock_in=parse_timestamp(data.get("clock_in"), local_tz=tz),
            clock_out=parse_timestamp(data.get("clock_out"), local_tz=tz),
            location_id=data.get("location_id") or container.settings_service.resolve_active_location_id(),
            reason=data.get("reason"),
        )
        return jsonify({"success": True, "session": session_to_json(created)}), 201

    @app.route("/api/admin/sessions/<session_id>", methods=["PUT"], endpoint="admin_edit_session")
    @admin_required
    def admin_edit_session(session_id: str):
        data = request.get_json(silent=True) or {}
        edited = service.edit_session(
            session_id,
            actor_id=current_principal().user_id,
            clock_in=parse_timestamp(data.get("clock_in"), local_tz=tz),
            clock_out=parse_optional_timestamp(data.get("clock_out"), local_tz=tz),
            reason=data.get("reason"),
        )
        return jsonify({"success": True, "session": session_to_json(edited)})

    @app.route("/api/admin/sessions/<session_id>", methods=["DELETE"], endpoint="admin_delete_session")
    @admin_required
    def admin_delete_session(session_id: str):
        data = request.get_json(silent=True) or {}
        service.delete_session(session_id, actor_id=current_principal().user_id, reason=data.get("reason"))
        return jsonify({"success": True})

    @app.route("/api/admin/sessions/<session_id>/audit", endpoint="admin_session_audit")
    @admin_required
    def admin_session_audit(session_id: str):
        entries = service.audit_trail(session_id)
        return jsonify({"success": True, "entries": [_audit_to_json(e) for e in entries]})
