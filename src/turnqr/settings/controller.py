from __future__ import annotations

from flask import Flask, current_app, jsonify, request, send_file

from ..container import Container
from ..common.datetime_utils import parse_optional_timestamp, to_iso
from ..common.web import admin_required, current_principal, json_error
from ..qr.images import render_qr_png
from .model import AppSettings
from .service import qr_check_in_url


def _settings_json(settings: AppSettings) -> dict:
    return {
        "business_name": settings.business_name,
        "opening_time": settings.opening_time,
        "max_shift_hours": settings.max_shift_hours,
        "qr_token": settings.qr_token,
        "selected_location_id": settings.selected_location_id,
        "updated_at": to_iso(settings.updated_at),
    }


def _version(data: dict) -> dict:
    # Clients that send no version skip the stale-write check.
    if "updated_at" not in data:
        return {}
    return {"expected_updated_at": parse_optional_timestamp(data.get("updated_at"))}


def register(app: Flask, container: Container) -> None:
    service = container.settings_service

    @app.route("/api/admin/settings", methods=["GET"], endpoint="settings_get")
    @admin_required
    def settings_get():
        settings = service.get()
        return jsonify(
            {
                "success": True,
                "settings": _settings_json(settings),
                "active_location_id": service.resolve_active_location_id(),
            }
        )

    @app.route("/api/admin/settings", methods=["PUT"], endpoint="settings_update")
    @admin_required
    def settings_update():
        data = request.get_json(silent=True) or {}
        current = service.get()
        saved = service.update(
            current_role=current_principal().role,
            business_name=data.get("business_name", current.business_name),
            opening_time=data.get("opening_time", current.opening_time),
            max_shift_hours=data.get("max_shift_hours", current.max_shift_hours),
            qr_token=data.get("qr_token", current.qr_token),
            **_version(data),
        )
        return jsonify({"success": True, "settings": _settings_json(saved)})

    @app.route("/api/admin/settings/location", methods=["PUT"], endpoint="settings_select_location")
    @admin_required
    def settings_select_location():
        data = request.get_json(silent=True) or {}
        saved = service.select_location(
            current_role=current_principal().role,
            location_id=data.get("location_id"),
            **_version(data),
        )
        return jsonify({"success": True, "settings": _settings_json(saved)})

    @app.route("/api/admin/settings/qr/regenerate", methods=["POST"], endpoint="settings_regenerate_qr")
    @admin_required
    def settings_regenerate_qr():
        data = request.get_json(silent=True) or {}
        saved = service.regenerate_qr_token(current_role=current_principal().role, **_version(data))
        return jsonify({"success": True, "settings": _settings_json(saved)})

    @app.route("/api/admin/settings/qr.png", endpoint="settings_qr_png")
    @admin_required
    def settings_qr_png():
        token = service.get().qr_token
        if not token:
            return json_error("QR no configurado. Contacta con el administrador.", 404)
        url = qr_check_in_url(current_app.config["PUBLIC_BASE_URL"], token)
        return send_file(render_qr_png(url), mimetype="image/png")
