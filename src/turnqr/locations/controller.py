from __future__ import annotations

from flask import Flask, current_app, jsonify, request, send_file

from ..container import Container
from ..common.web import admin_required, current_principal, login_required
from ..qr.images import render_qr_png
from ..settings.service import qr_check_in_url
from .model import Location


def _location_json(location: Location, *, with_token: bool = False) -> dict:
    payload = {"location_id": location.location_id, "name": location.name}
    if with_token:
        payload["qr_token"] = location.qr_token
    return payload


def register(app: Flask, container: Container) -> None:
    service = container.location_service

    @app.route("/api/locations", endpoint="locations_list")
    @login_required
    def locations_list():
        return jsonify({"success": True, "locations": [_location_json(l) for l in service.list_all()]})

    @app.route("/api/admin/locations", methods=["GET"], endpoint="admin_locations_list")
    @admin_required
    def admin_locations_list():
        return jsonify(
            {"success": True, "locations": [_location_json(l, with_token=True) for l in service.list_all()]}
        )

    @app.route("/api/admin/locations", methods=["POST"], endpoint="admin_locations_create")
    @admin_required
    def admin_locations_create():
        data = request.get_json(silent=True) or {}
        location = service.create(current_role=current_principal().role, name=data.get("name", ""))
        return jsonify({"success": True, "location": _location_json(location, with_token=True)}), 201

    @app.route("/api/admin/locations/<location_id>/token", methods=["POST"], endpoint="admin_locations_regenerate")
    @admin_required
    def admin_locations_regenerate(location_id: str):
        location = service.regenerate_token(current_role=current_principal().role, location_id=location_id)
        return jsonify({"success": True, "location": _location_json(location, with_token=True)})

    @app.route("/api/admin/locations/<location_id>/qr.png", endpoint="admin_locations_qr")
    @admin_required
    def admin_locations_qr(location_id: str):
        location = service.get(location_id)
        url = qr_check_in_url(current_app.config["PUBLIC_BASE_URL"], location.qr_token)
        return send_file(
            render_qr_png(url),
            mimetype="image/png",
            as_attachment=bool(request.args.get("download")),
            download_name=f"qr-{location.name}.png",
        )
