from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..container import Container
from ..common.web import current_principal, login_required, store_principal


def _principal_json(principal) -> dict:
    return {
        "user_id": principal.user_id,
        "email": principal.email,
        "name": principal.name,
        "role": principal.role.value,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = request.get_json(silent=True) or {}
        principal = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=7)
        store_principal(principal)

        return jsonify({"success": True, "user": _principal_json(principal)})

    @app.route("/api/auth/signup", methods=["POST"], endpoint="signup")
    def signup():
        data = request.get_json(silent=True) or {}
        principal = container.auth_service.signup(
            email=data.get("email", ""),
            password=data.get("password", ""),
            full_name=data.get("full_name"),
        )
        session.clear()
        store_principal(principal)
        return jsonify({"success": True, "user": _principal_json(principal)}), 201

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/me", endpoint="me")
    @login_required
    def me():
        principal = current_principal()
        employee = container.employee_service.ensure_profile(
            employee_id=principal.user_id,
            email=principal.email,
        )
        return jsonify(
            {
                "success": True,
                "user": _principal_json(principal),
                "employee": {
                    "job_title": employee.job_title.value,
                    "is_active": employee.is_active,
                    "location_ids": list(employee.location_ids),
                },
            }
        )
