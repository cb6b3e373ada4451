from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container
from ..common.web import admin_required, current_principal
from ..core.exceptions import ValidationError
from .model import Employee


def employee_to_json(employee: Employee) -> dict:
    return {
        "employee_id": employee.employee_id,
        "name": employee.name,
        "job_title": employee.job_title.value,
        "is_active": employee.is_active,
        "location_ids": list(employee.location_ids),
        "primary_location_id": employee.primary_location_id,
    }


def register(app: Flask, container: Container) -> None:
    service = container.employee_service

    @app.route("/api/admin/employees", endpoint="employees_list")
    @admin_required
    def employees_list():
        location_id = request.args.get("location_id")
        rows = service.list_for_location(location_id) if location_id else service.list_all()
        return jsonify({"success": True, "employees": [employee_to_json(e) for e in rows]})

    @app.route("/api/admin/employees/<employee_id>", methods=["PATCH"], endpoint="employees_update")
    @admin_required
    def employees_update(employee_id: str):
        data = request.get_json(silent=True) or {}
        role = current_principal().role

        if "job_title" in data:
            service.change_job_title(current_role=role, employee_id=employee_id, job_title=data["job_title"])
        if "is_active" in data:
            if not isinstance(data["is_active"], bool):
                raise ValidationError("Valor de activo no válido")
            service.set_active(current_role=role, employee_id=employee_id, is_active=data["is_active"])

        return jsonify({"success": True, "employee": employee_to_json(service.get(employee_id))})

    @app.route("/api/admin/employees/<employee_id>/locations", methods=["PUT"], endpoint="employees_locations")
    @admin_required
    def employees_locations(employee_id: str):
        data = request.get_json(silent=True) or {}
        location_ids = data.get("location_ids")
        if not isinstance(location_ids, list):
            raise ValidationError("Lista de locales no válida")

        service.assign_locations(current_role=current_principal().role, employee_id=employee_id, location_ids=location_ids)
        return jsonify({"success": True, "employee": employee_to_json(service.get(employee_id))})

    @app.route("/api/admin/employees/<employee_id>", methods=["DELETE"], endpoint="employees_delete")
    @admin_required
    def employees_delete(employee_id: str):
        principal = current_principal()
        service.delete_employee(current_role=principal.role, current_user_id=principal.user_id, employee_id=employee_id)
        return jsonify({"success": True})
