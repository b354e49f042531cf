from __future__ import annotations

import logging
import tempfile
from datetime import datetime
from io import BytesIO
from pathlib import Path

from flask import Blueprint, jsonify, request, send_file, session

from invtrack.domain.errors import ValidationError
from invtrack.web.guards import SESSION_KEY, api_login_required, container, current_principal, require_principal
from invtrack.web.serializers import (
    dashboard_to_json,
    material_fields_from_json,
    material_to_json,
    principal_to_json,
    user_fields_from_json,
    user_to_json,
)

log = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object.")
    return data


# ---------- Auth ----------
@api.route("/auth/login", methods=["POST"])
def login():
    data = _body()
    issued = container().auth.login(str(data.get("username") or ""), str(data.get("password") or ""))
    session.clear()
    session[SESSION_KEY] = issued.token
    session.permanent = True
    return jsonify({"success": True, "user": principal_to_json(issued.principal)})


@api.route("/auth/status", methods=["GET"])
def status():
    principal = current_principal()
    return jsonify({
        "authenticated": principal is not None,
        "user": principal_to_json(principal) if principal else None,
    })


@api.route("/auth/logout", methods=["POST"])
def logout():
    container().auth.logout(session.get(SESSION_KEY))
    session.clear()
    return jsonify({"success": True})


@api.route("/auth/password", methods=["POST"])
@api_login_required
def change_password():
    data = _body()
    container().auth.change_password(
        require_principal(),
        str(data.get("currentPassword") or ""),
        str(data.get("newPassword") or ""),
        str(data.get("confirmPassword") or ""),
        current_token=session.get(SESSION_KEY),
    )
    return jsonify({"success": True, "message": "Password changed successfully"})


# ---------- Dashboard ----------
@api.route("/dashboard", methods=["GET"])
@api_login_required
def dashboard():
    summary = container().reporting.dashboard()
    return jsonify({"success": True, **dashboard_to_json(summary)})


@api.route("/health", methods=["GET"])
def health():
    integrity = container().repo.integrity_check()
    return jsonify({"success": integrity == "ok", "data": {"database": integrity}})


# ---------- Materials ----------
@api.route("/materials", methods=["GET"])
@api_login_required
def list_materials():
    materials = container().materials.list_materials()
    return jsonify({"success": True, "data": [material_to_json(m) for m in materials]})


@api.route("/materials/<int:material_id>", methods=["GET"])
@api_login_required
def get_material(material_id: int):
    m = container().materials.get_material(material_id)
    return jsonify({"success": True, "data": material_to_json(m)})


@api.route("/materials", methods=["POST"])
@api_login_required
def add_material():
    principal = require_principal()
    fields = material_fields_from_json(_body())
    m = container().materials.add_material(fields, principal.username)
    return jsonify({"success": True, "message": "Material added successfully", "id": m.id}), 201


@api.route("/materials/<int:material_id>", methods=["PUT"])
@api_login_required
def update_material(material_id: int):
    principal = require_principal()
    fields = material_fields_from_json(_body())
    container().materials.update_material(material_id, fields, principal.username)
    return jsonify({"success": True, "message": "Material updated successfully"})


@api.route("/materials/<int:material_id>", methods=["DELETE"])
@api_login_required
def delete_material(material_id: int):
    principal = require_principal()
    container().materials.delete_material(material_id, principal.username)
    return jsonify({"success": True, "message": "Material deleted successfully"})


@api.route("/materials", methods=["DELETE"])
@api_login_required
def delete_materials():
    principal = require_principal()
    removed = container().materials.delete_materials(_body().get("ids"), principal.username)
    return jsonify({"success": True, "message": "Materials deleted successfully", "deleted": removed})


@api.route("/materials/export", methods=["GET"])
@api_login_required
def export_materials():
    principal = require_principal()
    filename = f"materials_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / filename
        container().reporting.export_materials_excel(path)
        payload = path.read_bytes()
    log.info("materials_exported by=%s bytes=%s", principal.username, len(payload))

    return send_file(
        BytesIO(payload),
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        as_attachment=True,
        download_name=filename,
    )


# ---------- Users ----------
@api.route("/users", methods=["GET"])
@api_login_required
def list_users():
    users = container().users.list_users(require_principal())
    return jsonify({"success": True, "data": [user_to_json(u) for u in users]})


@api.route("/users/roles", methods=["GET"])
@api_login_required
def available_roles():
    roles = container().users.available_roles(require_principal())
    return jsonify({"success": True, "data": [r.value for r in roles]})


@api.route("/users/<int:user_id>", methods=["GET"])
@api_login_required
def get_user(user_id: int):
    user = container().users.get_user(require_principal(), user_id)
    return jsonify({"success": True, "data": user_to_json(user)})


@api.route("/users", methods=["POST"])
@api_login_required
def add_user():
    fields = user_fields_from_json(_body())
    user = container().users.create_user(require_principal(), fields)
    return jsonify({
        "success": True,
        "message": "User added successfully",
        "id": user.id,
        "data": user_to_json(user),
    }), 201


@api.route("/users/<int:user_id>", methods=["PUT"])
@api_login_required
def update_user(user_id: int):
    fields = user_fields_from_json(_body())
    user = container().users.update_user(require_principal(), user_id, fields)
    return jsonify({"success": True, "message": "User updated successfully", "data": user_to_json(user)})


@api.route("/users/<int:user_id>", methods=["DELETE"])
@api_login_required
def delete_user(user_id: int):
    container().users.delete_user(require_principal(), user_id)
    return jsonify({"success": True, "message": "User deleted successfully"})
