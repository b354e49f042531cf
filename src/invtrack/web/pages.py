from __future__ import annotations

from flask import Blueprint, flash, redirect, render_template, request, session, url_for

from invtrack.domain import policy
from invtrack.domain.errors import AuthenticationError, ValidationError
from invtrack.web.guards import (
    SESSION_KEY,
    container,
    current_principal,
    elevated_required,
    login_required,
    require_principal,
)
from invtrack.web.serializers import material_fields_from_json, material_ids_from_form, user_fields_from_json

pages = Blueprint("pages", __name__)


@pages.route("/login", methods=["GET"])
def login():
    if current_principal() is not None:
        return redirect(url_for("pages.dashboard"))
    return render_template("login.html", error=None)


@pages.route("/login", methods=["POST"])
def login_submit():
    data = request.get_json(silent=True) if request.is_json else request.form
    data = data or {}
    try:
        issued = container().auth.login(str(data.get("username") or ""), str(data.get("password") or ""))
    except AuthenticationError as exc:
        if request.is_json:
            return {"success": False, "error": str(exc)}, 401
        return render_template("login.html", error=str(exc)), 401

    session.clear()
    session[SESSION_KEY] = issued.token
    session.permanent = True
    return redirect(url_for("pages.dashboard"))


@pages.route("/logout", methods=["GET"])
def logout():
    container().auth.logout(session.get(SESSION_KEY))
    session.clear()
    return redirect(url_for("pages.login"))


@pages.route("/", methods=["GET"])
@login_required
def index():
    return redirect(url_for("pages.dashboard"))


@pages.route("/dashboard", methods=["GET"])
@login_required
def dashboard():
    summary = container().reporting.dashboard()
    return render_template("dashboard.html", user=current_principal(), summary=summary)


# ---------- Materials ----------
@pages.route("/materials", methods=["GET"])
@login_required
def materials():
    search = request.args.get("q", "").strip()
    rows = container().materials.list_materials(search=search)
    return render_template("materials.html", user=current_principal(), materials=rows, count=len(rows), search=search)


@pages.route("/materials", methods=["POST"])
@login_required
def material_create():
    try:
        m = container().materials.add_material(material_fields_from_json(request.form), require_principal().username)
        flash(f"Material '{m.part_name}' added.", "success")
    except ValidationError as exc:
        flash(str(exc), "error")
    return redirect(url_for("pages.materials"))


@pages.route("/materials/<int:material_id>/edit", methods=["GET"])
@login_required
def material_edit(material_id: int):
    m = container().materials.get_material(material_id)
    return render_template("material_form.html", user=current_principal(), material=m)


@pages.route("/materials/<int:material_id>/edit", methods=["POST"])
@login_required
def material_update(material_id: int):
    try:
        fields = material_fields_from_json(request.form)
        container().materials.update_material(material_id, fields, require_principal().username)
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for("pages.material_edit", material_id=material_id))
    flash("Material updated.", "success")
    return redirect(url_for("pages.materials"))


@pages.route("/materials/<int:material_id>/delete", methods=["POST"])
@login_required
def material_delete(material_id: int):
    container().materials.delete_material(material_id, require_principal().username)
    flash("Material deleted.", "success")
    return redirect(url_for("pages.materials"))


@pages.route("/materials/delete", methods=["POST"])
@login_required
def materials_delete_selected():
    try:
        ids = material_ids_from_form(request.form.getlist("ids"))
        removed = container().materials.delete_materials(ids, require_principal().username)
        flash(f"{removed} material(s) deleted.", "success")
    except ValidationError:
        flash("Select at least one material to delete.", "error")
    return redirect(url_for("pages.materials"))


# ---------- Users ----------
@pages.route("/users", methods=["GET"])
@elevated_required
def users():
    actor = current_principal()
    svc = container().users
    return render_template(
        "users.html",
        user=actor,
        users=svc.list_users(actor),
        roles=svc.available_roles(actor),
        can_edit=lambda target: policy.can_edit(actor, target),
        can_delete=lambda target: policy.can_delete(actor, target),
    )


@pages.route("/users", methods=["POST"])
@elevated_required
def user_create():
    try:
        u = container().users.create_user(require_principal(), user_fields_from_json(request.form))
        flash(f"User '{u.username}' added.", "success")
    except ValidationError as exc:
        flash(str(exc), "error")
    return redirect(url_for("pages.users"))


@pages.route("/users/<int:user_id>/edit", methods=["GET"])
@login_required
def user_edit(user_id: int):
    actor = require_principal()
    svc = container().users
    target = svc.get_user(actor, user_id)
    return render_template(
        "user_form.html",
        user=actor,
        target=target,
        roles=svc.available_roles(actor),
        is_self=actor.id == target.id,
    )


@pages.route("/users/<int:user_id>/edit", methods=["POST"])
@login_required
def user_update(user_id: int):
    actor = require_principal()
    try:
        container().users.update_user(actor, user_id, user_fields_from_json(request.form))
    except ValidationError as exc:
        flash(str(exc), "error")
        return redirect(url_for("pages.user_edit", user_id=user_id))
    flash("User updated.", "success")
    if policy.has_elevated_access(actor):
        return redirect(url_for("pages.users"))
    return redirect(url_for("pages.dashboard"))


@pages.route("/account/password", methods=["POST"])
@login_required
def password_update():
    actor = require_principal()
    try:
        container().auth.change_password(
            actor,
            request.form.get("currentPassword", ""),
            request.form.get("newPassword", ""),
            request.form.get("confirmPassword", ""),
            current_token=session.get(SESSION_KEY),
        )
        flash("Password changed.", "success")
    except ValidationError as exc:
        flash(str(exc), "error")
    return redirect(url_for("pages.user_edit", user_id=actor.id))


@pages.route("/users/<int:user_id>/delete", methods=["POST"])
@elevated_required
def user_delete(user_id: int):
    container().users.delete_user(require_principal(), user_id)
    flash("User deleted.", "success")
    return redirect(url_for("pages.users"))
