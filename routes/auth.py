from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import IntegrityError

from models import db
from models.user import AdminUser
from security.session import create_session, revoke_session, revoke_all_sessions
from security.csrf import issue_csrf_token
from utils.audit import log_event
from utils.auth_context import admin_required

auth_bp = Blueprint("auth", __name__, url_prefix="/api/admin")

MIN_PASSWORD_LENGTH = 8


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""

    if not username or not password:
        return jsonify(error="Username and password required"), 400

    admin = AdminUser.query.filter_by(username=username).first()
    if not admin or not admin.check_password(password):
        log_event("ADMIN_LOGIN_FAIL", admin_id=admin.id if admin else None, metadata={"username": username})
        return jsonify(error="Invalid credentials"), 401

    # Rotate: revoke any existing sessions for this admin
    revoked_count = revoke_all_sessions(admin.id)
    raw_token = create_session(admin.id)

    resp = jsonify(success=True, admin=admin.to_dict())
    resp.set_cookie(
        current_app.config.get("AUTH_COOKIE_NAME", "airtransfer_session"),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 30 * 24 * 60 * 60),
        path="/",
    )
    resp = issue_csrf_token(resp)

    log_event("ADMIN_LOGIN_SUCCESS", admin_id=admin.id, metadata={"revoked_sessions": revoked_count})
    return resp, 200


@auth_bp.post("/logout")
@admin_required
def logout():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "airtransfer_session")
    revoke_session(request.cookies.get(cookie_name))
    log_event("ADMIN_LOGOUT")

    resp = jsonify(success=True)
    resp.delete_cookie(cookie_name, path="/")
    return resp, 200


@auth_bp.get("/me")
@admin_required
def me():
    return jsonify(g.admin.to_dict()), 200


# ---------- admin user management ----------
@auth_bp.get("/users")
@admin_required
def list_admin_users():
    admins = AdminUser.query.order_by(AdminUser.created_at.desc()).all()
    return jsonify([a.to_dict() for a in admins]), 200


@auth_bp.post("/users")
@admin_required
def create_admin_user():
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not username:
        return jsonify(error="username is required"), 400
    if not _is_valid_email(email):
        return jsonify(error="Invalid email"), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify(error=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"), 400

    admin = AdminUser(username=username, email=email)
    admin.set_password(password)
    db.session.add(admin)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Username already exists"), 409

    log_event("ADMIN_USER_CREATE", entity="admin_user", entity_id=admin.id)
    return jsonify(admin.to_dict()), 201


@auth_bp.patch("/users/<admin_id>")
@admin_required
def update_admin_user(admin_id: str):
    admin = db.session.get(AdminUser, admin_id)
    if not admin:
        return jsonify(error="Admin user not found"), 404

    data = request.get_json(silent=True) or {}
    if "username" in data:
        username = (data.get("username") or "").strip()
        if not username:
            return jsonify(error="username is required"), 400
        admin.username = username
    if "email" in data:
        email = (data.get("email") or "").strip().lower()
        if not _is_valid_email(email):
            return jsonify(error="Invalid email"), 400
        admin.email = email
    if data.get("password"):
        if len(data["password"]) < MIN_PASSWORD_LENGTH:
            return jsonify(error=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"), 400
        admin.set_password(data["password"])

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Username already exists"), 409

    if data.get("password") and admin.id != g.admin.id:
        revoke_all_sessions(admin.id)

    log_event("ADMIN_USER_UPDATE", entity="admin_user", entity_id=admin.id)
    return jsonify(admin.to_dict()), 200


@auth_bp.delete("/users/<admin_id>")
@admin_required
def delete_admin_user(admin_id: str):
    if admin_id == g.admin.id:
        return jsonify(error="Cannot delete your own account"), 403

    admin = db.session.get(AdminUser, admin_id)
    if not admin:
        return jsonify(error="Admin user not found"), 404

    revoke_all_sessions(admin.id)
    db.session.delete(admin)
    db.session.commit()

    log_event("ADMIN_USER_DELETE", entity="admin_user", entity_id=admin_id)
    return jsonify(success=True), 200
