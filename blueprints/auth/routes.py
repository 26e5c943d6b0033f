# blueprints/auth/routes.py
from __future__ import annotations
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, request, jsonify, abort, current_app
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.security import check_password_hash

from extensions import csrf, db, login_manager
from models import Role, School, User

api_bp = Blueprint("auth_api", __name__)


@login_manager.user_loader
def load_user(uid: str) -> Optional[User]:
    return db.session.get(User, uid)


# ---------- декораторы ролей ----------
def _admin_roles() -> tuple:
    return tuple(current_app.config.get("ADMIN_ROLES", (Role.SCHOOL_ADMIN.value, Role.SUPER_ADMIN.value)))


def super_admin_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        if getattr(current_user, "role", None) != Role.SUPER_ADMIN.value:
            abort(403)
        return fn(*args, **kwargs)
    return wrapper


def staff_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        # преподаватели и администраторы
        if getattr(current_user, "role", None) not in (Role.TEACHER.value, *_admin_roles()):
            abort(403)
        return fn(*args, **kwargs)
    return wrapper


def check_tenant(school: School) -> None:
    """Обращаться к школе можно только к своей; SUPER_ADMIN: к любой."""
    if getattr(current_user, "role", None) == Role.SUPER_ADMIN.value:
        return
    if getattr(current_user, "school_id", None) != school.id:
        abort(403)


# ---------- обработчики 401/403 ----------
@login_manager.unauthorized_handler
def _unauth():
    return jsonify({"error": "unauthorized"}), 401


@api_bp.app_errorhandler(403)
def _forbidden(e):
    return jsonify({"error": "forbidden"}), 403


def _user_json(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "school_id": user.school_id,
        "teacher_id": user.teacher_id,
    }


# ---------- API ----------
@api_bp.post("/auth/login")
@csrf.exempt  # токен выдаётся через /api/v1/csrf, логин без него
def api_login():
    payload = request.get_json(silent=True) or request.form or {}
    email = (payload.get("email") or "").strip().lower()
    password = payload.get("password") or ""

    if not email or not password:
        return jsonify({"error": "missing_credentials"}), 400

    user: Optional[User] = User.query.filter_by(email=email).first()
    if not user or not user.password_hash or not check_password_hash(user.password_hash, password):
        return jsonify({"error": "invalid_credentials"}), 401

    if not user.is_active:
        return jsonify({"error": "inactive"}), 403

    login_user(user, remember=True)
    current_app.logger.info("login", extra={"event": "auth_login"})
    return jsonify({"ok": True, "user": _user_json(user)})


@api_bp.post("/auth/logout")
@login_required
def api_logout():
    logout_user()
    return jsonify({"ok": True})


@api_bp.get("/auth/me")
@login_required
def api_me():
    return jsonify({"user": _user_json(current_user)})
