from __future__ import annotations
import os
from importlib import import_module
from flask import Flask
from config import config_map
from errors import register_error_handlers
from extensions import db, csrf, migrate, login_manager
from werkzeug.security import generate_password_hash
from sqlalchemy import inspect

def _seed_from_config(app):
    if not app.config.get("SEED_TEST_DATA"):
        return
    with app.app_context():
        # таблица users может ещё не быть создана (alembic upgrade и т.п.)
        if not inspect(db.engine).has_table("users"):
            return

        from models import User, Teacher  # локальный импорт, чтобы избежать циклов
        created = 0
        for u in app.config.get("DEFAULT_USERS", []):
            if User.query.filter_by(email=u["email"]).first():
                continue
            user = User(
                email=u["email"],
                password_hash=generate_password_hash(u["password"]),
                role=u["role"],
                school_id=u.get("school_id"),
                is_active_flag=True,
            )
            code = u.get("teacher_code")
            if code:
                t = Teacher.query.filter_by(teacher_code=code).first()
                if t:
                    user.teacher_id = t.id
                    user.school_id = user.school_id or t.school_id
            db.session.add(user)
            created += 1
        if created:
            db.session.commit()
            app.logger.info("default users seeded", extra={"event": "seed_users", "created_count": created})

def register_blueprints(app: Flask) -> None:
    # core регистрирует JSON-логирование и /health
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp, api_bp as core_api_bp
    from blueprints.auth.routes import api_bp as auth_api_bp
    from blueprints.catalog import api_bp as catalog_api_bp
    from blueprints.curriculum import api_bp as curriculum_api_bp

    app.register_blueprint(core_bp)
    app.register_blueprint(core_api_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_api_bp, url_prefix="/api/v1")
    app.register_blueprint(catalog_api_bp, url_prefix="/api/v1/reference")
    app.register_blueprint(curriculum_api_bp, url_prefix="/api/v1")

def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # pytest выставляет PYTEST_CURRENT_TEST: БД всегда в памяти,
    # чтобы изменения одного теста не протекали в другой
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"check_same_thread": False}})

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    register_error_handlers(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app
