from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite-файл в корне проекта
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CSRF для API: токен из /api/v1/csrf в заголовке
    WTF_CSRF_TIME_LIMIT = None
    WTF_CSRF_HEADERS = ["X-CSRF-Token", "X-CSRFToken"]

    # длина учебного четверти (term) в неделях
    CURRICULUM_TERM_WEEKS = 13
    # роли, которым разрешено утверждать/отклонять и править чужие планы
    ADMIN_ROLES = ("SCHOOL_ADMIN", "SUPER_ADMIN")
    # дополнительные коды уровней: {"KG_1": {"name": "KG 1", "school_type": "NURSERY"}}
    CLASS_LEVEL_CODES: dict = {}

    SEED_TEST_DATA = False
    DEFAULT_USERS: list = []

class DevConfig(BaseConfig):
    DEBUG = True
    SEED_TEST_DATA = True
    DEFAULT_USERS = [
        {"email": "admin@example.com", "password": "pass", "role": "SUPER_ADMIN"},
    ]

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False

class ProdConfig(BaseConfig):
    DEBUG = False
    JSON_SORT_KEYS = False

config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
