from contextlib import contextmanager

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf import CSRFProtect

db = SQLAlchemy()
csrf = CSRFProtect()
migrate = Migrate()
login_manager = LoginManager()


@contextmanager
def atomic():
    """Одна транзакция: commit при успехе, rollback при любой ошибке."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
