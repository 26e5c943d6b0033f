from flask import Blueprint

bp = Blueprint("core", __name__)
api_bp = Blueprint("core_api", __name__)
# маршруты регистрируются при импорте модуля
from . import routes  # noqa: E402,F401
