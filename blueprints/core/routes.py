from __future__ import annotations
import json, logging
from uuid import uuid4

from flask import g, jsonify, request
from werkzeug.wrappers.response import Response

from flask_wtf.csrf import generate_csrf
from extensions import csrf
from models import utcnow

from . import bp, api_bp

REQUEST_ID_HEADER = "X-Request-ID"
# поля из extra=..., которые попадают в JSON-запись
LOG_FIELDS = (
    "event", "path", "method", "status", "duration_ms", "request_id",
    "curriculum_id", "template", "weeks", "created_count", "failed_count", "from", "to",
)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": utcnow().isoformat(timespec="milliseconds") + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in LOG_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _setup_structured_logging(app):
    # модульные логгеры сервисов пишут в root, туда и ставим JSON-хендлер
    logger = logging.getLogger()
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in logger.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(app.config.get("LOG_LEVEL", logging.INFO))


@api_bp.get("/csrf")
@csrf.exempt
def get_csrf():
    token = generate_csrf()
    resp = jsonify({"csrf": token})
    resp.set_cookie("csrf_token", token, samesite="Lax")
    return resp


@bp.before_app_request
def _start_timer():
    g._req_start = utcnow()
    g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex


@bp.after_app_request
def _log_request(response: Response):
    start = getattr(g, "_req_start", None)
    duration_ms = int((utcnow() - start).total_seconds() * 1000) if start else None
    response.headers.setdefault(REQUEST_ID_HEADER, getattr(g, "request_id", ""))
    logging.getLogger("http").info("request handled", extra={
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "request_id": getattr(g, "request_id", None),
    })
    return response


@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)


@bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ts": utcnow().isoformat(timespec="seconds") + "Z",
        "request_id": getattr(g, "request_id", None),
    })
