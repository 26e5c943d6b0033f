"""Ошибки сервисного слоя.

Каждая ошибка несёт машинный код (для клиента), HTTP-статус и читаемое
сообщение. Сервисы только бросают их, маппинг в ответ делает обработчик
из ``register_error_handlers``.
"""
from __future__ import annotations
import logging

from flask import Flask, jsonify
from pydantic import ValidationError

log = logging.getLogger(__name__)


class ServiceError(Exception):
    code = "error"
    http_status = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None, *, details: dict | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.code, "detail": self.message}
        if self.details:
            body["context"] = self.details
        return body


class NotFound(ServiceError):
    code = "not_found"
    http_status = 404
    default_message = "Not found"


class ValidationFailed(ServiceError):
    code = "validation_error"
    http_status = 400
    default_message = "Validation failed"


class Forbidden(ServiceError):
    code = "forbidden"
    http_status = 403
    default_message = "Insufficient permissions"


class Conflict(ServiceError):
    code = "conflict"
    http_status = 409
    default_message = "Conflicting record exists"


class InvalidState(ServiceError):
    code = "invalid_state"
    http_status = 409
    default_message = "Transition is not allowed from the current status"


def pydantic_errors_safe(ve: ValidationError) -> list[dict]:
    errs = ve.errors()
    for e in errs:
        # ctx может содержать исключения: они не сериализуются в JSON
        if "ctx" in e and isinstance(e["ctx"], dict):
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        e.pop("url", None)
    return errs


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ServiceError)
    def _service_error(e: ServiceError):
        log.info("service error", extra={"event": "service_error", "status": e.http_status})
        return jsonify(e.to_dict()), e.http_status

    @app.errorhandler(ValidationError)
    def _payload_error(e: ValidationError):
        return jsonify({"error": "validation_error", "detail": pydantic_errors_safe(e)}), 422
