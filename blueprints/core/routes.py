from __future__ import annotations
import json, logging
from datetime import datetime, timezone

from flask import g, jsonify, request
from werkzeug.wrappers.response import Response

from errors import ServiceError
from . import bp

LOG_FIELDS = (
    "event", "path", "method", "status", "duration_ms",
    "customer_id", "shift", "amount", "amount_due", "error",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": _utcnow().strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in LOG_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _setup_structured_logging(app):
    def _has_json(logger):
        return any(
            isinstance(h, logging.StreamHandler)
            and isinstance(getattr(h, "formatter", None), JSONFormatter)
            for h in logger.handlers
        )

    # app.logger для запросов, корневой для сервисов (logging.getLogger(__name__))
    for logger in (app.logger, logging.getLogger()):
        if not _has_json(logger):
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    app.logger.propagate = False


@bp.before_app_request
def _start_timer():
    g._req_start = _utcnow()


@bp.after_app_request
def _log_request(response: Response):
    try:
        duration_ms = int((_utcnow() - g._req_start).total_seconds() * 1000)
    except AttributeError:
        duration_ms = None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
    }
    logging.getLogger("http").info("request handled", extra=extra)
    return response


@bp.app_errorhandler(ServiceError)
def _service_error(e: ServiceError):
    body = {"error": e.code, "detail": e.message}
    body.update(e.extra())
    return jsonify(body), e.status


@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)


@bp.get("/health")
def health():
    return jsonify({
        "status": "ok",
        "ts": _utcnow().isoformat(timespec="seconds").replace("+00:00", "Z"),
    })
