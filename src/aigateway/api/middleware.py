"""Flask middleware registration for request context and access logging."""
import time
import uuid

from flask import g, request

from ..core.config import get_logging_config
from ..utils.http import client_ip
from ..utils.logging import log_event, redact, should_log_request


def _request_detail(log_cfg):
    detail = {}
    if log_cfg.get("include_headers"):
        detail["headers"] = redact(dict(request.headers), log_cfg.get("redact_headers", []))
    if log_cfg.get("include_body"):
        if request.is_json:
            body = request.get_json(silent=True)
            detail["body"] = redact(body, log_cfg.get("redact_keys", []))
        else:
            detail["body"] = {
                "content_type": request.mimetype,
                "content_length": request.content_length,
                "files": [
                    {"field": key, "filename": storage.filename, "content_type": storage.mimetype}
                    for key, storage in request.files.items(multi=True)
                ],
            }
    return detail


def register_middlewares(app):
    """Register Flask middlewares on the app."""

    @app.before_request
    def attach_request_context():
        g.request_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
        g.request_start = time.time()

    @app.after_request
    def log_request(response):
        response.headers["X-Request-ID"] = getattr(g, "request_id", "")
        if request.path == "/healthz":
            return response
        log_cfg = get_logging_config()
        if not should_log_request(response.status_code, log_cfg["sample_rate"]):
            return response
        latency_ms = None
        if hasattr(g, "request_start"):
            latency_ms = int((time.time() - g.request_start) * 1000)
        trace = getattr(g, "dispatch_trace", None) or {}
        log_event(
            20,
            "request",
            request_id=getattr(g, "request_id", ""),
            method=request.method,
            path=request.path,
            status=response.status_code,
            latency_ms=latency_ms,
            task=trace.get("task"),
            stage=trace.get("stage"),
            provider=trace.get("provider"),
            upstream_url=trace.get("upstream_url"),
            client_ip=client_ip(),
        )
        detail = _request_detail(log_cfg)
        if detail:
            log_event(20, "request_detail", request_id=getattr(g, "request_id", ""), **detail)
        return response
