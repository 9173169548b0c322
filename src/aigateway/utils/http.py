"""Response builders shared by the route handlers."""
from flask import Response, jsonify, request

from ..services.errors import GatewayError

TEXT_PLAIN = "text/plain; charset=utf-8"


def client_ip() -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    hop = forwarded.split(",")[0].strip()
    return hop or request.remote_addr or "unknown"


def text_response(value) -> Response:
    return Response(str(value), status=200, content_type=TEXT_PLAIN)


def error_response(message: str, status: int = 500, error_type: str = "internal_error"):
    """JSON error envelope. ``message`` is always a fixed public string."""
    body = {"error": {"message": message, "type": error_type, "param": None, "code": None}}
    return jsonify(body), status


def gateway_error_response(err: GatewayError):
    return error_response(err.public_message, err.status, err.error_type)
