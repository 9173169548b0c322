"""Route handlers for gateway endpoints."""
import time

from flask import Response, g, jsonify, request
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from ..core.config import get_config_errors
from ..services.dispatch import Dispatcher
from ..services.errors import GENERIC_MESSAGE, GatewayError, InvalidRequest
from ..utils.http import error_response, gateway_error_response, text_response
from ..utils.logging import log_event
from .schemas import (
    ChatRequest,
    EmbeddingsRequest,
    FileUpload,
    ImageRequest,
    SimilarityRequest,
    SpeechRequest,
)


def _parse_json(schema):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidRequest("request body must be a JSON object")
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise InvalidRequest(str(e)) from e


def _read_upload():
    storage = request.files.get("file")
    if storage is None:
        return None
    return FileUpload(
        content=storage.read(),
        filename=storage.filename or None,
        content_type=storage.mimetype or None,
    )


def _gateway_error(err: GatewayError):
    if isinstance(err, InvalidRequest):
        # dispatcher failures are already logged with their stage
        log_event(30, "request_rejected", request_id=g.request_id, error_kind=err.kind, error=str(err))
    return gateway_error_response(err)


def register_routes(app, settings, dispatcher: Dispatcher):
    """Register Flask routes on the app."""

    def _dispatch(handler_name, operation, build_response):
        g.dispatch_trace = {}
        try:
            result = operation(g.dispatch_trace)
            return build_response(result)
        except GatewayError as e:
            return _gateway_error(e)
        except HTTPException:
            raise
        except Exception as e:
            log_event(40, f"{handler_name}_error", error=str(e), request_id=g.request_id)
            return error_response(GENERIC_MESSAGE)

    @app.route('/generate-chat', methods=['POST'])
    def generate_chat():
        return _dispatch(
            "generate_chat",
            lambda trace: dispatcher.chat(_parse_json(ChatRequest), trace=trace, request_id=g.request_id),
            lambda result: text_response(result.text),
        )

    @app.route('/transcribe-speech', methods=['POST'])
    def transcribe_speech():
        def build_response(result):
            if isinstance(result.body, (dict, list)):
                return jsonify(result.body)
            return text_response(result.body)

        return _dispatch(
            "transcribe_speech",
            lambda trace: dispatcher.transcribe(_read_upload(), trace=trace, request_id=g.request_id),
            build_response,
        )

    @app.route('/generate-speech', methods=['POST'])
    def generate_speech():
        return _dispatch(
            "generate_speech",
            lambda trace: dispatcher.speak(_parse_json(SpeechRequest), trace=trace, request_id=g.request_id),
            lambda result: Response(result.content, status=200, mimetype=result.mime_type),
        )

    @app.route('/generate-image', methods=['POST'])
    def generate_image():
        return _dispatch(
            "generate_image",
            lambda trace: dispatcher.generate_image(
                _parse_json(ImageRequest), trace=trace, request_id=g.request_id
            ),
            lambda result: text_response(result.url),
        )

    @app.route('/get-embeddings', methods=['POST'])
    def get_embeddings():
        return _dispatch(
            "get_embeddings",
            lambda trace: dispatcher.embeddings(
                _parse_json(EmbeddingsRequest), trace=trace, request_id=g.request_id
            ),
            lambda result: jsonify(result.raw),
        )

    @app.route('/calculate-similarity', methods=['POST'])
    def calculate_similarity():
        return _dispatch(
            "calculate_similarity",
            lambda trace: dispatcher.similarity(
                _parse_json(SimilarityRequest), trace=trace, request_id=g.request_id
            ),
            lambda result: text_response(result.score),
        )

    @app.route('/healthz', methods=['GET'])
    def health():
        errors = get_config_errors()
        status = "ok" if not errors else "warn"
        verbose = request.args.get("verbose") == "1"
        if not verbose:
            return jsonify({"status": status})
        return jsonify(
            {
                "status": status,
                "uptime_seconds": int(time.time() - app.config.get("APP_STARTED_AT", time.time())),
                "version": settings.app_version,
                "config_errors": errors,
            }
        )

    @app.route('/version', methods=['GET'])
    def version():
        return jsonify({"version": settings.app_version})

    @app.errorhandler(404)
    def handle_not_found(error):
        return error_response("Not found", 404, "invalid_request_error")

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return error_response("Method not allowed", 405, "invalid_request_error")

    @app.errorhandler(413)
    def handle_payload_too_large(error):
        return error_response("Request body too large", 413, "invalid_request_error")
