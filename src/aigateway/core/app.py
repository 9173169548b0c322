"""Application factory and entrypoint."""
import time

from flask import Flask

from .config import get_config_errors, get_server_port
from ..utils.logging import log_event, setup_logging
from ..api.middleware import register_middlewares
from ..api.handlers import register_routes
from ..services.dispatch import Dispatcher
from .settings import get_settings


def create_app(settings=None, transport=None) -> Flask:
    """Create and configure the Flask application.

    ``transport`` replaces the outbound provider client; tests pass a stub.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = settings.max_content_length
    app.config["APP_STARTED_AT"] = time.time()
    app.config["SETTINGS"] = settings

    register_middlewares(app)
    register_routes(app, settings, Dispatcher(settings, transport))
    return app


def run() -> None:
    """Run the Flask development server."""
    app = create_app()
    settings = app.config["SETTINGS"]

    if settings.strict_config:
        config_errors = get_config_errors()
        if config_errors:
            for err in config_errors:
                log_event(40, "config_error", error=err)
            raise SystemExit("Strict config enabled; fix config.json errors.")

    port = get_server_port() or settings.port
    log_event(20, "server_start", port=port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    run()
