"""Application factory and process entry point."""

import json
import logging
import os
import sys
import uuid

from flask import Blueprint, Flask, jsonify, g, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException
from werkzeug.serving import make_server, prepare_socket
from werkzeug.utils import import_string

from config import Config
from models import db
from routes.uploads import uploads_bp
from routes.users import users_bp
from storage.record_store import RecordStore, StorageUnavailable

migrate = Migrate()


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application.

    Raises :class:`StorageUnavailable` when the database cannot be opened.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Uploads directory, absolute so send_from_directory ignores root_path
    upload_dir = os.path.abspath(app.config.get("UPLOAD_DIR") or "uploads")
    app.config["UPLOAD_DIR"] = upload_dir
    os.makedirs(upload_dir, exist_ok=True)
    if app.config.get("MAX_CONTENT_LENGTH") is None:
        app.config["MAX_CONTENT_LENGTH"] = app.config.get("MAX_UPLOAD_SIZE")

    # Core subsystems
    RecordStore.initialize(app, db)
    migrate.init_app(app, db)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
    )

    # Rate limiting
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "200 per minute")],
        storage_uri=app.config.get("RATELIMIT_STORAGE_URI", "memory://"),
        headers_enabled=app.config.get("RATELIMIT_HEADERS_ENABLED", True),
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Blueprints
    mount_resource(app, uploads_bp, "/uploads")
    mount_resource(app, users_bp, "/users")
    mount_resource(app, app.config.get("SHOWS_HANDLER", "routes.shows:shows_bp"), "/shows")

    # Health
    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    # Errors
    _register_error_handlers(app)

    return app


def mount_resource(app: Flask, handler, url_prefix: str) -> Blueprint:
    """Hand every request under ``url_prefix`` to ``handler``.

    ``handler`` is a :class:`Blueprint` or an import string such as
    ``"routes.shows:shows_bp"`` that names one.
    """
    if isinstance(handler, str):
        handler = import_string(handler)
    if not isinstance(handler, Blueprint):
        raise TypeError(
            f"Resource handler for {url_prefix!r} must be a Blueprint, "
            f"got {type(handler).__name__}."
        )
    app.register_blueprint(handler, url_prefix=url_prefix)
    return handler


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    @app.after_request
    def _add_request_id_header(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        response = error.get_response()
        payload = {
            "error": getattr(error, "name", "Error"),
            "detail": error.description,
            "request_id": request_id,
        }
        response.data = json.dumps(payload)
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        request_id = g.get("request_id") or str(uuid.uuid4())
        app.logger.exception("Unhandled application error", exc_info=error)
        payload = {
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred.",
            "request_id": request_id,
        }
        response = jsonify(payload)
        response.status_code = 500
        response.headers.setdefault("X-Request-ID", request_id)
        return response


def main(config_class: type[Config] = Config) -> int:
    """Start the server. Returns the process exit status."""
    logging.basicConfig(
        level=config_class.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("show_app")

    try:
        application = create_app(config_class)
    except StorageUnavailable as exc:
        logger.error("Database connection failed, aborting startup: %s", exc)
        return 1

    host = application.config.get("HOST", "0.0.0.0")
    port = int(application.config.get("PORT", 5000))
    try:
        sock = prepare_socket(host, port)
    except OSError as exc:
        logger.error("Could not bind to %s:%s: %s", host, port, exc)
        return 1

    # The socket is bound and listening; the server adopts it by fd.
    server = make_server(host, port, application, threaded=True, fd=sock.fileno())
    logger.info("Server running on http://%s:%s", host, sock.getsockname()[1])
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
        sock.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
