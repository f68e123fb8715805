# backend/marketplace/__init__.py
import logging

from flask import Flask, request, current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import MarketplaceError
from .extensions import db, migrate
from .responses import error
from .storage import EXTENSION_KEY, MemoryRepository, Repository


def _select_repository(app: Flask) -> Repository:
    """
    Build the configured storage backend.

    The SQL backend is probed at startup; when the database is unreachable
    and STORAGE_FALLBACK_TO_MEMORY is set, the app keeps serving from an
    in-process store instead of failing to boot.
    """
    if app.config["STORAGE_BACKEND"] == "memory":
        return MemoryRepository()

    from .storage.sql import SqlRepository

    repository = SqlRepository()
    with app.app_context():
        try:
            db.session.execute(text("SELECT 1"))
            repository.initialize()
        except OperationalError:
            db.session.rollback()
            if not app.config.get("STORAGE_FALLBACK_TO_MEMORY"):
                raise
            app.logger.warning(
                "Database unreachable at %s; falling back to in-memory storage",
                app.config["SQLALCHEMY_DATABASE_URI"],
            )
            return MemoryRepository()
    return repository


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(MarketplaceError)
    def handle_marketplace_error(exc):
        return error(exc.message, exc.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc):
        if exc.code == 404:
            return error("Route not found", 404)
        return error(exc.description or exc.name, exc.code)

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return error("Internal server error", 500)


def create_app(config_overrides: dict | None = None, repository: Repository | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    if repository is None:
        repository = _select_repository(app)
    else:
        with app.app_context():
            repository.initialize()
    app.extensions[EXTENSION_KEY] = repository
    app.logger.info("Storage backend: %s", repository.name)

    # Register blueprints
    from .routes import ALL_BLUEPRINTS
    for blueprint in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint)

    _register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
