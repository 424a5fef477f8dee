"""Application factory for the quote approval backend."""
from __future__ import annotations

import time

from flask import Flask
from sqlalchemy.exc import OperationalError

from .config import Config
from .extensions import cors, db, limiter


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application instance."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)

    allowed_origins = [
        origin.strip()
        for origin in (app.config.get("CORS_ALLOWED_ORIGINS") or "").split(",")
        if origin.strip()
    ]
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": allowed_origins}},
        allow_headers=["Content-Type", "Authorization", "X-Approver-Role"],
    )

    limiter.init_app(app)

    from .api.auth import bp as auth_bp
    from .api.errors import handle_rate_limited, handle_workflow_error
    from .api.health import bp as health_bp
    from .api.logs import bp as logs_bp
    from .api.queue import bp as queue_bp
    from .api.workflows import bp as workflows_bp
    from .audit import record_workflow_event
    from .notifications import build_dispatcher
    from .workflow.errors import WorkflowError
    from .workflow.service import WorkflowService
    from .workflow.sql_store import SqlAlchemyWorkflowStore

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(logs_bp, url_prefix="/api")
    app.register_blueprint(workflows_bp, url_prefix="/api")
    app.register_blueprint(queue_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_error_handler(WorkflowError, handle_workflow_error)
    app.register_error_handler(429, handle_rate_limited)

    app.extensions["workflow_service"] = WorkflowService(
        SqlAlchemyWorkflowStore(),
        notifier=build_dispatcher(app),
        logger=app.logger,
        default_steps=app.config.get("APPROVAL_DEFAULT_STEPS") or (),
        audit=record_workflow_event,
    )

    with app.app_context():
        # Import models to ensure they are registered with SQLAlchemy before creating tables.
        from .models import auth, logs, settings, workflow  # noqa: F401

        _initialize_database(app)

    return app


def _initialize_database(app: Flask) -> None:
    """Create tables, retrying while the database is not reachable yet."""

    max_retries = int(app.config.get("DB_INIT_MAX_RETRIES", 30))
    retry_delay = float(app.config.get("DB_INIT_RETRY_DELAY", 2))

    for attempt in range(1, max_retries + 1):
        try:
            db.create_all()
            return
        except OperationalError as exc:
            if attempt >= max_retries:
                app.logger.exception("Database initialization failed after %s attempts.", attempt)
                raise

            app.logger.warning(
                "Database initialization attempt %s/%s failed: %s", attempt, max_retries, exc
            )
            time.sleep(retry_delay)
