from flask import Flask, request, jsonify
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
import os
import logging

import click

from extensions import limiter
from errors import ServiceError
from models import db, User, ROLE_ADMIN, utcnow
from socket_events import socketio
from auth_routes import auth_bp
from routes import (
    cleaning_requests_bp, feed_bp, admin_bp, cleaner_applications_bp, profile_bp,
)

logger = logging.getLogger(__name__)
_startup_logger = logging.getLogger("tidyup.startup")

_CRITICAL_ENV_VARS = [
    "JWT_SECRET",
    "SECRET_KEY",
    "DATABASE_URL",
]

_RECOMMENDED_ENV_VARS = [
    "RESEND_API_KEY",
    "CORS_ORIGINS",
    "FRONTEND_URL",
]

GENERIC_ERROR = "Something went wrong, please try again."


def _init_sentry():
    """Sentry error monitoring, only active when SENTRY_DSN is set."""
    dsn = os.environ.get("SENTRY_DSN")
    if not dsn:
        return False
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )
    return True


def _startup_checks(config_name, sentry_enabled):
    if config_name in ("development", "testing"):
        return
    missing_critical = [v for v in _CRITICAL_ENV_VARS if not os.environ.get(v)]
    missing_recommended = [v for v in _RECOMMENDED_ENV_VARS if not os.environ.get(v)]

    if missing_critical:
        _startup_logger.critical(
            "MISSING CRITICAL ENV VARS (app may not work correctly): %s",
            ", ".join(missing_critical),
        )
    if missing_recommended:
        _startup_logger.warning(
            "Missing recommended env vars: %s",
            ", ".join(missing_recommended),
        )
    if not sentry_enabled:
        _startup_logger.warning("SENTRY_DSN is not set -- error monitoring is disabled.")


def _allowed_origins(app, is_development):
    origins = app.config["CORS_ORIGINS"]
    if "*" in origins:
        if is_development or app.testing:
            return "*"
        _startup_logger.critical(
            "CORS_ORIGINS is set to '*' in a non-development environment! "
            "Cross-origin requests will be refused until an explicit list is set."
        )
        return []
    return origins


def create_app(config_name=None):
    """Flask application factory"""
    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")

    from config import config
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    sentry_enabled = _init_sentry()
    _startup_checks(config_name, sentry_enabled)
    is_development = config_name == "development"

    # -----------------------------------------------------------------------
    # Extensions
    # -----------------------------------------------------------------------
    origins = _allowed_origins(app, is_development)
    CORS(app, resources={r"/api/*": {"origins": origins}})
    db.init_app(app)
    limiter.init_app(app)
    socketio.init_app(app, cors_allowed_origins=origins,
                      async_mode=app.config["SOCKETIO_ASYNC_MODE"])

    # -----------------------------------------------------------------------
    # Blueprints
    # -----------------------------------------------------------------------
    app.register_blueprint(auth_bp)
    app.register_blueprint(cleaning_requests_bp)
    app.register_blueprint(feed_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(cleaner_applications_bp)
    app.register_blueprint(profile_bp)

    @app.route("/api/health", methods=["GET"])
    @limiter.exempt
    def health_check():
        """Health check endpoint (exempt from rate limiting)"""
        return jsonify({"status": "healthy", "service": "TidyUp API"}), 200

    # -----------------------------------------------------------------------
    # Error handlers
    # -----------------------------------------------------------------------
    @app.errorhandler(ServiceError)
    def handle_service_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(429)
    def ratelimit_handler(e):
        # Retry-After header is set by Flask-Limiter; read it back.
        retry_after = e.get_headers().get("Retry-After") if hasattr(e, "get_headers") else None
        return jsonify({
            "error": "Too many requests. Please try again later.",
            "code": "rate_limited",
            "retry_after": int(retry_after) if retry_after else 60,
        }), 429

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        logger.exception("Database error on %s %s", request.method, request.path)
        return jsonify({"error": GENERIC_ERROR, "code": "server_error"}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({
            "error": e.description,
            "code": (e.name or "error").lower().replace(" ", "_"),
        }), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": GENERIC_ERROR, "code": "server_error"}), 500

    # -----------------------------------------------------------------------
    # Security headers middleware
    # -----------------------------------------------------------------------
    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
        if not request.path.startswith("/uploads/"):
            response.headers["Content-Security-Policy"] = "default-src 'none'"
        if not is_development and not app.testing:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # -----------------------------------------------------------------------
    # CLI commands:  flask init-db, flask create-admin
    # -----------------------------------------------------------------------
    @app.cli.command("init-db")
    def cli_init_db():
        """Create all database tables."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("password")
    @click.option("--name", default="Administrator", help="Full name of the admin.")
    def cli_create_admin(email, password, name):
        """Create a verified admin account, or promote an existing one."""
        email = email.strip().lower()
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(full_name=name, email=email)
            db.session.add(user)
            click.echo("Creating admin {}".format(email))
        else:
            click.echo("Promoting existing account {}".format(email))
        user.set_password(password)
        user.role = ROLE_ADMIN
        user.status = "active"
        user.custom_claims = dict(user.custom_claims or {}, admin=True)
        if user.email_verified_at is None:
            user.email_verified_at = utcnow()
        db.session.commit()
        click.echo("Done.")

    with app.app_context():
        db.create_all()

    return app


if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", 8080))
    socketio.run(app, debug=app.config["DEBUG"], host="0.0.0.0", port=port)
