import logging
import os
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

import app.partnerhub.models  # noqa: F401  (registers every mapped table)
from app.partnerhub.admin_auth import bp as admin_auth_bp, load_current_admin
from app.partnerhub.auth import bp as auth_bp, load_current_user
from app.partnerhub.config import load_config
from app.partnerhub.db import init_db, teardown_db_session
from app.partnerhub.errors import ServiceError
from app.partnerhub.routes import bp as routes_bp
from app.partnerhub.uploads import bp as uploads_bp
from app.partnerhub.modules.admins.admin import bp as admin_management_bp
from app.partnerhub.modules.agents.admin import bp as admin_agents_bp
from app.partnerhub.modules.agents.portal import bp as partner_agents_bp
from app.partnerhub.modules.businesses.admin import bp as admin_businesses_bp
from app.partnerhub.modules.businesses.portal import bp as partner_businesses_bp
from app.partnerhub.modules.data_requests.admin import bp as admin_data_requests_bp
from app.partnerhub.modules.feedback.admin import bp as admin_feedback_bp
from app.partnerhub.modules.feedback.portal import bp as partner_feedback_bp
from app.partnerhub.modules.forms.admin import bp as admin_forms_bp
from app.partnerhub.modules.forms.portal import bp as partner_forms_bp
from app.partnerhub.modules.maintenance.admin import bp as admin_maintenance_bp
from app.partnerhub.modules.map_stats.admin import bp as admin_map_stats_bp
from app.partnerhub.modules.notifications.admin import bp as admin_notifications_bp
from app.partnerhub.modules.notifications.portal import bp as partner_notifications_bp
from app.partnerhub.modules.onboard_requests.admin import bp as admin_onboard_requests_bp
from app.partnerhub.modules.onboard_requests.public import bp as public_onboard_requests_bp
from app.partnerhub.modules.partner_requests.admin import bp as admin_requests_bp
from app.partnerhub.modules.partner_requests.portal import bp as partner_requests_bp
from app.partnerhub.modules.partners.admin import bp as admin_partners_bp
from app.partnerhub.modules.partners.portal import bp as partner_onboarding_bp
from app.partnerhub.modules.payslips.admin import bp as admin_payslips_bp
from app.partnerhub.modules.payslips.portal import bp as partner_payslips_bp
from app.partnerhub.modules.reports.admin import bp as admin_reports_bp

ADMIN_BLUEPRINTS = (
    admin_auth_bp,
    admin_management_bp,
    admin_partners_bp,
    admin_businesses_bp,
    admin_agents_bp,
    admin_notifications_bp,
    admin_onboard_requests_bp,
    admin_data_requests_bp,
    admin_forms_bp,
    admin_feedback_bp,
    admin_requests_bp,
    admin_payslips_bp,
    admin_reports_bp,
    admin_maintenance_bp,
    admin_map_stats_bp,
)

PARTNER_BLUEPRINTS = (
    partner_onboarding_bp,
    partner_businesses_bp,
    partner_agents_bp,
    partner_notifications_bp,
    partner_forms_bp,
    partner_feedback_bp,
    partner_requests_bp,
    partner_payslips_bp,
)


def create_app(overrides: dict | None = None) -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True
    if overrides:
        app.config.update(overrides)

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "development").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if not app.config.get("APP_BASE_URL", "").startswith("https://"):
            app.logger.warning("APP_BASE_URL is not https in production; email links may be insecure.")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    # Storage health check (fail loudly on misconfiguration)
    if app.config.get("STORAGE_BACKEND") == "s3":
        missing_s3 = [k for k in ("S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY") if not app.config.get(k)]
        if missing_s3:
            app.logger.error("STORAGE CONFIG ERROR: Missing required S3 env vars: %s", ", ".join(missing_s3))
        else:
            try:
                from app.partnerhub.storage import S3Storage, storage_from_config

                storage = storage_from_config(app.config)
                if isinstance(storage, S3Storage):
                    storage._client().head_bucket(Bucket=storage.bucket)
                    app.logger.info("Storage health check PASSED: S3 bucket '%s' accessible", storage.bucket)
            except Exception as e:
                app.logger.error("STORAGE CONFIG ERROR: Cannot access S3 bucket: %s", e)

    app.register_blueprint(routes_bp)
    app.register_blueprint(uploads_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(public_onboard_requests_bp, url_prefix="/api/public")
    for bp in ADMIN_BLUEPRINTS:
        app.register_blueprint(bp, url_prefix="/api/admin")
    for bp in PARTNER_BLUEPRINTS:
        app.register_blueprint(bp, url_prefix="/api/partner")

    @app.before_request
    def _load_principals():
        if request.path.startswith(("/health", "/healthz")):
            g.current_user = None
            g.current_admin = None
            return None
        load_current_user()
        load_current_admin()
        return None

    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(ServiceError)
    def _service_error(e: ServiceError):
        return jsonify(e.to_dict()), e.status

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        if e.code == 403:
            missing = getattr(g, "missing_role", None)
            if missing:
                app.logger.warning("Forbidden: missing_role=%s request_id=%s", missing, getattr(g, "request_id", None))
        if e.code == 413:
            return jsonify({"error": "File too large"}), 413
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "Internal server error"}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
