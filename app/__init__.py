"""Property Hub Flask Application Factory."""

import logging
from typing import Optional

from flask import Flask

from app.config import get_global_settings
from app.services.optimistic import QueryCache

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(log_level: str) -> None:
    """Configure root logging for the application process.

    Args:
        log_level: Level name validated by Settings (DEBUG, INFO, ...)
    """
    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(log_level)


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_name: Configuration name (development, testing, production)

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)

    # Configuration from Pydantic Settings
    settings = get_global_settings()
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["DATABASE_URL"] = settings.db_url
    app.config["ENV"] = settings.flask_env
    app.config["DEBUG"] = settings.app_env == "development"
    app.config["TESTING"] = (config_name or settings.app_env) == "testing"
    app.config["FORM_1099_THRESHOLD"] = settings.form_1099_threshold
    app.config["ADVISOR_MAX_RECOMMENDATIONS"] = settings.advisor_max_recommendations

    configure_logging(settings.log_level)
    app.logger.setLevel(settings.log_level)

    # Cache of case reads shared by optimistic case updates
    app.extensions["query_cache"] = QueryCache(max_entries=settings.query_cache_max_entries)

    # Register blueprints
    from app.blueprints.cases import cases_bp
    from app.blueprints.contractor import contractor_bp
    from app.blueprints.health import health_bp
    from app.blueprints.tax import tax_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(tax_bp)
    app.register_blueprint(contractor_bp)
    app.register_blueprint(cases_bp)

    return app
