"""WealthTrack Flask Application Factory."""

import logging
from typing import Optional

from flask import Flask

from wealthtrack.config import get_global_settings
from wealthtrack.models.provident_fund import ProvidentFundScheduler
from wealthtrack.models.wealth_projection import WealthProjector


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
    app.config["ENV"] = config_name or settings.flask_env
    app.config["DEBUG"] = settings.app_env == "development"
    app.config["TESTING"] = (config_name or settings.app_env) == "testing"

    logging.basicConfig(level=settings.log_level)
    app.logger.setLevel(settings.log_level)

    # Engine objects built once from settings
    app.extensions["wealthtrack"] = {
        "solver_config": settings.solver_config(),
        "provident_fund_scheduler": ProvidentFundScheduler(
            settings.provident_fund_policy()
        ),
        "wealth_projector": WealthProjector(settings.projection_config()),
    }

    # Register blueprints
    from wealthtrack.blueprints.analytics import analytics_bp
    from wealthtrack.blueprints.health import health_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(analytics_bp)

    return app
