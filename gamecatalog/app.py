"""
GameCatalog - Application Factory
"""
import logging
import os
import sys

import flask.cli
import structlog
from flask import Flask

from gamecatalog.db import init_db
from gamecatalog.exceptions import register_exception_handlers
from gamecatalog.middleware.auth import login_manager
from gamecatalog.routes.games import games_bp
from gamecatalog.routes.library import library_bp
from gamecatalog.settings import load_settings, verify_settings
from gamecatalog.utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs, deep_merge

flask.cli.show_server_banner = lambda *args: None


def configure_logging(settings):
    """stdlib handler plus structlog processors; JSON output when asked for"""
    log_settings = settings.get("logging", {})
    level = getattr(logging, str(log_settings.get("level", "INFO")).upper(), logging.INFO)
    use_json = log_settings.get("format") == "json" or os.environ.get("LOG_FORMAT") == "json"

    formatter = ColoredFormatter(
        "[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler], force=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Apply filter to hide date from http access logs
    logging.getLogger("werkzeug").addFilter(FilterRemoveDateFromWerkzeugLogs())


def create_app(test_config=None):
    """Build the Flask app.

    ``test_config`` is merged over the loaded settings; a ``flask`` section
    in it is applied to ``app.config`` directly.
    """
    test_config = test_config or {}
    settings = deep_merge(load_settings(), {k: v for k, v in test_config.items() if k != "flask"})

    for section in ("query", "logging"):
        success, errors = verify_settings(section, settings[section])
        if not success:
            raise ValueError(f"Invalid {section} settings: {errors}")

    configure_logging(settings)
    logger = structlog.get_logger("main")

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=os.environ.get("SECRET_KEY", "dev"),
        SQLALCHEMY_DATABASE_URI=settings["database"]["url"],
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        CATALOG_SETTINGS=settings,
    )
    app.config.update(test_config.get("flask", {}))

    init_db(app)
    login_manager.init_app(app)
    register_exception_handlers(app)

    app.register_blueprint(games_bp)
    app.register_blueprint(library_bp)

    logger.info("GameCatalog started", database=settings["database"]["url"])
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.environ.get("PORT", 8465)))
