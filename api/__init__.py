import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers, success_response
from models import storage
from utils.sweeper import BlacklistSweeper

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Session Auth API",
        "version": "1.0.0",
        "description": "Cookie-based sessions: short-lived access tokens, rotating refresh tokens with a per-user blacklist.",
    },
    "basePath": "/",  # Blueprints are mounted under /api
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "AccessCookie": {
            "type": "apiKey",
            "name": "accessToken",
            "in": "cookie",
            "description": "httpOnly cookie set by /api/auth/login and /api/auth/refresh-token.",
        }
    },
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Binds the shared DBStorage to the configured database and, unless
    disabled, starts the periodic blacklist sweeper.
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))

    if not app.config["TESTING"]:
        logging.basicConfig(
            level=logging.DEBUG if app.debug else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    storage.configure(app.config["DATABASE_URL"])
    storage.reload()

    # Cookies only cross origins when credentials are allowed explicitly
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", [])}},
        supports_credentials=True,
    )

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .admin import bp as admin_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(users_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return success_response(
            {"docs": "/apidocs/", "health": "/api/health"},
            "Welcome to Session Auth API",
        )

    if app.config["BLACKLIST_SWEEPER_ENABLED"]:
        sweeper = BlacklistSweeper(app.config["BLACKLIST_SWEEP_INTERVAL_SECONDS"])
        sweeper.start()
        app.extensions["blacklist_sweeper"] = sweeper

    return app
