from flask import Flask
from flask_cors import CORS

from .config import Config
from .extensions import db, jwt, migrate, setup_logging


def create_app(config_class: type[Config] = Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)
    CORS(app, resources={r"/api/*": {"origins": "*"}})
    setup_logging(app)

    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)

    register_inbound_store(app)
    register_middleware(app)
    register_blueprints(app)

    from .cli import register_cli

    register_cli(app)

    @app.get("/health")
    def health_check() -> tuple[dict[str, str], int]:
        return {"status": "ok"}, 200

    app.logger.info(
        "app ready: store=%s locales=%s",
        app.config["INBOUND_STORE_BACKEND"],
        ",".join(app.config["SUPPORTED_LOCALES"]),
    )
    return app


def register_inbound_store(app: Flask) -> None:
    from .services.inbound_store import InMemoryInboundRequestStore, create_inbound_store, seed_sample_requests

    store = create_inbound_store(app.config)
    app.extensions["inbound_store"] = store
    # the SQL store is seeded with `flask seed-inbound` once tables exist
    if app.config["INBOUND_SEED_SAMPLES"] and isinstance(store, InMemoryInboundRequestStore):
        seed_sample_requests(store)


def register_middleware(app: Flask) -> None:
    from .api.errors import register_api_error_handlers
    from .middleware.locale_router import register_locale_router

    register_locale_router(app)
    register_api_error_handlers(app)


def register_blueprints(app: Flask) -> None:
    from .api.activity_log_routes import activity_log_bp
    from .api.auth_routes import auth_bp
    from .api.inbound_routes import inbound_requests_bp, inbound_status_bp
    from .web.routes import web_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(inbound_requests_bp, url_prefix="/api/inbound-requests")
    app.register_blueprint(inbound_status_bp, url_prefix="/api/inbound-status")
    app.register_blueprint(activity_log_bp, url_prefix="/api/activity-logs")
    app.register_blueprint(web_bp)
