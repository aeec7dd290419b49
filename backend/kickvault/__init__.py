# backend/kickvault/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.plans import plans_bp
    from .routes.inventory import inventory_bp
    from .routes.products import products_bp
    from .routes.variants import variants_bp
    from .routes.consignors import consignors_bp, consignment_sales_bp
    from .routes.payment_types import payment_types_bp
    from .routes.sales import sales_bp
    from .routes.avatars import avatars_bp
    from .routes.customers import customers_bp
    from .routes.profit_templates import profit_templates_bp
    from .routes.locations import locations_bp
    from .routes.preorders import preorders_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(plans_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(variants_bp)
    app.register_blueprint(consignors_bp)
    app.register_blueprint(consignment_sales_bp)
    app.register_blueprint(payment_types_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(avatars_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(profit_templates_bp)
    app.register_blueprint(locations_bp)
    app.register_blueprint(preorders_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", set()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
