import os
from pathlib import Path

from flask import Flask
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from app.logger import get_logger

db = SQLAlchemy()
migrate = Migrate()
# In-process storage; point RATELIMIT_STORAGE_URI at Redis when running several workers
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"],
    storage_uri="memory://",
)

SECURITY_HEADERS = {
    'X-Frame-Options': 'SAMEORIGIN',
    'X-Content-Type-Options': 'nosniff',
}


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def _default_database_uri():
    """SQLite file under <project>/instance/"""
    instance_dir = Path(__file__).resolve().parent.parent / 'instance'
    instance_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{instance_dir / 'procurement.db'}"


def _load_config(app, test_config):
    env = os.environ
    app.config.update(
        SECRET_KEY=env.get('SECRET_KEY'),
        SQLALCHEMY_DATABASE_URI=env.get('DATABASE_URL') or None,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        PROCUREMENT_ORDER_NUMBER_PREFIX=env.get('ORDER_NUMBER_PREFIX', 'CMD'),
        PROCUREMENT_DISPATCH_MAX_RETRIES=int(env.get('DISPATCH_MAX_RETRIES', '3')),
        RATELIMIT_ENABLED=_env_flag('RATELIMIT_ENABLED', 'True'),
    )
    if test_config:
        app.config.update(test_config)
    if not app.config['SQLALCHEMY_DATABASE_URI']:
        app.config['SQLALCHEMY_DATABASE_URI'] = _default_database_uri()


def create_app(test_config=None):
    """
    Application factory.

    Args:
        test_config (dict, optional): Config overrides applied after the environment

    Raises:
        RuntimeError: If no SECRET_KEY is configured
    """
    app = Flask(__name__)
    logger = get_logger("procurement")
    logger.info("Creating procurement application")

    _load_config(app, test_config)
    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY is not set; refusing to start")
        raise RuntimeError("SECRET_KEY environment variable is required")
    logger.debug(f"Database backend: {app.config['SQLALCHEMY_DATABASE_URI'].split(':', 1)[0]}")

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Register the models on db.metadata before anything touches the schema
    from app.data.procurement import (  # noqa: F401
        PurchaseRequest,
        SupplierReference,
        SupplierOrder,
        SupplierOrderLine,
        SupplierOrderLinePurchaseRequest,
    )

    from app.presentation.routes import init_app as init_routes
    init_routes(app)

    @app.after_request
    def set_security_headers(response):
        response.headers.update(SECURITY_HEADERS)
        return response

    logger.info("Procurement application ready")
    return app
