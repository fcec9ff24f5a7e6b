"""
Routes package for the procurement core
"""

from app.logger import get_logger

logger = get_logger("procurement.routes")


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    logger.debug("Initializing route blueprints")

    from .procurement import procurement_bp
    app.register_blueprint(procurement_bp, url_prefix='/procurement')

    logger.info("All route blueprints registered successfully")
