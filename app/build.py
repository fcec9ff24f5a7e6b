"""
Database build: creates the procurement tables and optionally seeds debug data.

Schema changes after the first deployment go through Flask-Migrate
(`flask db migrate` / `flask db upgrade`); this build only creates what is missing.
"""

from app import create_app, db
from app.logger import get_logger

logger = get_logger("procurement.build")


def build_models():
    from app.data.procurement import (  # noqa: F401
        PurchaseRequest,
        SupplierReference,
        SupplierOrder,
        SupplierOrderLine,
        SupplierOrderLinePurchaseRequest,
    )

    db.create_all()
    logger.info(f"Tables ready: {', '.join(sorted(db.metadata.tables))}")


def build_database(enable_debug_data=True, app=None):
    """
    Args:
        enable_debug_data (bool): Seed debug/data/procurement.json after the build
        app (Flask, optional): Application to build against; a new one is created if omitted

    Returns:
        dict: Debug data summary (empty when seeding is disabled)
    """
    app = app or create_app()

    with app.app_context():
        logger.info(f"Building database (debug data: {enable_debug_data})")
        build_models()

        summary = {}
        if enable_debug_data:
            from app.debug.debug_data_manager import insert_debug_data
            summary = insert_debug_data(enabled=True)

    logger.info("Database build complete")
    return summary
