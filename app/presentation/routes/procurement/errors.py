from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError

from app.buisness.procurement.errors import ProcurementDomainError
from app.logger import get_logger
from app.presentation.routes.procurement import procurement_bp
from app.presentation.routes.procurement.serializers import error_response

logger = get_logger("procurement.routes.procurement.errors")


@procurement_bp.errorhandler(ProcurementDomainError)
def handle_domain_error(error):
    logger.info(f"Procurement request rejected ({error.code}): {error.message}")
    return jsonify(error_response(error)), error.http_status


@procurement_bp.errorhandler(SQLAlchemyError)
def handle_database_error(error):
    logger.error(f"Database error in procurement API: {error}", exc_info=True)
    return jsonify({'error': 'database_error', 'message': 'The operation could not be stored'}), 500
