from flask import Blueprint

procurement_bp = Blueprint('procurement', __name__)

# Import all route modules
from . import (  # noqa: E402,F401
    errors,
    api,
)
