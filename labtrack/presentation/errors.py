"""
JSON error responses

Domain errors raised anywhere below a route become
{"success": false, "error": <kind>, "message": ..., "details": [...]}.
"""

from flask import jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException
from labtrack import db
from labtrack.business.core.errors import LabDomainError
from labtrack.logger import get_logger

logger = get_logger("labtrack.presentation.errors")


def error_response(kind, message, status, details=None):
    return jsonify({
        "success": False,
        "error": kind,
        "message": message,
        "details": details or [],
    }), status


def register_error_handlers(app):

    @app.errorhandler(LabDomainError)
    def handle_domain_error(error):
        db.session.rollback()
        logger.info(f"{error.kind}: {error.message}")
        return error_response(error.kind, error.message, error.http_status, error.details)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error):
        db.session.rollback()
        logger.warning(f"Integrity error: {error.orig}")
        return error_response("conflict", "Record conflicts with an existing record", 409)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return error_response(error.name.lower().replace(' ', '_'), error.description, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.error(f"Unhandled error: {error}", exc_info=True)
        return error_response("server_error", "An unexpected error occurred", 500)
