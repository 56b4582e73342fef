"""
GameCatalog - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger("exceptions")


class CatalogException(Exception):
    """Base exception for GameCatalog"""

    status_code = 400

    def __init__(self, message: str, code: str = "CATALOG_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {"code": self.code, "success": False, "message": self.message}


class ValidationException(CatalogException):
    """Validation-related exceptions"""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)
        logger.warning(f"Validation error: {message}")


class QuerySpecificationError(ValidationException):
    """A filter or sort specification is malformed.

    Raised before any statement reaches the database.
    """

    def __init__(self, message: str):
        super().__init__(message, code="QUERY_SPECIFICATION_ERROR")


class NotFoundException(CatalogException):
    status_code = 404

    def __init__(self, message: str):
        super().__init__(message, code="NOT_FOUND")


class HierarchyError(CatalogException):
    """A grouping operation would break the two-level parent/child model"""

    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, code="HIERARCHY_ERROR")
        logger.warning(f"Hierarchy error: {message}")


class HierarchyIntegrityError(CatalogException):
    """A fetched child references a parent that does not exist"""

    status_code = 500

    def __init__(self, child_id: str, parent_id: str):
        self.child_id = child_id
        self.parent_id = parent_id
        super().__init__(
            f"Game {child_id} references missing parent {parent_id}",
            code="HIERARCHY_INTEGRITY_ERROR",
        )
        logger.error(f"Hierarchy integrity error: {self.message}")


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return (
            jsonify({"code": e.name.upper().replace(" ", "_"), "success": False, "message": e.description}),
            e.code,
        )

    @app.errorhandler(CatalogException)
    def handle_catalog_exception(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        logger.error(f"Database error: {e}", exc_info=True)
        return jsonify({"code": "DATABASE_ERROR", "success": False, "message": "Database error"}), 500

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_ERROR", "success": False, "message": "An unexpected error occurred"}), 500
