"""
API Blueprint Registration
============================
Mendaftarkan semua blueprint API dan error handler ke aplikasi Flask.
"""

import logging
from flask import Flask

from facegate.errors import ServiceError
from facegate.utils.responses import error_response, service_error_response

logger = logging.getLogger(__name__)


def register_blueprints(app: Flask):
    """Mendaftarkan semua blueprint ke aplikasi."""
    from facegate.api.auth import bp as auth_bp
    from facegate.api.users import bp as users_bp
    from facegate.api.audit import bp as audit_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(audit_bp)


def register_error_handlers(app: Flask):
    """Memetakan ServiceError dan error HTTP umum ke response JSON."""

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        if error.status_code >= 500:
            logger.error("Service error: %s", error.message)
        return service_error_response(error)

    @app.errorhandler(404)
    def handle_not_found(error):
        return error_response(
            message="Endpoint tidak ditemukan",
            status_code=404,
            kind="not_found"
        )

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return error_response(
            message="Method tidak diizinkan",
            status_code=405,
            kind="method_not_allowed"
        )

    @app.errorhandler(413)
    def request_entity_too_large(error):
        """Handler untuk request terlalu besar."""
        return error_response(
            message="Ukuran request terlalu besar.",
            status_code=413,
            kind="payload_too_large"
        )

    @app.errorhandler(500)
    def internal_server_error(error):
        """Handler untuk internal server error."""
        return error_response(
            message="Terjadi kesalahan pada server",
            status_code=500,
            kind="internal_error"
        )
