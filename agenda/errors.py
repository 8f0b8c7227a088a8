"""
Domain exceptions for the scheduling service.

Every caller-visible failure is a DomainError carrying a status code, a
machine-readable code and optional details. The Flask handler registered
by ``register_error_handlers`` turns them into JSON error payloads.
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base exception for all domain-specific errors."""

    status_code = 500

    def __init__(self, message, code=None, details=None):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        payload = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(DomainError):
    """Raised when a request is malformed or breaks a business rule."""

    status_code = 400


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    status_code = 404

    def __init__(self, message, code="NotFound", details=None):
        super().__init__(message, code=code, details=details)


class ConflictError(DomainError):
    """Raised when a change conflicts with existing data."""

    status_code = 409


class InvalidStatusTransition(ConflictError):
    """Raised when an appointment is moved out of a terminal status."""

    def __init__(self, current, target):
        super().__init__(
            f"Cannot change appointment status from '{current}' to '{target}'",
            details={"current_status": current, "requested_status": target},
        )


# Rejection codes that map to something other than 400
_REJECTION_STATUS = {
    "ServiceNotFound": 404,
    "TimeConflict": 409,
}


class BookingRejected(DomainError):
    """Raised by the booking layer when the validator rejects a candidate."""

    def __init__(self, rejection):
        self.rejection = rejection
        details = {}
        if rejection.conflicting_ids:
            details["conflicting_appointments"] = list(rejection.conflicting_ids)
        super().__init__(rejection.message, code=rejection.reason.value, details=details)
        self.status_code = _REJECTION_STATUS.get(rejection.reason.value, 400)


def register_error_handlers(app):
    @app.errorhandler(DomainError)
    def handle_domain_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"error": error.description, "code": error.name.replace(" ", "")}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unhandled error while serving request")
        return jsonify({"error": "Internal server error", "code": "InternalError"}), 500
