from typing import Any, Dict, Optional


class AppError(Exception):
    """Base error carrying the HTTP status and machine-readable code."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return error_response(self.code, self.message, self.details)


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"


class PaymentError(AppError):
    """The gateway rejected or could not complete the request."""

    status_code = 400
    code = "payment_error"


class SignatureError(AppError):
    status_code = 401
    code = "invalid_signature"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"


class DatabaseError(AppError):
    status_code = 500
    code = "database_error"


def error_response(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }
