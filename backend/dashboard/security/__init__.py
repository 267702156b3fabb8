"""
Security helpers: secret scrubbing, secure ids, CSRF and input validation
"""
from .sanitizer import sanitize, sanitize_exception, REDACTED, MAX_MESSAGE_LENGTH
from .ids import generate_secure_id
from .csrf import validate_csrf, is_trusted_request, CSRF_HEADER_NAME, CSRF_HEADER_VALUE
from .validation import (
    ValidationError,
    validate_account_id,
    validate_integration_id,
    validate_label,
    validate_credentials,
    validate_boolean,
    validate_date_string,
)

__all__ = [
    'sanitize',
    'sanitize_exception',
    'REDACTED',
    'MAX_MESSAGE_LENGTH',
    'generate_secure_id',
    'validate_csrf',
    'is_trusted_request',
    'CSRF_HEADER_NAME',
    'CSRF_HEADER_VALUE',
    'ValidationError',
    'validate_account_id',
    'validate_integration_id',
    'validate_label',
    'validate_credentials',
    'validate_boolean',
    'validate_date_string',
]
