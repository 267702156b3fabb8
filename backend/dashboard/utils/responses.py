"""
Uniform API responses

Success bodies are the payload itself; failures are {"error": str, "code": str}.
"""
from typing import Any, Optional

from flask import jsonify


class ApiResponse:
    """API response builder"""

    @staticmethod
    def ok(data: Any, code: int = 200) -> tuple:
        """Return data as-is"""
        return jsonify(data), code

    @staticmethod
    def created(data: Any) -> tuple:
        """201 response"""
        return jsonify(data), 201

    @staticmethod
    def error(
        message: str,
        code: int = 400,
        error_code: str = 'BAD_REQUEST',
        details: Optional[dict] = None
    ) -> tuple:
        """
        Error response

        Args:
            message: client-safe message
            code: HTTP status
            error_code: machine-readable code
            details: optional extra fields
        """
        response = {
            'error': message,
            'code': error_code,
        }
        if details:
            response['details'] = details
        return jsonify(response), code

    @staticmethod
    def not_found(message: str = 'Resource not found') -> tuple:
        """404 response"""
        return ApiResponse.error(message, 404, 'NOT_FOUND')

    @staticmethod
    def unauthorized(message: str = 'Unauthorized') -> tuple:
        """401 response"""
        return ApiResponse.error(message, 401, 'UNAUTHORIZED')

    @staticmethod
    def validation_error(message: str, details: Optional[dict] = None) -> tuple:
        """400 validation response"""
        return ApiResponse.error(message, 400, 'VALIDATION_ERROR', details)

    @staticmethod
    def server_error(message: str = 'Internal server error') -> tuple:
        """500 response"""
        return ApiResponse.error(message, 500, 'INTERNAL_ERROR')
