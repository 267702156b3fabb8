"""
Sync request errors

Every way a sync request can fail maps to one of these. Messages are always
safe to show to the client.
"""


class SyncRequestError(Exception):
    """Base class; status_code is the HTTP status to answer with"""
    kind = 'sync_error'
    status_code = 500
    error_code = 'SYNC_ERROR'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {'error': self.message, 'code': self.error_code}


class ForgedRequest(SyncRequestError):
    """CSRF check failed. Never retried."""
    kind = 'forged_request'
    status_code = 403
    error_code = 'FORBIDDEN'


class InvalidInput(SyncRequestError):
    """Bad account id; the client must fix the request"""
    kind = 'invalid_input'
    status_code = 400
    error_code = 'VALIDATION_ERROR'


class RateLimited(SyncRequestError):
    """Cooldown active; the message says how long to wait"""
    kind = 'rate_limited'
    status_code = 429
    error_code = 'RATE_LIMITED'


class UpstreamFailure(SyncRequestError):
    """The sync collaborator raised; the message is already sanitized"""
    kind = 'upstream_failure'
    status_code = 502
    error_code = 'UPSTREAM_FAILURE'
