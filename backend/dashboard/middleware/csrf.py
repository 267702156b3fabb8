"""
CSRF middleware
View decorator protecting state-changing endpoints.
"""
from functools import wraps

from flask import request

from ..security.csrf import validate_csrf


def csrf_protect(f):
    """
    Reject forged cross-origin requests with 403 before the view runs

    Safe methods (GET/HEAD/OPTIONS) always pass.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        rejection = validate_csrf(request)
        if rejection is not None:
            return rejection
        return f(*args, **kwargs)
    return decorated
