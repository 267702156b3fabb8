"""
CSRF protection for local API routes

The dashboard runs on the user's own machine, so any website open in the same
browser can fire requests at localhost. State-changing requests must prove
they come from our own UI:

1. the custom header X-OMD-Request: 1 (cannot be sent cross-origin without a
   CORS preflight, which we never grant), or
2. an Origin header, falling back to Referer, whose hostname is trusted.

Anything else, including a request with no signal at all, is rejected.
"""
from typing import Iterable, Optional
from urllib.parse import urlsplit

from flask import Request, Response, current_app, has_app_context, jsonify

CSRF_HEADER_NAME = 'X-OMD-Request'
CSRF_HEADER_VALUE = '1'

SAFE_METHODS = frozenset({'GET', 'HEAD', 'OPTIONS'})
DEFAULT_TRUSTED_HOSTS = ('localhost', '127.0.0.1')

FORBIDDEN_MESSAGE = 'Forbidden: cross-origin request blocked'


def _trusted_hosts() -> Iterable[str]:
    if has_app_context():
        return current_app.config.get('TRUSTED_HOSTS') or DEFAULT_TRUSTED_HOSTS
    return DEFAULT_TRUSTED_HOSTS


def _host_is_trusted(url: str, trusted_hosts: Iterable[str]) -> bool:
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return False
    return bool(hostname) and hostname in trusted_hosts


def is_trusted_request(request: Request, trusted_hosts: Optional[Iterable[str]] = None) -> bool:
    """True when the request carries a trust signal pointing at this server"""
    if request.method.upper() in SAFE_METHODS:
        return True

    if request.headers.get(CSRF_HEADER_NAME) == CSRF_HEADER_VALUE:
        return True

    hosts = tuple(trusted_hosts) if trusted_hosts is not None else tuple(_trusted_hosts())

    origin = request.headers.get('Origin')
    if origin:
        return _host_is_trusted(origin, hosts)

    referer = request.headers.get('Referer')
    if referer:
        return _host_is_trusted(referer, hosts)

    return False


def validate_csrf(request: Request, trusted_hosts: Optional[Iterable[str]] = None) -> Optional[Response]:
    """
    Check a request for cross-site forgery

    Returns:
        None to proceed, or a ready-to-send 403 response
    """
    if is_trusted_request(request, trusted_hosts):
        return None

    response = jsonify({'error': FORBIDDEN_MESSAGE, 'code': 'FORBIDDEN'})
    response.status_code = 403
    return response
