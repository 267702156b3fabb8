"""
Pooled HTTP client for integration APIs

All integrations share one requests.Session so TCP/TLS connections to the
same API host are reused across accounts and syncs.
"""
import threading
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter

from ..security.sanitizer import sanitize
from ..utils.logger import get_logger

logger = get_logger('integration_http')

DEFAULT_TIMEOUT = 30.0
# Upstream error bodies are clipped before they reach an exception message
MAX_ERROR_BODY = 200


class IntegrationApiError(Exception):
    """An integration API answered with a non-2xx status or could not be reached"""

    def __init__(self, service: str, status_code: Optional[int], message: str):
        self.service = service
        self.status_code = status_code
        super().__init__(sanitize(message))


class ApiSessionPool:
    """Shared HTTP session with connection pooling and JSON helpers.

    Example:
        >>> pool = get_api_session_pool()
        >>> data = pool.get_json('Stripe', 'https://api.stripe.com/v1/balance', auth=(key, ''))
    """

    _instance = None
    _lock = threading.Lock()

    POOL_CONNECTIONS = 10
    POOL_MAXSIZE = 10
    MAX_RETRIES = 2

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._session = requests.Session()
        adapter = HTTPAdapter(
            pool_connections=self.POOL_CONNECTIONS,
            pool_maxsize=self.POOL_MAXSIZE,
            max_retries=self.MAX_RETRIES,
        )
        self._session.mount('https://', adapter)
        self._session.mount('http://', adapter)
        self._session.headers.update({'Accept': 'application/json'})

        self.timeout = DEFAULT_TIMEOUT
        self._initialized = True

    def get_json(
        self,
        service: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        GET a JSON document

        Raises:
            IntegrationApiError: network failure, non-2xx status or non-JSON body
        """
        kwargs.setdefault('timeout', self.timeout)
        try:
            response = self._session.get(url, params=params, **kwargs)
        except requests.RequestException as e:
            raise IntegrationApiError(service, None, f'{service} API unreachable: {e}') from e

        if not response.ok:
            body = response.text[:MAX_ERROR_BODY] if response.text else ''
            logger.warning(f"{service} API returned {response.status_code}")
            raise IntegrationApiError(
                service,
                response.status_code,
                f'{service} API error {response.status_code}: {body}'
            )

        try:
            return response.json()
        except ValueError as e:
            raise IntegrationApiError(service, response.status_code, f'{service} API returned invalid JSON') from e

    @property
    def session(self) -> requests.Session:
        return self._session


def get_api_session_pool() -> ApiSessionPool:
    """The process-wide ApiSessionPool"""
    return ApiSessionPool()
