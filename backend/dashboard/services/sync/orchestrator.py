"""
Sync Orchestrator - Answer one "trigger sync" request

Order of checks for POST /api/sync:
1. CSRF (nothing else runs for a forged request)
2. Integration registry loaded, once per process
3. Account id and optional "from" date validated
4. Cooldown admitted for the account, or for sync-all
5. Sync dispatched; result returned unchanged

Upstream exceptions are sanitized before they reach the response or the log.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from flask import Request

from ...integrations.registry import IntegrationRegistry
from ...security.csrf import FORBIDDEN_MESSAGE, is_trusted_request
from ...security.sanitizer import sanitize_exception
from ...security.validation import validate_account_id, validate_date_string
from ...utils.logger import get_logger
from .cooldown import SyncCooldownGovernor
from .engine import SyncEngine
from .errors import ForgedRequest, InvalidInput, RateLimited, SyncRequestError, UpstreamFailure

logger = get_logger('sync_orchestrator')


def parse_json_body(request: Request) -> Dict[str, Any]:
    """Request body as a dict; malformed or non-object JSON counts as empty"""
    body = request.get_json(force=True, silent=True)
    return body if isinstance(body, dict) else {}


class SyncOrchestrator:
    """Guards and dispatches sync requests.

    Constructed once per application by create_app() and kept in
    app.extensions['sync_orchestrator'].
    """

    def __init__(
        self,
        registry: IntegrationRegistry,
        governor: SyncCooldownGovernor,
        engine: SyncEngine,
        trusted_hosts: Optional[Iterable[str]] = None
    ):
        self.registry = registry
        self.governor = governor
        self.engine = engine
        self.trusted_hosts = tuple(trusted_hosts) if trusted_hosts is not None else None

    def _check_origin(self, request: Request) -> None:
        if not is_trusted_request(request, self.trusted_hosts):
            logger.warning(f"Blocked cross-origin {request.method} {request.path}")
            raise ForgedRequest(FORBIDDEN_MESSAGE)

    @staticmethod
    def _validate_account_id(account_id: Any) -> str:
        error = validate_account_id(account_id)
        if error:
            raise InvalidInput(error.message)
        return account_id

    @staticmethod
    def _parse_from_date(value: Any) -> Optional[datetime]:
        if value is None:
            return None
        error = validate_date_string('from', value)
        if error:
            raise InvalidInput(error.message)
        return datetime.strptime(value, '%Y-%m-%d')

    def _admit(self, account_id: Optional[str]) -> None:
        message = self.governor.admit(account_id)
        if message:
            raise RateLimited(message)

    def _dispatch(self, sync_call, target: str) -> dict:
        try:
            return sync_call()
        except Exception as e:
            safe_error = sanitize_exception(e)
            logger.error(f"Sync of {target} failed: {safe_error}")
            raise UpstreamFailure(safe_error) from e

    def sync_one(self, account_id: Any, since: Optional[datetime] = None) -> dict:
        account_id = self._validate_account_id(account_id)
        self._admit(account_id)
        logger.info(f"Sync admitted for account {account_id}")
        return self._dispatch(lambda: self.engine.sync_account(account_id, since=since), f'account {account_id}')

    def sync_all(self, since: Optional[datetime] = None) -> dict:
        self._admit(None)
        logger.info("Sync admitted for all accounts")
        return self._dispatch(lambda: self.engine.sync_all_accounts(since=since), 'all accounts')

    def trigger_sync(self, request: Request) -> Tuple[dict, int]:
        """
        Handle POST /api/sync

        Body: {"accountId"?: str, "from"?: "YYYY-MM-DD"}; without accountId every
        active account syncs. "from" overrides the incremental start date.

        Returns:
            (payload, http_status)
        """
        try:
            self._check_origin(request)
            self.registry.load_all()

            body = parse_json_body(request)
            account_id = body.get('accountId')
            since = self._parse_from_date(body.get('from'))

            if account_id is not None:
                payload = self.sync_one(account_id, since)
            else:
                payload = self.sync_all(since)
        except SyncRequestError as e:
            return e.to_dict(), e.status_code

        return payload, 200

    def sync_status(self, request: Request) -> Tuple[dict, int]:
        """
        Handle GET /api/sync?accountId=...&progress=1

        progress=1 returns live steps, otherwise the latest sync log.
        """
        try:
            self._check_origin(request)
            self.registry.load_all()

            account_id = request.args.get('accountId')
            if not account_id:
                raise InvalidInput('accountId is required')
            self._validate_account_id(account_id)
        except SyncRequestError as e:
            return e.to_dict(), e.status_code

        if request.args.get('progress') == '1':
            return {'progress': self.engine.progress.get(account_id)}, 200

        return {'status': self.engine.get_account_sync_status(account_id)}, 200
