"""
Sync Engine - Run integration fetchers for stored accounts

Looks up the account, decrypts its credentials, runs the integration's
fetcher and records the outcome in sync_logs. Failures never escape as
exceptions from sync_account(); they come back as a result with a sanitized
error message.
"""
from datetime import datetime
from typing import Optional

from ...extensions import db
from ...integrations.base import AccountConfig, SyncResult, SyncStep
from ...integrations.registry import IntegrationRegistry
from ...models import Account, SyncLog
from ...security.sanitizer import sanitize, sanitize_exception
from ...utils.crypto import CredentialCrypto
from ...utils.logger import get_logger, log_sync_event
from .progress import SyncProgressTracker

logger = get_logger('sync_engine')


def _failure(error: str, steps=None) -> dict:
    result = {'success': False, 'recordsProcessed': 0, 'error': error}
    if steps is not None:
        result['steps'] = steps
    return result


class SyncEngine:
    """Syncs one account or every active account.

    Example:
        >>> engine = SyncEngine(registry, crypto)
        >>> engine.sync_account('3f2b8c1e-...')
        {'success': True, 'recordsProcessed': 42, 'metrics': [...], 'steps': [...]}
    """

    def __init__(
        self,
        registry: IntegrationRegistry,
        crypto: CredentialCrypto,
        progress: Optional[SyncProgressTracker] = None
    ):
        self.registry = registry
        self.crypto = crypto
        self.progress = progress or SyncProgressTracker()

    @staticmethod
    def _last_successful_sync(account_id: str) -> Optional[datetime]:
        last = (
            SyncLog.query
            .filter_by(account_id=account_id, status=SyncLog.STATUS_SUCCESS)
            .order_by(SyncLog.completed_at.desc())
            .first()
        )
        return last.completed_at if last else None

    @staticmethod
    def _finish_log(log: SyncLog, status: str, records: int = 0, error: Optional[str] = None) -> None:
        log.status = status
        log.completed_at = datetime.utcnow()
        log.records_processed = records
        log.error = error
        db.session.commit()

    def sync_account(self, account_id: str, since: Optional[datetime] = None) -> dict:
        """
        Sync a single account

        Args:
            since: fetch from this time; defaults to the last successful sync

        Returns:
            {success, recordsProcessed, error?, steps?, metrics?}
        """
        account = db.session.get(Account, account_id)
        if account is None:
            return _failure('Account not found')

        if not account.is_active:
            return _failure('Account is inactive')

        integration = self.registry.get(account.integration_id)
        if integration is None:
            return _failure(f'Integration "{account.integration_id}" not found')

        if since is None:
            since = self._last_successful_sync(account_id)

        log = SyncLog(account_id=account_id, status=SyncLog.STATUS_RUNNING)
        db.session.add(log)
        db.session.commit()

        self.progress.start(account_id)
        running = set()

        def on_step(step: SyncStep) -> None:
            if step.status == SyncStep.STATUS_RUNNING:
                running.add(step.key)
            else:
                running.discard(step.key)
            self.progress.append_step(account_id, step)

        log_sync_event(account_id, 'started', {'integration': integration.id})

        try:
            credentials = self.crypto.decrypt_credentials(account.credentials)
            result: SyncResult = integration.fetcher.sync(
                AccountConfig(
                    id=account.id,
                    integration_id=account.integration_id,
                    label=account.label,
                    credentials=credentials,
                ),
                since=since,
                on_step=on_step,
            )
        except Exception as e:
            safe_error = sanitize_exception(e)
            logger.error(f"Sync of account {account_id} raised: {safe_error}")
            # Steps cut short by the exception would otherwise stay "running"
            for key in running:
                self.progress.update_step(account_id, key, status=SyncStep.STATUS_ERROR, error=safe_error)
            self._finish_log(log, SyncLog.STATUS_ERROR, error=safe_error)
            self.progress.finalize(account_id, success=False, error=safe_error)
            return _failure(safe_error)

        # Step errors carry raw upstream text
        for step in result.steps:
            if step.error:
                step.error = sanitize(step.error)
        steps = [s.to_dict() for s in result.steps]

        if not result.success:
            safe_error = sanitize(result.error) if result.error else 'Sync failed'
            self._finish_log(log, SyncLog.STATUS_ERROR, error=safe_error)
            self.progress.finalize(account_id, success=False, error=safe_error, steps=result.steps)
            log_sync_event(account_id, 'failed', {'error': safe_error})
            return _failure(safe_error, steps)

        warning = sanitize(result.error) if result.error else None
        self._finish_log(log, SyncLog.STATUS_SUCCESS, records=result.records_processed, error=warning)
        self.progress.finalize(
            account_id,
            success=True,
            records_processed=result.records_processed,
            error=warning,
            steps=result.steps,
        )
        log_sync_event(account_id, 'completed', {'records': result.records_processed})

        payload = {
            'success': True,
            'recordsProcessed': result.records_processed,
            'metrics': [m.to_dict() for m in result.metrics],
            'steps': steps,
        }
        if warning:
            payload['error'] = warning
        return payload

    def sync_all_accounts(self, since: Optional[datetime] = None) -> dict:
        """
        Sync every active account, one after another

        Args:
            since: passed to every sync_account() call

        Returns:
            {'results': [{accountId, label, success, recordsProcessed, ...}, ...]}
        """
        accounts = Account.query.filter_by(is_active=True).order_by(Account.created_at).all()
        results = []

        for account in accounts:
            # Read before syncing; a failed commit would expire the instance
            account_id, label = account.id, account.label
            result = self.sync_account(account_id, since=since)
            results.append({'accountId': account_id, 'label': label, **result})

        logger.info(f"Synced {len(results)} accounts, {sum(1 for r in results if r['success'])} succeeded")
        return {'results': results}

    @staticmethod
    def get_account_sync_status(account_id: str) -> Optional[dict]:
        """Latest sync log of an account"""
        latest = (
            SyncLog.query
            .filter_by(account_id=account_id)
            .order_by(SyncLog.started_at.desc())
            .first()
        )
        return latest.to_dict() if latest else None
