"""
Sync Progress Tracker - Live per-account sync steps

Keeps the steps of the current (or last) sync of each account in memory so
the UI can poll them. Entries expire ttl_seconds after their last update.
"""
import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional

from ...integrations.base import SyncStep

DEFAULT_TTL_SECONDS = 10 * 60


class SyncProgressTracker:
    """Thread-safe in-memory progress store.

    Example:
        >>> tracker = SyncProgressTracker()
        >>> tracker.start('acct_1')
        >>> tracker.append_step('acct_1', SyncStep('fetch_charges', 'Fetch charges', 'running'))
        >>> tracker.finalize('acct_1', success=True, records_processed=12)
        >>> tracker.get('acct_1')['status']
        'success'
    """

    STATUS_RUNNING = 'running'
    STATUS_SUCCESS = 'success'
    STATUS_ERROR = 'error'

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, dict] = {}
        self._touched: Dict[str, float] = {}
        self._lock = threading.Lock()

    def _touch(self, account_id: str) -> None:
        self._touched[account_id] = self._clock()

    def _purge_expired(self) -> None:
        cutoff = self._clock() - self.ttl_seconds
        for account_id in [a for a, t in self._touched.items() if t < cutoff]:
            self._entries.pop(account_id, None)
            self._touched.pop(account_id, None)

    def start(self, account_id: str) -> None:
        with self._lock:
            self._entries[account_id] = {
                'accountId': account_id,
                'status': self.STATUS_RUNNING,
                'startedAt': datetime.utcnow().isoformat(),
                'steps': [],
            }
            self._touch(account_id)

    def append_step(self, account_id: str, step: SyncStep) -> None:
        """Add a step, or replace the step with the same key (running -> success)"""
        with self._lock:
            entry = self._entries.get(account_id)
            if entry is None:
                return
            step_dict = step.to_dict()
            steps: List[dict] = entry['steps']
            for i, existing in enumerate(steps):
                if existing['key'] == step.key:
                    steps[i] = step_dict
                    break
            else:
                steps.append(step_dict)
            self._touch(account_id)

    def update_step(self, account_id: str, key: str, **changes) -> None:
        """Merge changes into an existing step"""
        with self._lock:
            entry = self._entries.get(account_id)
            if entry is None:
                return
            for step in entry['steps']:
                if step['key'] == key:
                    step.update(changes)
            self._touch(account_id)

    def finalize(
        self,
        account_id: str,
        success: bool,
        records_processed: int = 0,
        error: Optional[str] = None,
        steps: Optional[List[SyncStep]] = None
    ) -> None:
        with self._lock:
            current = self._entries.get(account_id) or {}
            completed_at = datetime.utcnow().isoformat()
            self._entries[account_id] = {
                'accountId': account_id,
                'status': self.STATUS_SUCCESS if success else self.STATUS_ERROR,
                'startedAt': current.get('startedAt', completed_at),
                'completedAt': completed_at,
                'error': error,
                'recordsProcessed': records_processed,
                'steps': [s.to_dict() for s in steps] if steps is not None else current.get('steps', []),
            }
            self._touch(account_id)

    def get(self, account_id: str) -> Optional[dict]:
        """Copy of the progress entry, or None if unknown / expired"""
        with self._lock:
            self._purge_expired()
            entry = self._entries.get(account_id)
            if entry is None:
                return None
            return {**entry, 'steps': [dict(s) for s in entry['steps']]}
