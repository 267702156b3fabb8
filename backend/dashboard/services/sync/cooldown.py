"""
Sync Cooldown Governor - Throttle repeated sync triggers

Every admitted sync spends budget on third-party APIs. The governor keeps one
"last sync" timestamp for sync-all and one per account, and refuses a new
sync for the same key until the cooldown window has elapsed.

State is in-memory and lives as long as the process; a restart clears every
cooldown. Account entries older than the window are dropped on each record,
so the map only holds accounts still cooling down.
"""
import math
import threading
import time
from typing import Callable, Dict, Optional

from ...utils.logger import get_logger

logger = get_logger('cooldown')

DEFAULT_COOLDOWN_SECONDS = 60.0


class SyncCooldownGovernor:
    """Per-account and global cooldown tracker.

    check_cooldown() only reads; record_sync() only writes. admit() does both
    under one lock so that, with a threaded server, at most one request per
    key gets through per window. The lock is never held while a sync runs.

    Example:
        >>> governor = SyncCooldownGovernor(window_seconds=60)
        >>> governor.admit('acct_1')      # None -> go ahead
        >>> governor.admit('acct_1')      # 'Sync cooldown: please wait 60s ...'
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            window_seconds: minimum time between two admitted syncs of one key
            clock: returns the current time in seconds; must not go backwards
        """
        self.window_ms = window_seconds * 1000
        self._clock = clock
        self._last_sync_all_at: Optional[float] = None
        self._last_sync_by_account: Dict[str, float] = {}
        self._lock = threading.RLock()

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _last_sync(self, account_id: Optional[str]) -> Optional[float]:
        if account_id is None:
            return self._last_sync_all_at
        return self._last_sync_by_account.get(account_id)

    def check_cooldown(self, account_id: Optional[str] = None) -> Optional[str]:
        """
        Check whether a sync for account_id (or all accounts) may run now

        Returns:
            None if allowed, otherwise a message with the whole seconds left
        """
        with self._lock:
            last = self._last_sync(account_id)
            if last is None:
                return None

            # A clock that stepped back counts as no time elapsed
            elapsed = max(self._now_ms() - last, 0)
            if elapsed >= self.window_ms:
                return None

        remaining_seconds = math.ceil((self.window_ms - elapsed) / 1000)
        if account_id is None:
            return f'Sync cooldown: please wait {remaining_seconds}s before syncing all accounts again'
        return f'Sync cooldown: please wait {remaining_seconds}s before syncing this account again'

    def _prune_expired(self, now: float) -> None:
        expired = [a for a, t in self._last_sync_by_account.items() if now - t >= self.window_ms]
        for account_id in expired:
            del self._last_sync_by_account[account_id]

    def record_sync(self, account_id: Optional[str] = None) -> None:
        """Start a new cooldown window for account_id (or all accounts)"""
        with self._lock:
            now = self._now_ms()
            self._prune_expired(now)
            if account_id is None:
                self._last_sync_all_at = now
            else:
                self._last_sync_by_account[account_id] = now

    def admit(self, account_id: Optional[str] = None) -> Optional[str]:
        """
        Atomically check the cooldown and, if clear, record the sync

        Returns:
            None when admitted, otherwise the cooldown message
        """
        with self._lock:
            message = self.check_cooldown(account_id)
            if message is None:
                self.record_sync(account_id)
        if message:
            logger.debug(f"Sync rejected for {account_id or 'all accounts'}: cooldown active")
        return message

    def reset(self) -> None:
        """Clear every cooldown"""
        with self._lock:
            self._last_sync_all_at = None
            self._last_sync_by_account.clear()
