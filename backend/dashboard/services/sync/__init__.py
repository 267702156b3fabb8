"""
Sync services

- cooldown: per-account / global sync throttling
- progress: live per-account sync steps
- engine: runs integration fetchers for stored accounts
- orchestrator: guards and dispatches inbound sync requests
"""
from .cooldown import SyncCooldownGovernor
from .progress import SyncProgressTracker
from .engine import SyncEngine
from .errors import ForgedRequest, InvalidInput, RateLimited, SyncRequestError, UpstreamFailure
from .orchestrator import SyncOrchestrator

__all__ = [
    'SyncCooldownGovernor',
    'SyncProgressTracker',
    'SyncEngine',
    'SyncOrchestrator',
    'SyncRequestError',
    'ForgedRequest',
    'InvalidInput',
    'RateLimited',
    'UpstreamFailure',
]
