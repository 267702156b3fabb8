"""
Service Layer
"""
from .sync import (
    SyncCooldownGovernor,
    SyncEngine,
    SyncOrchestrator,
    SyncProgressTracker,
)

__all__ = [
    'SyncCooldownGovernor',
    'SyncEngine',
    'SyncOrchestrator',
    'SyncProgressTracker',
]
