"""
Database models
"""
from .account import Account
from .sync_log import SyncLog

__all__ = ['Account', 'SyncLog']
