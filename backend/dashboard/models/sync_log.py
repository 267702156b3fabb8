"""
Sync log model
One row per sync attempt of one account.
"""
from datetime import datetime

from ..extensions import db
from ..security.ids import generate_secure_id


class SyncLog(db.Model):
    """Outcome of a single account sync"""
    __tablename__ = 'sync_logs'

    STATUS_RUNNING = 'running'
    STATUS_SUCCESS = 'success'
    STATUS_ERROR = 'error'

    id = db.Column(db.String(64), primary_key=True, default=generate_secure_id)
    account_id = db.Column(db.String(64), db.ForeignKey('accounts.id'), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=STATUS_RUNNING)
    started_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime)
    records_processed = db.Column(db.Integer, default=0)
    # Always sanitized before being written
    error = db.Column(db.Text)

    def to_dict(self):
        return {
            'id': self.id,
            'accountId': self.account_id,
            'status': self.status,
            'startedAt': self.started_at.isoformat() if self.started_at else None,
            'completedAt': self.completed_at.isoformat() if self.completed_at else None,
            'recordsProcessed': self.records_processed or 0,
            'error': self.error,
        }
