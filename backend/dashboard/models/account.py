"""
Connected integration account model
"""
from datetime import datetime

from ..extensions import db
from ..security.ids import generate_secure_id


class Account(db.Model):
    """One set of credentials for one integration (e.g. "My SaaS Stripe")"""
    __tablename__ = 'accounts'

    id = db.Column(db.String(64), primary_key=True, default=generate_secure_id)
    integration_id = db.Column(db.String(100), nullable=False, index=True)
    label = db.Column(db.String(200), nullable=False)
    # Fernet-encrypted JSON, never returned by the API
    credentials = db.Column(db.Text, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sync_logs = db.relationship(
        'SyncLog',
        backref='account',
        lazy='dynamic',
        cascade='all, delete-orphan'
    )

    def to_dict(self):
        """Public representation (no credentials)"""
        return {
            'id': self.id,
            'integrationId': self.integration_id,
            'label': self.label,
            'isActive': self.is_active,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Account {self.id} ({self.integration_id})>'
