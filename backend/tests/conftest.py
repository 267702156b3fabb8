"""
Pytest Configuration and Fixtures

This module provides shared fixtures for all tests.
"""
import os
import sys
import threading

import pytest

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dashboard import create_app
from dashboard.config import TestingConfig
from dashboard.extensions import db
from dashboard.integrations.base import (
    CredentialField,
    DataFetcher,
    IntegrationDefinition,
    MetricTypeDefinition,
    NormalizedMetric,
    SyncResult,
    SyncStep,
)
from dashboard.integrations.registry import IntegrationRegistry
from dashboard.models import Account

# Headers our own UI sends with state-changing requests
TRUSTED_HEADERS = {'X-OMD-Request': '1'}


class FakeClock:
    """Manually advanced time source (seconds)."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeFetcher(DataFetcher):
    """Configurable fetcher that records its calls."""

    def __init__(self):
        self.calls = []
        self.raise_error = None
        self.result = None
        self.valid_credentials = True
        self._lock = threading.Lock()

    def sync(self, account, since=None, on_step=None):
        with self._lock:
            self.calls.append((account, since))
        if on_step:
            on_step(SyncStep('fetch_things', 'Fetch things', SyncStep.STATUS_RUNNING))
        if self.raise_error is not None:
            raise self.raise_error
        if self.result is not None:
            return self.result
        step = SyncStep('fetch_things', 'Fetch things', SyncStep.STATUS_SUCCESS, record_count=3)
        if on_step:
            on_step(step)
        return SyncResult(
            success=True,
            records_processed=3,
            metrics=[NormalizedMetric('revenue', 12.5, '2024-01-01', currency='USD')],
            steps=[step],
        )

    def validate_credentials(self, credentials):
        return self.valid_credentials


def build_fake_integration(fetcher=None):
    return IntegrationDefinition(
        id='fake',
        name='Fake',
        description='Test integration',
        icon='Box',
        color='#000000',
        credentials=[CredentialField(key='api_key', label='API Key')],
        metric_types=[MetricTypeDefinition('revenue', 'Revenue', 'currency', 'Revenue')],
        fetcher=fetcher or FakeFetcher(),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def registry(fake_fetcher):
    return IntegrationRegistry(factories=[lambda: build_fake_integration(fake_fetcher)])


@pytest.fixture
def app(registry, clock):
    """Create application for testing."""
    app = create_app(TestingConfig, registry=registry, clock=clock)

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_account(app):
    """Factory storing an account with encrypted credentials."""
    crypto = app.extensions['credential_crypto']

    def _make(label='Test Account', integration_id='fake', is_active=True, credentials=None):
        account = Account(
            integration_id=integration_id,
            label=label,
            credentials=crypto.encrypt_credentials(credentials or {'api_key': 'test-key'}),
            is_active=is_active,
        )
        db.session.add(account)
        db.session.commit()
        return account

    return _make
