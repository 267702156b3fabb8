"""
API Tests

End-to-end tests for the HTTP surface.
"""
from datetime import datetime

from conftest import TRUSTED_HEADERS
from dashboard.extensions import db
from dashboard.models import Account


class TestHealthAPI:
    """Tests for health check endpoint."""

    def test_health_check(self, client):
        """Test health check returns healthy status."""
        response = client.get('/api/health')

        assert response.status_code == 200
        assert response.get_json() == {'status': 'healthy', 'service': 'dashboard-backend'}

    def test_unknown_route_is_json(self, client):
        response = client.get('/api/does-not-exist')

        assert response.status_code == 404
        assert response.get_json()['code'] == 'NOT_FOUND'


class TestSyncAPI:
    """Tests for /api/sync."""

    def test_sync_all_then_cooldown(self, client, clock):
        """Second sync-all five seconds later is throttled."""
        first = client.post('/api/sync', headers=TRUSTED_HEADERS)
        assert first.status_code == 200
        assert first.get_json() == {'results': []}

        clock.advance(5)
        second = client.post('/api/sync', headers=TRUSTED_HEADERS)

        assert second.status_code == 429
        data = second.get_json()
        assert data['code'] == 'RATE_LIMITED'
        assert '55s' in data['error']

    def test_cooldown_expires(self, client, clock):
        client.post('/api/sync', headers=TRUSTED_HEADERS)
        clock.advance(60)

        response = client.post('/api/sync', headers=TRUSTED_HEADERS)

        assert response.status_code == 200

    def test_sync_account(self, client, make_account):
        account = make_account()

        response = client.post('/api/sync', json={'accountId': account.id}, headers=TRUSTED_HEADERS)

        assert response.status_code == 200
        data = response.get_json()
        assert data['success'] is True
        assert data['recordsProcessed'] == 3

    def test_account_cooldown_is_per_account(self, client, make_account):
        first = make_account(label='First')
        second = make_account(label='Second')

        client.post('/api/sync', json={'accountId': first.id}, headers=TRUSTED_HEADERS)
        again = client.post('/api/sync', json={'accountId': first.id}, headers=TRUSTED_HEADERS)
        other = client.post('/api/sync', json={'accountId': second.id}, headers=TRUSTED_HEADERS)
        everything = client.post('/api/sync', headers=TRUSTED_HEADERS)

        assert again.status_code == 429
        assert 'this account' in again.get_json()['error']
        assert other.status_code == 200
        assert everything.status_code == 200

    def test_sync_all_reports_each_account(self, client, make_account):
        account = make_account(label='Main')

        response = client.post('/api/sync', json={}, headers=TRUSTED_HEADERS)

        results = response.get_json()['results']
        assert len(results) == 1
        assert results[0]['accountId'] == account.id
        assert results[0]['label'] == 'Main'
        assert results[0]['success'] is True

    def test_missing_account(self, client):
        response = client.post('/api/sync', json={'accountId': 'missing-account'}, headers=TRUSTED_HEADERS)

        assert response.status_code == 200
        assert response.get_json() == {'success': False, 'recordsProcessed': 0, 'error': 'Account not found'}

    def test_cross_origin_blocked(self, client, registry):
        response = client.post('/api/sync', headers={'Origin': 'https://evil.example.com'})

        assert response.status_code == 403
        assert response.get_json() == {'error': 'Forbidden: cross-origin request blocked', 'code': 'FORBIDDEN'}
        assert not registry.is_loaded

    def test_no_trust_signal_blocked(self, client):
        response = client.post('/api/sync')

        assert response.status_code == 403

    def test_trusted_origin_allowed(self, client):
        response = client.post('/api/sync', headers={'Origin': 'http://localhost:3000'})

        assert response.status_code == 200

    def test_invalid_account_id(self, client, fake_fetcher):
        response = client.post('/api/sync', json={'accountId': '../etc'}, headers=TRUSTED_HEADERS)

        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR'
        assert fake_fetcher.calls == []

    def test_invalid_account_id_does_not_start_cooldown(self, client, make_account):
        account = make_account()
        client.post('/api/sync', json={'accountId': 123}, headers=TRUSTED_HEADERS)

        response = client.post('/api/sync', json={'accountId': account.id}, headers=TRUSTED_HEADERS)

        assert response.status_code == 200

    def test_malformed_json_is_sync_all(self, client):
        response = client.post(
            '/api/sync',
            data='{not json',
            headers={**TRUSTED_HEADERS, 'Content-Type': 'application/json'},
        )

        assert response.status_code == 200
        assert response.get_json() == {'results': []}

    def test_upstream_failure(self, client, app, monkeypatch):
        def explode(since=None):
            raise RuntimeError('Stripe error: Invalid API Key provided: sk_live_abc123def456ghi789')

        monkeypatch.setattr(app.extensions['sync_engine'], 'sync_all_accounts', explode)

        response = client.post('/api/sync', headers=TRUSTED_HEADERS)

        assert response.status_code == 502
        data = response.get_json()
        assert data['code'] == 'UPSTREAM_FAILURE'
        assert 'sk_live_' not in data['error']

    def test_sync_from_date(self, client, make_account, fake_fetcher):
        account = make_account()

        response = client.post(
            '/api/sync', json={'accountId': account.id, 'from': '2024-01-15'}, headers=TRUSTED_HEADERS
        )

        assert response.status_code == 200
        assert fake_fetcher.calls[0][1] == datetime(2024, 1, 15)

    def test_invalid_from_date(self, client, make_account):
        account = make_account()

        bad = client.post('/api/sync', json={'accountId': account.id, 'from': '2024-02-30'}, headers=TRUSTED_HEADERS)
        good = client.post('/api/sync', json={'accountId': account.id}, headers=TRUSTED_HEADERS)

        assert bad.status_code == 400
        assert bad.get_json() == {'error': 'from is not a valid date', 'code': 'VALIDATION_ERROR'}
        assert good.status_code == 200

    def test_sync_status(self, client, make_account):
        account = make_account()

        before = client.get(f'/api/sync?accountId={account.id}')
        client.post('/api/sync', json={'accountId': account.id}, headers=TRUSTED_HEADERS)
        after = client.get(f'/api/sync?accountId={account.id}')

        assert before.get_json() == {'status': None}
        assert after.get_json()['status']['status'] == 'success'

    def test_sync_progress(self, client, make_account):
        account = make_account()
        client.post('/api/sync', json={'accountId': account.id}, headers=TRUSTED_HEADERS)

        response = client.get(f'/api/sync?accountId={account.id}&progress=1')

        progress = response.get_json()['progress']
        assert progress['status'] == 'success'
        assert progress['steps'][0]['key'] == 'fetch_things'

    def test_sync_status_requires_account_id(self, client):
        response = client.get('/api/sync')

        assert response.status_code == 400
        assert response.get_json()['error'] == 'accountId is required'


class TestIntegrationsAPI:
    """Tests for /api/integrations."""

    def _connect(self, client, **overrides):
        body = {'integrationId': 'fake', 'label': 'My Fake', 'credentials': {'api_key': 'k-123'}}
        body.update(overrides)
        return client.post('/api/integrations', json=body, headers=TRUSTED_HEADERS)

    def test_list_integrations(self, client, make_account):
        account = make_account()

        response = client.get('/api/integrations')

        assert response.status_code == 200
        data = response.get_json()
        assert [i['id'] for i in data] == ['fake']
        assert data[0]['credentials'][0]['key'] == 'api_key'
        assert data[0]['accounts'] == [account.to_dict()]

    def test_connect_account(self, client, app):
        response = self._connect(client)

        assert response.status_code == 201
        data = response.get_json()
        assert data['label'] == 'My Fake'
        assert data['isActive'] is True
        assert 'credentials' not in data

        stored = db.session.get(Account, data['id'])
        assert stored.credentials.startswith('gAAAAA')
        assert app.extensions['credential_crypto'].decrypt_credentials(stored.credentials) == {'api_key': 'k-123'}

    def test_connect_requires_csrf_header(self, client):
        response = client.post('/api/integrations', json={'integrationId': 'fake'})

        assert response.status_code == 403

    def test_connect_unknown_integration(self, client):
        response = self._connect(client, integrationId='nope')

        assert response.status_code == 404

    def test_connect_missing_credential(self, client):
        response = self._connect(client, credentials={'other': 'x'})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Missing credentials: api_key'

    def test_connect_invalid_label(self, client):
        response = self._connect(client, label='  ')

        assert response.status_code == 400
        assert response.get_json()['details'] == {'field': 'label'}

    def test_connect_rejected_credentials(self, client, fake_fetcher):
        fake_fetcher.valid_credentials = False

        response = self._connect(client)

        assert response.status_code == 401
        assert Account.query.count() == 0

    def test_connect_invalid_json(self, client):
        response = client.post(
            '/api/integrations',
            data='[1, 2',
            headers={**TRUSTED_HEADERS, 'Content-Type': 'application/json'},
        )

        assert response.status_code == 400

    def test_update_account(self, client, make_account):
        account = make_account()

        response = client.patch(
            f'/api/integrations/{account.id}',
            json={'label': 'Renamed', 'isActive': False},
            headers=TRUSTED_HEADERS,
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data['label'] == 'Renamed'
        assert data['isActive'] is False

    def test_update_rejects_non_boolean(self, client, make_account):
        account = make_account()

        response = client.patch(f'/api/integrations/{account.id}', json={'isActive': 'no'}, headers=TRUSTED_HEADERS)

        assert response.status_code == 400

    def test_update_missing_account(self, client):
        response = client.patch('/api/integrations/missing', json={'label': 'x'}, headers=TRUSTED_HEADERS)

        assert response.status_code == 404

    def test_delete_account(self, client, make_account):
        account = make_account()
        account_id = account.id

        response = client.delete(f'/api/integrations/{account_id}', headers=TRUSTED_HEADERS)

        assert response.status_code == 200
        assert response.get_json() == {'deleted': True}
        assert db.session.get(Account, account_id) is None

    def test_delete_requires_csrf_header(self, client, make_account):
        account = make_account()

        response = client.delete(f'/api/integrations/{account.id}')

        assert response.status_code == 403
