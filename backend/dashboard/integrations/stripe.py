"""
Stripe integration
Daily revenue, charge counts and refunds from the Charges API.
"""
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from .base import (
    AccountConfig,
    CredentialField,
    DataFetcher,
    IntegrationDefinition,
    MetricTypeDefinition,
    NormalizedMetric,
    RequiredPermission,
    StepRunner,
    StepCallback,
    SyncResult,
)
from .http import IntegrationApiError, get_api_session_pool

STRIPE_ID = 'stripe'
STRIPE_API_BASE = 'https://api.stripe.com/v1'
# First sync looks this far back
DEFAULT_LOOKBACK_DAYS = 30
PAGE_SIZE = 100
MAX_PAGES = 50


def _secret_key(credentials: Dict[str, str]) -> str:
    key = (credentials.get('secret_key') or '').strip()
    if not key:
        raise IntegrationApiError('Stripe', None, 'Stripe secret key is missing')
    return key


def fetch_charges(secret_key: str, since: datetime) -> List[dict]:
    """All charges created at or after since, following pagination"""
    pool = get_api_session_pool()
    params = {'limit': PAGE_SIZE, 'created[gte]': int(since.timestamp())}
    charges = []

    for _ in range(MAX_PAGES):
        page = pool.get_json('Stripe', f'{STRIPE_API_BASE}/charges', params=params, auth=(secret_key, ''))
        data = page.get('data') or []
        charges.extend(data)
        if not page.get('has_more') or not data:
            break
        params['starting_after'] = data[-1]['id']

    return charges


def compute_daily_revenue(charges: List[dict]) -> List[NormalizedMetric]:
    """Group succeeded charges by UTC day (Stripe amounts are in cents)"""
    daily: Dict[str, dict] = OrderedDict()

    for charge in charges:
        if charge.get('status') != 'succeeded':
            continue
        day = datetime.fromtimestamp(charge['created'], tz=timezone.utc).strftime('%Y-%m-%d')
        currency = (charge.get('currency') or 'usd').upper()
        bucket = daily.setdefault(day, {'revenue': 0.0, 'count': 0, 'refunds': 0.0, 'currency': currency})
        bucket['revenue'] += charge.get('amount', 0) / 100
        bucket['count'] += 1
        bucket['refunds'] += (charge.get('amount_refunded') or 0) / 100
        bucket['currency'] = currency

    metrics = []
    for day, bucket in daily.items():
        metrics.append(NormalizedMetric('revenue', round(bucket['revenue'], 2), day, currency=bucket['currency']))
        metrics.append(NormalizedMetric('charges_count', bucket['count'], day))
        if bucket['refunds'] > 0:
            metrics.append(NormalizedMetric('refunds', round(bucket['refunds'], 2), day, currency=bucket['currency']))
    return metrics


class StripeFetcher(DataFetcher):

    def sync(
        self,
        account: AccountConfig,
        since: Optional[datetime] = None,
        on_step: Optional[StepCallback] = None
    ) -> SyncResult:
        secret_key = _secret_key(account.credentials)
        sync_since = since or (datetime.now(timezone.utc) - timedelta(days=DEFAULT_LOOKBACK_DAYS))
        if sync_since.tzinfo is None:
            sync_since = sync_since.replace(tzinfo=timezone.utc)

        runner = StepRunner(on_step)

        def charges_phase():
            charges = fetch_charges(secret_key, sync_since)
            return len(charges), compute_daily_revenue(charges)

        runner.run('fetch_charges', 'Fetch charges & revenue', charges_phase)
        return runner.result()

    def validate_credentials(self, credentials: Dict[str, str]) -> bool:
        try:
            get_api_session_pool().get_json(
                'Stripe', f'{STRIPE_API_BASE}/balance', auth=(_secret_key(credentials), '')
            )
        except IntegrationApiError:
            return False
        return True


def build_integration() -> IntegrationDefinition:
    return IntegrationDefinition(
        id=STRIPE_ID,
        name='Stripe',
        description='Track revenue, charges and refunds from your Stripe account.',
        icon='CreditCard',
        color='#635BFF',
        credentials=[
            CredentialField(
                key='secret_key',
                label='Restricted API Key',
                placeholder='rk_live_...',
                help_url='https://dashboard.stripe.com/apikeys',
                help_text='Create a restricted key with read access to charges and balance.',
            ),
        ],
        metric_types=[
            MetricTypeDefinition('revenue', 'Revenue', 'currency', 'Gross revenue from succeeded charges'),
            MetricTypeDefinition('charges_count', 'Charges', 'number', 'Number of succeeded charges'),
            MetricTypeDefinition('refunds', 'Refunds', 'currency', 'Amount refunded'),
        ],
        fetcher=StripeFetcher(),
        required_permissions=[
            RequiredPermission('charges', 'Charges', 'read', 'Compute daily revenue and refunds'),
            RequiredPermission('balance', 'Balance', 'read', 'Verify the key when connecting'),
        ],
    )
