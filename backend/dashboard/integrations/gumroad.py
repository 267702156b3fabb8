"""
Gumroad integration
Daily revenue and sale counts from the Sales API.
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

GUMROAD_ID = 'gumroad'
GUMROAD_API_BASE = 'https://api.gumroad.com/v2'
DEFAULT_LOOKBACK_DAYS = 30
MAX_PAGES = 50


def _access_token(credentials: Dict[str, str]) -> str:
    token = (credentials.get('access_token') or '').strip()
    if not token:
        raise IntegrationApiError('Gumroad', None, 'Gumroad access token is missing')
    return token


def _get(path: str, access_token: str, params: Optional[dict] = None) -> dict:
    data = get_api_session_pool().get_json(
        'Gumroad',
        f'{GUMROAD_API_BASE}{path}',
        params=params,
        headers={'Authorization': f'Bearer {access_token}'},
    )
    if data.get('success') is False:
        raise IntegrationApiError('Gumroad', None, data.get('message') or 'Gumroad API request failed')
    return data


def fetch_sales(access_token: str, since: datetime) -> List[dict]:
    """All sales after the given day, following page keys"""
    params = {'after': since.strftime('%Y-%m-%d')}
    sales = []

    for _ in range(MAX_PAGES):
        page = _get('/sales', access_token, params)
        sales.extend(page.get('sales') or [])
        next_key = page.get('next_page_key')
        if not next_key:
            break
        params['page_key'] = next_key

    return sales


def compute_daily_sales(sales: List[dict]) -> List[NormalizedMetric]:
    """Revenue excludes refunded and charged-back sales; prices are in cents"""
    daily: Dict[str, dict] = OrderedDict()

    for sale in sales:
        if sale.get('refunded') or sale.get('chargedback'):
            continue
        created = sale.get('created_at')
        if not created:
            continue
        day = created[:10]
        bucket = daily.setdefault(day, {'revenue': 0.0, 'count': 0})
        bucket['revenue'] += (sale.get('price') or 0) / 100
        bucket['count'] += sale.get('quantity') or 1

    metrics = []
    for day, bucket in daily.items():
        metrics.append(NormalizedMetric('revenue', round(bucket['revenue'], 2), day, currency='USD'))
        metrics.append(NormalizedMetric('sales_count', bucket['count'], day))
    return metrics


class GumroadFetcher(DataFetcher):

    def sync(
        self,
        account: AccountConfig,
        since: Optional[datetime] = None,
        on_step: Optional[StepCallback] = None
    ) -> SyncResult:
        access_token = _access_token(account.credentials)
        sync_since = since or (datetime.now(timezone.utc) - timedelta(days=DEFAULT_LOOKBACK_DAYS))

        runner = StepRunner(on_step)

        def sales_phase():
            sales = fetch_sales(access_token, sync_since)
            return len(sales), compute_daily_sales(sales)

        def products_phase():
            products = _get('/products', access_token).get('products') or []
            live = [p for p in products if p.get('published') and not p.get('deleted')]
            today = datetime.now(timezone.utc).strftime('%Y-%m-%d')
            return len(products), [NormalizedMetric('products_count', len(live), today)]

        runner.run('fetch_sales', 'Fetch sales & revenue', sales_phase)
        runner.run('fetch_products', 'Fetch products', products_phase)
        return runner.result()

    def validate_credentials(self, credentials: Dict[str, str]) -> bool:
        try:
            _get('/user', _access_token(credentials))
        except IntegrationApiError:
            return False
        return True


def build_integration() -> IntegrationDefinition:
    return IntegrationDefinition(
        id=GUMROAD_ID,
        name='Gumroad',
        description='Connect your Gumroad account to track sales and revenue.',
        icon='ShoppingBag',
        color='#FF90E8',
        credentials=[
            CredentialField(
                key='access_token',
                label='Access Token',
                help_url='https://app.gumroad.com/settings/advanced#application-form',
                help_text='Generate an access token on the Application page and paste it here.',
            ),
        ],
        metric_types=[
            MetricTypeDefinition('revenue', 'Revenue', 'currency', 'Revenue from non-refunded sales'),
            MetricTypeDefinition('sales_count', 'Sales', 'number', 'Number of units sold'),
            MetricTypeDefinition('products_count', 'Products', 'number', 'Published products'),
        ],
        fetcher=GumroadFetcher(),
        required_permissions=[
            RequiredPermission('sales', 'Sales', 'read', 'Compute daily revenue and sale counts'),
            RequiredPermission('products', 'Products', 'read', 'Count published products'),
            RequiredPermission('user', 'Profile', 'read', 'Verify the token when connecting'),
        ],
    )
