import pytest

from commerce7_client import Commerce7Client
from config import AppConfig

API_URL = 'https://api.commerce7.test/v1'
CLUB_MEMBER_ID = '75d4f6cf-cf69-4e76-8f3b-bb35cc7ddeb3'
TRADE_GUEST_ID = '718b9fbb-4e23-48c7-8b2d-da86d2624b36'
NCG_ID = 'fe778da9-5164-4688-acd2-98d044d7ce84'
WINE_ID = 'a1b2c3d4-0000-0000-0000-000000000001'


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=''):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError('No JSON body')
        return self._payload


class FakeSession:
    """Stands in for requests.Session; handler(url, params) returns a response or raises"""

    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def get(self, url, params=None, **kwargs):
        self.calls.append({'url': url, 'params': dict(params or {}), **kwargs})
        return self.handler(url, params or {})


def make_raw_order(number, guest_count=None, product_ids=(WINE_ID,), associate='Alice Smith',
                   paid='2024-01-05T15:30:00.000Z', total=12500, **extra):
    order = {
        'id': f'id-{number}',
        'orderNumber': str(number),
        'orderPaidDate': paid,
        'orderDate': paid,
        'salesAssociate': {'name': associate} if associate else None,
        'subTotal': total,
        'total': total,
        'guestCount': guest_count,
        'items': [
            {'productId': product_id, 'productTitle': f'Product {product_id[:4]}', 'sku': 'SKU-1',
             'quantity': 1, 'price': total}
            for product_id in product_ids
        ],
    }
    order.update(extra)
    return order


def paged_handler(page_sizes):
    """Serve pages of the given sizes, then empty pages"""
    def handler(url, params):
        page = int(params.get('page', 1))
        size = page_sizes[page - 1] if page <= len(page_sizes) else 0
        orders = [{'id': f'{page}-{i}', 'orderNumber': f'{page}{i:03d}'} for i in range(size)]
        return FakeResponse(payload={'orders': orders, 'total': sum(page_sizes)})
    return handler


def orders_handler(raw_orders):
    def handler(url, params):
        return FakeResponse(payload={'orders': raw_orders, 'total': len(raw_orders)})
    return handler


@pytest.fixture
def config():
    return AppConfig(
        app_id='app-id',
        api_key='api-key',
        tenant_id='test-winery',
        api_url=API_URL,
        environment='development',
        auth_disabled=True,
    )


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_client(config, sleeps):
    def factory(handler, client_config=None):
        session = FakeSession(handler)
        client = Commerce7Client(client_config or config, session=session, sleep=sleeps.append)
        return client, session
    return factory
