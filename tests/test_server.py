from dataclasses import replace
from io import BytesIO

import pytest
from openpyxl import load_workbook

from auth import TokenVerifier
from commerce7_client import Commerce7Client
from conftest import CLUB_MEMBER_ID, FakeResponse, FakeSession, make_raw_order, orders_handler
from excel_export import EXPORT_MIMETYPE, SHEET_NAME
from server import create_app

USERINFO_URL = 'https://idp.example.test/userinfo'


@pytest.fixture
def make_app(config, sleeps):
    def factory(handler, app_config=None, verifier=None):
        app_config = app_config or config
        session = FakeSession(handler)
        client = Commerce7Client(app_config, session=session, sleep=sleeps.append)
        app = create_app(app_config, client=client, verifier=verifier)
        return app.test_client(), session
    return factory


def test_orders_scenario_filters_guest_counts(make_app):
    http, session = make_app(orders_handler([
        make_raw_order(1001, guest_count=0),
        make_raw_order(1002, guest_count=4),
    ]))

    response = http.get('/api/orders?from=2024-01-01&to=2024-01-31')

    assert response.status_code == 200
    body = response.get_json()
    assert body['total'] == 1
    assert [order['orderNumber'] for order in body['orders']] == ['1001']
    assert body['dateRange'] == {'from': '2024-01-01', 'to': '2024-01-31'}
    assert session.calls[0]['params']['orderPaidDate'] == 'btw:2024-01-01|2024-01-31'


def test_club_member_order_is_excluded(make_app):
    http, _ = make_app(orders_handler([
        make_raw_order(1001, product_ids=(CLUB_MEMBER_ID,)),
        make_raw_order(1002),
    ]))

    body = http.get('/api/orders?from=2024-01-01').get_json()

    assert [order['orderNumber'] for order in body['orders']] == ['1002']


def test_missing_dates_rejected_before_any_upstream_call(make_app):
    http, session = make_app(orders_handler([make_raw_order(1)]))

    response = http.get('/api/orders')

    assert response.status_code == 400
    assert response.get_json()['message'] == 'At least one date is required.'
    assert session.calls == []


def test_invalid_date_is_a_validation_error(make_app):
    http, session = make_app(orders_handler([]))

    response = http.get('/api/orders?from=not-a-date')

    assert response.status_code == 400
    assert session.calls == []


def test_no_orders_in_range_is_reported_as_no_data(make_app):
    http, _ = make_app(orders_handler([]))

    response = http.get('/api/orders?from=2024-01-01')

    assert response.status_code == 400
    assert response.get_json()['message'] == 'No orders found for the selected date range.'


def test_orders_can_be_sorted_for_display(make_app):
    http, _ = make_app(orders_handler([
        make_raw_order(1001, total=100),
        make_raw_order(1002, total=300),
        make_raw_order(1003, total=200),
    ]))

    body = http.get('/api/orders?from=2024-01-01&sort=totalAmount&direction=desc').get_json()

    assert [order['orderNumber'] for order in body['orders']] == ['1002', '1003', '1001']


def test_upstream_failure_surfaces_details_outside_production(make_app):
    http, _ = make_app(lambda url, params: FakeResponse(status_code=503, payload={'message': 'Maintenance'}))

    response = http.get('/api/orders?from=2024-01-01')

    assert response.status_code == 500
    body = response.get_json()
    assert body['message'] == 'Error fetching orders (page 1)'
    assert body['error'] == {'page': 1, 'body': {'message': 'Maintenance'}}


def test_upstream_failure_hides_details_in_production(make_app, config):
    production = replace(config, environment='production', auth_disabled=False, auth_userinfo_url=USERINFO_URL)
    verifier = TokenVerifier(production, session=FakeSession(lambda url, params: FakeResponse(payload={'sub': 'u'})))
    http, _ = make_app(lambda url, params: FakeResponse(status_code=503, payload={'message': 'Maintenance'}),
                       app_config=production, verifier=verifier)

    response = http.get('/api/orders?from=2024-01-01', headers={'Authorization': 'Bearer token'})

    assert response.status_code == 500
    assert response.get_json()['error'] == 'FetchError'


def test_protected_endpoints_require_bearer_token(make_app, config):
    secured = replace(config, auth_disabled=False, auth_userinfo_url=USERINFO_URL)
    idp = FakeSession(lambda url, params: FakeResponse(payload={'sub': 'u'}))
    http, session = make_app(orders_handler([make_raw_order(1)]), app_config=secured,
                             verifier=TokenVerifier(secured, session=idp))

    assert http.get('/api/orders?from=2024-01-01').status_code == 401
    assert http.get('/export?from=2024-01-01').status_code == 401
    assert session.calls == []

    response = http.get('/api/orders?from=2024-01-01', headers={'Authorization': 'Bearer token'})
    assert response.status_code == 200


def test_order_detail_passthrough(make_app):
    payload = {'id': 'abc', 'orderNumber': '1001', 'customer': {'firstName': 'Ana'}}
    http, session = make_app(lambda url, params: FakeResponse(payload=payload))

    response = http.get('/api/order/abc')

    assert response.status_code == 200
    assert response.get_json() == payload


def test_order_detail_not_found(make_app):
    http, _ = make_app(lambda url, params: FakeResponse(status_code=404, payload={'message': 'Not found'}))

    response = http.get('/api/order/missing')

    assert response.status_code == 404
    assert 'message' in response.get_json()


def test_associates_endpoint(make_app):
    http, _ = make_app(orders_handler([
        make_raw_order(1, associate='Zoe'),
        make_raw_order(2, associate=None),
        make_raw_order(3, associate='Alice'),
        make_raw_order(4, associate='Zoe'),
        make_raw_order(5, associate='Has Count', guest_count=2),
    ]))

    body = http.get('/api/associates?from=2024-01-01&to=2024-01-31').get_json()

    assert body['associates'] == ['Alice', 'Unknown', 'Zoe']
    assert body['total'] == 3


def test_export_returns_workbook_attachment(make_app):
    http, _ = make_app(orders_handler([
        make_raw_order('WEB-1', associate='Alice'),
        make_raw_order('WEB-2', associate='Bob'),
        make_raw_order('POS-3', associate='Alice'),
        make_raw_order('WEB-4', associate='Alice', guest_count=3),
    ]))

    response = http.get('/export?from=2024-01-01&to=2024-01-31&associates=Alice&search=web')

    assert response.status_code == 200
    assert response.mimetype == EXPORT_MIMETYPE
    assert 'attachment' in response.headers['Content-Disposition']
    assert 'guest_count_report.xlsx' in response.headers['Content-Disposition']

    sheet = load_workbook(BytesIO(response.data))[SHEET_NAME]
    rows = list(sheet.iter_rows(values_only=True))
    assert [row[0] for row in rows[1:]] == ['WEB-1']


def test_export_with_nothing_to_export_is_a_400(make_app):
    http, _ = make_app(orders_handler([make_raw_order(1, guest_count=5)]))

    response = http.get('/export?from=2024-01-01')

    assert response.status_code == 400
    assert response.get_json()['message'] == 'No orders missing guest counts found.'


def test_connection_check_reports_success(make_app):
    http, _ = make_app(lambda url, params: FakeResponse(payload={'orders': [{'id': '1'}]}))

    body = http.get('/test-connection').get_json()

    assert body == {'success': True, 'message': 'Commerce7 connection successful', 'orderCount': 1}


def test_connection_check_reports_failure(make_app):
    http, _ = make_app(lambda url, params: FakeResponse(status_code=401, payload={'message': 'Unauthorized'}))

    response = http.get('/test-connection')

    assert response.status_code == 500
    body = response.get_json()
    assert body['success'] is False
    assert body['error'] == {'message': 'Unauthorized'}


def test_health(make_app):
    http, _ = make_app(orders_handler([]))
    assert http.get('/health').get_json() == {'status': 'ok'}
