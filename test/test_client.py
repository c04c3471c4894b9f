import json
from decimal import Decimal
from urllib.parse import urlencode, urlsplit

import pytest
import requests

from campuseats_client.api import CampusEatsClient, ApiError
from campuseats_client.cart import Cart
from campuseats_client.session_store import SessionStore, MemoryBackend, JsonFileBackend, TOKEN_KEY, USER_KEY, \
    CART_KEY
from regression_test_data import get_student_registration, get_vendor_registration, menu_item_a, menu_item_b, \
    STUDENT_EMAIL, STUDENT_PASSWORD

BASE_URL = 'https://api.campus-eats.test'


class GatewaySession(requests.Session):
    """requests session which hands every call to the local chalice gateway"""

    def __init__(self, chalice_gateway):
        super().__init__()
        self.chalice_gateway = chalice_gateway

    def request(self, method, url, timeout=None, json=None, params=None, **kwargs):
        path = urlsplit(url).path
        if params:
            path = f'{path}?{urlencode(params)}'
        headers = {**self.headers, 'Content-Type': 'application/json', 'Host': 'test-domain.com'}
        result = self.chalice_gateway.handle_request(
            method=method,
            path=path,
            headers=headers,
            body=json_dumps(json) if json is not None else b''
        )
        response = requests.Response()
        response.status_code = result['statusCode']
        response._content = result['body'].encode('utf-8') if isinstance(result['body'], str) else result['body']
        response.url = url
        return response


def json_dumps(body) -> bytes:
    return json.dumps(body).encode('utf-8')


def vendor_client(chalice_gateway) -> CampusEatsClient:
    client = CampusEatsClient(BASE_URL, session=GatewaySession(chalice_gateway))
    client.register(**get_vendor_registration())
    client.toggle_vendor_availability()
    client.create_menu_item(**menu_item_a)
    client.create_menu_item(**menu_item_b)
    return client


def test_memory_store():
    backend = MemoryBackend({TOKEN_KEY: 'abc'})
    store = SessionStore(backend)
    assert store.get(TOKEN_KEY) == 'abc'

    store.set(USER_KEY, {'id': 'u1'})
    assert backend.saved == {TOKEN_KEY: 'abc', USER_KEY: {'id': 'u1'}}
    store.delete('missing')
    assert backend.save_count == 1

    store.clear()
    assert backend.saved == {}
    assert store.get(TOKEN_KEY, 'none') == 'none'


def test_json_file_store(tmp_path):
    path = tmp_path / 'state' / 'session.json'
    store = SessionStore(JsonFileBackend(str(path)))
    store.set(TOKEN_KEY, 'abc')

    assert json.loads(path.read_text()) == {TOKEN_KEY: 'abc'}
    assert SessionStore(JsonFileBackend(str(path))).get(TOKEN_KEY) == 'abc'


def test_json_file_store_ignores_broken_file(tmp_path):
    path = tmp_path / 'session.json'
    path.write_text('{not json')
    assert SessionStore(JsonFileBackend(str(path))).get(TOKEN_KEY) is None


def test_cart_single_vendor():
    store = SessionStore()
    cart = Cart(store)
    biryani = {'id': 'm1', 'vendor_id': 'v1', 'name': 'Chicken Biryani', 'price': 100.0}
    samosa = {'id': 'm2', 'vendor_id': 'v1', 'name': 'Vegetable Samosa', 'price': 12.5}
    foreign = {'id': 'm3', 'vendor_id': 'v2', 'name': 'Khichuri', 'price': 80}

    assert cart.add_item(biryani, vendor_name='Hall Canteen')
    assert cart.add_item(biryani, vendor_name='Hall Canteen')
    assert cart.add_item(samosa, vendor_name='Hall Canteen')
    assert cart.total_items == 3
    assert cart.total_amount == Decimal('212.5')

    assert not cart.add_item(foreign, vendor_name='Central Cafeteria')
    assert cart.vendor_id == 'v1'

    assert cart.add_item(foreign, vendor_name='Central Cafeteria', replace_other_vendor=True)
    assert cart.vendor_id == 'v2'
    assert [item.menu_item_id for item in cart.items] == ['m3']


def test_cart_quantity_and_removal():
    cart = Cart(SessionStore())
    cart.add_item({'id': 'm1', 'vendor_id': 'v1', 'name': 'Tea', 'price': 10})
    cart.update_quantity('m1', 4)
    cart.update_quantity('m1', 0)
    assert cart.items[0].quantity == 4
    assert cart.items[0].subtotal == Decimal('40')

    cart.remove_item('m1')
    assert cart.items == []
    assert cart.vendor_id is None
    with pytest.raises(ValueError):
        cart.to_order_request()


def test_cart_is_persisted():
    store = SessionStore()
    cart = Cart(store)
    cart.add_item({'id': 'm1', 'vendor_id': 'v1', 'name': 'Tea', 'price': 10}, vendor_name='Tong')
    assert store.get(CART_KEY)['vendor_id'] == 'v1'

    restored = Cart(store)
    assert restored.vendor_name == 'Tong'
    assert restored.to_order_request(special_instructions='No sugar') == {
        'vendor_id': 'v1',
        'items': [{'menu_item_id': 'm1', 'quantity': 1}],
        'payment_method': 'online',
        'special_instructions': 'No sugar'
    }


def test_client_order_flow(chalice_gateway, fake_gateway):
    vendor = vendor_client(chalice_gateway)
    vendor_id = vendor.get_my_vendor_profile()['id']

    store = SessionStore()
    student = CampusEatsClient(BASE_URL, store=store, session=GatewaySession(chalice_gateway))
    user = student.register(**get_student_registration())
    assert student.is_authenticated
    assert student.user == user

    vendors = student.list_vendors()
    assert [v['id'] for v in vendors] == [vendor_id]
    cart = Cart(store)
    for menu_item in student.get_vendor_menu(vendor_id):
        assert cart.add_item(menu_item, vendor_name=vendors[0]['name'])
    cart.update_quantity(cart.items[0].menu_item_id, 2)
    assert cart.total_amount == Decimal('250')

    order = student.place_order(cart, payment_method='cash')
    assert order['total_amount'] == 250
    assert cart.items == []
    assert [o['id'] for o in student.get_my_orders()] == [order['id']]
    assert student.start_payment(order['id']) == fake_gateway.redirect_url

    assert [o['id'] for o in vendor.get_vendor_orders(status='pending')] == [order['id']]
    assert vendor.update_order_status(order['id'], 'preparing') == 'preparing'
    with pytest.raises(ApiError) as error:
        student.cancel_order(order['id'])
    assert error.value.status_code == 400
    assert error.value.error == 'InvalidState'


def test_client_login_and_logout(chalice_gateway):
    CampusEatsClient(BASE_URL, session=GatewaySession(chalice_gateway)).register(**get_student_registration())

    store = SessionStore()
    client = CampusEatsClient(BASE_URL, store=store, session=GatewaySession(chalice_gateway))
    client.login(STUDENT_EMAIL, STUDENT_PASSWORD)
    assert client.me()['student_id'] == '1904001'

    # the token is picked up from the store
    again = CampusEatsClient(BASE_URL, store=store, session=GatewaySession(chalice_gateway))
    assert again.me()['email'] == STUDENT_EMAIL

    client.logout()
    assert not client.is_authenticated
    with pytest.raises(ApiError) as error:
        client.me()
    assert error.value.status_code == 401


def test_client_drops_rejected_token(chalice_gateway):
    store = SessionStore(MemoryBackend({TOKEN_KEY: 'stale-token', USER_KEY: {'id': 'u1'}}))
    client = CampusEatsClient(BASE_URL, store=store, session=GatewaySession(chalice_gateway))
    with pytest.raises(ApiError):
        client.me()
    assert store.get(TOKEN_KEY) is None
    assert store.get(USER_KEY) is None


def test_client_login_error(chalice_gateway):
    client = CampusEatsClient(BASE_URL, session=GatewaySession(chalice_gateway))
    with pytest.raises(ApiError) as error:
        client.login(STUDENT_EMAIL, 'wrong')
    assert error.value.message == 'Invalid credentials'
    assert not client.is_authenticated


def test_client_unreachable_server(monkeypatch):
    def broken(*args, **kwargs):
        raise requests.ConnectionError('connection refused')

    session = requests.Session()
    monkeypatch.setattr(session, 'request', broken)
    client = CampusEatsClient(BASE_URL, session=session)
    with pytest.raises(ApiError) as error:
        client.list_vendors()
    assert error.value.status_code == 0
