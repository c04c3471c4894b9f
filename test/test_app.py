import os

from chalice.test import Client

from app import app
from request_utils import make_request, body_of

PROJECT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def test_health():
    with Client(app, stage_name='test', project_dir=PROJECT_DIR) as client:
        response = client.http.get('/health')
        assert response.status_code == 200
        assert response.json_body == {'status': 'ok'}


def test_error_body_format(chalice_gateway):
    response = make_request(chalice_gateway, endpoint='/vendors/unknown-vendor')
    assert response['statusCode'] == 404
    body = body_of(response)
    assert body['message'] == 'Vendor not found'
    assert body['error'] == 'NotFound'
    assert 'error_id' in body


def test_invalid_json_body(chalice_gateway):
    response = chalice_gateway.handle_request(
        method='POST',
        path='/auth/login',
        headers={'Content-Type': 'application/json', 'Host': 'test-domain.com'},
        body=b'{"email": '
    )
    assert response['statusCode'] == 400
    assert body_of(response)['error'] == 'InvalidInput'


def test_undecodable_form_body(chalice_gateway):
    response = chalice_gateway.handle_request(
        method='POST',
        path='/auth/login',
        headers={'Content-Type': 'application/x-www-form-urlencoded', 'Host': 'test-domain.com'},
        body=b'email=\xff\xfe&password=secret1'
    )
    assert response['statusCode'] == 400
    assert body_of(response)['message'] == 'Request body is not valid UTF-8'


def test_unexpected_error_is_hidden(chalice_gateway, monkeypatch, student):
    def broken_query(*args, **kwargs):
        raise RuntimeError('table exploded')

    monkeypatch.setattr('chalicelib.orders.query_orders', broken_query)
    token, _ = student
    response = make_request(chalice_gateway, endpoint='/orders/my-orders', token=token)
    assert response['statusCode'] == 500
    assert body_of(response)['message'] == 'Server error'
