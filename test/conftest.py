import os

os.environ.setdefault('AWS_DEFAULT_REGION', 'eu-central-1')
os.environ['AWS_REGION'] = os.environ['AWS_DEFAULT_REGION']
os.environ['AWS_ACCESS_KEY_ID'] = 'testing'
os.environ['AWS_SECRET_ACCESS_KEY'] = 'testing'
os.environ['AWS_SECURITY_TOKEN'] = 'testing'
os.environ['AWS_SESSION_TOKEN'] = 'testing'
os.environ['GEN_TABLE_NAME'] = 'campus-eats-test'
os.environ['JWT_SECRET'] = 'test-secret'
os.environ['LOG_LEVEL'] = 'INFO'
os.environ['STUDENT_EMAIL_DOMAIN'] = 'cuet.ac.bd'
os.environ['STRICT_ORDER_TRANSITIONS'] = 'true'
os.environ['PAYMENT_CALLBACK_BASE_URL'] = 'https://api.campus-eats.test'
os.environ.pop('ENDPOINT_URL', None)

from typing import List  # noqa: E402

import boto3  # noqa: E402
import pytest  # noqa: E402
from chalice.cli import factory  # noqa: E402
from chalice.local import LocalGateway  # noqa: E402
from moto import mock_aws  # noqa: E402

from chalicelib.utils import db, auth as utils_auth  # noqa: E402
from chalicelib.utils.payment_gateway import PaymentGateway, PaymentSession, ValidationResult, \
    set_gateway, reset_gateway  # noqa: E402
from regression_test_data import get_student_registration, get_admin_records, \
    ADMIN_PASSWORD  # noqa: E402
from request_utils import make_request, body_of, register_vendor  # noqa: E402

PROJECT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def local_gateway() -> LocalGateway:
    config = factory.CLIFactory(
        project_dir=PROJECT_DIR, environ=os.environ).create_config_obj(chalice_stage_name='test')
    return LocalGateway(config.chalice_app, config)


@pytest.fixture(scope='session')
def chalice_gateway() -> LocalGateway:
    yield local_gateway()


@pytest.fixture(autouse=True)
def gen_table():
    with mock_aws():
        db.reset_table_cache()
        table = boto3.resource('dynamodb', region_name=os.environ['AWS_DEFAULT_REGION']).create_table(
            TableName=os.environ['GEN_TABLE_NAME'],
            KeySchema=[
                {'AttributeName': 'partkey', 'KeyType': 'HASH'},
                {'AttributeName': 'sortkey', 'KeyType': 'RANGE'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'partkey', 'AttributeType': 'S'},
                {'AttributeName': 'sortkey', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )
        yield table
        db.reset_table_cache()


class FakeGateway(PaymentGateway):
    """Payment gateway double, records every call

    validate() reports the last opened transaction and its amount
    unless validated_tran_id / validated_amount are set
    """

    def __init__(self):
        self.redirect_url = 'https://sandbox.sslcommerz.com/EasyCheckOut/testcde'
        self.validation_status = 'VALID'
        self.validated_tran_id = None
        self.validated_amount = None
        self.opened: dict = {}
        self.calls: List[dict] = []

    def init_payment(self, payment_data: dict) -> PaymentSession:
        self.calls.append({'method': 'init_payment', 'payment_data': payment_data})
        if self.redirect_url:
            self.opened = payment_data
            return PaymentSession(redirect_url=self.redirect_url, session_key='fake-session', status='SUCCESS')
        return PaymentSession(redirect_url=None, status='FAILED', failure_reason='Store credential error')

    def validate(self, val_id: str) -> ValidationResult:
        self.calls.append({'method': 'validate', 'val_id': val_id})
        return ValidationResult(
            status=self.validation_status,
            tran_id=self.validated_tran_id or self.opened.get('tran_id'),
            amount=self.validated_amount or self.opened.get('total_amount'),
            raw={'status': self.validation_status}
        )


@pytest.fixture(autouse=True)
def fake_gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    yield gateway
    reset_gateway()


@pytest.fixture
def student(chalice_gateway):
    """token and user of a registered student"""
    response = make_request(chalice_gateway, endpoint='/auth/register', method='POST',
                            json_body=get_student_registration())
    body = body_of(response)
    return body['token'], body['user']


@pytest.fixture
def other_student(chalice_gateway):
    response = make_request(chalice_gateway, endpoint='/auth/register', method='POST',
                            json_body=get_student_registration(email='karim@cuet.ac.bd', name='Karim Ahmed'))
    body = body_of(response)
    return body['token'], body['user']


@pytest.fixture
def vendor(chalice_gateway):
    """token and vendor id of an open vendor"""
    return register_vendor(chalice_gateway, 'owner@hallcanteen.com', 'Hall Canteen')


@pytest.fixture
def other_vendor(chalice_gateway):
    return register_vendor(chalice_gateway, 'owner@cafeteria.com', 'Central Cafeteria')


@pytest.fixture
def admin():
    """admins can not register themselves, the records are written directly"""
    account, email_claim = get_admin_records(utils_auth.hash_password(ADMIN_PASSWORD))
    db.put_db_record(account)
    db.put_db_record(email_claim)
    return utils_auth.issue_token(account['id_']), account['id_']

