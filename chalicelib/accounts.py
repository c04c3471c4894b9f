from typing import Tuple, Dict, Optional
from uuid import uuid4

from chalice import Response

from chalicelib import schemas
from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLES, ROLE_STUDENT, ROLE_VENDOR
from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils import auth as utils_auth, data as utils_data, exceptions, db as utils_db, app as utils_app, \
    config
from chalicelib.utils.logger import logger
from chalicelib.vendors import Vendor

INVALID_CREDENTIALS = 'Invalid credentials'


class Account(EntityBase):
    pk = keys_structure.accounts_pk
    sk = keys_structure.accounts_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'email': lambda x: isinstance(x, str) and '@' in x,
        'password_hash': lambda x: isinstance(x, str),
        'role': lambda x: x in ROLES,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'student_id': lambda x: isinstance(x, str),
        'phone': lambda x: isinstance(x, str),
        'vendor_id': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.name: str = kwargs.get('name')
        self.email: str = kwargs.get('email')
        self.password_hash: str = kwargs.get('password_hash')
        self.role: str = kwargs.get('role', ROLE_STUDENT)
        self.student_id: Optional[str] = kwargs.get('student_id')
        self.phone: Optional[str] = kwargs.get('phone')
        self.vendor_id: Optional[str] = kwargs.get('vendor_id')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'account'

    @classmethod
    def init_by_email(cls, email: str):
        claim = utils_db.get_db_item(
            partkey=keys_structure.account_emails_pk,
            sortkey=keys_structure.account_emails_sk.format(email=email)
        )
        return cls.init_get_by_id(claim['account_id'])

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.anonymous
    def endpoint_register(request) -> Response:
        registration = utils_data.parse_request(schemas.RegisterRequest, request)
        account, vendor = Account.register(registration)
        logger.info(f"endpoint_register ::: account={account.id_} role={account.role} "
                    f"vendor={vendor.id_ if vendor else None} registered")
        return Response(status_code=http201, body={
            'message': 'User registered successfully',
            'token': utils_auth.issue_token(account.id_),
            'user': account.to_public()
        })

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.anonymous
    def endpoint_login(request) -> Response:
        credentials = utils_data.parse_request(schemas.LoginRequest, request)
        try:
            account = Account.init_by_email(credentials.email)
        except exceptions.RecordNotFound:
            logger.info(f"endpoint_login ::: unknown email")
            raise exceptions.InvalidInput(INVALID_CREDENTIALS)
        if not utils_auth.verify_password(credentials.password, account.password_hash):
            logger.info(f"endpoint_login ::: wrong password for account={account.id_}")
            raise exceptions.InvalidInput(INVALID_CREDENTIALS)
        return Response(status_code=http200, body={
            'message': 'Login successful',
            'token': utils_auth.issue_token(account.id_),
            'user': account.to_public()
        })

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate
    def endpoint_me(request) -> Response:
        account = Account(**request.account)
        return Response(status_code=http200, body={'user': account.to_public(detailed=True)})

    @classmethod
    def register(cls, registration: schemas.RegisterRequest) -> Tuple['Account', Optional[Vendor]]:
        """
        Every check runs before the first write.
        The email claim is a conditional put, a taken email fails there and nothing else is written
        """
        if registration.role == ROLE_STUDENT and \
                not registration.email.endswith(f'@{config.student_email_domain()}'):
            raise exceptions.InvalidInput('Students must use a valid CUET email address')

        account = cls(
            str(uuid4()),
            name=registration.name,
            email=registration.email,
            password_hash=utils_auth.hash_password(registration.password),
            role=registration.role,
            student_id=registration.student_id if registration.role == ROLE_STUDENT else None,
            phone=registration.phone
        )
        vendor = None
        if registration.role == ROLE_VENDOR:
            vendor = Vendor.init_registration(
                id_=str(uuid4()),
                user_id=account.id_,
                name=registration.vendor_name,
                location=registration.location,
                description=registration.description,
                contact_phone=registration.phone,
                contact_email=registration.email
            )
            account.vendor_id = vendor.id_

        account._validate_db_record()
        if vendor is not None:
            vendor._validate_db_record()

        account._claim_email()
        account._create_db_record()
        if vendor is not None:
            vendor.create()
        return account, vendor

    def _claim_email(self):
        try:
            utils_db.put_db_record({
                'partkey': keys_structure.account_emails_pk,
                'sortkey': keys_structure.account_emails_sk.format(email=self.email),
                'record_type': 'account_email',
                'account_id': self.id_,
                'date_created': self.date_created
            }, only_if_new=True)
        except exceptions.ConditionalCheckFailed:
            raise exceptions.InvalidInput('User already exists')

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(account_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name': self.name,
            'email': self.email,
            'password_hash': self.password_hash,
            'role': self.role,
            'student_id': self.student_id,
            'phone': self.phone,
            'vendor_id': self.vendor_id,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }

    def to_public(self, detailed: bool = False) -> Dict:
        user = {
            'id': self.id_,
            'name': self.name,
            'email': self.email,
            'role': self.role
        }
        if detailed:
            user.update({
                'student_id': self.student_id,
                'phone': self.phone,
                'vendor_id': self.vendor_id
            })
        return user

    def to_summary(self) -> Dict:
        return {
            'id': self.id_,
            'name': self.name,
            'email': self.email,
            'phone': self.phone
        }


def get_account_summary(account_id: str) -> Optional[Dict]:
    try:
        return Account.init_get_by_id(account_id).to_summary()
    except exceptions.RecordNotFound:
        logger.warning(f"get_account_summary ::: account {account_id} not found")
        return None
