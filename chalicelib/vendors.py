from decimal import Decimal
from typing import Tuple, List, Dict, Optional

from boto3.dynamodb.conditions import Attr, Key
from chalice import Response

from chalicelib import schemas
from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import VENDOR_OR_ADMIN, DEFAULT_VENDOR_LOGO
from chalicelib.constants.status_codes import http200
from chalicelib.utils import auth as utils_auth, data as utils_data, exceptions, db as utils_db, app as utils_app
from chalicelib.utils.logger import logger

VENDOR_NOT_FOUND = 'Vendor not found'
VENDOR_PROFILE_NOT_FOUND = 'Vendor profile not found'


class Vendor(EntityBase):
    pk = keys_structure.vendors_pk
    sk = keys_structure.vendors_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'location': lambda x: isinstance(x, str) and len(x) > 0,
        'logo': lambda x: isinstance(x, str),
        'is_open': lambda x: isinstance(x, bool),
        'rating': lambda x: isinstance(x, Decimal) and 0 <= x <= 5,
        'schedule': lambda x: isinstance(x, dict),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'contact_phone': lambda x: isinstance(x, str),
        'contact_email': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.user_id: str = kwargs.get('user_id')
        self.name: str = kwargs.get('name')
        self.description: Optional[str] = kwargs.get('description')
        self.location: str = kwargs.get('location')
        self.logo: str = kwargs.get('logo') or DEFAULT_VENDOR_LOGO
        self.is_open: bool = kwargs.get('is_open', False)
        self.rating: Decimal = Decimal(str(kwargs.get('rating') or 0))
        self.schedule: dict = kwargs.get('schedule') or {}
        self.contact_phone: Optional[str] = kwargs.get('contact_phone')
        self.contact_email: Optional[str] = kwargs.get('contact_email')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'vendor'

    @classmethod
    def init_get_by_id(cls, id_, not_found_message: str = VENDOR_NOT_FOUND):
        try:
            return super().init_get_by_id(id_)
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(not_found_message)

    @classmethod
    def init_by_auth_result(cls, auth_result: Dict):
        """
        Vendor profile owned by the authenticated account
        """
        vendor_id = auth_result.get('vendor_id')
        if not vendor_id:
            raise exceptions.NotFound(VENDOR_PROFILE_NOT_FOUND)
        return cls.init_get_by_id(vendor_id, not_found_message=VENDOR_PROFILE_NOT_FOUND)

    @classmethod
    def init_registration(cls, id_, user_id, name, location, description=None, contact_phone=None,
                          contact_email=None):
        return cls(
            id_,
            user_id=user_id,
            name=name.strip(),
            location=location.strip(),
            description=description,
            contact_phone=contact_phone,
            contact_email=contact_email,
            is_open=False
        )

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.anonymous
    def endpoint_get_all(request) -> Response:
        vendor_db_records: List[Dict] = utils_db.query_items_paged(
            Key('partkey').eq(keys_structure.vendors_pk),
            filter_expression=Attr('is_open').eq(True)
        )
        vendors = sorted([Vendor(**record).to_list_ui() for record in vendor_db_records],
                         key=lambda vendor: vendor['name'].lower())
        logger.info(f"endpoint_get_all ::: returning vendors={[vendor['id'] for vendor in vendors]}")
        return Response(status_code=http200, body=vendors)

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.anonymous
    def endpoint_get_by_id(request, vendor_id) -> Response:
        vendor = Vendor.init_get_by_id(vendor_id)
        return Response(status_code=http200, body=vendor._to_ui())

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=VENDOR_OR_ADMIN)
    def endpoint_get_profile(request) -> Response:
        vendor = Vendor.init_by_auth_result(request.auth_result)
        return Response(status_code=http200, body=vendor._to_ui())

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=VENDOR_OR_ADMIN)
    def endpoint_update_profile(request) -> Response:
        update = utils_data.parse_request(schemas.VendorProfileUpdate, request)
        vendor = Vendor.init_by_auth_result(request.auth_result)
        update_dict = update.model_dump(exclude_none=True)
        if 'contact_email' in update_dict:
            update_dict['contact_email'] = update_dict['contact_email'].strip().lower()
        vendor._update_db_record(update_dict)
        return Response(status_code=http200, body={
            'message': 'Vendor profile updated successfully',
            'vendor': vendor._to_ui()
        })

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=VENDOR_OR_ADMIN)
    def endpoint_toggle_availability(request) -> Response:
        vendor = Vendor.init_by_auth_result(request.auth_result)
        try:
            vendor._update_db_record({'is_open': not vendor.is_open}, condition={'is_open': vendor.is_open})
        except exceptions.ConditionalCheckFailed:
            raise exceptions.InvalidState('Vendor availability was changed concurrently, please retry')
        return Response(status_code=http200, body={
            'message': f"Vendor is now {'open' if vendor.is_open else 'closed'}",
            'is_open': vendor.is_open
        })

    def create(self):
        self._create_db_record()

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(vendor_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'name': self.name,
            'description': self.description,
            'location': self.location,
            'logo': self.logo,
            'is_open': self.is_open,
            'rating': self.rating,
            'schedule': self.schedule,
            'contact_phone': self.contact_phone,
            'contact_email': self.contact_email,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }

    def to_list_ui(self) -> Dict:
        item = self._to_ui()
        item.pop('schedule', None)
        item.pop('contact_email', None)
        return item

    def to_summary(self) -> Dict:
        return {
            'id': self.id_,
            'name': self.name,
            'location': self.location,
            'contact_phone': self.contact_phone
        }
