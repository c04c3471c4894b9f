from decimal import Decimal
from typing import List, Dict, Tuple, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Attr, Key
from chalice import Response

from chalicelib import schemas
from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import VENDOR_OR_ADMIN, DEFAULT_MENU_ITEM_IMAGE, DEFAULT_PREPARATION_TIME
from chalicelib.constants.status_codes import http200, http201
from chalicelib.utils import auth as utils_auth, data as utils_data, exceptions, db as utils_db, app as utils_app
from chalicelib.utils.logger import logger
from chalicelib.vendors import Vendor

MENU_ITEM_NOT_FOUND = 'Menu item not found'


class MenuItem(EntityBase):
    pk = keys_structure.menu_items_pk
    sk = keys_structure.menu_items_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'vendor_id': lambda x: isinstance(x, str),
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'category': lambda x: isinstance(x, str) and len(x) > 0,
        'price': lambda x: isinstance(x, Decimal) and x >= 0,
        'is_available': lambda x: isinstance(x, bool),
        'preparation_time': lambda x: isinstance(x, (int, Decimal)) and not isinstance(x, bool) and x >= 0,
        'image': lambda x: isinstance(x, str),
        'tags': lambda x: isinstance(x, list),
        'is_veg': lambda x: isinstance(x, bool),
        'is_spicy': lambda x: isinstance(x, bool),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.vendor_id: str = kwargs.get('vendor_id')
        self.name: str = kwargs.get('name')
        self.description: Optional[str] = kwargs.get('description')
        self.price: Decimal = utils_data.to_money(kwargs.get('price')) if \
            type(kwargs.get('price')) in [int, float, Decimal] else None
        self.image: str = kwargs.get('image') or DEFAULT_MENU_ITEM_IMAGE
        self.category: str = kwargs.get('category')
        self.is_available: bool = kwargs.get('is_available', True)
        self.preparation_time: int = int(kwargs.get('preparation_time', DEFAULT_PREPARATION_TIME))
        self.tags: list = list(kwargs.get('tags') or [])
        self.is_veg: bool = kwargs.get('is_veg', False)
        self.is_spicy: bool = kwargs.get('is_spicy', False)
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'menu_item'

    @classmethod
    def init_get_by_id(cls, id_):
        try:
            return super().init_get_by_id(id_)
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(MENU_ITEM_NOT_FOUND)

    @classmethod
    def init_owned_by(cls, menu_item_id: str, vendor: Vendor, action: str = 'update'):
        """
        Menu item which belongs to the given vendor,
        NotFound when missing and Forbidden when another vendor owns it
        """
        menu_item = cls.init_get_by_id(menu_item_id)
        if menu_item.vendor_id != vendor.id_:
            logger.warning(f"init_owned_by ::: menu item {menu_item_id} belongs to vendor {menu_item.vendor_id}, "
                           f"not to {vendor.id_}")
            raise exceptions.Forbidden(f'Not authorized to {action} this menu item')
        return menu_item

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.anonymous
    def endpoint_get_vendor_menu(request, vendor_id) -> Response:
        menu_items = [item._to_ui() for item in get_vendor_menu_items(vendor_id, only_available=True)]
        logger.info(f"endpoint_get_vendor_menu ::: returning menu items={[item['id'] for item in menu_items]}")
        return Response(status_code=http200, body=menu_items)

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=VENDOR_OR_ADMIN)
    def endpoint_get_my_menu(request) -> Response:
        vendor = Vendor.init_by_auth_result(request.auth_result)
        menu_items = [item._to_ui() for item in get_vendor_menu_items(vendor.id_)]
        return Response(status_code=http200, body=menu_items)

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=VENDOR_OR_ADMIN)
    def endpoint_create(request) -> Response:
        item = utils_data.parse_request(schemas.MenuItemCreate, request)
        vendor = Vendor.init_by_auth_result(request.auth_result)
        menu_item = MenuItem(str(uuid4()), vendor_id=vendor.id_, **item.model_dump())
        menu_item._create_db_record()
        return Response(status_code=http201, body={
            'message': 'Menu item added successfully',
            'menu_item': menu_item._to_ui()
        })

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=VENDOR_OR_ADMIN)
    def endpoint_update(request, menu_item_id) -> Response:
        update = utils_data.parse_request(schemas.MenuItemUpdate, request)
        vendor = Vendor.init_by_auth_result(request.auth_result)
        menu_item = MenuItem.init_owned_by(menu_item_id, vendor)
        update_dict = update.model_dump(exclude_none=True)
        if 'price' in update_dict:
            update_dict['price'] = utils_data.to_money(update_dict['price'])
        menu_item._update_db_record(update_dict)
        return Response(status_code=http200, body={
            'message': 'Menu item updated successfully',
            'menu_item': menu_item._to_ui()
        })

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=VENDOR_OR_ADMIN)
    def endpoint_delete(request, menu_item_id) -> Response:
        vendor = Vendor.init_by_auth_result(request.auth_result)
        menu_item = MenuItem.init_owned_by(menu_item_id, vendor, action='delete')
        menu_item._delete_db_record()
        return Response(status_code=http200, body={'message': 'Menu item deleted successfully'})

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=VENDOR_OR_ADMIN)
    def endpoint_toggle_availability(request, menu_item_id) -> Response:
        vendor = Vendor.init_by_auth_result(request.auth_result)
        menu_item = MenuItem.init_owned_by(menu_item_id, vendor)
        try:
            menu_item._update_db_record({'is_available': not menu_item.is_available},
                                        condition={'is_available': menu_item.is_available})
        except exceptions.ConditionalCheckFailed:
            raise exceptions.InvalidState('Menu item availability was changed concurrently, please retry')
        return Response(status_code=http200, body={
            'message': f"Menu item is now {'available' if menu_item.is_available else 'unavailable'}",
            'is_available': menu_item.is_available
        })

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(menu_item_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'vendor_id': self.vendor_id,
            'name': self.name,
            'description': self.description,
            'price': self.price,
            'image': self.image,
            'category': self.category,
            'is_available': self.is_available,
            'preparation_time': self.preparation_time,
            'tags': self.tags,
            'is_veg': self.is_veg,
            'is_spicy': self.is_spicy,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }


def get_vendor_menu_items(vendor_id: str, only_available: bool = False) -> List[MenuItem]:
    filter_expression = Attr('vendor_id').eq(vendor_id)
    if only_available:
        filter_expression = filter_expression & Attr('is_available').eq(True)
    menu_item_db_records: List[Dict] = utils_db.query_items_paged(
        Key('partkey').eq(keys_structure.menu_items_pk),
        filter_expression=filter_expression
    )
    menu_items = [MenuItem(**record) for record in menu_item_db_records]
    return sorted(menu_items, key=lambda item: (item.category, item.name))
