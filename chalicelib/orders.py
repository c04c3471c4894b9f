from decimal import Decimal
from typing import Tuple, List, Dict, Optional, Callable
from uuid import uuid4

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib import schemas
from chalicelib.accounts import get_account_summary
from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import STUDENT_OR_ADMIN, VENDOR_OR_ADMIN, ROLE_ADMIN, ORDER_STATUSES, \
    ORDER_TRANSITIONS, ORDER_PENDING, ORDER_CANCELLED, PAYMENT_PENDING, PAYMENT_STATUSES, PAYMENT_METHODS
from chalicelib.constants.status_codes import http200, http201
from chalicelib.menu_items import MenuItem
from chalicelib.utils import auth as utils_auth, data as utils_data, db as utils_db, app as utils_app, \
    exceptions, config
from chalicelib.utils.logger import logger
from chalicelib.vendors import Vendor

ORDER_NOT_FOUND = 'Order not found'


class Order(EntityBase):
    pk = keys_structure.orders_pk
    sk = keys_structure.orders_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'user_id': lambda x: isinstance(x, str),
        'vendor_id': lambda x: isinstance(x, str),
        'items': lambda x: isinstance(x, list) and len(x) > 0,
        'total_amount': lambda x: isinstance(x, Decimal) and x >= 0,
        'payment_method': lambda x: x in PAYMENT_METHODS,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'status': lambda x: x in ORDER_STATUSES,
        'payment_status': lambda x: x in PAYMENT_STATUSES,
        'status_history': lambda x: isinstance(x, list),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'payment_id': lambda x: isinstance(x, str),
        'special_instructions': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.user_id: str = kwargs.get('user_id')
        self.vendor_id: str = kwargs.get('vendor_id')
        self.items: List[Dict] = kwargs.get('items', [])
        self.total_amount: Decimal = utils_data.to_money(kwargs.get('total_amount')) if \
            type(kwargs.get('total_amount')) in [int, float, Decimal] else None
        self.status: str = kwargs.get('status', ORDER_PENDING)
        self.payment_status: str = kwargs.get('payment_status', PAYMENT_PENDING)
        self.payment_method: str = kwargs.get('payment_method') or PAYMENT_METHODS[0]
        self.payment_id: Optional[str] = kwargs.get('payment_id')
        self.special_instructions: Optional[str] = kwargs.get('special_instructions')
        self.status_history: List[Dict] = kwargs.get('status_history', [])
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'order'

    @classmethod
    def init_get_by_id(cls, id_):
        try:
            return super().init_get_by_id(id_)
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(ORDER_NOT_FOUND)

    @classmethod
    def init_from_request(cls, user_id: str, order_request: schemas.CreateOrderRequest):
        """
        Builds a pending order out of the current menu.
        Vendor and every item are checked before anything is written,
        prices are copied into the order so later menu edits do not change it
        """
        vendor = Vendor.init_get_by_id(order_request.vendor_id)
        if not vendor.is_open:
            raise exceptions.InvalidState('This vendor is currently closed')

        items = []
        for line in order_request.items:
            not_found_message = f'Menu item with ID {line.menu_item_id} not found'
            try:
                menu_item = MenuItem.init_get_by_id(line.menu_item_id)
            except exceptions.NotFound:
                raise exceptions.NotFound(not_found_message)
            if menu_item.vendor_id != vendor.id_:
                raise exceptions.NotFound(not_found_message)
            if not menu_item.is_available:
                raise exceptions.InvalidState(f'{menu_item.name} is currently unavailable')
            items.append({
                'menu_item_id': menu_item.id_,
                'name': menu_item.name,
                'price': menu_item.price,
                'quantity': line.quantity,
                'subtotal': utils_data.to_money(menu_item.price * line.quantity)
            })

        date_created = now_iso()
        return cls(
            str(uuid4()),
            user_id=user_id,
            vendor_id=vendor.id_,
            items=items,
            total_amount=sum((item['subtotal'] for item in items), Decimal('0')),
            status=ORDER_PENDING,
            payment_status=PAYMENT_PENDING,
            payment_method=order_request.payment_method,
            special_instructions=order_request.special_instructions,
            status_history=[{'status': ORDER_PENDING, 'timestamp': date_created}],
            date_created=date_created,
            date_updated=date_created
        )

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=STUDENT_OR_ADMIN)
    def endpoint_create(request) -> Response:
        order_request = utils_data.parse_request(schemas.CreateOrderRequest, request)
        order = Order.init_from_request(request.auth_result['user_id'], order_request)
        order._create_db_record()
        logger.info(f"endpoint_create ::: order {order.id_} total_amount={order.total_amount} created")
        return Response(status_code=http201, body={
            'message': 'Order created successfully',
            'order': order._to_ui()
        })

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=STUDENT_OR_ADMIN)
    def endpoint_get_my_orders(request) -> Response:
        orders = query_orders(Attr('user_id').eq(request.auth_result['user_id']))
        vendor_summary = cached_lookup(get_vendor_summary)
        body = [{**order._to_ui(), 'vendor': vendor_summary(order.vendor_id)} for order in orders]
        return Response(status_code=http200, body=body)

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=VENDOR_OR_ADMIN)
    def endpoint_get_vendor_orders(request) -> Response:
        vendor = Vendor.init_by_auth_result(request.auth_result)
        filter_expression = Attr('vendor_id').eq(vendor.id_)
        status = (request.query_params or {}).get('status')
        if status in ORDER_STATUSES:
            filter_expression = filter_expression & Attr('status').eq(status)
        orders = query_orders(filter_expression)
        user_summary = cached_lookup(get_account_summary)
        body = [{**order._to_ui(), 'user': user_summary(order.user_id)} for order in orders]
        return Response(status_code=http200, body=body)

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate
    def endpoint_get_by_id(request, order_id) -> Response:
        order = Order.init_get_by_id(order_id)
        auth_result = request.auth_result
        is_order_user = order.user_id == auth_result['user_id']
        is_order_vendor = auth_result.get('vendor_id') is not None and order.vendor_id == auth_result['vendor_id']
        if not (is_order_user or is_order_vendor or auth_result['role'] == ROLE_ADMIN):
            raise exceptions.Forbidden('Not authorized to view this order')
        return Response(status_code=http200, body={
            **order._to_ui(),
            'vendor': get_vendor_summary(order.vendor_id),
            'user': get_account_summary(order.user_id)
        })

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=VENDOR_OR_ADMIN)
    def endpoint_update_status(request, order_id) -> Response:
        new_status = utils_data.parse_request(schemas.StatusUpdateRequest, request).status
        vendor = Vendor.init_by_auth_result(request.auth_result)
        order = Order.init_get_by_id(order_id)
        if order.vendor_id != vendor.id_:
            raise exceptions.Forbidden('Not authorized to update this order')

        if config.strict_order_transitions():
            if new_status not in ORDER_TRANSITIONS.get(order.status, ()):
                raise exceptions.InvalidState(f'Cannot change order status from {order.status} to {new_status}')
        elif new_status == order.status:
            logger.info(f"endpoint_update_status ::: order {order.id_} already has status {new_status}")
            return Response(status_code=http200, body={
                'message': 'Order status updated successfully',
                'status': order.status
            })

        order.change_status(new_status)
        return Response(status_code=http200, body={
            'message': 'Order status updated successfully',
            'status': order.status
        })

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    @utils_auth.authenticate(roles=STUDENT_OR_ADMIN)
    def endpoint_cancel(request, order_id) -> Response:
        order = Order.init_get_by_id(order_id)
        if order.user_id != request.auth_result['user_id']:
            raise exceptions.Forbidden('Not authorized to cancel this order')
        if order.status != ORDER_PENDING:
            raise exceptions.InvalidState('Cannot cancel order. Order is already being processed')
        order.change_status(ORDER_CANCELLED)
        return Response(status_code=http200, body={
            'message': 'Order cancelled successfully',
            'status': order.status
        })

    def change_status(self, new_status: str):
        """
        Sets the status and appends one history entry in a single write.
        The write only succeeds while the stored status is still the one this instance was read with
        """
        previous_status = self.status
        timestamp = now_iso()
        try:
            self._update_db_record(
                {'status': new_status, 'date_updated': timestamp},
                append_body={'status_history': [{'status': new_status, 'timestamp': timestamp}]},
                condition={'status': previous_status}
            )
        except exceptions.ConditionalCheckFailed:
            logger.warning(f"change_status ::: order {self.id_} is no longer {previous_status}")
            raise exceptions.InvalidState('Order status was changed by another request, please retry')
        logger.info(f"change_status ::: order {self.id_} {previous_status} -> {new_status}")

    def set_payment_status(self, payment_status: str, expected: Optional[str] = None):
        condition = {'payment_status': expected} if expected is not None else None
        self._update_db_record({'payment_status': payment_status}, condition=condition)
        logger.info(f"set_payment_status ::: order {self.id_} payment_status={payment_status}")

    def set_payment_id(self, payment_id: str):
        self._update_db_record({'payment_id': payment_id})
        logger.info(f"set_payment_id ::: order {self.id_} {payment_id=}")

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(order_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'vendor_id': self.vendor_id,
            'items': self.items,
            'total_amount': self.total_amount,
            'status': self.status,
            'payment_status': self.payment_status,
            'payment_method': self.payment_method,
            'payment_id': self.payment_id,
            'special_instructions': self.special_instructions,
            'status_history': self.status_history,
            'date_created': self.date_created,
            'date_updated': self.date_updated
        }


def query_orders(filter_expression) -> List[Order]:
    order_db_records: List[Dict] = utils_db.query_items_paged(
        Key('partkey').eq(keys_structure.orders_pk),
        filter_expression=filter_expression
    )
    orders = [Order(**record) for record in order_db_records]
    return sorted(orders, key=lambda order: order.date_created, reverse=True)


def get_vendor_summary(vendor_id: str) -> Optional[Dict]:
    try:
        return Vendor.init_get_by_id(vendor_id).to_summary()
    except exceptions.NotFound:
        logger.warning(f"get_vendor_summary ::: vendor {vendor_id} not found")
        return None


def cached_lookup(lookup: Callable[[str], Optional[Dict]]) -> Callable[[str], Optional[Dict]]:
    cache = {}

    def result(id_: str):
        if id_ not in cache:
            cache[id_] = lookup(id_)
        return cache[id_]
    return result
