from datetime import datetime
from decimal import InvalidOperation
from typing import Dict

from chalice import Response

from chalicelib import schemas
from chalicelib.accounts import Account
from chalicelib.constants.constants import STUDENT_OR_ADMIN, PAYMENT_PAID, PAYMENT_FAILED, ORDER_CANCELLED, \
    TRANSACTION_ID_PREFIX
from chalicelib.constants.status_codes import http200
from chalicelib.orders import Order
from chalicelib.utils import auth as utils_auth, data as utils_data, app as utils_app, exceptions, config
from chalicelib.utils.logger import logger
from chalicelib.utils.payment_gateway import get_gateway, ValidationResult
from chalicelib.vendors import Vendor

DEFAULT_CUSTOMER_PHONE = '01700000000'


def generate_transaction_id(order_id: str) -> str:
    return f'{TRANSACTION_ID_PREFIX}-{order_id}-{int(datetime.now().timestamp() * 1000)}'


def build_payment_data(order: Order, buyer: Account, vendor: Vendor, transaction_id: str) -> Dict:
    callback_base_url = config.payment_callback_base_url()
    return {
        'total_amount': str(order.total_amount),
        'currency': config.payment_currency(),
        'tran_id': transaction_id,
        'success_url': f'{callback_base_url}/payments/success',
        'fail_url': f'{callback_base_url}/payments/fail',
        'cancel_url': f'{callback_base_url}/payments/cancel',
        'shipping_method': 'NO',
        'product_name': f'Order from {vendor.name}',
        'product_category': 'Food',
        'product_profile': 'general',
        'cus_name': buyer.name,
        'cus_email': buyer.email,
        'cus_add1': 'CUET Campus',
        'cus_city': 'Chittagong',
        'cus_country': 'Bangladesh',
        'cus_phone': buyer.phone or DEFAULT_CUSTOMER_PHONE,
        'value_a': order.id_
    }


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.authenticate(roles=STUDENT_OR_ADMIN)
def endpoint_process(request, order_id) -> Response:
    order = Order.init_get_by_id(order_id)
    if order.user_id != request.auth_result['user_id']:
        raise exceptions.Forbidden('Not authorized to pay for this order')
    if order.payment_status == PAYMENT_PAID:
        raise exceptions.InvalidState('This order is already paid')
    if order.status == ORDER_CANCELLED:
        raise exceptions.InvalidState('This order is cancelled')

    buyer = Account(**request.account)
    vendor = Vendor.init_get_by_id(order.vendor_id)
    transaction_id = generate_transaction_id(order.id_)
    session = get_gateway().init_payment(build_payment_data(order, buyer, vendor, transaction_id))
    if not session.redirect_url:
        logger.error(f"endpoint_process ::: no redirect url for order {order.id_}, "
                     f"status={session.status} reason={session.failure_reason}")
        raise exceptions.UpstreamError('Payment initialization failed')

    order.set_payment_id(transaction_id)
    return Response(status_code=http200, body={'url': session.redirect_url, 'tran_id': transaction_id})


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.anonymous
def endpoint_success(request) -> Response:
    callback = parse_callback(schemas.PaymentSuccessCallback, request)
    validation = get_gateway().validate(callback.val_id)
    if not validation.is_valid:
        logger.warning(f"endpoint_success ::: validation of {callback.val_id} returned {validation.status}")
        raise exceptions.InvalidState('Payment validation failed')

    order = Order.init_get_by_id(callback.value_a)
    if not matches_order(validation, order):
        raise exceptions.InvalidState('Payment validation failed')
    if order.payment_status != PAYMENT_PAID:
        order.set_payment_status(PAYMENT_PAID)
    else:
        logger.info(f"endpoint_success ::: order {order.id_} is already paid")
    return Response(status_code=http200, body={'message': 'Payment successful', 'order_id': order.id_})


def matches_order(validation: ValidationResult, order: Order) -> bool:
    """
    The validated transaction must be the one opened for the order and carry its total
    """
    if not order.payment_id or validation.tran_id != order.payment_id:
        logger.warning(f"matches_order ::: validated tran_id={validation.tran_id} "
                       f"does not match order {order.id_} payment_id={order.payment_id}")
        return False
    try:
        amount = utils_data.to_money(validation.amount)
    except (InvalidOperation, TypeError):
        logger.warning(f"matches_order ::: validated amount={validation.amount!r} is not a number")
        return False
    if amount != order.total_amount:
        logger.warning(f"matches_order ::: validated amount={amount} does not match order {order.id_} "
                       f"total_amount={order.total_amount}")
        return False
    return True


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.anonymous
def endpoint_fail(request) -> Response:
    callback = parse_callback(schemas.PaymentCallback, request)
    order = Order.init_get_by_id(callback.value_a)
    if order.payment_status == PAYMENT_PAID:
        logger.warning(f"endpoint_fail ::: order {order.id_} is already paid, ignoring {callback.tran_id=}")
    else:
        try:
            order.set_payment_status(PAYMENT_FAILED, expected=order.payment_status)
        except exceptions.ConditionalCheckFailed:
            raise exceptions.InvalidState('Order payment status was changed by another request')
    return Response(status_code=http200, body={'message': 'Payment failed', 'order_id': order.id_})


@utils_app.request_exception_handler
@utils_app.log_start_finish
@utils_auth.anonymous
def endpoint_cancel(request) -> Response:
    callback = parse_callback(schemas.PaymentCallback, request)
    logger.info(f"endpoint_cancel ::: payment {callback.tran_id} for order {callback.value_a} cancelled")
    return Response(status_code=http200, body={'message': 'Payment cancelled', 'order_id': callback.value_a})


def parse_callback(schema, request):
    try:
        return utils_data.parse_request(schema, request)
    except exceptions.InvalidInput as error:
        logger.warning(f"parse_callback ::: {error}")
        raise exceptions.InvalidInput('Invalid payment data')
