from chalice import Chalice, Response

from chalicelib import payments
from chalicelib.accounts import Account
from chalicelib.constants.status_codes import http200
from chalicelib.menu_items import MenuItem
from chalicelib.orders import Order
from chalicelib.vendors import Vendor

app = Chalice(app_name='campus-eats')

app.debug = True

CALLBACK_CONTENT_TYPES = ['application/json', 'application/x-www-form-urlencoded']


@app.route('/health', methods=['GET'], cors=True)
def health():
    return Response(status_code=http200, body={'status': 'ok'})


# AUTH
@app.route('/auth/register', methods=['POST'], cors=True)
def register():
    return Account.endpoint_register(app.current_request)


@app.route('/auth/login', methods=['POST'], cors=True)
def login():
    return Account.endpoint_login(app.current_request)


@app.route('/auth/me', methods=['GET'], cors=True)
def get_me():
    return Account.endpoint_me(app.current_request)


# VENDORS
@app.route('/vendors', methods=['GET'], cors=True)
def get_vendors():
    return Vendor.endpoint_get_all(app.current_request)


@app.route('/vendors/profile/me', methods=['GET'], cors=True)
def get_vendor_profile():
    """
    vendor operation
    """
    return Vendor.endpoint_get_profile(app.current_request)


@app.route('/vendors/profile', methods=['PUT'], cors=True)
def update_vendor_profile():
    """
    vendor operation
    """
    return Vendor.endpoint_update_profile(app.current_request)


@app.route('/vendors/toggle-availability', methods=['PATCH'], cors=True)
def toggle_vendor_availability():
    """
    vendor operation
    """
    return Vendor.endpoint_toggle_availability(app.current_request)


@app.route('/vendors/{vendor_id}', methods=['GET'], cors=True)
def get_vendor_by_id(vendor_id):
    return Vendor.endpoint_get_by_id(app.current_request, vendor_id)


# MENU
@app.route('/menu/vendor/{vendor_id}', methods=['GET'], cors=True)
def get_vendor_menu(vendor_id):
    return MenuItem.endpoint_get_vendor_menu(app.current_request, vendor_id)


@app.route('/menu/my-menu', methods=['GET'], cors=True)
def get_my_menu():
    """
    vendor operation
    """
    return MenuItem.endpoint_get_my_menu(app.current_request)


@app.route('/menu', methods=['POST'], cors=True)
def create_menu_item():
    """
    vendor operation
    """
    return MenuItem.endpoint_create(app.current_request)


@app.route('/menu/{menu_item_id}', methods=['PUT'], cors=True)
def update_menu_item(menu_item_id):
    """
    vendor operation
    """
    return MenuItem.endpoint_update(app.current_request, menu_item_id)


@app.route('/menu/{menu_item_id}', methods=['DELETE'], cors=True)
def delete_menu_item(menu_item_id):
    """
    vendor operation
    """
    return MenuItem.endpoint_delete(app.current_request, menu_item_id)


@app.route('/menu/toggle-availability/{menu_item_id}', methods=['PATCH'], cors=True)
def toggle_menu_item_availability(menu_item_id):
    """
    vendor operation
    """
    return MenuItem.endpoint_toggle_availability(app.current_request, menu_item_id)


# ORDERS
@app.route('/orders', methods=['POST'], cors=True)
def create_order():
    """
    student operation
    """
    return Order.endpoint_create(app.current_request)


@app.route('/orders/my-orders', methods=['GET'], cors=True)
def get_my_orders():
    """
    student operation
    """
    return Order.endpoint_get_my_orders(app.current_request)


@app.route('/orders/vendor-orders', methods=['GET'], cors=True)
def get_vendor_orders():
    """
    vendor operation
    """
    return Order.endpoint_get_vendor_orders(app.current_request)


@app.route('/orders/{order_id}', methods=['GET'], cors=True)
def get_order_by_id(order_id):
    return Order.endpoint_get_by_id(app.current_request, order_id)


@app.route('/orders/update-status/{order_id}', methods=['PATCH'], cors=True)
def update_order_status(order_id):
    """
    vendor operation
    """
    return Order.endpoint_update_status(app.current_request, order_id)


@app.route('/orders/cancel/{order_id}', methods=['PATCH'], cors=True)
def cancel_order(order_id):
    """
    student operation
    """
    return Order.endpoint_cancel(app.current_request, order_id)


# PAYMENTS
@app.route('/payments/process/{order_id}', methods=['POST'], cors=True)
def process_payment(order_id):
    """
    student operation
    """
    return payments.endpoint_process(app.current_request, order_id)


@app.route('/payments/success', methods=['POST'], content_types=CALLBACK_CONTENT_TYPES, cors=True)
def payment_success():
    """
    payment gateway callback
    """
    return payments.endpoint_success(app.current_request)


@app.route('/payments/fail', methods=['POST'], content_types=CALLBACK_CONTENT_TYPES, cors=True)
def payment_fail():
    """
    payment gateway callback
    """
    return payments.endpoint_fail(app.current_request)


@app.route('/payments/cancel', methods=['POST'], content_types=CALLBACK_CONTENT_TYPES, cors=True)
def payment_cancel():
    """
    payment gateway callback
    """
    return payments.endpoint_cancel(app.current_request)
