ROLE_STUDENT = 'student'
ROLE_VENDOR = 'vendor'
ROLE_ADMIN = 'admin'
ROLES = (ROLE_STUDENT, ROLE_VENDOR, ROLE_ADMIN)

STUDENT_OR_ADMIN = (ROLE_STUDENT, ROLE_ADMIN)
VENDOR_OR_ADMIN = (ROLE_VENDOR, ROLE_ADMIN)
ADMIN_ONLY = (ROLE_ADMIN,)

ORDER_PENDING = 'pending'
ORDER_PREPARING = 'preparing'
ORDER_READY = 'ready'
ORDER_COMPLETED = 'completed'
ORDER_CANCELLED = 'cancelled'
ORDER_STATUSES = (ORDER_PENDING, ORDER_PREPARING, ORDER_READY, ORDER_COMPLETED, ORDER_CANCELLED)

# vendor-driven transitions; buyer cancellation is handled separately
ORDER_TRANSITIONS = {
    ORDER_PENDING: (ORDER_PREPARING, ORDER_CANCELLED),
    ORDER_PREPARING: (ORDER_READY,),
    ORDER_READY: (ORDER_COMPLETED,),
    ORDER_COMPLETED: (),
    ORDER_CANCELLED: ()
}

PAYMENT_PENDING = 'pending'
PAYMENT_PAID = 'paid'
PAYMENT_FAILED = 'failed'
PAYMENT_STATUSES = (PAYMENT_PENDING, PAYMENT_PAID, PAYMENT_FAILED)

PAYMENT_METHODS = ('online', 'cash')

GATEWAY_VALID_STATUSES = ('VALID', 'VALIDATED')
TRANSACTION_ID_PREFIX = 'SCORDER'

DEFAULT_VENDOR_LOGO = 'https://via.placeholder.com/150'
DEFAULT_MENU_ITEM_IMAGE = 'https://via.placeholder.com/300'
DEFAULT_PREPARATION_TIME = 15
