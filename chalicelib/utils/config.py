import os

SSLCOMMERZ_SANDBOX_URL = 'https://sandbox.sslcommerz.com'
SSLCOMMERZ_LIVE_URL = 'https://securepay.sslcommerz.com'


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def gen_table_name() -> str:
    return os.environ.get('GEN_TABLE_NAME', 'campus-eats-dev')


def endpoint_url():
    return os.environ.get('ENDPOINT_URL')


def aws_region() -> str:
    return os.environ.get('AWS_REGION', os.environ.get('AWS_DEFAULT_REGION', 'eu-central-1'))


def log_level() -> str:
    return os.environ.get('LOG_LEVEL', 'DEBUG').upper()


def jwt_secret() -> str:
    return os.environ['JWT_SECRET']


def jwt_expires_days() -> int:
    return int(os.environ.get('JWT_EXPIRES_DAYS', 30))


def student_email_domain() -> str:
    return os.environ.get('STUDENT_EMAIL_DOMAIN', 'cuet.ac.bd').lstrip('@').lower()


def strict_order_transitions() -> bool:
    return _env_flag('STRICT_ORDER_TRANSITIONS', 'true')


def sslcommerz_store_id() -> str:
    return os.environ.get('SSLCOMMERZ_STORE_ID', '')


def sslcommerz_store_password() -> str:
    return os.environ.get('SSLCOMMERZ_STORE_PASSWORD', '')


def sslcommerz_base_url() -> str:
    return SSLCOMMERZ_LIVE_URL if _env_flag('SSLCOMMERZ_IS_LIVE', 'false') else SSLCOMMERZ_SANDBOX_URL


def sslcommerz_timeout() -> float:
    return float(os.environ.get('SSLCOMMERZ_TIMEOUT', 30))


def payment_currency() -> str:
    return os.environ.get('PAYMENT_CURRENCY', 'BDT')


def payment_callback_base_url() -> str:
    return os.environ.get('PAYMENT_CALLBACK_BASE_URL', 'http://127.0.0.1:8000').rstrip('/')
