"""Payment gateway access.

PaymentGateway is the interface the payment endpoints talk to,
SslCommerzGateway reaches the SSLCommerz session and validation APIs over HTTP.
get_gateway() / set_gateway() / reset_gateway() swap the active implementation,
tests install a fake through set_gateway().
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

import requests

from chalicelib.constants.constants import GATEWAY_VALID_STATUSES
from chalicelib.utils import config, exceptions
from chalicelib.utils.logger import logger

SESSION_PATH = '/gwprocess/v4/api.php'
VALIDATION_PATH = '/validator/api/validationserverAPI.php'


@dataclass(frozen=True)
class PaymentSession:
    """Result of a payment session request."""

    redirect_url: Optional[str]
    session_key: Optional[str] = None
    status: Optional[str] = None
    failure_reason: Optional[str] = None


@dataclass(frozen=True)
class ValidationResult:
    """Server-to-server validation of a gateway transaction."""

    status: Optional[str]
    tran_id: Optional[str] = None
    amount: Optional[str] = None
    raw: dict = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return self.status in GATEWAY_VALID_STATUSES


class PaymentGateway(ABC):

    @abstractmethod
    def init_payment(self, payment_data: dict) -> PaymentSession:
        """Open a payment session, payment_data holds the gateway form fields"""
        ...

    @abstractmethod
    def validate(self, val_id: str) -> ValidationResult:
        """Re-validate a transaction reported by a callback"""
        ...


class SslCommerzGateway(PaymentGateway):

    def __init__(self, store_id: Optional[str] = None, store_password: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.store_id = store_id if store_id is not None else config.sslcommerz_store_id()
        self.store_password = store_password if store_password is not None \
            else config.sslcommerz_store_password()
        self.base_url = (base_url or config.sslcommerz_base_url()).rstrip('/')
        self.timeout = timeout or config.sslcommerz_timeout()

    def _json(self, response: requests.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            raise exceptions.UpstreamError(
                f'Payment gateway returned a non JSON response, status={response.status_code}')
        if not isinstance(body, dict):
            raise exceptions.UpstreamError('Payment gateway returned an unexpected response')
        return body

    def init_payment(self, payment_data: dict) -> PaymentSession:
        form = {**payment_data, 'store_id': self.store_id, 'store_passwd': self.store_password}
        logger.info(f'init_payment ::: tran_id={payment_data.get("tran_id")}')
        try:
            response = requests.post(f'{self.base_url}{SESSION_PATH}', data=form, timeout=self.timeout)
        except requests.RequestException as e:
            raise exceptions.UpstreamError(f'Payment gateway is unreachable: {e}')
        body = self._json(response)
        logger.info(f'init_payment ::: gateway status={body.get("status")}')
        return PaymentSession(
            redirect_url=body.get('GatewayPageURL') or None,
            session_key=body.get('sessionkey'),
            status=body.get('status'),
            failure_reason=body.get('failedreason')
        )

    def validate(self, val_id: str) -> ValidationResult:
        params = {
            'val_id': val_id,
            'store_id': self.store_id,
            'store_passwd': self.store_password,
            'format': 'json'
        }
        try:
            response = requests.get(f'{self.base_url}{VALIDATION_PATH}', params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise exceptions.UpstreamError(f'Payment gateway is unreachable: {e}')
        body = self._json(response)
        logger.info(f'validate ::: {val_id=} status={body.get("status")}')
        return ValidationResult(
            status=body.get('status'),
            tran_id=body.get('tran_id'),
            amount=body.get('amount'),
            raw=body
        )


_current_gateway: Optional[PaymentGateway] = None


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = SslCommerzGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
