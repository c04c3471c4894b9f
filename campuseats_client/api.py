import logging
from typing import Any, Dict, List, Optional

import requests

from campuseats_client.cart import Cart
from campuseats_client.session_store import SessionStore, TOKEN_KEY, USER_KEY

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class ApiError(Exception):

    def __init__(self, status_code: int, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error = error


class CampusEatsClient:
    """
    Thin wrapper over the HTTP API.
    The bearer token lives in the session store, so a client created later on the same store is logged in
    """

    def __init__(self, base_url: str, store: Optional[SessionStore] = None, session: Optional[requests.Session] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.store = store if store is not None else SessionStore()
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        token = self.store.get(TOKEN_KEY)
        if token:
            self._set_token(token)

    @property
    def user(self) -> Optional[Dict]:
        return self.store.get(USER_KEY)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.store.get(TOKEN_KEY))

    def _set_token(self, token: str) -> None:
        self.session.headers['Authorization'] = f'Bearer {token}'

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f'{self.base_url}{path}'
        logger.debug(f'{method} {url}')
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(0, f'Could not reach the server: {e}')
        try:
            body = response.json()
        except ValueError:
            body = None
        if not response.ok:
            message = body.get('message') if isinstance(body, dict) else None
            error = body.get('error') if isinstance(body, dict) else None
            raise ApiError(response.status_code, message or response.reason or 'Request failed', error)
        return body

    def _store_session(self, body: Dict) -> Dict:
        self.store.set(TOKEN_KEY, body['token'])
        self.store.set(USER_KEY, body['user'])
        self._set_token(body['token'])
        return body['user']

    # AUTH
    def register(self, **registration) -> Dict:
        return self._store_session(self._request('POST', '/auth/register', json=registration))

    def login(self, email: str, password: str) -> Dict:
        return self._store_session(self._request('POST', '/auth/login', json={'email': email, 'password': password}))

    def logout(self) -> None:
        self.store.delete(TOKEN_KEY)
        self.store.delete(USER_KEY)
        self.session.headers.pop('Authorization', None)

    def me(self) -> Dict:
        """
        Refreshes the stored user, a rejected token is dropped from the store
        """
        try:
            user = self._request('GET', '/auth/me')['user']
        except ApiError as error:
            if error.status_code == 401:
                self.logout()
            raise
        self.store.set(USER_KEY, user)
        return user

    # VENDORS
    def list_vendors(self) -> List[Dict]:
        return self._request('GET', '/vendors')

    def get_vendor(self, vendor_id: str) -> Dict:
        return self._request('GET', f'/vendors/{vendor_id}')

    def get_my_vendor_profile(self) -> Dict:
        return self._request('GET', '/vendors/profile/me')

    def update_vendor_profile(self, **fields) -> Dict:
        return self._request('PUT', '/vendors/profile', json=fields)['vendor']

    def toggle_vendor_availability(self) -> bool:
        return self._request('PATCH', '/vendors/toggle-availability')['is_open']

    # MENU
    def get_vendor_menu(self, vendor_id: str) -> List[Dict]:
        return self._request('GET', f'/menu/vendor/{vendor_id}')

    def get_my_menu(self) -> List[Dict]:
        return self._request('GET', '/menu/my-menu')

    def create_menu_item(self, **fields) -> Dict:
        return self._request('POST', '/menu', json=fields)['menu_item']

    def update_menu_item(self, menu_item_id: str, **fields) -> Dict:
        return self._request('PUT', f'/menu/{menu_item_id}', json=fields)['menu_item']

    def delete_menu_item(self, menu_item_id: str) -> None:
        self._request('DELETE', f'/menu/{menu_item_id}')

    def toggle_menu_item_availability(self, menu_item_id: str) -> bool:
        return self._request('PATCH', f'/menu/toggle-availability/{menu_item_id}')['is_available']

    # ORDERS
    def place_order(self, cart: Cart, special_instructions: Optional[str] = None,
                    payment_method: str = 'online') -> Dict:
        """
        Creates an order from the cart and empties the cart once the server accepted it
        """
        order = self._request('POST', '/orders', json=cart.to_order_request(special_instructions, payment_method))
        cart.clear()
        return order['order']

    def get_my_orders(self) -> List[Dict]:
        return self._request('GET', '/orders/my-orders')

    def get_vendor_orders(self, status: Optional[str] = None) -> List[Dict]:
        params = {'status': status} if status else None
        return self._request('GET', '/orders/vendor-orders', params=params)

    def get_order(self, order_id: str) -> Dict:
        return self._request('GET', f'/orders/{order_id}')

    def update_order_status(self, order_id: str, status: str) -> str:
        return self._request('PATCH', f'/orders/update-status/{order_id}', json={'status': status})['status']

    def cancel_order(self, order_id: str) -> str:
        return self._request('PATCH', f'/orders/cancel/{order_id}')['status']

    # PAYMENTS
    def start_payment(self, order_id: str) -> str:
        return self._request('POST', f'/payments/process/{order_id}')['url']
