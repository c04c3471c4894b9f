from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Dict, List, Optional

from campuseats_client.session_store import SessionStore, CART_KEY


@dataclass
class CartItem:
    menu_item_id: str
    name: str
    price: str
    quantity: int
    vendor_id: str
    vendor_name: Optional[str] = None
    image: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        return Decimal(self.price) * self.quantity


class Cart:
    """
    Shopping cart for a single vendor, persisted in a SessionStore.
    Items from a second vendor are refused unless the caller asks to replace the cart
    """

    def __init__(self, store: SessionStore):
        self.store = store
        saved = store.get(CART_KEY) or {}
        self.vendor_id: Optional[str] = saved.get('vendor_id')
        self.vendor_name: Optional[str] = saved.get('vendor_name')
        self.items: List[CartItem] = [CartItem(**item) for item in saved.get('items', [])]

    def add_item(self, menu_item: Dict, vendor_name: Optional[str] = None,
                 replace_other_vendor: bool = False) -> bool:
        """
        menu_item is a menu item as returned by the API.
        Returns False when the cart holds another vendor's items and replace_other_vendor is not set
        """
        vendor_id = menu_item['vendor_id']
        if self.items and self.vendor_id and vendor_id != self.vendor_id:
            if not replace_other_vendor:
                return False
            self.items = []

        self.vendor_id = vendor_id
        self.vendor_name = vendor_name
        existing = self._find(menu_item['id'])
        if existing is not None:
            existing.quantity += 1
        else:
            self.items.append(CartItem(
                menu_item_id=menu_item['id'],
                name=menu_item['name'],
                price=str(menu_item['price']),
                quantity=1,
                vendor_id=vendor_id,
                vendor_name=vendor_name,
                image=menu_item.get('image')
            ))
        self._save()
        return True

    def remove_item(self, menu_item_id: str) -> None:
        self.items = [item for item in self.items if item.menu_item_id != menu_item_id]
        if not self.items:
            self.vendor_id = None
            self.vendor_name = None
        self._save()

    def update_quantity(self, menu_item_id: str, quantity: int) -> None:
        if quantity < 1:
            return
        item = self._find(menu_item_id)
        if item is not None:
            item.quantity = quantity
            self._save()

    def clear(self) -> None:
        self.items = []
        self.vendor_id = None
        self.vendor_name = None
        self._save()

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_amount(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal('0'))

    def to_order_request(self, special_instructions: Optional[str] = None, payment_method: str = 'online') -> Dict:
        if not self.items:
            raise ValueError('Cart is empty')
        body = {
            'vendor_id': self.vendor_id,
            'items': [{'menu_item_id': item.menu_item_id, 'quantity': item.quantity} for item in self.items],
            'payment_method': payment_method
        }
        if special_instructions:
            body['special_instructions'] = special_instructions
        return body

    def _find(self, menu_item_id: str) -> Optional[CartItem]:
        for item in self.items:
            if item.menu_item_id == menu_item_id:
                return item
        return None

    def _save(self) -> None:
        self.store.set(CART_KEY, {
            'vendor_id': self.vendor_id,
            'vendor_name': self.vendor_name,
            'items': [asdict(item) for item in self.items]
        })
