# cart/store.py
import logging
import uuid
from decimal import Decimal, InvalidOperation

from django.conf import settings

from .storage import MemoryStorage

logger = logging.getLogger(__name__)


def _dec(value, default="0"):
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return Decimal(default)


def _opt_str(value):
    return None if value is None else str(value)


class LensOptions:
    """Lens add-on chosen for one frame."""

    def __init__(self, lens_type, lens_package, prescription_option, lens_thickness,
                 total_lens_price=Decimal("0"), prescription_image=None):
        self.lens_type = lens_type
        self.lens_package = lens_package
        self.prescription_option = prescription_option
        self.prescription_image = prescription_image
        self.lens_thickness = lens_thickness
        self.total_lens_price = _dec(total_lens_price)

    def to_dict(self):
        return {
            "lens_type": self.lens_type,
            "lens_package": self.lens_package,
            "prescription_option": self.prescription_option,
            "prescription_image": self.prescription_image,
            "lens_thickness": self.lens_thickness,
            "total_lens_price": str(self.total_lens_price),
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            lens_type=data.get("lens_type"),
            lens_package=data.get("lens_package"),
            prescription_option=data.get("prescription_option"),
            lens_thickness=data.get("lens_thickness"),
            total_lens_price=data.get("total_lens_price", "0"),
            prescription_image=data.get("prescription_image"),
        )

    def __eq__(self, other):
        return isinstance(other, LensOptions) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"LensOptions({self.lens_type}/{self.lens_package}/{self.lens_thickness} +{self.total_lens_price})"


class CartLineItem:
    def __init__(self, id, product_id, name, image, price, quantity,
                 variant_id=None, color=None, lens_options=None):
        self.id = id
        self.product_id = str(product_id)
        self.variant_id = _opt_str(variant_id)
        self.name = name
        self.image = image
        self.price = _dec(price)
        self.color = color
        self.quantity = quantity
        self.lens_options = lens_options

    def merge_key(self):
        lens = self.lens_options
        return (
            self.product_id,
            self.variant_id,
            lens.lens_type if lens else None,
            lens.lens_package if lens else None,
            lens.lens_thickness if lens else None,
        )

    def unit_total(self):
        lens_price = self.lens_options.total_lens_price if self.lens_options else Decimal("0")
        return self.price + lens_price

    def line_total(self):
        return self.unit_total() * self.quantity

    def matches(self, product_id, variant_id=None, lens_type=None):
        """
        removeItem/updateQuantity predicate. A missing variant only matches
        lines without one; a missing lens_type matches every lens setup.
        """
        if self.product_id != str(product_id) or self.variant_id != _opt_str(variant_id):
            return False
        if lens_type is None:
            return True
        return self.lens_options is not None and self.lens_options.lens_type == lens_type

    def to_dict(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "name": self.name,
            "image": self.image,
            "price": str(self.price),
            "color": self.color,
            "quantity": self.quantity,
            "lens_options": self.lens_options.to_dict() if self.lens_options else None,
        }

    @classmethod
    def from_dict(cls, data):
        lens = data.get("lens_options")
        quantity = int(data["quantity"])
        if quantity < 1:
            raise ValueError("quantity must be positive")
        return cls(
            id=data["id"],
            product_id=data["product_id"],
            variant_id=data.get("variant_id"),
            name=data.get("name", ""),
            image=data.get("image"),
            price=Decimal(str(data["price"])),
            color=data.get("color"),
            quantity=quantity,
            lens_options=LensOptions.from_dict(lens) if lens else None,
        )

    def __repr__(self):
        return f"CartLineItem({self.product_id}, variant={self.variant_id}, qty={self.quantity})"


class CartStore:
    """
    Client-side cart: line items plus an open/closed flag, written through to
    a storage backend on every mutation. Nothing in here raises for bad input
    or talks to the network; prices are re-checked at checkout.
    """

    def __init__(self, storage=None, key=None):
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key or settings.CART_STORAGE_KEY
        self._items = []
        self._is_open = False
        self._listeners = []
        self._load()

    # ==================== persistence ====================

    def _load(self):
        blob = self.storage.load(self.key)
        if not isinstance(blob, dict):
            return
        for raw in blob.get("items") or []:
            try:
                self._items.append(CartLineItem.from_dict(raw))
            except (KeyError, TypeError, ValueError, InvalidOperation) as e:
                logger.warning("Skipping unreadable cart line %r: %s", raw, e)
        self._is_open = bool(blob.get("is_open", False))

    def _commit(self):
        self.storage.save(self.key, self.to_dict())
        for listener in list(self._listeners):
            listener(self)

    def to_dict(self):
        return {"items": [item.to_dict() for item in self._items], "is_open": self._is_open}

    def subscribe(self, listener):
        """Call listener(store) after every change. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def reset(self):
        self._items = []
        self._is_open = False
        self.storage.delete(self.key)
        for listener in list(self._listeners):
            listener(self)

    # ==================== line items ====================

    @property
    def items(self):
        return list(self._items)

    @property
    def is_open(self):
        return self._is_open

    def add_item(self, product_id, name, image, price, quantity=1,
                 variant_id=None, color=None, lens_options=None):
        try:
            quantity = max(1, int(quantity))
        except (TypeError, ValueError):
            quantity = 1

        candidate = CartLineItem(
            id=uuid.uuid4().hex,
            product_id=product_id,
            variant_id=variant_id,
            name=name,
            image=image,
            price=price,
            color=color,
            quantity=quantity,
            lens_options=lens_options,
        )

        key = candidate.merge_key()
        for line in self._items:
            if line.merge_key() == key:
                # merge quantity only, existing price/name/image stay
                line.quantity += quantity
                self._commit()
                return line

        self._items.append(candidate)
        self._commit()
        return candidate

    def remove_item(self, product_id, variant_id=None, lens_type=None):
        self._items = [line for line in self._items if not line.matches(product_id, variant_id, lens_type)]
        self._commit()

    def update_quantity(self, product_id, variant_id, quantity, lens_type=None):
        try:
            quantity = int(quantity)
        except (TypeError, ValueError):
            return
        if quantity <= 0:
            self.remove_item(product_id, variant_id, lens_type)
            return
        for line in self._items:
            if line.matches(product_id, variant_id, lens_type):
                line.quantity = quantity
        self._commit()

    def clear_cart(self):
        self._items = []
        self._commit()

    # ==================== totals ====================

    def get_total_items(self):
        return sum(line.quantity for line in self._items)

    def get_total_price(self):
        return sum((line.line_total() for line in self._items), Decimal("0"))

    # ==================== drawer visibility ====================

    def open_cart(self):
        self._is_open = True
        self._commit()

    def close_cart(self):
        self._is_open = False
        self._commit()

    def toggle_cart(self):
        self._is_open = not self._is_open
        self._commit()

    def __len__(self):
        return len(self._items)
