# storefront/domain/cart_store.py
"""
Client-held cart.

Anonymous visitors keep their cart locally (`to_json` / `from_json`). Once the
session is authenticated every mutation is mirrored to the server cart and
the server's answer becomes the local state. Session changes reach the store
as events published on a `SessionEventBus`; the store never looks at the auth
state directly.
"""
import json
from dataclasses import asdict, dataclass, replace
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from storefront.services.session_events import LoggedIn, LoggedOut, SessionEventBus
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

Mirror = Callable[[List["CartLine"], str], Optional[List["CartLine"]]]


def line_key(product_id: str, size: str, color: str) -> str:
    return f"{product_id}-{size}-{color}"


@dataclass(frozen=True)
class CartLine:
    product_id: str
    product_variant_id: str
    name: str
    price: Decimal
    image: str
    size: str
    color: str
    quantity: int = 1

    @property
    def id(self) -> str:
        return line_key(self.product_id, self.size, self.color)

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["price"] = str(self.price)
        data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "CartLine":
        return cls(
            product_id=str(data["product_id"]),
            product_variant_id=str(data["product_variant_id"]),
            name=data.get("name") or "",
            price=Decimal(str(data.get("price") or "0")),
            image=data.get("image") or "",
            size=data.get("size") or "",
            color=data.get("color") or "",
            quantity=int(data.get("quantity") or 1),
        )


def merge_items(server: List[CartLine], guest: List[CartLine]) -> List[CartLine]:
    """Sums quantities per line key; lines present on only one side are kept."""
    merged: Dict[str, CartLine] = {}
    for line in list(server) + list(guest):
        existing = merged.get(line.id)
        if existing:
            merged[line.id] = replace(existing, quantity=existing.quantity + line.quantity)
        else:
            merged[line.id] = line
    return list(merged.values())


class CartStore:
    def __init__(self, mirror: Optional[Mirror] = None, items: Optional[List[CartLine]] = None):
        self.items: List[CartLine] = list(items or [])
        self.authenticated = False
        self.mirror = mirror

    # queries
    def total_items(self) -> int:
        return sum(i.quantity for i in self.items)

    def total_price(self) -> Decimal:
        return sum((i.price * i.quantity for i in self.items), Decimal("0.00"))

    def find(self, key: str) -> Optional[CartLine]:
        return next((i for i in self.items if i.id == key), None)

    # commands
    def add_item(self, line: CartLine) -> None:
        existing = self.find(line.id)
        if existing:
            updated = [
                replace(i, quantity=i.quantity + line.quantity) if i.id == line.id else i
                for i in self.items
            ]
        else:
            updated = self.items + [line]
        self._commit(updated)

    def remove_item(self, key: str) -> None:
        self._commit([i for i in self.items if i.id != key])

    def update_quantity(self, key: str, quantity: int) -> None:
        updated = [replace(i, quantity=quantity) if i.id == key else i for i in self.items]
        self._commit([i for i in updated if i.quantity > 0])

    def fetch(self) -> None:
        """Replaces local items with the server cart."""
        self._push([], "fetch")

    def clear(self) -> None:
        # local only; the server cart is cleared by the logout transition
        self.items = []

    def _commit(self, updated: List[CartLine]) -> None:
        self.items = updated
        if self.authenticated:
            self._push(updated, "sync")

    def _push(self, items: List[CartLine], action: str) -> None:
        if not self.mirror:
            return
        try:
            result = self.mirror(items, action)
        except Exception as e:
            logger.warning(f"Cart {action} failed, keeping local cart: {e}")
            return
        if result is not None:
            self.items = list(result)

    # session transitions
    def subscribe(self, bus: SessionEventBus) -> None:
        bus.subscribe(LoggedIn, self._on_logged_in)
        bus.subscribe(LoggedOut, self._on_logged_out)

    def _on_logged_in(self, event: LoggedIn) -> None:
        self.authenticated = True
        guest = list(self.items)
        self.fetch()
        if guest:
            self._push(guest, "merge")

    def _on_logged_out(self, event: LoggedOut) -> None:
        self.authenticated = False
        self.clear()

    # local persistence
    def to_json(self) -> str:
        if self.authenticated:
            return json.dumps({"items": []})
        return json.dumps({"items": [i.to_dict() for i in self.items]})

    @classmethod
    def from_json(cls, raw: str, mirror: Optional[Mirror] = None) -> "CartStore":
        data = json.loads(raw or "{}")
        return cls(mirror=mirror, items=[CartLine.from_dict(d) for d in data.get("items") or []])
