"""
Cart Module - Session Mirror
==============================
Ephemeral per-session copy of the cart, plus the request-scoped context
handed to every cart / checkout operation.

The session store is any mutable mapping (Starlette's `request.session`
in the app, a plain dict in tests). Lines are kept as JSON-friendly dicts
in insertion order.
"""

from dataclasses import dataclass
from typing import Iterable, List, MutableMapping, Optional

CART_KEY = "cart"
SELECTION_KEY = "selected_cart"


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int

    def to_dict(self) -> dict:
        return {"product_id": self.product_id, "quantity": self.quantity}


class SessionCart:
    """Ordered product_id -> quantity lines stored inside a session mapping."""

    def __init__(self, store: MutableMapping):
        self._store = store
        if not isinstance(self._store.get(CART_KEY), list):
            self._store[CART_KEY] = []

    def _raw(self) -> List[dict]:
        return self._store[CART_KEY]

    def _write(self, raw: List[dict]):
        # Reassign so the session backend sees a modification
        self._store[CART_KEY] = raw

    def lines(self) -> List[CartLine]:
        return [CartLine(int(it["product_id"]), int(it["quantity"])) for it in self._raw()]

    def quantity_of(self, product_id: int) -> int:
        for it in self._raw():
            if int(it["product_id"]) == product_id:
                return int(it["quantity"])
        return 0

    def set(self, product_id: int, quantity: int):
        """Set an absolute quantity. Zero or less removes the line."""
        if quantity <= 0:
            self.remove(product_id)
            return
        raw = list(self._raw())
        for it in raw:
            if int(it["product_id"]) == product_id:
                it["quantity"] = quantity
                break
        else:
            raw.append({"product_id": product_id, "quantity": quantity})
        self._write(raw)

    def remove(self, product_id: int) -> bool:
        raw = self._raw()
        kept = [it for it in raw if int(it["product_id"]) != product_id]
        self._write(kept)
        return len(kept) != len(raw)

    def remove_many(self, product_ids: Iterable[int]) -> int:
        ids = set(product_ids)
        raw = self._raw()
        kept = [it for it in raw if int(it["product_id"]) not in ids]
        self._write(kept)
        return len(raw) - len(kept)

    def replace(self, lines: Iterable[CartLine]):
        self._write([ln.to_dict() for ln in lines if ln.quantity > 0])

    def clear(self):
        self._write([])

    # ==========================================
    # Checkout selection (two-step checkout)
    # ==========================================

    def get_selection(self) -> Optional[List[int]]:
        """Selected product ids, [] for an empty selection, None when nothing was chosen."""
        if SELECTION_KEY not in self._store:
            return None
        return [int(pid) for pid in self._store[SELECTION_KEY] or []]

    def set_selection(self, product_ids: Iterable[int]):
        self._store[SELECTION_KEY] = [int(pid) for pid in product_ids]

    def clear_selection(self):
        self._store.pop(SELECTION_KEY, None)

    def __len__(self):
        return len(self._raw())


@dataclass
class CartContext:
    """Who is shopping, and where their session cart lives. One per request."""
    session: SessionCart
    user_id: Optional[int] = None
    role: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def from_session(cls, store: MutableMapping) -> "CartContext":
        user = store.get("user") or {}
        return cls(
            session=SessionCart(store),
            user_id=user.get("id"),
            role=user.get("role"),
        )
