"""
Cart Module - Service Layer
==============================
Cart management: add/update/remove lines, clear, pricing, advisory stock checks.

Every mutation is applied to the durable `cart_items` mirror first (for
logged-in users) and then to the session copy. Stock checks here are
best-effort; checkout re-validates under row locks.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from common.exceptions import ProductNotFoundError, InsufficientStockError
from common.helpers import to_money
from modules.cart.models import CartItem
from modules.cart.session_cart import CartContext, CartLine
from modules.catalog.service import catalog_service

logger = logging.getLogger("supermarket.cart")


class CartService:

    # ==========================================
    # Mutations
    # ==========================================

    def add_line(self, db: Session, ctx: CartContext, product_id: int, qty: int = 1) -> CartLine:
        """
        Add `qty` of a product, merging with any existing line.
        Raises InsufficientStockError if the merged quantity exceeds stock.
        """
        if qty < 1:
            raise ValueError("Quantity must be at least 1")

        product = catalog_service.get_product(db, product_id)
        if not product:
            raise ProductNotFoundError(product_id)

        new_qty = ctx.session.quantity_of(product_id) + qty
        if new_qty > product.quantity:
            raise InsufficientStockError(product_id, requested=new_qty, available=product.quantity)

        self._mirror(db, ctx, product_id, new_qty)
        ctx.session.set(product_id, new_qty)
        return CartLine(product_id, new_qty)

    def set_quantity(self, db: Session, ctx: CartContext, product_id: int, qty: int) -> Optional[CartLine]:
        """Set an absolute quantity. Zero or less removes the line (returns None)."""
        if qty <= 0:
            self.remove_line(db, ctx, product_id)
            return None

        product = catalog_service.get_product(db, product_id)
        if not product:
            raise ProductNotFoundError(product_id)
        if qty > product.quantity:
            raise InsufficientStockError(product_id, requested=qty, available=product.quantity)

        self._mirror(db, ctx, product_id, qty)
        ctx.session.set(product_id, qty)
        return CartLine(product_id, qty)

    def increase(self, db: Session, ctx: CartContext, product_id: int) -> CartLine:
        return self.add_line(db, ctx, product_id, 1)

    def decrease(self, db: Session, ctx: CartContext, product_id: int) -> Optional[CartLine]:
        """Decrease by one; the line disappears when it reaches zero."""
        current = ctx.session.quantity_of(product_id)
        if current <= 0:
            return None
        new_qty = current - 1
        self._mirror(db, ctx, product_id, new_qty)
        ctx.session.set(product_id, new_qty)
        return CartLine(product_id, new_qty) if new_qty > 0 else None

    def remove_line(self, db: Session, ctx: CartContext, product_id: int) -> bool:
        self._mirror(db, ctx, product_id, 0)
        return ctx.session.remove(product_id)

    def clear(self, db: Session, ctx: CartContext):
        """Empty both the session cart and the persisted rows."""
        if ctx.is_authenticated:
            db.query(CartItem).filter(CartItem.user_id == ctx.user_id).delete(synchronize_session=False)
            db.flush()
        ctx.session.clear()

    # ==========================================
    # Query
    # ==========================================

    def snapshot(self, ctx: CartContext) -> List[CartLine]:
        return ctx.session.lines()

    def load_for_user(self, db: Session, ctx: CartContext) -> List[CartLine]:
        """Replace the session cart with the user's persisted rows (after login)."""
        if not ctx.is_authenticated:
            return ctx.session.lines()
        rows = (
            db.query(CartItem)
            .filter(CartItem.user_id == ctx.user_id)
            .order_by(CartItem.id)
            .all()
        )
        lines = [CartLine(r.product_id, r.quantity) for r in rows]
        ctx.session.replace(lines)
        return lines

    def get_cart_with_pricing(self, db: Session, ctx: CartContext) -> Tuple[List[dict], Decimal]:
        """
        Cart lines with live name, unit price, line total and available stock.
        Returns: (items_data, cart_total)
        """
        lines = ctx.session.lines()
        products = catalog_service.get_products_map(db, [ln.product_id for ln in lines])

        items_data = []
        total = Decimal("0.00")
        for ln in lines:
            product = products.get(ln.product_id)
            if not product:
                logger.warning(f"Cart references missing product #{ln.product_id}")
                continue
            unit_price = to_money(product.price)
            line_total = unit_price * ln.quantity
            total += line_total
            items_data.append({
                "product_id": product.id,
                "name": product.name,
                "image": product.image,
                "quantity": ln.quantity,
                "unit_price": unit_price,
                "line_total": line_total,
                "available": product.quantity,
            })
        return items_data, total

    def check_availability(self, db: Session, lines: List[CartLine]) -> List[dict]:
        """
        Advisory, lock-free stock check.
        Returns the lines whose requested quantity exceeds current stock.
        """
        products = catalog_service.get_products_map(db, [ln.product_id for ln in lines])
        insufficient = []
        for ln in lines:
            product = products.get(ln.product_id)
            available = product.quantity if product else 0
            if available < ln.quantity:
                insufficient.append({
                    "product_id": ln.product_id,
                    "product_name": product.name if product else f"#{ln.product_id}",
                    "requested": ln.quantity,
                    "available": available,
                })
        return insufficient

    def item_count(self, ctx: CartContext) -> int:
        return sum(ln.quantity for ln in ctx.session.lines())

    # ==========================================
    # Durable mirror
    # ==========================================

    def _mirror(self, db: Session, ctx: CartContext, product_id: int, quantity: int):
        """Upsert (or delete when quantity <= 0) the persisted row. Anonymous carts skip this."""
        if not ctx.is_authenticated:
            return

        item = db.query(CartItem).filter(
            CartItem.user_id == ctx.user_id,
            CartItem.product_id == product_id,
        ).first()

        if quantity <= 0:
            if item:
                db.delete(item)
        elif item:
            item.quantity = quantity
        else:
            db.add(CartItem(user_id=ctx.user_id, product_id=product_id, quantity=quantity))
        db.flush()

    def delete_rows(self, db: Session, user_id: int, product_ids: List[int]) -> int:
        """Delete persisted rows for the given products. Returns rows removed."""
        if not product_ids:
            return 0
        deleted = db.query(CartItem).filter(
            CartItem.user_id == user_id,
            CartItem.product_id.in_(product_ids),
        ).delete(synchronize_session=False)
        db.flush()
        return deleted


# Singleton
cart_service = CartService()
