"""
Inventory Module - Service Layer
==================================
Authoritative stock checks under row locks, and guarded stock decrements.

Both functions must run inside the checkout transaction. Locks taken by
lock_and_validate() are held until that transaction commits or rolls back.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Tuple

from sqlalchemy.orm import Session

from common.exceptions import ProductNotFoundError, InsufficientStockError
from common.helpers import to_money
from modules.cart.session_cart import CartLine
from modules.catalog.models import Product

logger = logging.getLogger("supermarket.inventory")


@dataclass(frozen=True)
class ValidatedLine:
    product_id: int
    name: str
    quantity: int
    unit_price: Decimal      # frozen for the order
    available: int           # stock seen under the lock

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class ValidatedSelection:
    lines: Tuple[ValidatedLine, ...]

    @property
    def total_amount(self) -> Decimal:
        return sum((ln.line_total for ln in self.lines), Decimal("0.00"))

    @property
    def product_ids(self):
        return [ln.product_id for ln in self.lines]

    def __len__(self):
        return len(self.lines)


class StockService:

    def lock_and_validate(self, db: Session, lines: Iterable[CartLine]) -> ValidatedSelection:
        """
        Lock each product row (ascending id) and check requested <= stock.

        Fails fast: the first missing product or short line raises and the
        remaining lines are not looked at.
        """
        requested: Dict[int, int] = {}
        for ln in lines:
            if ln.quantity < 1:
                raise ValueError(f"Invalid quantity {ln.quantity} for product #{ln.product_id}")
            requested[ln.product_id] = requested.get(ln.product_id, 0) + ln.quantity

        validated = []
        for product_id in sorted(requested):
            qty = requested[product_id]
            product = (
                db.query(Product)
                .filter(Product.id == product_id)
                .populate_existing()
                .with_for_update()
                .first()
            )
            if not product:
                logger.info(f"Validation failed: product #{product_id} not found")
                raise ProductNotFoundError(product_id)
            if product.quantity < qty:
                logger.info(
                    f"Validation failed: product #{product_id} requested={qty} available={product.quantity}"
                )
                raise InsufficientStockError(product_id, requested=qty, available=product.quantity)

            validated.append(ValidatedLine(
                product_id=product.id,
                name=product.name,
                quantity=qty,
                unit_price=to_money(product.price),
                available=product.quantity,
            ))

        return ValidatedSelection(lines=tuple(validated))

    def decrement_stock(self, db: Session, product_id: int, qty: int) -> bool:
        """
        UPDATE products SET quantity = quantity - qty
        WHERE id = product_id AND quantity >= qty

        Returns True when exactly one row was updated.
        """
        updated = (
            db.query(Product)
            .filter(Product.id == product_id, Product.quantity >= qty)
            .update({Product.quantity: Product.quantity - qty}, synchronize_session=False)
        )
        return updated == 1


# Singleton
stock_service = StockService()
