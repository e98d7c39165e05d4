"""
Checkout Module - Service Layer
=================================
validate_and_commit: lock + validate stock, decrement, write the order,
all in one transaction. Then reconcile the cart (best effort, outside the
transaction).

    none -> pending (validating) -> committed (status=completed)
                                 -> aborted (nothing persisted)
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from config.database import apply_lock_timeout
from common.exceptions import (
    AuthenticationError,
    CheckoutError,
    CheckoutTimeoutError,
    EmptySelectionError,
    PersistenceFailureError,
)
from modules.cart.service import cart_service
from modules.cart.session_cart import CartContext, CartLine
from modules.inventory.service import stock_service
from modules.order.models import Order
from modules.order.service import order_service

logger = logging.getLogger("supermarket.checkout")


@dataclass
class ReconciliationResult:
    removed_from_session: int = 0
    removed_rows: int = 0
    ok: bool = True
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "removed_from_session": self.removed_from_session,
            "removed_rows": self.removed_rows,
            "ok": self.ok,
            "error": self.error,
        }


@dataclass
class CheckoutResult:
    order: Order
    reconciliation: ReconciliationResult


def _is_lock_timeout(exc: OperationalError) -> bool:
    """Recognize lock-wait timeouts from PostgreSQL, MySQL and SQLite drivers."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == "55P03":
        return True
    args = getattr(orig, "args", ())
    if args and args[0] == 1205:
        return True
    msg = str(orig).lower()
    return "database is locked" in msg or "lock wait timeout" in msg or "lock timeout" in msg


class CheckoutService:

    # ==========================================
    # Selection
    # ==========================================

    def get_cart_snapshot(self, ctx: CartContext) -> List[CartLine]:
        return cart_service.snapshot(ctx)

    def select_lines(self, ctx: CartContext, product_ids: Optional[Iterable[int]] = None) -> List[CartLine]:
        """
        Pick the cart lines to buy. None selects the whole cart.
        The selection is remembered in the session for confirm_checkout().
        """
        lines = ctx.session.lines()
        if product_ids is None:
            ctx.session.clear_selection()
            return lines

        wanted = {int(pid) for pid in product_ids}
        selected = [ln for ln in lines if ln.product_id in wanted]
        ctx.session.set_selection(ln.product_id for ln in selected)
        return selected

    def confirm_checkout(self, db: Session, ctx: CartContext) -> CheckoutResult:
        """Check out the remembered selection, or the whole cart when none is stored."""
        lines = ctx.session.lines()
        selection = ctx.session.get_selection()
        if selection is not None:
            wanted = set(selection)
            lines = [ln for ln in lines if ln.product_id in wanted]
        return self.validate_and_commit(db, ctx, lines)

    # ==========================================
    # Checkout
    # ==========================================

    def validate_and_commit(self, db: Session, ctx: CartContext, lines: Iterable[CartLine]) -> CheckoutResult:
        """
        Atomically validate and commit `lines` for the current user.

        Raises a CheckoutError subclass on failure; the transaction has been
        rolled back and nothing was persisted.
        """
        lines = list(lines)
        if not lines:
            raise EmptySelectionError()
        if not ctx.is_authenticated:
            raise AuthenticationError()

        try:
            apply_lock_timeout(db)
            validated = stock_service.lock_and_validate(db, lines)
            order = order_service.commit(db, ctx.user_id, validated)
            db.commit()
        except CheckoutError as e:
            db.rollback()
            logger.info(f"Checkout aborted for user #{ctx.user_id}: {e.code}")
            raise
        except OperationalError as e:
            db.rollback()
            if _is_lock_timeout(e):
                logger.warning(f"Checkout lock timeout for user #{ctx.user_id}")
                raise CheckoutTimeoutError() from e
            logger.error(f"Checkout database error for user #{ctx.user_id}: {e}")
            raise PersistenceFailureError() from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Checkout database error for user #{ctx.user_id}: {e}")
            raise PersistenceFailureError() from e
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"Order #{order.id} committed for user #{ctx.user_id}: "
            f"{len(validated)} lines, total {validated.total_amount}"
        )

        reconciliation = self.reconcile(db, ctx, validated.product_ids)
        ctx.session.clear_selection()
        return CheckoutResult(order=order, reconciliation=reconciliation)

    # ==========================================
    # Reconciliation
    # ==========================================

    def reconcile(self, db: Session, ctx: CartContext, product_ids: List[int]) -> ReconciliationResult:
        """
        Remove purchased products from the session cart and the persisted
        rows. Idempotent. A failed row delete is logged and reported, the
        committed order stays valid.
        """
        result = ReconciliationResult()
        result.removed_from_session = ctx.session.remove_many(product_ids)
        if not ctx.is_authenticated:
            return result

        try:
            result.removed_rows = cart_service.delete_rows(db, ctx.user_id, product_ids)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Cart reconciliation failed for user #{ctx.user_id} products={product_ids}: {e}")
            result.ok = False
            result.error = str(e)
        return result


# Singleton
checkout_service = CheckoutService()
