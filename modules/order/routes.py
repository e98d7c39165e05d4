"""
Order Routes
==============
A shopper's own orders: list and detail.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import NotFoundError
from modules.auth.deps import require_login
from modules.cart.session_cart import CartContext
from modules.order.service import order_service

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("")
def my_orders(
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(require_login),
):
    orders = order_service.list_user_orders(db, ctx.user_id)
    return {"orders": [o.to_dict() for o in orders]}


@router.get("/{order_id}")
def order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(require_login),
):
    order = order_service.get_order(db, order_id, user_id=ctx.user_id)
    if not order:
        raise NotFoundError("Order not found")
    return {"order": order.to_dict()}
