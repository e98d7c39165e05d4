"""
Order Module - Admin Routes
==============================
Order management for admin: filtered list, status change, cancel.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.cart.session_cart import CartContext
from modules.order.service import order_service

router = APIRouter(prefix="/api/admin/orders", tags=["order-admin"])


def _admin_order_dict(order) -> dict:
    data = order.to_dict()
    if order.user:
        data["customer_name"] = order.user.username
        data["customer_email"] = order.user.email
        data["shipping_address"] = order.user.address
    return data


@router.get("")
def admin_orders(
    status: str = Query(None),
    start_date: str = Query(None),
    end_date: str = Query(None),
    customer: str = Query(None),
    db: Session = Depends(get_db),
    admin: CartContext = Depends(require_admin),
):
    orders = order_service.list_all_orders(
        db, status=status, start_date=start_date, end_date=end_date, customer=customer,
    )
    return {
        "orders": [_admin_order_dict(o) for o in orders],
        "filters": {"status": status, "start_date": start_date, "end_date": end_date, "customer": customer},
    }


@router.post("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    admin: CartContext = Depends(require_admin),
):
    status = data.get("status")
    if not status:
        raise HTTPException(status_code=400, detail="Invalid request")
    order = order_service.update_status(db, order_id, status)
    db.commit()
    return {"message": "Order status updated", "order": order.to_dict()}


@router.post("/{order_id}/cancel")
def cancel_order(
    order_id: int,
    db: Session = Depends(get_db),
    admin: CartContext = Depends(require_admin),
):
    order = order_service.cancel_order(db, order_id)
    db.commit()
    return {"message": "Order cancelled", "order": order.to_dict()}
