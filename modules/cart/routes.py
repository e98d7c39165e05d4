"""
Cart Routes
=============
JSON API over the cart store: view, add, increase/decrease, set, remove,
clear, advisory validation, reload from the persisted cart.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import safe_int
from modules.auth.deps import get_cart_context, require_login
from modules.cart.service import cart_service
from modules.cart.session_cart import CartContext, CartLine

router = APIRouter(prefix="/api/cart", tags=["cart"])


def _cart_payload(db: Session, ctx: CartContext) -> dict:
    items, total = cart_service.get_cart_with_pricing(db, ctx)
    for it in items:
        it["unit_price"] = str(it["unit_price"])
        it["line_total"] = str(it["line_total"])
    return {
        "cart": items,
        "cart_total": str(total),
        "cart_count": cart_service.item_count(ctx),
    }


# ==========================================
# 🛒 View Cart
# ==========================================

@router.get("")
def view_cart(
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(get_cart_context),
):
    return _cart_payload(db, ctx)


# ==========================================
# ➕➖ Update Cart
# ==========================================

@router.post("/add/{product_id}")
def add_to_cart(
    product_id: int,
    data: Optional[Dict[str, Any]] = Body(None),
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(get_cart_context),
):
    data = data or {}
    raw_quantity = data.get("quantity")
    quantity = 1 if raw_quantity is None else safe_int(raw_quantity)
    if quantity is None:
        raise HTTPException(status_code=422, detail="quantity must be an integer")
    cart_service.add_line(db, ctx, product_id, quantity)
    db.commit()
    return {"message": "Added to cart", **_cart_payload(db, ctx)}


@router.post("/increase/{product_id}")
def increase_item(
    product_id: int,
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(get_cart_context),
):
    cart_service.increase(db, ctx, product_id)
    db.commit()
    return _cart_payload(db, ctx)


@router.post("/decrease/{product_id}")
def decrease_item(
    product_id: int,
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(get_cart_context),
):
    cart_service.decrease(db, ctx, product_id)
    db.commit()
    return _cart_payload(db, ctx)


@router.post("/set/{product_id}")
def set_item_quantity(
    product_id: int,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(get_cart_context),
):
    quantity = safe_int(data.get("quantity"))
    if quantity is None:
        raise HTTPException(status_code=422, detail="quantity is required")
    cart_service.set_quantity(db, ctx, product_id, quantity)
    db.commit()
    return _cart_payload(db, ctx)


@router.post("/remove/{product_id}")
def remove_item(
    product_id: int,
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(get_cart_context),
):
    cart_service.remove_line(db, ctx, product_id)
    db.commit()
    return _cart_payload(db, ctx)


@router.post("/clear")
def clear_cart(
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(get_cart_context),
):
    cart_service.clear(db, ctx)
    db.commit()
    return {"cart": [], "cart_total": "0.00", "cart_count": 0}


# ==========================================
# ✅ Advisory stock validation
# ==========================================

@router.post("/validate")
def validate_cart(
    data: Optional[Dict[str, Any]] = Body(None),
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(get_cart_context),
):
    """Check given items (or the session cart when none are posted) against current stock."""
    data = data or {}
    raw = data.get("items") or []
    if not isinstance(raw, list):
        raw = []
    if raw:
        lines = [
            CartLine(safe_int(it["product_id"]), safe_int(it.get("quantity")) or 0)
            for it in raw
            if isinstance(it, dict) and safe_int(it.get("product_id")) is not None
        ]
    else:
        lines = cart_service.snapshot(ctx)

    insufficient = cart_service.check_availability(db, lines)
    return {"ok": not insufficient, "insufficient": insufficient}


# ==========================================
# 🔄 Reload from persisted cart (after login)
# ==========================================

@router.post("/load")
def load_cart(
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(require_login),
):
    cart_service.load_for_user(db, ctx)
    return _cart_payload(db, ctx)
