"""
Checkout Routes
=================
Two-step checkout: select cart lines, then confirm.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import safe_int
from modules.auth.deps import require_login
from modules.cart.session_cart import CartContext
from modules.checkout.service import checkout_service

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


# ==========================================
# ✅ Step 1: choose lines
# ==========================================

@router.post("")
def select_for_checkout(
    data: Optional[Dict[str, Any]] = Body(None),
    ctx: CartContext = Depends(require_login),
):
    """`{"selected": [product_id, ...]}`; omit `selected` to check out the whole cart."""
    data = data or {}
    selected = data.get("selected")
    if selected is not None:
        if not isinstance(selected, list):
            selected = [selected]
        selected = [pid for pid in (safe_int(s) for s in selected) if pid is not None]

    lines = checkout_service.select_lines(ctx, selected)
    return {"cart": [ln.to_dict() for ln in lines]}


# ==========================================
# 💳 Step 2: confirm
# ==========================================

@router.post("/confirm")
def confirm_checkout(
    db: Session = Depends(get_db),
    ctx: CartContext = Depends(require_login),
):
    result = checkout_service.confirm_checkout(db, ctx)
    return {
        "message": "Checkout complete - thank you for your purchase!",
        "order": result.order.to_dict(),
        "reconciliation": result.reconciliation.to_dict(),
    }
