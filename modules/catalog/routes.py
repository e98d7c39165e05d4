"""
Catalog Routes
================
Read-only product listing and detail.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import NotFoundError
from common.helpers import to_money
from modules.catalog.service import catalog_service

router = APIRouter(prefix="/api/products", tags=["catalog"])


def _product_dict(p) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "price": str(to_money(p.price)),
        "quantity": p.quantity,
        "image": p.image,
    }


@router.get("")
def list_products(
    search: str = Query(None),
    db: Session = Depends(get_db),
):
    return {"products": [_product_dict(p) for p in catalog_service.list_products(db, search)]}


@router.get("/{product_id}")
def product_detail(product_id: int, db: Session = Depends(get_db)):
    product = catalog_service.get_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return {"product": _product_dict(product)}
