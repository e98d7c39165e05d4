"""
Catalog Module - Service Layer
================================
Read access to products. Stock is only ever written by the checkout path.
"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from modules.catalog.models import Product


class CatalogService:

    def get_product(self, db: Session, product_id: int) -> Optional[Product]:
        return db.query(Product).filter(Product.id == product_id).first()

    def get_products_map(self, db: Session, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Batch lookup: {product_id: Product} for the ids that exist."""
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = db.query(Product).filter(Product.id.in_(ids)).all()
        return {p.id: p for p in rows}

    def list_products(self, db: Session, search: str = None) -> List[Product]:
        """All products, optionally filtered by a name substring."""
        q = db.query(Product)
        if search:
            q = q.filter(Product.name.ilike(f"%{search.strip()}%"))
        return q.order_by(Product.id).all()


# Singleton
catalog_service = CatalogService()
