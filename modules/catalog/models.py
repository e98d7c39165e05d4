"""
Catalog Module - Models
========================
Product with live price and authoritative stock counter.
"""

from sqlalchemy import Column, Integer, String, Numeric, CheckConstraint
from config.database import Base


# ==========================================
# 📦 Product
# ==========================================

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column("productName", String(255), nullable=False)
    quantity = Column(Integer, default=0, nullable=False)          # stock on hand
    price = Column(Numeric(10, 2), nullable=False)                  # live unit price
    image = Column(String(255), nullable=True)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_product_stock_non_negative"),
    )

    def __repr__(self):
        return f"<Product {self.name}>"
