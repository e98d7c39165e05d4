"""
Order Module - Models
======================
Order with a frozen unit price per item for the audit trail.
Only `Order.status` changes after creation.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, Numeric,
    ForeignKey, DateTime, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class OrderStatus(str, enum.Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column("order_id", Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    order_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    status = Column(String(20), default=OrderStatus.COMPLETED.value, nullable=False)

    # Relationships
    user = relationship("User", foreign_keys=[user_id])
    items = relationship(
        "OrderItem", back_populates="order",
        cascade="all, delete-orphan", order_by="OrderItem.id",
    )

    @property
    def item_count(self) -> int:
        return sum(it.quantity for it in self.items)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "total_amount": str(self.total_amount),
            "order_date": self.order_date.isoformat() if self.order_date else None,
            "status": self.status,
            "items": [it.to_dict() for it in self.items],
        }


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column("item_id", Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.order_id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Integer, nullable=False)

    # Unit price frozen at validation time
    price_at_time_of_purchase = Column(Numeric(10, 2), nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_item_qty"),
    )

    @property
    def line_total(self):
        return self.price_at_time_of_purchase * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "price": str(self.price_at_time_of_purchase),
            "line_total": str(self.line_total),
        }
