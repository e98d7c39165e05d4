"""
Order Module - Service Layer
===============================
Order commit (stock decrement + order rows), order queries, status changes.
"""

import logging
from typing import List, Optional

from sqlalchemy import desc, or_
from sqlalchemy.orm import Session, joinedload

from common.exceptions import EmptySelectionError, NotFoundError, StockRaceLostError
from common.helpers import now_utc, parse_date_bound
from modules.inventory.service import ValidatedSelection, stock_service
from modules.order.models import Order, OrderItem, OrderStatus
from modules.user.models import User

logger = logging.getLogger("supermarket.order")


class OrderService:

    # ==========================================
    # Commit
    # ==========================================

    def commit(self, db: Session, user_id: int, validated: ValidatedSelection) -> Order:
        """
        Write an order for an already validated (and locked) selection:
        1. Guarded stock decrement per line; a miss raises StockRaceLostError
        2. Insert the order with total = sum(qty x frozen unit price)
        3. Insert one order item per line with the frozen unit price

        Runs inside the caller's transaction and only flushes. The caller
        commits, or rolls back on any exception.
        """
        if not validated.lines:
            raise EmptySelectionError()

        for line in validated.lines:
            if not stock_service.decrement_stock(db, line.product_id, line.quantity):
                logger.warning(f"Stock race lost on product #{line.product_id} (qty {line.quantity})")
                raise StockRaceLostError(line.product_id)

        order = Order(
            user_id=user_id,
            total_amount=validated.total_amount,
            order_date=now_utc(),
            status=OrderStatus.COMPLETED.value,
        )
        db.add(order)
        db.flush()  # get order.id

        for line in validated.lines:
            db.add(OrderItem(
                order_id=order.id,
                product_id=line.product_id,
                quantity=line.quantity,
                price_at_time_of_purchase=line.unit_price,
            ))

        db.flush()
        return order

    # ==========================================
    # Query
    # ==========================================

    def get_order(self, db: Session, order_id: int, user_id: int = None) -> Optional[Order]:
        """Single order with items. With `user_id`, only that user's order is returned."""
        q = db.query(Order).options(
            joinedload(Order.items).joinedload(OrderItem.product),
        ).filter(Order.id == order_id)
        if user_id is not None:
            q = q.filter(Order.user_id == user_id)
        return q.first()

    def list_user_orders(self, db: Session, user_id: int) -> List[Order]:
        return (
            db.query(Order)
            .options(joinedload(Order.items).joinedload(OrderItem.product))
            .filter(Order.user_id == user_id)
            .order_by(desc(Order.order_date), desc(Order.id))
            .all()
        )

    def list_all_orders(
        self,
        db: Session,
        status: str = None,
        start_date: str = None,
        end_date: str = None,
        customer: str = None,
    ) -> List[Order]:
        """
        Admin listing. Bare dates cover the whole day; `customer` matches
        username or email by substring.
        """
        q = (
            db.query(Order)
            .options(
                joinedload(Order.items).joinedload(OrderItem.product),
                joinedload(Order.user),
            )
            .order_by(desc(Order.order_date), desc(Order.id))
        )
        if status:
            q = q.filter(Order.status == status)

        start = parse_date_bound(start_date)
        if start:
            q = q.filter(Order.order_date >= start)
        end = parse_date_bound(end_date, end_of_day=True)
        if end:
            q = q.filter(Order.order_date <= end)

        if customer:
            term = f"%{customer.strip()}%"
            q = q.join(User, User.id == Order.user_id).filter(
                or_(User.username.ilike(term), User.email.ilike(term))
            )
        return q.all()

    # ==========================================
    # Status (administrative)
    # ==========================================

    def update_status(self, db: Session, order_id: int, status: str) -> Order:
        """Change only the status of a committed order. Stock is not touched."""
        try:
            new_status = OrderStatus(status)
        except ValueError:
            raise ValueError(f"Unknown order status: {status}")

        order = db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if not order:
            raise NotFoundError(f"Order #{order_id} not found")

        if order.status != new_status.value:
            logger.info(f"Order #{order_id} status {order.status} -> {new_status.value}")
            order.status = new_status.value
            db.flush()
        return order

    def cancel_order(self, db: Session, order_id: int) -> Order:
        return self.update_status(db, order_id, OrderStatus.CANCELLED.value)


# Singleton
order_service = OrderService()
