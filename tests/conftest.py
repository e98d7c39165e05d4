"""
Shared fixtures: a fresh SQLite file database per test.

SQLite transactions are opened with BEGIN IMMEDIATE (see build_engine), so a
session that has read anything holds the write lock until it commits or
closes. Seeding and assertion helpers therefore use short-lived sessions.
"""

from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from config.database import Base, build_engine
from modules.cart.session_cart import CartContext
from modules.catalog.models import Product
from modules.cart.models import CartItem
from modules.order.models import Order, OrderItem
from modules.user.models import User, UserRole


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'supermarket_test.db'}", lock_timeout=10)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


class Seed:
    """Short-lived-session helpers for arranging and inspecting state."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def product(self, name="Apples", quantity=10, price="1.50") -> int:
        with self.session_factory() as s:
            p = Product(name=name, quantity=quantity, price=Decimal(price))
            s.add(p)
            s.flush()
            pid = p.id
            s.commit()
        return pid

    def user(self, username="alice", role=UserRole.USER) -> int:
        with self.session_factory() as s:
            u = User(username=username, email=f"{username}@example.com", role=role)
            s.add(u)
            s.flush()
            uid = u.id
            s.commit()
        return uid

    def stock_of(self, product_id: int) -> int:
        with self.session_factory() as s:
            return s.query(Product).filter(Product.id == product_id).one().quantity

    def set_price(self, product_id: int, price: str):
        with self.session_factory() as s:
            s.query(Product).filter(Product.id == product_id).update({Product.price: Decimal(price)})
            s.commit()

    def cart_rows(self, user_id: int) -> dict:
        with self.session_factory() as s:
            rows = s.query(CartItem).filter(CartItem.user_id == user_id).all()
            return {r.product_id: r.quantity for r in rows}

    def order_count(self) -> int:
        with self.session_factory() as s:
            return s.query(Order).count()

    def order_item_count(self) -> int:
        with self.session_factory() as s:
            return s.query(OrderItem).count()

    def ordered_quantity(self, product_id: int) -> int:
        with self.session_factory() as s:
            return sum(
                it.quantity
                for it in s.query(OrderItem).filter(OrderItem.product_id == product_id).all()
            )


@pytest.fixture
def seed(session_factory):
    return Seed(session_factory)


@pytest.fixture
def user_id(seed):
    return seed.user("alice")


def make_ctx(user_id=None, role=UserRole.USER) -> CartContext:
    store = {}
    if user_id is not None:
        store["user"] = {"id": user_id, "username": f"user{user_id}", "role": role}
    return CartContext.from_session(store)


@pytest.fixture
def ctx(user_id):
    return make_ctx(user_id)


@pytest.fixture
def ctx_factory():
    return make_ctx
