"""
Supermarket - Database Seeder
===============================
Seeds users and products for local testing.

Usage:
    python scripts/seed.py          # Seed (skips rows that already exist)
    python scripts/seed.py --reset  # Drop all data and reseed
"""

import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine
from modules.user.models import User, UserRole
from modules.catalog.models import Product
from modules.cart.models import CartItem  # noqa
from modules.order.models import Order, OrderItem  # noqa


USERS = [
    {"username": "admin", "email": "admin@supermarket.local", "role": UserRole.ADMIN, "address": "HQ"},
    {"username": "alice", "email": "alice@example.com", "role": UserRole.USER, "address": "1 Orchard Rd"},
    {"username": "bob", "email": "bob@example.com", "role": UserRole.USER, "address": "2 Market St"},
]

PRODUCTS = [
    {"name": "Apples", "quantity": 50, "price": Decimal("1.50"), "image": "apples.png"},
    {"name": "Bananas", "quantity": 75, "price": Decimal("0.80"), "image": "bananas.png"},
    {"name": "Milk", "quantity": 50, "price": Decimal("3.50"), "image": "milk.png"},
    {"name": "Bread", "quantity": 80, "price": Decimal("1.80"), "image": "bread.png"},
    {"name": "Tomatoes", "quantity": 80, "price": Decimal("1.50"), "image": "tomatoes.png"},
    {"name": "Broccoli", "quantity": 5, "price": Decimal("0.80"), "image": "broccoli.png"},
]


def seed(reset=False):
    if reset:
        print("Dropping all tables...")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        print("[1/2] Users")
        for data in USERS:
            if db.query(User).filter(User.email == data["email"]).first():
                print(f"  = {data['username']} (exists)")
                continue
            db.add(User(**data))
            print(f"  + {data['username']} ({data['role']})")

        print("[2/2] Products")
        for data in PRODUCTS:
            if db.query(Product).filter(Product.name == data["name"]).first():
                print(f"  = {data['name']} (exists)")
                continue
            db.add(Product(**data))
            print(f"  + {data['name']} x{data['quantity']} @ {data['price']}")

        db.commit()
        print("\nSeed complete.")
    except Exception as e:
        db.rollback()
        print(f"[ERROR] Seed failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed(reset="--reset" in sys.argv)
