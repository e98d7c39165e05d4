"""
Concurrent checkouts against one SQLite file, one session per thread.
"""

import threading

import pytest

from common.exceptions import (
    CheckoutError,
    CheckoutTimeoutError,
    InsufficientStockError,
    StockRaceLostError,
)
from config.database import build_engine
from modules.cart.session_cart import CartLine
from modules.catalog.models import Product
from modules.checkout.service import checkout_service
from sqlalchemy.orm import sessionmaker


def _run_concurrently(session_factory, jobs):
    """
    jobs: list of (ctx, lines). Starts all checkouts at once.
    Returns a list of Order ids or CheckoutError per job, in job order.
    """
    barrier = threading.Barrier(len(jobs))
    outcomes = [None] * len(jobs)

    def worker(i, ctx, lines):
        session = session_factory()
        try:
            barrier.wait()
            result = checkout_service.validate_and_commit(session, ctx, lines)
            outcomes[i] = result.order.id
        except CheckoutError as e:
            outcomes[i] = e
        finally:
            session.close()

    threads = [
        threading.Thread(target=worker, args=(i, ctx, lines))
        for i, (ctx, lines) in enumerate(jobs)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


def test_two_checkouts_for_full_stock_one_wins(session_factory, seed, ctx_factory):
    pid = seed.product("Broccoli", quantity=5)
    jobs = [
        (ctx_factory(seed.user("alice")), [CartLine(pid, 3)]),
        (ctx_factory(seed.user("bob")), [CartLine(pid, 3)]),
    ]

    outcomes = _run_concurrently(session_factory, jobs)

    winners = [o for o in outcomes if isinstance(o, int)]
    losers = [o for o in outcomes if isinstance(o, CheckoutError)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], (InsufficientStockError, StockRaceLostError))
    if isinstance(losers[0], InsufficientStockError):
        assert losers[0].requested == 3
        assert losers[0].available in (2, 5)

    assert seed.stock_of(pid) == 2
    assert seed.ordered_quantity(pid) == 3
    assert seed.order_count() == 1


def test_many_shoppers_never_oversell(session_factory, seed, ctx_factory):
    initial = 5
    pid = seed.product("Milk", quantity=initial)
    jobs = [
        (ctx_factory(seed.user(f"shopper{i}")), [CartLine(pid, 1)])
        for i in range(12)
    ]

    outcomes = _run_concurrently(session_factory, jobs)

    winners = [o for o in outcomes if isinstance(o, int)]
    assert len(winners) == initial
    assert all(
        isinstance(o, (InsufficientStockError, StockRaceLostError))
        for o in outcomes if not isinstance(o, int)
    )
    assert seed.stock_of(pid) == 0
    assert seed.ordered_quantity(pid) == initial


def test_overlapping_product_sets_do_not_deadlock(session_factory, seed, ctx_factory):
    a = seed.product("Apples", quantity=50)
    b = seed.product("Bread", quantity=50)
    jobs = []
    for i in range(6):
        lines = [CartLine(a, 1), CartLine(b, 1)]
        if i % 2:
            lines.reverse()
        jobs.append((ctx_factory(seed.user(f"shopper{i}")), lines))

    outcomes = _run_concurrently(session_factory, jobs)

    assert all(isinstance(o, int) for o in outcomes)
    assert seed.stock_of(a) == 44
    assert seed.stock_of(b) == 44


def test_lock_wait_is_bounded(tmp_path, engine, seed, ctx_factory):
    pid = seed.product("Apples", quantity=5)
    ctx = ctx_factory(seed.user("alice"))

    impatient = build_engine(f"sqlite:///{tmp_path / 'supermarket_test.db'}", lock_timeout=1)
    holder = sessionmaker(bind=engine)()
    waiter = sessionmaker(bind=impatient)()
    try:
        # Holding a transaction keeps the SQLite write lock
        holder.query(Product).filter(Product.id == pid).one()

        with pytest.raises(CheckoutTimeoutError) as exc:
            checkout_service.validate_and_commit(waiter, ctx, [CartLine(pid, 1)])
        assert exc.value.retryable
    finally:
        holder.rollback()
        holder.close()
        waiter.close()
        impatient.dispose()

    assert seed.stock_of(pid) == 5
