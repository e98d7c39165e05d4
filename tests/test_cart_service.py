from decimal import Decimal

import pytest

from common.exceptions import InsufficientStockError, ProductNotFoundError
from modules.cart.service import cart_service
from modules.cart.session_cart import CartLine


def test_add_merges_into_single_line(db, seed, ctx, user_id):
    pid = seed.product(quantity=10)

    cart_service.add_line(db, ctx, pid, 2)
    cart_service.add_line(db, ctx, pid, 3)
    db.commit()

    assert cart_service.snapshot(ctx) == [CartLine(pid, 5)]
    assert seed.cart_rows(user_id) == {pid: 5}


def test_add_rejects_merge_beyond_stock(db, seed, ctx, user_id):
    pid = seed.product(quantity=4)
    cart_service.add_line(db, ctx, pid, 3)

    with pytest.raises(InsufficientStockError) as exc:
        cart_service.add_line(db, ctx, pid, 2)
    db.commit()

    assert exc.value.requested == 5
    assert exc.value.available == 4
    assert cart_service.snapshot(ctx) == [CartLine(pid, 3)]
    assert seed.cart_rows(user_id) == {pid: 3}


def test_add_unknown_product(db, ctx):
    with pytest.raises(ProductNotFoundError):
        cart_service.add_line(db, ctx, 999, 1)


def test_add_rejects_non_positive_quantity(db, seed, ctx):
    pid = seed.product()
    with pytest.raises(ValueError):
        cart_service.add_line(db, ctx, pid, 0)


def test_snapshot_keeps_insertion_order(db, seed, ctx):
    first = seed.product("Milk")
    second = seed.product("Bread")

    cart_service.add_line(db, ctx, second, 1)
    cart_service.add_line(db, ctx, first, 1)
    cart_service.add_line(db, ctx, second, 1)
    db.commit()

    assert [ln.product_id for ln in cart_service.snapshot(ctx)] == [second, first]


def test_decrease_to_zero_removes_line_and_row(db, seed, ctx, user_id):
    pid = seed.product()
    cart_service.add_line(db, ctx, pid, 2)

    assert cart_service.decrease(db, ctx, pid) == CartLine(pid, 1)
    assert cart_service.decrease(db, ctx, pid) is None
    db.commit()

    assert cart_service.snapshot(ctx) == []
    assert seed.cart_rows(user_id) == {}


def test_decrease_missing_line_is_noop(db, seed, ctx):
    pid = seed.product()
    assert cart_service.decrease(db, ctx, pid) is None
    assert cart_service.snapshot(ctx) == []


def test_set_quantity(db, seed, ctx, user_id):
    pid = seed.product(quantity=6)
    cart_service.add_line(db, ctx, pid, 1)

    cart_service.set_quantity(db, ctx, pid, 6)
    with pytest.raises(InsufficientStockError):
        cart_service.set_quantity(db, ctx, pid, 7)
    db.commit()
    assert seed.cart_rows(user_id) == {pid: 6}

    assert cart_service.set_quantity(db, ctx, pid, 0) is None
    db.commit()
    assert cart_service.snapshot(ctx) == []
    assert seed.cart_rows(user_id) == {}


def test_remove_and_clear(db, seed, ctx, user_id):
    a = seed.product("Apples")
    b = seed.product("Bananas")
    cart_service.add_line(db, ctx, a, 1)
    cart_service.add_line(db, ctx, b, 2)

    assert cart_service.remove_line(db, ctx, a) is True
    assert cart_service.remove_line(db, ctx, a) is False
    db.commit()
    assert seed.cart_rows(user_id) == {b: 2}

    cart_service.clear(db, ctx)
    db.commit()
    assert cart_service.snapshot(ctx) == []
    assert seed.cart_rows(user_id) == {}


def test_anonymous_cart_never_touches_table(db, seed, ctx_factory, user_id):
    pid = seed.product()
    anon = ctx_factory()

    cart_service.add_line(db, anon, pid, 2)
    db.commit()

    assert cart_service.snapshot(anon) == [CartLine(pid, 2)]
    assert seed.cart_rows(user_id) == {}


def test_load_for_user_restores_persisted_cart(db, seed, ctx, ctx_factory, user_id):
    a = seed.product("Apples")
    b = seed.product("Bananas")
    cart_service.add_line(db, ctx, a, 2)
    cart_service.add_line(db, ctx, b, 1)
    db.commit()

    fresh = ctx_factory(user_id)
    lines = cart_service.load_for_user(db, fresh)
    db.commit()

    assert lines == [CartLine(a, 2), CartLine(b, 1)]
    assert cart_service.snapshot(fresh) == lines


def test_cart_pricing_uses_live_price(db, seed, ctx):
    a = seed.product("Apples", price="1.50")
    b = seed.product("Milk", price="3.50")
    cart_service.add_line(db, ctx, a, 2)
    cart_service.add_line(db, ctx, b, 1)
    db.commit()

    seed.set_price(a, "2.00")
    items, total = cart_service.get_cart_with_pricing(db, ctx)
    db.commit()

    assert [it["product_id"] for it in items] == [a, b]
    assert items[0]["unit_price"] == Decimal("2.00")
    assert items[0]["line_total"] == Decimal("4.00")
    assert total == Decimal("7.50")
    assert cart_service.item_count(ctx) == 3


def test_check_availability_reports_short_lines(db, seed):
    a = seed.product("Apples", quantity=1)
    b = seed.product("Bread", quantity=5)

    short = cart_service.check_availability(
        db, [CartLine(a, 2), CartLine(b, 5), CartLine(999, 1)]
    )
    db.commit()

    assert [s["product_id"] for s in short] == [a, 999]
    assert short[0]["available"] == 1
    assert short[1]["available"] == 0
