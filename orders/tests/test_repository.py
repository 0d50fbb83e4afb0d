"""Integration tests for OrderRepository against an in-memory database.

These tests use direct SQL to assert what is actually stored, so
atomicity and the absence of orphaned items are checked at the row level
rather than through the repository itself.
"""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine, text

from orders.domain import OrderItem
from orders.errors import EmptyOrderError, NotFoundError, StorageError
from orders.repository import OrderRepository


def _count(engine, table: str) -> int:
    with engine.connect() as conn:
        return conn.execute(text(f"select count(*) from {table}")).scalar_one()


def _items(engine, order_id: int):
    with engine.connect() as conn:
        return conn.execute(
            text("select product_id, quantity, price from items where order_id = :oid order by id"),
            {"oid": order_id},
        ).all()


def test_list_orders_empty_returns_empty_list(repository):
    assert repository.list_orders() == []


def test_create_order_persists_order_and_items(engine, repository):
    items = [OrderItem("p1", 2, Decimal("10.00")), OrderItem("p2", 1, Decimal("5.50"))]

    order = repository.create_order("cust-1", Decimal("25.50"), 3, items)

    assert order.id is not None
    assert order.created_at is not None
    assert order.customer_id == "cust-1"
    assert order.total_amount == Decimal("25.50")
    assert order.items_count == 3
    assert order.items == items

    rows = _items(engine, order.id)
    assert [(r[0], r[1]) for r in rows] == [("p1", 2), ("p2", 1)]
    assert [Decimal(str(r[2])) for r in rows] == [Decimal("10.00"), Decimal("5.50")]


def test_create_order_without_items_persists_nothing(engine, repository):
    with pytest.raises(EmptyOrderError):
        repository.create_order("cust-1", Decimal("0"), 0, [])
    assert _count(engine, "orders") == 0
    assert _count(engine, "items") == 0


def test_create_order_is_atomic_when_an_item_fails(engine, repository):
    """Third of four items violates the quantity check: nothing is kept."""
    items = [
        OrderItem("p1", 1, Decimal("1")),
        OrderItem("p2", 1, Decimal("1")),
        OrderItem("p3", 0, Decimal("1")),
        OrderItem("p4", 1, Decimal("1")),
    ]
    with pytest.raises(StorageError) as e:
        repository.create_order("cust-1", Decimal("3"), 3, items)

    assert e.value.__cause__ is not None
    assert _count(engine, "orders") == 0
    assert _count(engine, "items") == 0


def test_list_orders_newest_first(repository):
    first = repository.create_order("a", Decimal("1"), 1, [OrderItem("p", 1, Decimal("1"))])
    second = repository.create_order("b", Decimal("2"), 1, [OrderItem("p", 1, Decimal("2"))])
    third = repository.create_order("c", Decimal("3"), 1, [OrderItem("p", 1, Decimal("3"))])

    listed = repository.list_orders()

    assert [o.id for o in listed] == [third.id, second.id, first.id]
    assert listed[0].customer_id == "c"
    assert listed[0].total_amount == Decimal("3")
    assert listed[0].items == []


def test_delete_order_removes_order_and_items(engine, repository):
    keep = repository.create_order("keep", Decimal("1"), 1, [OrderItem("p", 1, Decimal("1"))])
    gone = repository.create_order(
        "gone", Decimal("3"), 3, [OrderItem("p", 1, Decimal("1")), OrderItem("q", 2, Decimal("1"))]
    )

    repository.delete_order(gone.id)

    assert [o.id for o in repository.list_orders()] == [keep.id]
    assert _items(engine, gone.id) == []
    assert len(_items(engine, keep.id)) == 1


def test_delete_unknown_order_raises_not_found_and_changes_nothing(engine, repository):
    repository.create_order("a", Decimal("1"), 1, [OrderItem("p", 1, Decimal("1"))])

    with pytest.raises(NotFoundError) as e:
        repository.delete_order(9999)

    assert e.value.code == "ORDER_NOT_FOUND"
    assert e.value.order_id == 9999
    assert _count(engine, "orders") == 1
    assert _count(engine, "items") == 1


def test_delete_twice_reports_not_found(repository):
    order = repository.create_order("a", Decimal("1"), 1, [OrderItem("p", 1, Decimal("1"))])
    repository.delete_order(order.id)
    with pytest.raises(NotFoundError):
        repository.delete_order(order.id)


def test_storage_errors_are_wrapped(tmp_path):
    """A database with no tables makes every operation fail with StorageError."""
    repo = OrderRepository(create_engine(f"sqlite:///{tmp_path / 'empty.db'}"))
    with pytest.raises(StorageError):
        repo.list_orders()
    with pytest.raises(StorageError):
        repo.create_order("a", Decimal("1"), 1, [OrderItem("p", 1, Decimal("1"))])
    with pytest.raises(StorageError):
        repo.delete_order(1)
