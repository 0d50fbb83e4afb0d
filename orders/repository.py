"""SQLAlchemy repository for orders and their items.

The repository is the only component that talks to the database. It is
built around an injected SQLAlchemy ``Engine`` (connection pool) and
opens one short-lived session per operation. Writes run inside
``Session.begin()`` so the transaction commits only when the block exits
cleanly and rolls back on every other exit path.

All SQLAlchemy errors are re-raised as ``StorageError``; nothing is
logged here.
"""

from decimal import Decimal
from typing import List, Sequence

from sqlalchemy import create_engine, delete, select, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import Settings
from .domain import Order, OrderItem
from .errors import EmptyOrderError, NotFoundError, StorageError
from .models import Base, ItemRow, OrderRow

# bulk deletes never touch objects loaded in the session
_NO_SYNC = {"synchronize_session": False}


def build_engine(settings: Settings) -> Engine:
    """Create the process-wide connection pool.

    For PostgreSQL the connect timeout and a per-statement timeout are
    passed to the server so a stalled query cannot hold a worker forever.

    Args:
        settings: Runtime settings.

    Returns:
        Engine: A pooled, thread-safe engine.
    """
    url = make_url(settings.database_url)
    kwargs = {"pool_pre_ping": True}
    if url.get_backend_name() == "postgresql":
        kwargs.update(
            pool_size=settings.pool_size,
            pool_timeout=settings.pool_timeout,
            connect_args={
                "connect_timeout": settings.connect_timeout,
                "options": f"-c statement_timeout={settings.statement_timeout_ms}",
            },
        )
    return create_engine(url, **kwargs)


def init_db(engine: Engine) -> None:
    """Check connectivity and create missing tables.

    Raises:
        StorageError: If the database cannot be reached.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("select 1"))
        Base.metadata.create_all(engine)
    except SQLAlchemyError as e:
        raise StorageError("Database is not reachable") from e


def _to_order(row: OrderRow) -> Order:
    return Order(
        id=row.id,
        customer_id=row.customer_id,
        total_amount=Decimal(row.total_amount),
        items_count=row.items_count,
        created_at=row.created_at,
    )


class OrderRepository:
    """Repository for listing, creating and deleting orders."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def list_orders(self) -> List[Order]:
        """Return all orders, most recent first.

        Orders sharing a timestamp are ordered by descending id, so a later
        insert always sorts first.

        Returns:
            list[Order]: Possibly empty list of orders (without items).

        Raises:
            StorageError: If the query fails.
        """
        stmt = select(OrderRow).order_by(OrderRow.created_at.desc(), OrderRow.id.desc())
        try:
            with Session(self.engine) as s:
                return [_to_order(row) for row in s.scalars(stmt)]
        except SQLAlchemyError as e:
            raise StorageError("Error listing orders") from e

    def create_order(
        self,
        customer_id: str,
        total_amount: Decimal,
        items_count: int,
        items: Sequence[OrderItem],
    ) -> Order:
        """Persist an order and all of its items in one transaction.

        The order row is inserted first to obtain its id and creation
        timestamp, then one item row per input item, in input order. If
        any insert or the commit fails, none of the rows are kept.

        Args:
            customer_id: Customer placing the order.
            total_amount: Precomputed order total.
            items_count: Precomputed sum of quantities.
            items: Non-empty sequence of items.

        Returns:
            Order: The persisted order with id and ``created_at`` set.

        Raises:
            EmptyOrderError: If ``items`` is empty; nothing is executed.
            StorageError: On any database failure (constraint violation,
                lost connection, timeout).
        """
        if not items:
            raise EmptyOrderError("An order needs at least one item")

        try:
            with Session(self.engine) as s, s.begin():
                row = OrderRow(customer_id=customer_id, total_amount=total_amount, items_count=items_count)
                s.add(row)
                s.flush()

                s.add_all(
                    ItemRow(order_id=row.id, product_id=it.product_id, quantity=it.quantity, price=it.price)
                    for it in items
                )
                s.flush()

                order = Order(
                    id=row.id,
                    customer_id=customer_id,
                    total_amount=total_amount,
                    items_count=items_count,
                    created_at=row.created_at,
                    items=list(items),
                )
        except SQLAlchemyError as e:
            raise StorageError("Error creating order") from e
        return order

    def delete_order(self, order_id: int) -> None:
        """Delete an order and its items.

        The affected-row count of the order delete decides between success
        and not-found; no separate existence query is made.

        Raises:
            NotFoundError: If no order with ``order_id`` exists. The
                transaction is rolled back.
            StorageError: On database failures.
        """
        try:
            with Session(self.engine) as s, s.begin():
                s.execute(delete(ItemRow).where(ItemRow.order_id == order_id), execution_options=_NO_SYNC)
                res = s.execute(delete(OrderRow).where(OrderRow.id == order_id), execution_options=_NO_SYNC)
                if res.rowcount == 0:
                    raise NotFoundError(order_id)
        except SQLAlchemyError as e:
            raise StorageError("Error deleting order") from e

