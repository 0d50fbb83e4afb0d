"""Domain models, ports and service for orders.

This module contains the dataclasses exchanged between layers, the
protocol (port) the service needs from persistence, and the domain
service that derives order totals before handing the order to the
repository.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence, List

from .errors import EmptyOrderError


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class OrderItem:
    """A single line item in an order.

    Attributes:
        product_id: Opaque product identifier.
        quantity: Number of units, at least 1.
        price: Unit price, non-negative.

    The dataclass is frozen because items are immutable once created in
    the context of an order.
    """

    product_id: str
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class Order:
    """A persisted order.

    Attributes:
        id: Identifier assigned by the database.
        customer_id: Opaque customer identifier.
        total_amount: Sum of quantity * price over the items, fixed at
            creation time.
        items_count: Sum of the item quantities.
        created_at: Insert timestamp assigned by the database.
        items: Items the order was created with. Empty when the order
            was loaded by a listing.
    """

    id: int
    customer_id: str
    total_amount: Decimal
    items_count: int
    created_at: datetime
    items: List[OrderItem] = field(default_factory=list)


def order_totals(items: Sequence[OrderItem]) -> tuple[Decimal, int]:
    """Compute ``(total_amount, items_count)`` for a list of items.

    Products are summed exactly with ``Decimal``; nothing is rounded.
    """
    total = sum((Decimal(it.price) * it.quantity for it in items), Decimal("0"))
    count = sum(it.quantity for it in items)
    return total, count


# ---- Ports (DIP) ----
class OrderRepositoryPort(Protocol):
    """Port describing the persistence operations used by the domain."""

    def list_orders(self) -> List[Order]:
        """Return every order, newest first."""
        raise NotImplementedError()

    def create_order(
        self,
        customer_id: str,
        total_amount: Decimal,
        items_count: int,
        items: Sequence[OrderItem],
    ) -> Order:
        """Atomically persist an order together with its items.

        Raises:
            StorageError: If anything fails; nothing is persisted then.
        """
        raise NotImplementedError()

    def delete_order(self, order_id: int) -> None:
        """Delete an order and its items.

        Raises:
            NotFoundError: If no order has this id.
            StorageError: On database failures.
        """
        raise NotImplementedError()


# ---- Domain service ----
class OrderService:
    """Domain service responsible for placing orders.

    The service derives the fields the repository needs and delegates
    persistence. It keeps no state between calls.
    """

    def __init__(self, repository: OrderRepositoryPort):
        self.repository = repository

    def place_order(self, customer_id: str, items: Sequence[OrderItem]) -> Order:
        """Place an order: derive totals, then persist order and items.

        Args:
            customer_id: Customer placing the order.
            items: Structurally valid items (quantity >= 1, price >= 0).

        Returns:
            The Order returned by the repository, with its assigned id
            and creation timestamp.

        Raises:
            EmptyOrderError: If ``items`` is empty.
            StorageError: Propagated unchanged from the repository.
        """
        if not items:
            raise EmptyOrderError("An order needs at least one item")

        total_amount, items_count = order_totals(items)
        return self.repository.create_order(customer_id, total_amount, items_count, list(items))

    def list_orders(self) -> List[Order]:
        return self.repository.list_orders()

    def delete_order(self, order_id: int) -> None:
        self.repository.delete_order(order_id)
