"""SQLAlchemy tables for orders and their items."""

from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, mapped_column

MONEY_DIGITS = 14
MONEY_PLACES = 4
MONEY = Numeric(MONEY_DIGITS, MONEY_PLACES, asdecimal=True)

# largest values the columns can hold; money is exclusive
MAX_MONEY = Decimal(10) ** (MONEY_DIGITS - MONEY_PLACES)
MAX_INT = 2**31 - 1


class Base(DeclarativeBase):
    pass


class OrderRow(Base):
    """One row per order.

    ``id`` and ``created_at`` are assigned by the database on insert and
    read back in the same flush (``eager_defaults``).
    """

    __tablename__ = "orders"

    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id = mapped_column(String(255), nullable=False)
    total_amount = mapped_column(MONEY, nullable=False)
    items_count = mapped_column(Integer, nullable=False)
    created_at = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_orders_total_amount"),
        CheckConstraint("items_count >= 0", name="ck_orders_items_count"),
    )
    __mapper_args__ = {"eager_defaults": True}


class ItemRow(Base):
    """A line item; never exists outside its order."""

    __tablename__ = "items"

    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id = mapped_column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = mapped_column(String(255), nullable=False)
    quantity = mapped_column(Integer, nullable=False)
    price = mapped_column(MONEY, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_items_quantity"),
        CheckConstraint("price >= 0", name="ck_items_price"),
    )
