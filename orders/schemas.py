"""Pydantic schemas for orders.

This module exposes the request/response schemas of the orders API.
Request schemas carry the structural validation rules (required fields,
quantity >= 1, price >= 0, at least one item, values that fit the
database columns); response schemas render money as JSON numbers.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer, field_validator, model_validator

from .domain import Order, OrderItem, order_totals
from .models import MAX_INT, MAX_MONEY, MONEY_DIGITS, MONEY_PLACES

# Decimal internally, plain JSON number on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class OrderItemIn(BaseModel):
    """Input schema for a single order line item.

    Attributes:
        product_id: Product identifier, non-blank.
        quantity: Units requested, at least 1.
        price: Unit price, zero or more.
    """

    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1, le=MAX_INT)
    price: Decimal = Field(ge=0, max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES, allow_inf_nan=False)

    def to_domain(self) -> OrderItem:
        return OrderItem(product_id=self.product_id, quantity=self.quantity, price=self.price)


class CreateOrderDTO(BaseModel):
    """Schema for creating an order.

    Attributes:
        customer_id: Opaque customer identifier, non-blank.
        items: One or more `OrderItemIn` items.
    """

    customer_id: str = Field(min_length=1)
    items: list[OrderItemIn] = Field(min_length=1)

    @field_validator("customer_id")
    @classmethod
    def validate_customer_id(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank ids.

        Raises:
            ValueError: When the id is only whitespace.
        """
        v2 = v.strip()
        if not v2:
            raise ValueError("customer_id must not be blank")
        return v2

    @model_validator(mode="after")
    def validate_totals(self) -> "CreateOrderDTO":
        """Reject orders whose derived totals overflow the order columns.

        Raises:
            ValueError: When the total amount or the items count is too large.
        """
        total_amount, items_count = order_totals([it.to_domain() for it in self.items])
        if total_amount >= MAX_MONEY:
            raise ValueError(f"total amount must be less than {MAX_MONEY}")
        if items_count > MAX_INT:
            raise ValueError(f"items count must be at most {MAX_INT}")
        return self


class OrderCreatedDTO(BaseModel):
    """Body of a successful create (201)."""

    order_id: int
    customer_id: str
    total_amount: Money
    items_count: int
    processing_date: datetime

    @classmethod
    def from_domain(cls, order: Order) -> "OrderCreatedDTO":
        return cls(
            order_id=order.id,
            customer_id=order.customer_id,
            total_amount=order.total_amount,
            items_count=order.items_count,
            processing_date=order.created_at,
        )


class OrderReadDTO(BaseModel):
    """One entry of the order listing."""

    id: int
    customer_id: str
    total_amount: Money
    items_count: int
    created_at: datetime

    @classmethod
    def from_domain(cls, order: Order) -> "OrderReadDTO":
        return cls(
            id=order.id,
            customer_id=order.customer_id,
            total_amount=order.total_amount,
            items_count=order.items_count,
            created_at=order.created_at,
        )
