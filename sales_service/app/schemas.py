from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, condecimal, conint

from .models import OrderStatus


# --- Request Models ---
class OrderItemRequest(BaseModel):
    """One requested line: which product and how many."""
    product_id: Optional[int] = None
    quantity: conint(ge=1)


class OrderRequest(BaseModel):
    """Defines the data model for an incoming order request."""
    items: List[OrderItemRequest]


class CustomerFilter(BaseModel):
    """Criteria used to select customers when searching orders."""
    name: Optional[str] = None
    email: Optional[str] = None


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1, pattern=r"^[^\r\n]+$")
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    price: condecimal(ge=0, max_digits=10, decimal_places=2)


class StockAdd(BaseModel):
    """Adds quantity to a product's stock (upsert)."""
    product_id: int
    quantity: conint(ge=1)


# --- Response Models ---
class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: Decimal


class StockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    quantity: int


class OrderItemResponse(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    price: Decimal
    subtotal: Decimal


class OrderResponse(BaseModel):
    id: int
    status: OrderStatus
    created_at: datetime
    customer: CustomerResponse
    items: List[OrderItemResponse]
    total: Decimal

    @classmethod
    def from_order(cls, order):
        return cls(
            id=order.id,
            status=order.status,
            created_at=order.created_at,
            customer=CustomerResponse.model_validate(order.customer),
            items=[
                OrderItemResponse(
                    product_id=item.product_id,
                    product_name=item.product.name,
                    quantity=item.quantity,
                    price=item.price,
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
            total=order.total,
        )
