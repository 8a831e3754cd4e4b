# estore/schemas/checkout_schemas.py
from pydantic import BaseModel, Field
from typing import List, Optional


class CartLine(BaseModel):
    product_id: int
    quantity: int = 1


class Cart(BaseModel):
    """Checkout request body; also the value object handed to the ledger."""
    items: List[CartLine] = Field(default_factory=list)


class CustomerDetails(BaseModel):
    first_name: str = "Customer"
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class CheckoutRequest(Cart):
    customer_details: Optional[CustomerDetails] = None


class CheckoutResponse(BaseModel):
    token: str
    redirect_url: str
    order_id: str  # external order id, as known to the gateway
