"""Order (comanda) domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

ITEM_SERVICE = "SERVICE"
ITEM_PRODUCT = "PRODUCT"
ITEM_TYPES = (ITEM_SERVICE, ITEM_PRODUCT)


class OrderLineInput(BaseModel):
    itemId: int
    price: Optional[float] = None  # Defaults to the catalog price
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v < 1:
            raise ValueError("Quantity must be at least 1")
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("Price cannot be negative")
        return v


class OrderCreate(BaseModel):
    """Schema for opening a comanda"""

    clientId: Optional[int] = None  # Walk-ins have no client
    barberId: Optional[int] = None  # Required when an admin opens the order
    appointmentId: Optional[int] = None
    tipAmount: Optional[float] = 0
    services: list[OrderLineInput] = []
    products: list[OrderLineInput] = []


class OrderItemAdd(OrderLineInput):
    type: str

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        v = (v or "").upper()
        if v not in ITEM_TYPES:
            raise ValueError("type must be SERVICE or PRODUCT")
        return v


class OrderClose(BaseModel):
    paymentMethod: Optional[str] = None
    tipAmount: Optional[float] = None

    @field_validator("tipAmount")
    @classmethod
    def validate_tip(cls, v):
        if v is not None and v < 0:
            raise ValueError("Tip cannot be negative")
        return v


class ServiceLineResponse(BaseModel):
    id: int
    service_id: int
    service_name: Optional[str] = None
    price: float
    added_at: Optional[datetime] = None


class ProductLineResponse(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    price: float
    quantity: int
    added_at: Optional[datetime] = None


class OrderResponse(BaseModel):
    """Schema for order response"""

    id: int
    client_id: Optional[int] = None
    client_name: Optional[str] = None
    barber_id: int
    barber_name: Optional[str] = None
    cashier_session_id: int
    appointment_id: Optional[int] = None
    services: list[ServiceLineResponse] = []
    products: list[ProductLineResponse] = []
    total_amount: float
    tip_amount: float
    payment_method: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
