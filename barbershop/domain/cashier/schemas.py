"""Cashier domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class CashierOpen(BaseModel):
    initialValue: float = 0

    @field_validator("initialValue")
    @classmethod
    def validate_initial_value(cls, v):
        if v is None:
            return 0
        if v < 0:
            raise ValueError("Initial value cannot be negative")
        return v


class ExpenseCreate(BaseModel):
    amount: float
    description: str

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Expense amount must be greater than 0")
        return v


class CashierClose(BaseModel):
    declaredValue: Optional[float] = None
    notes: Optional[str] = None


class TransactionResponse(BaseModel):
    id: int
    type: str
    amount: float
    description: Optional[str] = None
    payment_method: Optional[str] = None
    barber_id: Optional[int] = None
    order_id: Optional[int] = None
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True


class BarberStatResponse(BaseModel):
    barber_id: int
    barber_name: Optional[str] = None
    daily_revenue: float
    daily_tips: float
    service_count: int


class CashierSummary(BaseModel):
    cash: float
    card: float
    pix: float
    other: float
    expenses: float


class CashierResponse(BaseModel):
    """Schema for cashier session response"""

    id: int
    status: str
    opened_by_id: int
    opened_by_name: Optional[str] = None
    closed_by_id: Optional[int] = None
    closed_by_name: Optional[str] = None
    opened_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    initial_value: float
    expected_value: float
    final_value: Optional[float] = None
    declared_value: Optional[float] = None
    discrepancy: Optional[float] = None
    notes: Optional[str] = None
    summary: CashierSummary
    transactions: list[TransactionResponse] = []
    barber_stats: list[BarberStatResponse] = []


class CashierStatusResponse(BaseModel):
    isOpen: bool
    cashier: Optional[CashierResponse] = None
