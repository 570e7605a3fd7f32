"""Cut history schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class HistoryCreate(BaseModel):
    clientId: int
    description: Optional[str] = None
    observations: Optional[str] = None
    photos: list[str] = []
    orderId: Optional[int] = None
    date: Optional[datetime] = None


class HistoryResponse(BaseModel):
    id: int
    client_id: int
    client_name: Optional[str] = None
    barber_id: int
    barber_name: Optional[str] = None
    order_id: Optional[int] = None
    appointment_id: Optional[int] = None
    description: Optional[str] = None
    observations: Optional[str] = None
    photos: list[str] = []
    date: Optional[datetime] = None
