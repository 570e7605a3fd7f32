"""Cashier router - FastAPI endpoints for the daily register"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...database import get_db
from ...models import ROLE_ADMIN, User
from .schemas import CashierClose, CashierOpen, CashierResponse, CashierStatusResponse, ExpenseCreate
from .service import CashierService, cashier_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cashier", tags=["Cashier"])


def get_cashier_service(db: Session = Depends(get_db)) -> CashierService:
    """Dependency injection for CashierService"""
    return CashierService(db)


@router.post("/open", response_model=CashierResponse)
async def open_cashier(
    data: CashierOpen,
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    service: CashierService = Depends(get_cashier_service),
):
    """Open the cashier with an initial cash float"""
    return cashier_to_response(service.open_session(data.initialValue, current_user))


@router.post("/expense", response_model=CashierResponse)
async def add_expense(
    data: ExpenseCreate,
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    service: CashierService = Depends(get_cashier_service),
):
    """Record an expense on the open cashier"""
    session = service.record_expense(data.amount, data.description, current_user)
    return cashier_to_response(session)


@router.post("/close", response_model=CashierResponse)
async def close_cashier(
    data: CashierClose,
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    service: CashierService = Depends(get_cashier_service),
):
    """Close the cashier; returns expected value and declared-vs-expected discrepancy"""
    session = service.close_session(data.declaredValue, data.notes, current_user)
    return cashier_to_response(session)


@router.get("/status", response_model=CashierStatusResponse)
async def get_cashier_status(
    current_user: User = Depends(get_current_user),
    service: CashierService = Depends(get_cashier_service),
):
    """Whether a cashier is open, with its ledger and barber stats"""
    session = service.get_status()
    return {"isOpen": session is not None, "cashier": cashier_to_response(session) if session else None}


@router.get("/history", response_model=list[CashierResponse])
async def get_cashier_history(
    date: Optional[str] = Query(None, description="Filter by close date, YYYY-MM-DD"),
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    service: CashierService = Depends(get_cashier_service),
):
    """Closed sessions, most recent first"""
    return [cashier_to_response(s, include_ledger=False) for s in service.get_history(date)]


@router.get("/{session_id}", response_model=CashierResponse)
async def get_cashier_session(
    session_id: int,
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    service: CashierService = Depends(get_cashier_service),
):
    return cashier_to_response(service.get_session(session_id))
