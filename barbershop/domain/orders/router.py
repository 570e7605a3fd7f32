"""Order router - FastAPI endpoints for comandas"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...database import get_db
from ...models import ROLE_ADMIN, ROLE_BARBER, ROLE_CLIENT, User
from .schemas import OrderClose, OrderCreate, OrderItemAdd, OrderResponse
from .service import OrderService, order_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency injection for OrderService"""
    return OrderService(db)


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    cashierId: Optional[int] = Query(None),
    barberId: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    startDate: Optional[str] = Query(None, description="YYYY-MM-DD"),
    endDate: Optional[str] = Query(None, description="YYYY-MM-DD"),
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_BARBER)),
    service: OrderService = Depends(get_order_service),
):
    """List orders; barbers only see their own"""
    orders = service.list_orders(
        current_user,
        cashier_id=cashierId,
        barber_id=barberId,
        status=status,
        start_date=startDate,
        end_date=endDate,
    )
    return [order_to_response(o) for o in orders]


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    data: OrderCreate,
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_BARBER)),
    service: OrderService = Depends(get_order_service),
):
    """Open a comanda on the current cashier session"""
    return order_to_response(service.create_order(data, current_user))


@router.get("/my-open", response_model=Optional[OrderResponse])
async def get_my_open_order(
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    """The caller's unsettled comanda, or null"""
    order = service.get_my_open_order(current_user)
    return order_to_response(order) if order else None


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return order_to_response(service.get_order(order_id, current_user))


@router.post("/{order_id}/items", response_model=OrderResponse)
async def add_order_item(
    order_id: int,
    data: OrderItemAdd,
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_BARBER, ROLE_CLIENT)),
    service: OrderService = Depends(get_order_service),
):
    """Add a service or product line; product lines reserve stock"""
    return order_to_response(service.add_item(order_id, data, current_user))


@router.delete("/{order_id}/items/{line_id}", response_model=OrderResponse)
async def remove_order_item(
    order_id: int,
    line_id: int,
    type: Optional[str] = Query(None, description="SERVICE or PRODUCT"),
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_BARBER)),
    service: OrderService = Depends(get_order_service),
):
    """Remove a line; product lines release their reserved stock"""
    return order_to_response(service.remove_item(order_id, line_id, type, current_user))


@router.put("/{order_id}/pre-close", response_model=OrderResponse)
async def pre_close_order(
    order_id: int,
    current_user: User = Depends(require_roles(ROLE_BARBER)),
    service: OrderService = Depends(get_order_service),
):
    """Mark the comanda ready for payment"""
    return order_to_response(service.pre_close(order_id, current_user))


@router.put("/{order_id}/close", response_model=OrderResponse)
async def close_order(
    order_id: int,
    data: OrderClose,
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    service: OrderService = Depends(get_order_service),
):
    """Settle the comanda into the open cashier session"""
    return order_to_response(service.close(order_id, data, current_user))


@router.delete("/{order_id}")
async def delete_order(
    order_id: int,
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_BARBER)),
    service: OrderService = Depends(get_order_service),
):
    return service.delete(order_id, current_user)
