"""Order service - Comanda lifecycle, line mutation and settlement"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ... import timeutils
from ...database import commit_or_raise
from ...errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ...models import (
    ORDER_CLOSED,
    ORDER_OPEN,
    ORDER_READY_FOR_PAYMENT,
    ORDER_UNSETTLED,
    PAYMENT_OTHER,
    ROLE_ADMIN,
    ROLE_BARBER,
    ROLE_CLIENT,
    STAFF_ROLES,
    Order,
    OrderProductLine,
    OrderServiceLine,
    User,
)
from ..appointments.service import AppointmentService
from ..cashier.service import CashierService
from .repository import OrderRepository
from .schemas import ITEM_PRODUCT, ITEM_SERVICE, OrderClose, OrderCreate, OrderItemAdd

logger = logging.getLogger(__name__)


def compute_total(order: Order) -> float:
    services_total = sum(line.price for line in order.services)
    products_total = sum(line.price * line.quantity for line in order.products)
    return services_total + products_total


class OrderService:
    """Service layer for orders (comandas)"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepository()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: int, user: Optional[User] = None, lock: bool = False) -> Order:
        order = self.repo.get_by_id(self.db, order_id, lock=lock)
        if not order:
            raise NotFoundError("Order not found")
        if user is not None and user.role == ROLE_CLIENT and order.client_id != user.id:
            raise AuthorizationError("Not authorized to view this order")
        return order

    def list_orders(
        self,
        user: User,
        cashier_id: Optional[int] = None,
        barber_id: Optional[int] = None,
        status: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> list[Order]:
        if user.role == ROLE_BARBER:
            barber_id = user.id

        start = end = None
        if start_date:
            start, _ = timeutils.day_bounds(timeutils.parse_day(start_date))
        if end_date:
            _, end = timeutils.day_bounds(timeutils.parse_day(end_date))

        return self.repo.list_orders(
            self.db,
            barber_id=barber_id,
            cashier_session_id=cashier_id,
            status=status.upper() if status else None,
            start=start,
            end=end,
        )

    def get_my_open_order(self, user: User) -> Optional[Order]:
        return self.repo.get_unsettled_for_client(self.db, user.id)

    # ------------------------------------------------------------------
    # Creation and line mutation
    # ------------------------------------------------------------------

    def create_order(self, data: OrderCreate, user: User) -> Order:
        session = CashierService(self.db).require_open_session()

        barber_id = user.id if user.role == ROLE_BARBER else data.barberId
        if not barber_id:
            raise ValidationError("Barber is required", code="missing_field")
        barber = self.repo.get_user(self.db, barber_id)
        if not barber or barber.role not in STAFF_ROLES:
            raise NotFoundError("Barber not found")

        if data.clientId is not None and not self.repo.get_user(self.db, data.clientId):
            raise NotFoundError("Client not found")
        if data.appointmentId is not None and not self.repo.get_appointment(
            self.db, data.appointmentId
        ):
            raise NotFoundError("Appointment not found")

        order = self.repo.add(
            self.db,
            client_id=data.clientId,
            barber_id=barber_id,
            cashier_session_id=session.id,
            appointment_id=data.appointmentId,
            tip_amount=data.tipAmount or 0,
            total_amount=0,
            status=ORDER_OPEN,
        )

        try:
            for line in data.services:
                self._add_service_line(order, line.itemId, line.price)
            for line in data.products:
                self._add_product_line(order, line.itemId, line.price, line.quantity)
        except Exception:
            # Undo the order row and any stock already reserved
            self.db.rollback()
            raise

        order.total_amount = compute_total(order)
        commit_or_raise(self.db)

        logger.info(
            f"📝 Order {order.id} opened by user {user.id} ({user.role}) "
            f"for barber {barber_id} on cashier {session.id}"
        )
        return self.get_order(order.id)

    def _require_open(self, order: Order) -> None:
        if order.status != ORDER_OPEN:
            raise ConflictError("Order is no longer open", code="order_not_open")

    def _add_service_line(self, order: Order, service_id: int, price: Optional[float]) -> None:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFoundError("Service not found")
        order.services.append(
            OrderServiceLine(
                service_id=service.id,
                price=price if price is not None else service.price,
                added_at=timeutils.shop_now(),
            )
        )

    def _add_product_line(
        self, order: Order, product_id: int, price: Optional[float], quantity: int
    ) -> None:
        product = self.repo.get_product(self.db, product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product not found")
        if not self.repo.reserve_stock(self.db, product.id, quantity):
            raise ConflictError(
                f"Insufficient stock for {product.name}",
                code="insufficient_stock",
                context={"productId": product.id, "requested": quantity},
            )
        order.products.append(
            OrderProductLine(
                product_id=product.id,
                quantity=quantity,
                price=price if price is not None else product.price,
                added_at=timeutils.shop_now(),
            )
        )
        logger.info(f"📉 Stock reserved: -{quantity} for product {product.id} on order {order.id}")

    def add_item(self, order_id: int, data: OrderItemAdd, user: User) -> Order:
        order = self.get_order(order_id, lock=True)

        if user.role == ROLE_CLIENT:
            if order.client_id != user.id:
                raise AuthorizationError("Not authorized to change this order")
            if data.type != ITEM_PRODUCT:
                raise AuthorizationError("Clients can only add products")
        self._require_open(order)

        try:
            if data.type == ITEM_SERVICE:
                self._add_service_line(order, data.itemId, data.price)
            else:
                self._add_product_line(order, data.itemId, data.price, data.quantity)
            self.db.flush()
        except Exception:
            self.db.rollback()
            raise

        self._refresh_total_or_abort(order.id)
        commit_or_raise(self.db)
        return self.get_order(order.id)

    def remove_item(self, order_id: int, line_id: int, item_type: Optional[str], user: User) -> Order:
        order = self.get_order(order_id, lock=True)
        if user.role == ROLE_BARBER and order.barber_id != user.id:
            raise AuthorizationError("Not authorized to change this order")
        self._require_open(order)

        item_type = (item_type or "").upper()
        if item_type == ITEM_SERVICE:
            if not self.repo.delete_service_line(self.db, order.id, line_id):
                self.db.rollback()
                raise NotFoundError("Order line not found")
        elif item_type == ITEM_PRODUCT:
            # Only the request that actually deleted the line gives its stock back
            removed = self.repo.delete_product_line(self.db, order.id, line_id)
            if removed is None:
                self.db.rollback()
                raise NotFoundError("Order line not found")
            product_id, quantity = removed
            self.repo.release_stock(self.db, product_id, quantity)
            logger.info(f"📈 Stock released: +{quantity} for product {product_id} on order {order.id}")
        else:
            raise ValidationError("type must be SERVICE or PRODUCT", code="invalid_item")

        self._refresh_total_or_abort(order.id)
        commit_or_raise(self.db)
        return self.get_order(order.id)

    def _refresh_total_or_abort(self, order_id: int) -> None:
        """Re-derive the total; undo the pending line change if the order left OPEN meanwhile"""
        if not self.repo.refresh_total(self.db, order_id):
            self.db.rollback()
            raise ConflictError("Order is no longer open", code="order_not_open")

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def pre_close(self, order_id: int, user: User) -> Order:
        order = self.get_order(order_id)
        if order.barber_id != user.id:
            raise AuthorizationError("Only the barber who opened the order can pre-close it")

        if not self.repo.transition(
            self.db, order.id, (ORDER_OPEN,), status=ORDER_READY_FOR_PAYMENT
        ):
            self.db.rollback()
            raise ConflictError("Order is no longer open", code="order_not_open")

        commit_or_raise(self.db)
        logger.info(f"🧾 Order {order.id} ready for payment")
        return self.get_order(order.id)

    def close(self, order_id: int, data: OrderClose, user: User) -> Order:
        """
        Settle an order into the open cashier session.

        The order transition, ledger entries, stock conversion and the linked
        appointment's completion all commit together or not at all.
        """
        order = self.get_order(order_id, lock=True)
        if order.status == ORDER_CLOSED:
            raise ConflictError("Order is already closed", code="order_already_closed")

        cashier = CashierService(self.db)
        session = cashier.require_open_session(lock=True)

        payment_method = (data.paymentMethod or PAYMENT_OTHER).upper()
        values = {
            "status": ORDER_CLOSED,
            "closed_at": timeutils.shop_now(),
            "payment_method": payment_method,
            "cashier_session_id": session.id,
        }
        if data.tipAmount is not None:
            values["tip_amount"] = data.tipAmount

        if not self.repo.transition(self.db, order.id, ORDER_UNSETTLED, **values):
            self.db.rollback()
            raise ConflictError("Order is already closed", code="order_already_closed")
        self.db.refresh(order)

        try:
            cashier.settle_order(order, payment_method, data.tipAmount)
            # Lines as stored now, not as loaded before the transition
            for product_id, quantity in self.repo.get_product_quantities(self.db, order.id):
                self.repo.consume_reserved(self.db, product_id, quantity)
            if order.appointment_id:
                appointments = AppointmentService(self.db)
                appointment = self.repo.get_appointment(self.db, order.appointment_id)
                if appointment:
                    appointments.mark_completed(appointment, order_id=order.id)
        except Exception:
            self.db.rollback()
            raise

        try:
            commit_or_raise(self.db)
        except IntegrityError:
            # Linked appointment revived onto a slot that was rebooked meanwhile
            raise ConflictError("Time slot already taken", code="slot_taken") from None
        logger.info(
            f"✅ Order {order.id} closed by user {user.id}: "
            f"{order.total_amount:.2f} + tip {order.tip_amount:.2f} via {payment_method}"
        )
        return self.get_order(order.id)

    def delete(self, order_id: int, user: User) -> dict:
        order = self.get_order(order_id, lock=True)

        if user.role != ROLE_ADMIN:
            if user.role != ROLE_BARBER or order.barber_id != user.id:
                raise AuthorizationError("Not authorized to delete this order")
            if order.status != ORDER_OPEN:
                raise ConflictError("Only open orders can be deleted", code="order_not_open")

        status = order.status
        product_lines = self.repo.delete_lines(self.db, order.id)
        if not self.repo.delete_if_status(self.db, order.id, status):
            # Settled or otherwise changed since it was read
            self.db.rollback()
            raise ConflictError("Order changed while being deleted", code="order_not_open")

        if status in ORDER_UNSETTLED:
            for product_id, quantity in product_lines:
                self.repo.release_stock(self.db, product_id, quantity)
            logger.info(f"♻️ Stock released for all products in deleted order {order.id}")

        commit_or_raise(self.db)
        logger.info(f"🗑️ Order {order_id} removed by user {user.id}")
        return {"message": "Order removed and stock handled"}


def order_to_response(order: Order) -> dict:
    return {
        "id": order.id,
        "client_id": order.client_id,
        "client_name": order.client.name if order.client else None,
        "barber_id": order.barber_id,
        "barber_name": order.barber.name if order.barber else None,
        "cashier_session_id": order.cashier_session_id,
        "appointment_id": order.appointment_id,
        "services": [
            {
                "id": line.id,
                "service_id": line.service_id,
                "service_name": line.service.name if line.service else None,
                "price": line.price,
                "added_at": line.added_at,
            }
            for line in order.services
        ],
        "products": [
            {
                "id": line.id,
                "product_id": line.product_id,
                "product_name": line.product.name if line.product else None,
                "price": line.price,
                "quantity": line.quantity,
                "added_at": line.added_at,
            }
            for line in order.products
        ],
        "total_amount": order.total_amount or 0,
        "tip_amount": order.tip_amount or 0,
        "payment_method": order.payment_method,
        "status": order.status,
        "created_at": order.created_at,
        "closed_at": order.closed_at,
    }
