"""Order repository - Database operations for orders and stock reservation"""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, joinedload, selectinload

from ...models import (
    ORDER_OPEN,
    ORDER_UNSETTLED,
    Appointment,
    Order,
    OrderProductLine,
    OrderServiceLine,
    Product,
    Service,
    User,
)


class OrderRepository:
    """Repository for order database operations"""

    @staticmethod
    def _with_lines(query):
        return query.options(
            joinedload(Order.client),
            joinedload(Order.barber),
            selectinload(Order.services).joinedload(OrderServiceLine.service),
            selectinload(Order.products).joinedload(OrderProductLine.product),
        )

    @classmethod
    def get_by_id(cls, db: Session, order_id: int, lock: bool = False) -> Optional[Order]:
        """Order with its lines; lock=True holds the order row for the rest of the transaction"""
        query = cls._with_lines(db.query(Order)).filter(Order.id == order_id)
        if lock:
            query = query.with_for_update(of=Order).populate_existing()
        return query.first()

    @classmethod
    def list_orders(
        cls,
        db: Session,
        barber_id: Optional[int] = None,
        cashier_session_id: Optional[int] = None,
        status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Order]:
        query = cls._with_lines(db.query(Order))
        if barber_id is not None:
            query = query.filter(Order.barber_id == barber_id)
        if cashier_session_id is not None:
            query = query.filter(Order.cashier_session_id == cashier_session_id)
        if status:
            query = query.filter(Order.status == status)
        if start is not None:
            query = query.filter(Order.created_at >= start)
        if end is not None:
            query = query.filter(Order.created_at < end)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    @classmethod
    def get_unsettled_for_client(cls, db: Session, client_id: int) -> Optional[Order]:
        return (
            cls._with_lines(db.query(Order))
            .filter(Order.client_id == client_id, Order.status.in_(ORDER_UNSETTLED))
            .order_by(Order.created_at.desc(), Order.id.desc())
            .first()
        )

    @staticmethod
    def add(db: Session, **data) -> Order:
        order = Order(**data)
        db.add(order)
        db.flush()
        return order

    @staticmethod
    def transition(db: Session, order_id: int, from_statuses: tuple, **values) -> bool:
        """Conditional status change; False when the order already moved on"""
        result = db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status.in_(from_statuses))
            .values(**values)
        )
        return result.rowcount == 1

    @staticmethod
    def refresh_total(db: Session, order_id: int) -> bool:
        """Recompute total_amount from the stored lines while the order is still OPEN"""
        services_total = (
            select(func.coalesce(func.sum(OrderServiceLine.price), 0))
            .where(OrderServiceLine.order_id == order_id)
            .scalar_subquery()
        )
        products_total = (
            select(func.coalesce(func.sum(OrderProductLine.price * OrderProductLine.quantity), 0))
            .where(OrderProductLine.order_id == order_id)
            .scalar_subquery()
        )
        result = db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == ORDER_OPEN)
            .values(total_amount=services_total + products_total)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def delete_service_line(db: Session, order_id: int, line_id: int) -> bool:
        result = db.execute(
            delete(OrderServiceLine)
            .where(OrderServiceLine.id == line_id, OrderServiceLine.order_id == order_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def delete_product_line(db: Session, order_id: int, line_id: int):
        """Remove one product line; returns its (product_id, quantity), or None if already gone"""
        return db.execute(
            delete(OrderProductLine)
            .where(OrderProductLine.id == line_id, OrderProductLine.order_id == order_id)
            .returning(OrderProductLine.product_id, OrderProductLine.quantity)
            .execution_options(synchronize_session=False)
        ).first()

    @staticmethod
    def delete_lines(db: Session, order_id: int) -> list:
        """Drop every line of an order; returns (product_id, quantity) of the product lines removed"""
        db.execute(
            delete(OrderServiceLine)
            .where(OrderServiceLine.order_id == order_id)
            .execution_options(synchronize_session=False)
        )
        return db.execute(
            delete(OrderProductLine)
            .where(OrderProductLine.order_id == order_id)
            .returning(OrderProductLine.product_id, OrderProductLine.quantity)
            .execution_options(synchronize_session=False)
        ).all()

    @staticmethod
    def delete_if_status(db: Session, order_id: int, status: str) -> bool:
        """Delete the order row only while it is still in the status the caller saw"""
        result = db.execute(
            delete(Order)
            .where(Order.id == order_id, Order.status == status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def get_product_quantities(db: Session, order_id: int) -> list:
        """Current (product_id, quantity) of an order's product lines"""
        return db.execute(
            select(OrderProductLine.product_id, OrderProductLine.quantity).where(
                OrderProductLine.order_id == order_id
            )
        ).all()

    # Stock reservation) -------------------------------------------------

    @staticmethod
    def reserve_stock(db: Session, product_id: int, quantity: int) -> bool:
        """Move quantity from stock to reserved, only if enough stock remains"""
        result = db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity, reserved=Product.reserved + quantity)
        )
        return result.rowcount == 1

    @staticmethod
    def release_stock(db: Session, product_id: int, quantity: int) -> None:
        """Inverse of reserve_stock"""
        db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock + quantity, reserved=Product.reserved - quantity)
        )

    @staticmethod
    def consume_reserved(db: Session, product_id: int, quantity: int) -> None:
        """A settled sale keeps the stock decrement and drops the reservation"""
        db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(reserved=Product.reserved - quantity)
        )

    # Lookups -----------------------------------------------------------

    @staticmethod
    def get_product(db: Session, product_id: int) -> Optional[Product]:
        return db.query(Product).filter(Product.id == product_id).first()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.service))
            .filter(Appointment.id == appointment_id)
            .first()
        )
