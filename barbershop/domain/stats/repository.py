"""Stats repository - Aggregate queries over closed orders and appointments"""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_PENDING,
    ORDER_CLOSED,
    Appointment,
    Order,
    OrderProductLine,
    Product,
    User,
)


class StatsRepository:
    @staticmethod
    def closed_revenue(db: Session, start: datetime, end: datetime) -> tuple[float, int]:
        total, count = (
            db.query(func.coalesce(func.sum(Order.total_amount), 0), func.count(Order.id))
            .filter(Order.status == ORDER_CLOSED, Order.closed_at >= start, Order.closed_at < end)
            .one()
        )
        return float(total or 0), int(count or 0)

    @staticmethod
    def count_upcoming_appointments(db: Session, since: datetime) -> int:
        return (
            db.query(func.count(Appointment.id))
            .filter(Appointment.date >= since, Appointment.status != APPOINTMENT_CANCELLED)
            .scalar()
            or 0
        )

    @staticmethod
    def next_pending_appointments(db: Session, since: datetime, limit: int = 5) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(
                joinedload(Appointment.client),
                joinedload(Appointment.barber),
                joinedload(Appointment.service),
            )
            .filter(Appointment.date >= since, Appointment.status == APPOINTMENT_PENDING)
            .order_by(Appointment.date.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def count_users(db: Session, role: str) -> int:
        return db.query(func.count(User.id)).filter(User.role == role).scalar() or 0

    @staticmethod
    def recent_closed_orders(db: Session, limit: int = 5) -> list[Order]:
        return (
            db.query(Order)
            .options(joinedload(Order.client))
            .filter(Order.status == ORDER_CLOSED)
            .order_by(Order.closed_at.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def barber_performance(db: Session, start: datetime) -> list:
        revenue = func.sum(Order.total_amount)
        return (
            db.query(
                User.id,
                User.name,
                revenue.label("revenue"),
                func.count(Order.id).label("order_count"),
            )
            .select_from(Order)
            .join(User, User.id == Order.barber_id)
            .filter(Order.status == ORDER_CLOSED, Order.closed_at >= start)
            .group_by(User.id, User.name)
            .order_by(revenue.desc())
            .all()
        )

    @staticmethod
    def product_breakdown(db: Session, start: datetime) -> list:
        """Product revenue by category, from the sold price snapshots"""
        return (
            db.query(
                Product.category,
                func.sum(OrderProductLine.price * OrderProductLine.quantity).label("revenue"),
            )
            .select_from(OrderProductLine)
            .join(Order, Order.id == OrderProductLine.order_id)
            .join(Product, Product.id == OrderProductLine.product_id)
            .filter(Order.status == ORDER_CLOSED, Order.closed_at >= start)
            .group_by(Product.category)
            .all()
        )
