from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Roles
ROLE_ADMIN = "ADMIN"
ROLE_BARBER = "BARBEIRO"
ROLE_CLIENT = "CLIENTE"
STAFF_ROLES = (ROLE_ADMIN, ROLE_BARBER)

# Appointment statuses
APPOINTMENT_PENDING = "PENDING"
APPOINTMENT_CONFIRMED = "CONFIRMED"
APPOINTMENT_CANCELLED = "CANCELLED"
APPOINTMENT_COMPLETED = "COMPLETED"
APPOINTMENT_STATUSES = (
    APPOINTMENT_PENDING,
    APPOINTMENT_CONFIRMED,
    APPOINTMENT_CANCELLED,
    APPOINTMENT_COMPLETED,
)

# Cashier
SESSION_OPEN = "OPEN"
SESSION_CLOSED = "CLOSED"
TRANSACTION_IN = "IN"
TRANSACTION_OUT = "OUT"
PAYMENT_CASH = "CASH"
PAYMENT_CARD = "CARD"
PAYMENT_PIX = "PIX"
PAYMENT_EXPENSE = "EXPENSE"
PAYMENT_OTHER = "OUTRO"

# Orders
ORDER_OPEN = "OPEN"
ORDER_READY_FOR_PAYMENT = "READY_FOR_PAYMENT"
ORDER_CLOSED = "CLOSED"
ORDER_UNSETTLED = (ORDER_OPEN, ORDER_READY_FOR_PAYMENT)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(String(20), default=ROLE_CLIENT, nullable=False)  # ADMIN, BARBEIRO, CLIENTE
    phone = Column(String(50), nullable=True)
    avatar = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    category = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    category = Column(String(100), nullable=False)
    stock = Column(Integer, default=0, nullable=False)  # Units available for sale
    reserved = Column(Integer, default=0, nullable=False)  # Units held by unsettled orders
    is_active = Column(Boolean, default=True, nullable=False)


class ShopSettings(Base):
    __tablename__ = "shop_settings"

    id = Column(Integer, primary_key=True, index=True)
    shop_name = Column(String(255), default="Studio John Pool")
    # Authoritative hours: 7 entries, day 0 = Sunday
    weekly_schedule = Column(JSON, nullable=True)
    # Legacy hours, migrated into weekly_schedule on load
    business_hours = Column(JSON, nullable=True)
    saturday_hours = Column(JSON, nullable=True)
    working_days = Column(JSON, nullable=True)
    slot_duration = Column(Integer, default=30, nullable=False)  # minutes
    closed_days = Column(JSON, default=list, nullable=True)  # ["YYYY-MM-DD", ...]
    cancellation_window = Column(Float, default=2, nullable=False)  # hours
    address = Column(String(500), nullable=True)
    maps_url = Column(String(500), nullable=True)
    social_links = Column(JSON, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # No two live appointments for the same barber at the same instant
        Index(
            "uq_appointments_barber_slot",
            "barber_id",
            "date",
            unique=True,
            sqlite_where=text("status <> 'CANCELLED'"),
            postgresql_where=text("status <> 'CANCELLED'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    barber_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    date = Column(DateTime, nullable=False, index=True)  # Naive shop-local time
    status = Column(String(20), default=APPOINTMENT_PENDING, nullable=False)
    notes = Column(Text, nullable=True)
    with_ai = Column(Boolean, default=False, nullable=False)
    notified = Column(Boolean, default=False, nullable=False)  # Reminder already dispatched
    created_at = Column(DateTime, server_default=func.now())

    client = relationship("User", foreign_keys=[client_id])
    barber = relationship("User", foreign_keys=[barber_id])
    service = relationship("Service")


class CutHistory(Base):
    __tablename__ = "cut_history"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    barber_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    appointment_id = Column(
        Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True
    )
    description = Column(String(500), nullable=True)
    observations = Column(Text, nullable=True)
    photos = Column(JSON, default=list, nullable=True)
    date = Column(DateTime, server_default=func.now())

    client = relationship("User", foreign_keys=[client_id])
    barber = relationship("User", foreign_keys=[barber_id])


class CashierSession(Base):
    __tablename__ = "cashier_sessions"
    __table_args__ = (
        # At most one OPEN session system-wide
        Index(
            "uq_cashier_sessions_single_open",
            "status",
            unique=True,
            sqlite_where=text("status = 'OPEN'"),
            postgresql_where=text("status = 'OPEN'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    opened_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    closed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    opened_at = Column(DateTime, server_default=func.now())
    closed_at = Column(DateTime, nullable=True)
    initial_value = Column(Float, default=0, nullable=False)
    final_value = Column(Float, nullable=True)  # Expected value computed at close
    declared_value = Column(Float, nullable=True)  # Counted by staff at close
    notes = Column(Text, nullable=True)
    status = Column(String(10), default=SESSION_OPEN, nullable=False)

    summary_cash = Column(Float, default=0, nullable=False)
    summary_card = Column(Float, default=0, nullable=False)
    summary_pix = Column(Float, default=0, nullable=False)
    summary_other = Column(Float, default=0, nullable=False)
    summary_expenses = Column(Float, default=0, nullable=False)

    opened_by = relationship("User", foreign_keys=[opened_by_id])
    closed_by = relationship("User", foreign_keys=[closed_by_id])
    transactions = relationship(
        "CashierTransaction",
        back_populates="session",
        order_by="CashierTransaction.id",
        cascade="all, delete-orphan",
    )
    barber_stats = relationship(
        "BarberDailyStat",
        back_populates="session",
        order_by="BarberDailyStat.id",
        cascade="all, delete-orphan",
    )

    @property
    def expected_value(self) -> float:
        revenue = (self.summary_cash or 0) + (self.summary_card or 0) + (self.summary_pix or 0)
        return (self.initial_value or 0) + revenue - (self.summary_expenses or 0)

    @property
    def discrepancy(self):
        if self.declared_value is None or self.final_value is None:
            return None
        return self.declared_value - self.final_value


class CashierTransaction(Base):
    __tablename__ = "cashier_transactions"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        Integer, ForeignKey("cashier_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type = Column(String(3), nullable=False)  # IN, OUT
    amount = Column(Float, nullable=False)
    description = Column(String(500), nullable=True)
    payment_method = Column(String(20), nullable=True)
    barber_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    timestamp = Column(DateTime, server_default=func.now())

    session = relationship("CashierSession", back_populates="transactions")
    barber = relationship("User")


class BarberDailyStat(Base):
    __tablename__ = "barber_daily_stats"
    __table_args__ = (UniqueConstraint("session_id", "barber_id", name="uq_barber_stat_session"),)

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        Integer, ForeignKey("cashier_sessions.id", ondelete="CASCADE"), nullable=False
    )
    barber_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    daily_revenue = Column(Float, default=0, nullable=False)
    daily_tips = Column(Float, default=0, nullable=False)
    service_count = Column(Integer, default=0, nullable=False)

    session = relationship("CashierSession", back_populates="barber_stats")
    barber = relationship("User")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # Walk-ins allowed
    barber_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    cashier_session_id = Column(Integer, ForeignKey("cashier_sessions.id"), nullable=False)
    appointment_id = Column(
        Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True
    )
    total_amount = Column(Float, default=0, nullable=False)  # Derived from lines
    tip_amount = Column(Float, default=0, nullable=False)
    payment_method = Column(String(20), nullable=True)
    status = Column(String(20), default=ORDER_OPEN, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    closed_at = Column(DateTime, nullable=True)

    client = relationship("User", foreign_keys=[client_id])
    barber = relationship("User", foreign_keys=[barber_id])
    appointment = relationship("Appointment")
    services = relationship(
        "OrderServiceLine",
        back_populates="order",
        order_by="OrderServiceLine.id",
        cascade="all, delete-orphan",
    )
    products = relationship(
        "OrderProductLine",
        back_populates="order",
        order_by="OrderProductLine.id",
        cascade="all, delete-orphan",
    )


class OrderServiceLine(Base):
    __tablename__ = "order_service_lines"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    price = Column(Float, nullable=False)  # Price snapshot
    added_at = Column(DateTime, server_default=func.now())

    order = relationship("Order", back_populates="services")
    service = relationship("Service")


class OrderProductLine(Base):
    __tablename__ = "order_product_lines"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    price = Column(Float, nullable=False)  # Unit price snapshot
    added_at = Column(DateTime, server_default=func.now())

    order = relationship("Order", back_populates="products")
    product = relationship("Product")
