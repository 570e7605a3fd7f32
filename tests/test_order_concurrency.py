"""Interleaved order mutations across two database sessions"""

from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from barbershop.database import Base
from barbershop.domain.cashier.service import CashierService
from barbershop.domain.orders.schemas import OrderClose, OrderCreate, OrderItemAdd, OrderLineInput
from barbershop.domain.orders.service import OrderService
from barbershop.errors import ConflictError, NotFoundError
from barbershop.models import ROLE_ADMIN, ROLE_BARBER, Order, Product, User


@pytest.fixture
def file_db(tmp_path):
    """Sessions on a shared file database, each with its own connection"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'shop.db'}", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture
def open_order(file_db):
    """An OPEN order holding two reserved units of a product with stock 5"""
    with file_db() as seed:
        owner = User(name="Admin", email="admin@example.com", role=ROLE_ADMIN)
        barber = User(name="John", email="john@example.com", role=ROLE_BARBER)
        product = Product(
            name="Pomada", price=30.0, stock=5, reserved=0, category="Finalizadores", is_active=True
        )
        seed.add_all([owner, barber, product])
        seed.commit()

        admin = SimpleNamespace(id=owner.id, role=ROLE_ADMIN)
        CashierService(seed).open_session(0, admin)
        order = OrderService(seed).create_order(
            OrderCreate(
                barberId=barber.id, products=[OrderLineInput(itemId=product.id, quantity=2)]
            ),
            admin,
        )
        return SimpleNamespace(
            admin=admin,
            order_id=order.id,
            line_id=order.products[0].id,
            product_id=product.id,
        )


def after_read(monkeypatch, session, action):
    """Run action once, right after the given session has loaded the order"""
    original = OrderService.get_order
    pending = [action]

    def get_order(self, order_id, user=None, lock=False):
        order = original(self, order_id, user, lock)
        if self.db is session and pending:
            pending.pop()()
        return order

    monkeypatch.setattr(OrderService, "get_order", get_order)


def stored(file_db, open_order):
    with file_db() as check:
        product = check.get(Product, open_order.product_id)
        order = check.get(Order, open_order.order_id)
        return SimpleNamespace(
            stock=product.stock,
            reserved=product.reserved,
            status=order.status if order else None,
            total=order.total_amount if order else None,
            lines=len(order.products) if order else 0,
        )


def test_interleaved_removes_release_stock_once(file_db, open_order, monkeypatch):
    with file_db() as first, file_db() as second:
        after_read(
            monkeypatch,
            second,
            lambda: OrderService(first).remove_item(
                open_order.order_id, open_order.line_id, "PRODUCT", open_order.admin
            ),
        )

        with pytest.raises(NotFoundError):
            OrderService(second).remove_item(
                open_order.order_id, open_order.line_id, "PRODUCT", open_order.admin
            )

    state = stored(file_db, open_order)
    assert (state.stock, state.reserved) == (5, 0)
    assert state.total == 0
    assert state.lines == 0


def test_add_item_after_concurrent_close_is_rejected(file_db, open_order, monkeypatch):
    with file_db() as first, file_db() as second:
        after_read(
            monkeypatch,
            second,
            lambda: OrderService(first).close(
                open_order.order_id, OrderClose(paymentMethod="CASH"), open_order.admin
            ),
        )

        with pytest.raises(ConflictError) as exc_info:
            OrderService(second).add_item(
                open_order.order_id,
                OrderItemAdd(type="PRODUCT", itemId=open_order.product_id, quantity=1),
                open_order.admin,
            )

    assert exc_info.value.code == "order_not_open"
    state = stored(file_db, open_order)
    assert (state.stock, state.reserved) == (3, 0)
    assert state.status == "CLOSED"
    assert state.total == 60
    assert state.lines == 1


def test_remove_item_after_concurrent_close_is_rejected(file_db, open_order, monkeypatch):
    with file_db() as first, file_db() as second:
        after_read(
            monkeypatch,
            second,
            lambda: OrderService(first).close(
                open_order.order_id, OrderClose(paymentMethod="PIX"), open_order.admin
            ),
        )

        with pytest.raises(ConflictError):
            OrderService(second).remove_item(
                open_order.order_id, open_order.line_id, "PRODUCT", open_order.admin
            )

    state = stored(file_db, open_order)
    assert (state.stock, state.reserved) == (3, 0)
    assert state.total == 60
    assert state.lines == 1


def test_delete_after_concurrent_close_keeps_the_sale(file_db, open_order, monkeypatch):
    with file_db() as first, file_db() as second:
        after_read(
            monkeypatch,
            second,
            lambda: OrderService(first).close(
                open_order.order_id, OrderClose(paymentMethod="CARD"), open_order.admin
            ),
        )

        with pytest.raises(ConflictError):
            OrderService(second).delete(open_order.order_id, open_order.admin)

    state = stored(file_db, open_order)
    assert (state.stock, state.reserved) == (3, 0)
    assert state.status == "CLOSED"
    assert state.lines == 1
