"""Cashier service - Daily register session, expenses, settlement and close"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ... import timeutils
from ...database import commit_or_raise
from ...errors import ConflictError, NotFoundError
from ...models import (
    PAYMENT_CARD,
    PAYMENT_CASH,
    PAYMENT_EXPENSE,
    PAYMENT_PIX,
    SESSION_OPEN,
    TRANSACTION_IN,
    TRANSACTION_OUT,
    CashierSession,
    Order,
    User,
)
from .repository import CashierRepository

logger = logging.getLogger(__name__)

SUMMARY_BUCKETS = {
    PAYMENT_CASH: "summary_cash",
    PAYMENT_CARD: "summary_card",
    PAYMENT_PIX: "summary_pix",
}
OTHER_BUCKET = "summary_other"


def summary_bucket(payment_method: Optional[str]) -> str:
    """Summary column a payment method accumulates into"""
    return SUMMARY_BUCKETS.get((payment_method or "").upper(), OTHER_BUCKET)


class CashierService:
    """Service layer for the cashier ledger"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CashierRepository()

    def require_open_session(self, lock: bool = False) -> CashierSession:
        session = self.repo.get_open_session(self.db, lock=lock)
        if not session:
            raise ConflictError("No open cashier found", code="no_open_session")
        return session

    def open_session(self, initial_value: float, user: User) -> CashierSession:
        if self.repo.get_open_session(self.db):
            raise ConflictError("Cashier is already open", code="session_already_open")

        try:
            session = self.repo.create_session(
                self.db,
                opened_by_id=user.id,
                opened_at=timeutils.shop_now(),
                initial_value=initial_value or 0,
                status=SESSION_OPEN,
                summary_cash=0,
                summary_card=0,
                summary_pix=0,
                summary_other=0,
                summary_expenses=0,
            )
            commit_or_raise(self.db)
        except IntegrityError:
            # Another admin opened a session between our check and insert
            self.db.rollback()
            logger.warning(f"⚠️ Concurrent cashier open rejected for user {user.id}")
            raise ConflictError("Cashier is already open", code="session_already_open") from None

        self.db.refresh(session)
        logger.info(f"💰 Cashier {session.id} opened by user {user.id} with {session.initial_value:.2f}")
        return session

    def record_expense(self, amount: float, description: str, user: User) -> CashierSession:
        session = self.require_open_session()

        self.repo.add_transaction(
            self.db,
            session.id,
            type=TRANSACTION_OUT,
            amount=amount,
            description=description,
            payment_method=PAYMENT_EXPENSE,
            timestamp=timeutils.shop_now(),
        )
        if not self.repo.increment_summary(self.db, session.id, "summary_expenses", amount):
            self.db.rollback()
            raise ConflictError("No open cashier found", code="no_open_session")

        commit_or_raise(self.db)
        self.db.refresh(session)
        logger.info(f"💸 Expense {amount:.2f} recorded on cashier {session.id} by user {user.id}")
        return session

    def settle_order(
        self, order: Order, payment_method: str, tip_amount: Optional[float] = None
    ) -> CashierSession:
        """
        Post a closed order into the OPEN session: one IN transaction, the
        payment-method summary bucket and the barber's daily stats.
        Staged only; the order service commits it with the order close.
        """
        session = self.require_open_session(lock=True)

        tip = tip_amount if tip_amount is not None else (order.tip_amount or 0)
        total_with_tip = (order.total_amount or 0) + tip
        client_name = order.client.name if order.client else "Cliente"

        self.repo.add_transaction(
            self.db,
            session.id,
            type=TRANSACTION_IN,
            amount=total_with_tip,
            description=f"Pedido #{order.id:04d}{' + Gorjeta' if tip > 0 else ''} - {client_name}",
            payment_method=payment_method,
            barber_id=order.barber_id,
            order_id=order.id,
            timestamp=timeutils.shop_now(),
        )
        self.repo.increment_summary(self.db, session.id, summary_bucket(payment_method), total_with_tip)
        self.repo.add_barber_stats(
            self.db, session.id, order.barber_id, order.total_amount or 0, tip
        )

        logger.info(
            f"🧾 Order {order.id} settled into cashier {session.id}: "
            f"{total_with_tip:.2f} via {payment_method}"
        )
        return session

    def close_session(
        self, declared_value: Optional[float], notes: Optional[str], user: User
    ) -> CashierSession:
        """Freeze the expected total; the declared-vs-expected delta is only reported"""
        session = self.require_open_session(lock=True)

        expected = session.expected_value
        closed = self.repo.close_session(
            self.db,
            session.id,
            closed_at=timeutils.shop_now(),
            closed_by_id=user.id,
            final_value=expected,
            declared_value=declared_value,
            notes=notes,
        )
        if not closed:
            self.db.rollback()
            raise ConflictError("No open cashier found", code="no_open_session")

        commit_or_raise(self.db)
        self.db.refresh(session)

        if session.discrepancy:
            logger.warning(
                f"⚠️ Cashier {session.id} closed with discrepancy {session.discrepancy:+.2f} "
                f"(expected {expected:.2f}, declared {declared_value:.2f})"
            )
        logger.info(f"🔒 Cashier {session.id} closed by user {user.id}: final {expected:.2f}")
        return session

    def get_status(self) -> Optional[CashierSession]:
        return self.repo.get_open_session_detail(self.db)

    def get_history(self, date: Optional[str] = None) -> list[CashierSession]:
        if date:
            start, end = timeutils.day_bounds(timeutils.parse_day(date))
            return self.repo.get_closed_sessions(self.db, start, end, limit=50)
        return self.repo.get_closed_sessions(self.db, limit=10)

    def get_session(self, session_id: int) -> CashierSession:
        session = self.db.query(CashierSession).filter(CashierSession.id == session_id).first()
        if not session:
            raise NotFoundError("Cashier session not found")
        return session


def cashier_to_response(session: CashierSession, include_ledger: bool = True) -> dict:
    return {
        "id": session.id,
        "status": session.status,
        "opened_by_id": session.opened_by_id,
        "opened_by_name": session.opened_by.name if session.opened_by else None,
        "closed_by_id": session.closed_by_id,
        "closed_by_name": session.closed_by.name if session.closed_by else None,
        "opened_at": session.opened_at,
        "closed_at": session.closed_at,
        "initial_value": session.initial_value or 0,
        "expected_value": session.expected_value,
        "final_value": session.final_value,
        "declared_value": session.declared_value,
        "discrepancy": session.discrepancy,
        "notes": session.notes,
        "summary": {
            "cash": session.summary_cash or 0,
            "card": session.summary_card or 0,
            "pix": session.summary_pix or 0,
            "other": session.summary_other or 0,
            "expenses": session.summary_expenses or 0,
        },
        "transactions": [
            {
                "id": t.id,
                "type": t.type,
                "amount": t.amount,
                "description": t.description,
                "payment_method": t.payment_method,
                "barber_id": t.barber_id,
                "order_id": t.order_id,
                "timestamp": t.timestamp,
            }
            for t in session.transactions
        ]
        if include_ledger
        else [],
        "barber_stats": [
            {
                "barber_id": stat.barber_id,
                "barber_name": stat.barber.name if stat.barber else None,
                "daily_revenue": stat.daily_revenue,
                "daily_tips": stat.daily_tips,
                "service_count": stat.service_count,
            }
            for stat in session.barber_stats
        ]
        if include_ledger
        else [],
    }
