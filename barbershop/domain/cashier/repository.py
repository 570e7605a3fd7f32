"""Cashier repository - Database operations for cashier sessions"""

from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from ...models import (
    SESSION_CLOSED,
    SESSION_OPEN,
    BarberDailyStat,
    CashierSession,
    CashierTransaction,
)


class CashierRepository:
    """Repository for cashier session database operations"""

    @staticmethod
    def get_open_session(db: Session, lock: bool = False) -> Optional[CashierSession]:
        """The single OPEN session, optionally row-locked for the rest of the transaction"""
        query = db.query(CashierSession).filter(CashierSession.status == SESSION_OPEN)
        if lock:
            query = query.with_for_update().populate_existing()
        return query.first()

    @staticmethod
    def get_open_session_detail(db: Session) -> Optional[CashierSession]:
        return (
            db.query(CashierSession)
            .options(
                selectinload(CashierSession.transactions).joinedload(CashierTransaction.barber),
                selectinload(CashierSession.barber_stats).joinedload(BarberDailyStat.barber),
            )
            .filter(CashierSession.status == SESSION_OPEN)
            .first()
        )

    @staticmethod
    def create_session(db: Session, **data) -> CashierSession:
        session = CashierSession(**data)
        db.add(session)
        db.flush()
        return session

    @staticmethod
    def add_transaction(db: Session, session_id: int, **data) -> CashierTransaction:
        """Append to the session ledger; transactions are never updated or removed"""
        transaction = CashierTransaction(session_id=session_id, **data)
        db.add(transaction)
        db.flush()
        return transaction

    @staticmethod
    def increment_summary(db: Session, session_id: int, column: str, amount: float) -> bool:
        """Single-statement x = x + amount on the OPEN session row"""
        target = getattr(CashierSession, column)
        result = db.execute(
            update(CashierSession)
            .where(CashierSession.id == session_id, CashierSession.status == SESSION_OPEN)
            .values({column: target + amount})
        )
        return result.rowcount == 1

    @staticmethod
    def add_barber_stats(
        db: Session, session_id: int, barber_id: int, revenue: float, tips: float
    ) -> None:
        """Accumulate into the barber's row for this session, creating it on first sale"""
        result = db.execute(
            update(BarberDailyStat)
            .where(
                BarberDailyStat.session_id == session_id,
                BarberDailyStat.barber_id == barber_id,
            )
            .values(
                daily_revenue=BarberDailyStat.daily_revenue + revenue,
                daily_tips=BarberDailyStat.daily_tips + tips,
                service_count=BarberDailyStat.service_count + 1,
            )
        )
        if result.rowcount == 0:
            db.add(
                BarberDailyStat(
                    session_id=session_id,
                    barber_id=barber_id,
                    daily_revenue=revenue,
                    daily_tips=tips,
                    service_count=1,
                )
            )
            db.flush()

    @staticmethod
    def close_session(db: Session, session_id: int, **values) -> bool:
        """OPEN -> CLOSED; False when another request closed it first"""
        result = db.execute(
            update(CashierSession)
            .where(CashierSession.id == session_id, CashierSession.status == SESSION_OPEN)
            .values(status=SESSION_CLOSED, **values)
        )
        return result.rowcount == 1

    @staticmethod
    def get_closed_sessions(
        db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None, limit: int = 10
    ) -> list[CashierSession]:
        query = db.query(CashierSession).filter(CashierSession.status == SESSION_CLOSED)
        if start is not None:
            query = query.filter(CashierSession.closed_at >= start)
        if end is not None:
            query = query.filter(CashierSession.closed_at < end)
        return query.order_by(CashierSession.closed_at.desc()).limit(limit).all()
