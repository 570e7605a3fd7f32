"""Cut history repository - Database operations for completed-cut records"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import CutHistory


class CutHistoryRepository:
    """Repository for cut history database operations"""

    @staticmethod
    def get_all(db: Session) -> list[CutHistory]:
        return (
            db.query(CutHistory)
            .options(joinedload(CutHistory.client), joinedload(CutHistory.barber))
            .order_by(CutHistory.date.desc(), CutHistory.id.desc())
            .all()
        )

    @staticmethod
    def get_for_client(db: Session, client_id: int) -> list[CutHistory]:
        return (
            db.query(CutHistory)
            .options(joinedload(CutHistory.barber))
            .filter(CutHistory.client_id == client_id)
            .order_by(CutHistory.date.desc(), CutHistory.id.desc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, history_id: int) -> Optional[CutHistory]:
        return db.query(CutHistory).filter(CutHistory.id == history_id).first()

    @staticmethod
    def add(db: Session, **data) -> CutHistory:
        """Stage a record in the caller's transaction (no commit)"""
        history = CutHistory(**data)
        db.add(history)
        db.flush()
        return history

    @staticmethod
    def delete(db: Session, history: CutHistory) -> None:
        db.delete(history)


def record_completed_cut(
    db: Session,
    client_id: int,
    barber_id: int,
    service_name: Optional[str],
    notes: Optional[str],
    date: datetime,
    appointment_id: Optional[int] = None,
    order_id: Optional[int] = None,
) -> CutHistory:
    """
    CutHistory sink for completed appointments. The row joins whatever
    transaction the caller has open, so it commits together with the
    status change that produced it.
    """
    return CutHistoryRepository.add(
        db,
        client_id=client_id,
        barber_id=barber_id,
        description=f"Serviço: {service_name}" if service_name else None,
        observations=notes,
        date=date,
        appointment_id=appointment_id,
        order_id=order_id,
    )
