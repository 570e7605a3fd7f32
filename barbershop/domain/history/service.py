"""Cut history service"""

import logging

from sqlalchemy.orm import Session

from ... import timeutils
from ...database import commit_or_raise
from ...errors import AuthorizationError, NotFoundError
from ...models import ROLE_CLIENT, CutHistory, User
from .repository import CutHistoryRepository
from .schemas import HistoryCreate

logger = logging.getLogger(__name__)


class CutHistoryService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CutHistoryRepository()

    def list_all(self) -> list[CutHistory]:
        return self.repo.get_all(self.db)

    def list_for_client(self, client_id: int, user: User) -> list[CutHistory]:
        if user.role == ROLE_CLIENT and user.id != client_id:
            raise AuthorizationError("Not authorized to view this history")
        return self.repo.get_for_client(self.db, client_id)

    def create(self, data: HistoryCreate, user: User) -> CutHistory:
        if not self.db.query(User).filter(User.id == data.clientId).first():
            raise NotFoundError("Client not found")

        history = self.repo.add(
            self.db,
            client_id=data.clientId,
            barber_id=user.id,
            order_id=data.orderId,
            description=data.description,
            observations=data.observations,
            photos=data.photos,
            date=timeutils.to_shop_local(data.date) if data.date else timeutils.shop_now(),
        )
        commit_or_raise(self.db)
        self.db.refresh(history)
        logger.info(f"✂️ History {history.id} recorded for client {data.clientId} by user {user.id}")
        return history

    def delete(self, history_id: int, user: User) -> dict:
        history = self.repo.get_by_id(self.db, history_id)
        if not history:
            raise NotFoundError("History record not found")
        self.repo.delete(self.db, history)
        commit_or_raise(self.db)
        logger.info(f"🗑️ History {history_id} removed by user {user.id}")
        return {"message": "History record removed"}


def history_to_response(history: CutHistory) -> dict:
    return {
        "id": history.id,
        "client_id": history.client_id,
        "client_name": history.client.name if history.client else None,
        "barber_id": history.barber_id,
        "barber_name": history.barber.name if history.barber else None,
        "order_id": history.order_id,
        "appointment_id": history.appointment_id,
        "description": history.description,
        "observations": history.observations,
        "photos": history.photos or [],
        "date": history.date,
    }
