"""Cut history router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_roles
from ...database import get_db
from ...models import ROLE_ADMIN, ROLE_BARBER, User
from .schemas import HistoryCreate, HistoryResponse
from .service import CutHistoryService, history_to_response

router = APIRouter(prefix="/history", tags=["History"])


def get_history_service(db: Session = Depends(get_db)) -> CutHistoryService:
    return CutHistoryService(db)


@router.get("", response_model=list[HistoryResponse])
async def list_history(
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    service: CutHistoryService = Depends(get_history_service),
):
    return [history_to_response(h) for h in service.list_all()]


@router.get("/{client_id}", response_model=list[HistoryResponse])
async def get_client_history(
    client_id: int,
    current_user: User = Depends(get_current_user),
    service: CutHistoryService = Depends(get_history_service),
):
    return [history_to_response(h) for h in service.list_for_client(client_id, current_user)]


@router.post("", response_model=HistoryResponse, status_code=201)
async def create_history(
    data: HistoryCreate,
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_BARBER)),
    service: CutHistoryService = Depends(get_history_service),
):
    return history_to_response(service.create(data, current_user))


@router.delete("/{history_id}")
async def delete_history(
    history_id: int,
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_BARBER)),
    service: CutHistoryService = Depends(get_history_service),
):
    return service.delete(history_id, current_user)
