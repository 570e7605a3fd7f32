"""Stats router - Admin dashboard"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import ROLE_ADMIN, User
from .service import StatsService

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("")
async def get_stats(
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    db: Session = Depends(get_db),
):
    """Revenue, appointment and barber performance figures"""
    return StatsService(db).get_dashboard()
