"""Settings router - FastAPI endpoints for shop settings"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import ROLE_ADMIN, User
from .schemas import SettingsResponse, SettingsUpdate
from .service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])


def get_settings_service(db: Session = Depends(get_db)) -> SettingsService:
    """Dependency injection for SettingsService"""
    return SettingsService(db)


@router.get("", response_model=SettingsResponse)
async def get_settings(service: SettingsService = Depends(get_settings_service)):
    """Public shop settings (hours, slot duration, holidays)"""
    return SettingsResponse.model_validate(service.get_settings())


@router.put("", response_model=SettingsResponse)
async def update_settings(
    data: SettingsUpdate,
    current_user: User = Depends(require_roles(ROLE_ADMIN)),
    service: SettingsService = Depends(get_settings_service),
):
    """Update shop settings (admin only)"""
    return SettingsResponse.model_validate(service.update_settings(data))
