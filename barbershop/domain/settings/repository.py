"""Settings repository - Database operations for the shop settings singleton"""

from typing import Optional

from sqlalchemy.orm import Session

from ...database import commit_or_raise
from ...models import ShopSettings


class SettingsRepository:
    """Repository for shop settings database operations"""

    @staticmethod
    def get_settings(db: Session) -> Optional[ShopSettings]:
        return db.query(ShopSettings).order_by(ShopSettings.id).first()

    @staticmethod
    def create_settings(db: Session, **data) -> ShopSettings:
        settings = ShopSettings(**data)
        db.add(settings)
        commit_or_raise(db)
        db.refresh(settings)
        return settings

    @staticmethod
    def save(db: Session, settings: ShopSettings) -> ShopSettings:
        commit_or_raise(db)
        db.refresh(settings)
        return settings
