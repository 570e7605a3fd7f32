"""Settings service - singleton lifecycle and legacy hours migration"""

import logging

from sqlalchemy.orm import Session

from ...models import ShopSettings
from .repository import SettingsRepository
from .schedule import default_weekly_schedule, migrate_legacy_hours, normalize_weekly_schedule
from .schemas import SettingsUpdate

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "shop_name": "Studio John Pool",
    "slot_duration": 30,
    "cancellation_window": 2,
    "closed_days": [],
}


class SettingsService:
    """Service layer for shop settings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SettingsRepository()

    def get_settings(self) -> ShopSettings:
        """Load the settings singleton, creating defaults on first use.

        A row without a weekly schedule is migrated from its legacy hours
        fields here, once, so request handlers only ever see one shape.
        """
        settings = self.repo.get_settings(self.db)
        if settings is None:
            logger.info("🆕 Creating default shop settings")
            return self.repo.create_settings(
                self.db, weekly_schedule=default_weekly_schedule(), **DEFAULT_SETTINGS
            )

        if not settings.weekly_schedule:
            logger.info(f"🔄 Migrating legacy business hours for settings {settings.id}")
            settings.weekly_schedule = migrate_legacy_hours(
                settings.business_hours, settings.saturday_hours, settings.working_days
            )
            settings = self.repo.save(self.db, settings)
        return settings

    def update_settings(self, data: SettingsUpdate) -> ShopSettings:
        settings = self.get_settings()

        if data.weeklySchedule is not None:
            settings.weekly_schedule = normalize_weekly_schedule(
                [d.model_dump() for d in data.weeklySchedule]
            )
        elif any(
            v is not None for v in (data.businessHours, data.saturdayHours, data.workingDays)
        ):
            # Legacy payload: keep the raw fields and rebuild the schedule from them
            if data.businessHours is not None:
                settings.business_hours = data.businessHours.model_dump(exclude_none=True)
            if data.saturdayHours is not None:
                settings.saturday_hours = data.saturdayHours.model_dump(exclude_none=True)
            if data.workingDays is not None:
                settings.working_days = data.workingDays
            settings.weekly_schedule = migrate_legacy_hours(
                settings.business_hours, settings.saturday_hours, settings.working_days
            )

        if data.shopName is not None:
            settings.shop_name = data.shopName
        if data.slotDuration is not None:
            settings.slot_duration = data.slotDuration
        if data.closedDays is not None:
            settings.closed_days = sorted({d.isoformat() for d in data.closedDays})
        if data.cancellationWindow is not None:
            settings.cancellation_window = data.cancellationWindow
        if data.address is not None:
            settings.address = data.address
        if data.mapsUrl is not None:
            settings.maps_url = data.mapsUrl
        if data.socialLinks is not None:
            settings.social_links = data.socialLinks

        logger.info(f"⚙️ Shop settings {settings.id} updated")
        return self.repo.save(self.db, settings)
