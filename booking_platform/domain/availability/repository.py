"""Availability repository - Database operations for weekly schedules"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import AvailabilityWindow


class AvailabilityRepository:
    """Repository for availability database operations"""

    @staticmethod
    def get_for_provider(db: Session, provider_id: int) -> Optional[AvailabilityWindow]:
        return (
            db.query(AvailabilityWindow)
            .filter(AvailabilityWindow.provider_id == provider_id)
            .first()
        )

    @staticmethod
    def replace_week(db: Session, provider_id: int, days: list[dict]) -> AvailabilityWindow:
        """Create or overwrite the provider's whole week in a single commit"""
        window = (
            db.query(AvailabilityWindow)
            .filter(AvailabilityWindow.provider_id == provider_id)
            .first()
        )
        if window is None:
            window = AvailabilityWindow(provider_id=provider_id, days=days)
            db.add(window)
        else:
            window.days = days

        db.commit()
        db.refresh(window)
        return window
