"""
Subscription expiry
Moves active subscriptions past their expiry date to ``expired``
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ..models import Subscription

logger = logging.getLogger(__name__)


def expire_subscriptions(db: Session, now: datetime) -> dict:
    """
    Expire subscriptions whose ``expiry_date`` is before today.

    Returns:
        dict: Summary of status changes made
    """
    summary = {"expired": 0, "failed": 0}
    today = now.date()

    subscriptions = (
        db.query(Subscription)
        .filter(Subscription.status == "active", Subscription.expiry_date < today)
        .all()
    )

    for subscription in subscriptions:
        try:
            subscription.status = "expired"
            subscription.auto_renewal = False
            db.commit()
            summary["expired"] += 1
            logger.info(f"✅ Subscription {subscription.id} transitioned: active → expired")
        except Exception as e:
            db.rollback()
            summary["failed"] += 1
            logger.error(f"❌ Failed to expire subscription {subscription.id}: {str(e)}")
            continue

    if summary["expired"]:
        logger.info(f"Subscription expiry complete: {summary}")
    return summary
