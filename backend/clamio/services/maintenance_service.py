# Overview: Service-layer operations for maintenance; encapsulates cleanup jobs.

from __future__ import annotations

import logging
from datetime import timedelta

from ..extensions import db
from ..models import Notification
from clamio.time_utils import utcnow


logger = logging.getLogger(__name__)


def cleanup_notifications(*, retention_days: int = 90) -> int:
    """
    Delete resolved and dismissed notifications older than retention_days.

    Open alerts are never removed regardless of age.
    """
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(Notification).filter(
        Notification.status.in_(("resolved", "dismissed")),
        Notification.created_at < cutoff,
    ).delete(synchronize_session=False)
    db.session.commit()
    logger.info("Removed %s closed notifications older than %s days", deleted, retention_days)
    return deleted
