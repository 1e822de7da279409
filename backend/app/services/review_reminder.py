"""
Relance des demandes CAF en attente depuis trop longtemps.

Flux :
  1. Lister les notifications (vue dérivée des CAF)
  2. Garder celles plus anciennes que REVIEW_REMINDER_AGE_HOURS
  3. Envoyer le digest si REVIEW_DIGEST_EMAIL est configuré, sinon journaliser
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.schemas.notification import NotificationResponse, ReviewReminderResult
from app.services.email_service import send_review_digest_email
from app.services.notification_service import list_notifications

logger = logging.getLogger(__name__)


def collect_stale_notifications(
    db: Session, now: Optional[datetime] = None, age_hours: Optional[int] = None
) -> List[NotificationResponse]:
    """Notifications en attente depuis au moins age_hours heures."""
    now = now or datetime.now()
    threshold = now - timedelta(hours=age_hours if age_hours is not None else settings.REVIEW_REMINDER_AGE_HOURS)
    return [
        n for n in list_notifications(db)
        if n.timestamp is not None and n.timestamp <= threshold
    ]


def send_review_reminders(db: Session, now: Optional[datetime] = None) -> ReviewReminderResult:
    """
    Envoie le digest des demandes en retard. Une erreur SMTP est journalisée
    et reportée dans le résultat, jamais propagée.
    """
    stale = collect_stale_notifications(db, now=now)
    if not stale:
        return ReviewReminderResult(stale_count=0, sent=False)

    recipient = settings.REVIEW_DIGEST_EMAIL
    if not recipient:
        logger.info("%d demande(s) CAF en retard: aucun destinataire de digest configuré", len(stale))
        return ReviewReminderResult(stale_count=len(stale), sent=False)

    try:
        send_review_digest_email(recipient, stale)
    except Exception as exc:
        logger.error("Échec d'envoi du digest CAF à %s : %s", recipient, exc)
        return ReviewReminderResult(stale_count=len(stale), sent=False, error=str(exc))

    return ReviewReminderResult(stale_count=len(stale), sent=True)
