"""
Planificateur APScheduler pour la relance des demandes CAF en attente.

Le job s'exécute toutes les REVIEW_REMINDER_INTERVAL_HOURS heures et envoie à
la cellule placement le digest des CAF et demandes de modification qui
attendent une décision depuis plus de REVIEW_REMINDER_AGE_HOURS heures.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import settings
from app.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _send_review_reminders_scheduled() -> None:
    """
    Tâche planifiée : relance des demandes en retard.
    Import local pour éviter les imports circulaires.
    """
    from app.services.review_reminder import send_review_reminders

    db = SessionLocal()
    try:
        result = send_review_reminders(db)
        logger.info(
            "Relance CAF : %d demande(s) en retard, digest envoyé : %s",
            result.stale_count, result.sent,
        )
    except Exception as exc:
        logger.error("Erreur lors de la relance des demandes CAF : %s", exc, exc_info=True)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler désactivé (SCHEDULER_ENABLED=false).")
        return
    scheduler.add_job(
        _send_review_reminders_scheduled,
        trigger="interval",
        hours=settings.REVIEW_REMINDER_INTERVAL_HOURS,
        id="caf_review_reminder",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré: relance CAF toutes les %d heures.", settings.REVIEW_REMINDER_INTERVAL_HOURS
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
