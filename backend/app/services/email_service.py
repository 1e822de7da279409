"""
Service d'envoi d'emails SMTP.
Utilisé pour le digest des demandes CAF en attente envoyé à la cellule placement.
"""

import logging
import smtplib
from email.mime.text import MIMEText
from typing import List

from app.config import settings
from app.schemas.notification import NotificationResponse

logger = logging.getLogger(__name__)

KIND_LABELS = {"new_caf": "Nouveau CAF", "edit_request": "Demande de modification"}


def build_digest_body(notifications: List[NotificationResponse]) -> str:
    """Corps texte du digest : une ligne par demande, la plus ancienne en premier."""
    lines = [
        "Bonjour,",
        "",
        f"{len(notifications)} demande(s) attendent une décision depuis plus de "
        f"{settings.REVIEW_REMINDER_AGE_HOURS} heures :",
        "",
    ]
    for n in sorted(notifications, key=lambda n: n.timestamp):
        lines.append(
            f"- {KIND_LABELS.get(n.kind, n.kind)} : {n.student_name} ({n.enrollment_no}), "
            f"depuis le {n.timestamp.strftime('%d/%m/%Y %H:%M')}"
        )
    lines += ["", "Ce message est généré automatiquement. Ne pas répondre à cet email."]
    return "\n".join(lines)


def send_review_digest_email(to_email: str, notifications: List[NotificationResponse]) -> None:
    """
    Envoie le digest des demandes en attente.
    Lève une exception en cas d'échec SMTP.
    """
    msg = MIMEText(build_digest_body(notifications), "plain", "utf-8")
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = f"Placement Portal : {len(notifications)} demande(s) CAF en attente"

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        if settings.SMTP_USE_TLS:
            server.starttls()
        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)

    logger.info("Digest CAF envoyé à %s (%d demandes)", to_email, len(notifications))
