"""
Tests unitaires de la relance des demandes CAF en attente.
"""

import uuid
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from app.config import settings
from app.schemas.notification import NotificationResponse
from app.services.email_service import build_digest_body
from app.services.review_reminder import collect_stale_notifications, send_review_reminders

NOW = datetime(2026, 3, 10, 12, 0)


def make_notification(hours_ago, kind="new_caf", name="Aarav Sharma"):
    caf_id = uuid.uuid4()
    return NotificationResponse(
        id=f"{kind}:{caf_id}",
        kind=kind,
        caf_id=caf_id,
        enrollment_no="0101CS211001",
        student_name=name,
        timestamp=None if hours_ago is None else NOW - timedelta(hours=hours_ago),
    )


def test_collecte_demandes_en_retard():
    notifications = [make_notification(72), make_notification(10), make_notification(None)]
    with patch("app.services.review_reminder.list_notifications", return_value=notifications):
        stale = collect_stale_notifications(MagicMock(), now=NOW, age_hours=48)
    assert stale == [notifications[0]]


def test_aucune_demande_en_retard():
    with patch("app.services.review_reminder.list_notifications", return_value=[make_notification(1)]), \
         patch("app.services.review_reminder.send_review_digest_email") as send:
        result = send_review_reminders(MagicMock(), now=NOW)
    assert result.stale_count == 0
    assert result.sent is False
    send.assert_not_called()


def test_digest_envoye():
    stale = [make_notification(100)]
    with patch("app.services.review_reminder.list_notifications", return_value=stale), \
         patch("app.services.review_reminder.send_review_digest_email") as send, \
         patch.object(settings, "REVIEW_DIGEST_EMAIL", "tpo@college.edu"):
        result = send_review_reminders(MagicMock(), now=NOW)
    assert result.sent is True
    send.assert_called_once_with("tpo@college.edu", stale)


def test_sans_destinataire_configure():
    with patch("app.services.review_reminder.list_notifications", return_value=[make_notification(100)]), \
         patch("app.services.review_reminder.send_review_digest_email") as send, \
         patch.object(settings, "REVIEW_DIGEST_EMAIL", ""):
        result = send_review_reminders(MagicMock(), now=NOW)
    assert result.stale_count == 1
    assert result.sent is False
    send.assert_not_called()


def test_echec_smtp_non_propage():
    with patch("app.services.review_reminder.list_notifications", return_value=[make_notification(100)]), \
         patch("app.services.review_reminder.send_review_digest_email", side_effect=OSError("connexion refusée")), \
         patch.object(settings, "REVIEW_DIGEST_EMAIL", "tpo@college.edu"):
        result = send_review_reminders(MagicMock(), now=NOW)
    assert result.sent is False
    assert "connexion refusée" in result.error


def test_corps_du_digest():
    body = build_digest_body([
        make_notification(50, name="Diya Patel"),
        make_notification(80, kind="edit_request", name="Kabir Singh"),
    ])
    lines = body.splitlines()
    assert "2 demande(s)" in body
    entries = [line for line in lines if line.startswith("- ")]
    assert entries[0].startswith("- Demande de modification : Kabir Singh")
    assert entries[1].startswith("- Nouveau CAF : Diya Patel")


def test_envoi_smtp():
    with patch("app.services.email_service.smtplib.SMTP") as smtp, \
         patch.object(settings, "SMTP_USERNAME", ""), \
         patch.object(settings, "SMTP_USE_TLS", True):
        from app.services.email_service import send_review_digest_email
        send_review_digest_email("tpo@college.edu", [make_notification(60)])

    server = smtp.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_not_called()
    msg = server.send_message.call_args.args[0]
    assert msg["To"] == "tpo@college.edu"
    assert "1 demande(s)" in msg["Subject"]
