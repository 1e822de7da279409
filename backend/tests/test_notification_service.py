"""
Tests unitaires de la file de notifications admin.
"""

import uuid
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from app.exceptions import NotFoundError
from app.models.caf import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED
from app.schemas.caf import CafDecision
from app.services import notification_service
from app.services.notification_service import (
    list_notifications,
    notification_id,
    parse_notification_id,
    resolve_notification,
    to_notification,
)


def make_db(cafs):
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = cafs
    return db


@pytest.fixture
def queue(make_caf):
    """Un CAF en attente, une demande de modification, un CAF sans action."""
    now = datetime(2026, 3, 2, 10, 0)
    pending = make_caf(status=STATUS_PENDING, enrollment_no="0101CS211001")
    pending.submitted_at = now - timedelta(hours=5)

    edit = make_caf(status=STATUS_APPROVED, edit_pending=True, enrollment_no="0101IT211002", full_name="Diya Patel")
    edit.edit_patch = {"current_cgpa": 9.1}
    edit.edit_requested_at = now - timedelta(hours=1)

    done = make_caf(status=STATUS_APPROVED, enrollment_no="0101EC211003")
    return pending, edit, done


def test_notification_new_caf(queue):
    pending, _, _ = queue
    n = to_notification(pending)
    assert n.kind == "new_caf"
    assert n.id == f"new_caf:{pending.id}"
    assert n.timestamp == pending.submitted_at
    assert n.details == {"enrollment_no": "0101CS211001", "branch": "CSE", "current_cgpa": 8.2}


def test_notification_edit_request(queue):
    _, edit, _ = queue
    n = to_notification(edit)
    assert n.kind == "edit_request"
    assert n.student_name == "Diya Patel"
    assert n.details == {"fields": {"current_cgpa": 9.1}}


@pytest.mark.parametrize("status", [STATUS_APPROVED, STATUS_REJECTED])
def test_pas_de_notification_sans_decision_attendue(status, make_caf):
    assert to_notification(make_caf(status=status)) is None


def test_liste_triee_plus_recente_en_premier(queue):
    pending, edit, done = queue
    result = list_notifications(make_db([pending, done, edit]))
    assert [n.caf_id for n in result] == [edit.id, pending.id]


def test_liste_filtree_par_type(queue):
    pending, edit, _ = queue
    result = list_notifications(make_db([pending, edit]), kind="edit_request")
    assert [n.kind for n in result] == ["edit_request"]


def test_liste_vide():
    assert list_notifications(make_db([])) == []


def test_parse_notification_id():
    caf_id = uuid.uuid4()
    assert parse_notification_id(notification_id("edit_request", caf_id)) == ("edit_request", caf_id)


@pytest.mark.parametrize("value", ["", "new_caf", "unknown:" + str(uuid.uuid4()), "new_caf:pas-un-uuid"])
def test_parse_notification_id_invalide(value):
    with pytest.raises(NotFoundError):
        parse_notification_id(value)


def test_resolution_new_caf(queue, db_with_caf):
    pending, _, _ = queue
    db = db_with_caf(pending)

    result = resolve_notification(db, f"new_caf:{pending.id}", CafDecision(decision="reject", reason="Incomplet"))

    assert result.status == STATUS_REJECTED
    assert to_notification(pending) is None


def test_resolution_notification_deja_traitee(queue, db_with_caf):
    """Une notification edit_request sur un CAF sans demande en cours → introuvable."""
    _, _, done = queue
    with pytest.raises(NotFoundError):
        resolve_notification(db_with_caf(done), f"edit_request:{done.id}", CafDecision(decision="approve"))


def test_resolution_passe_etat_attendu(monkeypatch):
    calls = {}

    def fake_resolve(db, caf_id, data, expected_state=None):
        calls["expected_state"] = expected_state
        return "ok"

    monkeypatch.setattr(notification_service.caf_workflow, "resolve_caf", fake_resolve)
    caf_id = uuid.uuid4()
    resolve_notification(MagicMock(), f"edit_request:{caf_id}", CafDecision(decision="approve"))
    assert calls["expected_state"] == "approved+edit_pending"
