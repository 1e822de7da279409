"""
Scénarios de bout en bout sur le workflow CAF (session mockée, vraies instances).
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from app.exceptions import InvalidTransitionError
from app.models.caf import STATUS_APPROVED, STATUS_PENDING, CafRecord
from app.models.student import Student
from app.schemas.caf import CafDecision, CafEditRequest, CafSubmission
from app.schemas.student import StudentFilter
from app.services import caf_workflow, notification_service
from app.services.access_gate import get_student_access_gate
from app.services.student_service import filter_students


def pending_queue(*cafs):
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [
        c for c in cafs if c.status == STATUS_PENDING or c.edit_pending
    ]
    return notification_service.list_notifications(db)


def test_soumission_puis_approbation(caf_payload, db_with_caf):
    caf_payload.update(current_cgpa=8.5, branch="CSE", declaration=True)
    db = db_with_caf(None)
    caf_workflow.submit_caf(db, caf_payload["enrollment_no"], CafSubmission(**caf_payload))
    caf = next(c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], CafRecord))

    notifications = pending_queue(caf)
    assert caf.status == STATUS_PENDING
    assert [n.kind for n in notifications] == ["new_caf"]
    assert get_student_access_gate(db_with_caf(caf), caf.enrollment_no).internships is False

    student = Student(enrollment_no=caf.enrollment_no, full_name=caf.full_name, branch=caf.branch)
    notification_service.resolve_notification(
        db_with_caf(caf, student=student), notifications[0].id, CafDecision(decision="approve")
    )

    gate = get_student_access_gate(db_with_caf(caf), caf.enrollment_no)
    assert caf.status == STATUS_APPROVED
    assert pending_queue(caf) == []
    assert gate.internships and gate.placements and gate.mock_interviews
    assert student.current_cgpa == 8.5


def test_approbation_puis_refus(make_caf, db_with_caf):
    caf = make_caf(status=STATUS_PENDING)
    db = db_with_caf(caf, student=Student(enrollment_no=caf.enrollment_no, full_name="A", branch="CSE"))

    caf_workflow.resolve_caf(db, caf.id, CafDecision(decision="approve"))
    with pytest.raises(InvalidTransitionError):
        caf_workflow.resolve_caf(db, caf.id, CafDecision(decision="reject", reason="Trop tard"))

    assert caf.status == STATUS_APPROVED


def test_modification_refusee(make_caf, db_with_caf):
    caf = make_caf(status=STATUS_APPROVED)
    db = db_with_caf(caf)

    caf_workflow.request_edit(db, caf.enrollment_no, CafEditRequest(fields={"current_cgpa": 9.0}))
    notifications = pending_queue(caf)
    assert [n.kind for n in notifications] == ["edit_request"]

    notification_service.resolve_notification(db, notifications[0].id, CafDecision(decision="reject"))

    assert caf.status == STATUS_APPROVED
    assert caf.edit_pending is False
    assert caf.edit_patch is None
    assert caf.current_cgpa == 8.2
    assert pending_queue(caf) == []
    assert get_student_access_gate(db, caf.enrollment_no).placements is True


def test_filtre_cse_cgpa_minimum():
    db = MagicMock()
    db.execute.return_value.all.return_value = []
    filter_students(db, StudentFilter(min_cgpa=7.0, department="CSE"))

    stmt = db.execute.call_args.args[0]
    sql = str(stmt.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}))
    assert "upper(students.branch) = 'CSE'" in sql
    assert "students.current_cgpa >= 7.0" in sql
    assert "caf_records.status" not in sql.split("WHERE", 1)[1]
