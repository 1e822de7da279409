"""
Workflow CAF sur une vraie base (SQLite en mémoire, clés étrangères actives).
Vérifie l'ordre des écritures que la session mockée ne voit pas.
"""

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import sessionmaker

from app.database import Base
from app.models.caf import STATUS_APPROVED, STATUS_PENDING, CafRecord
from app.models.student import Student
from app.models.user import User
from app.schemas.caf import CafDecision, CafSubmission
from app.services import caf_workflow
from app.services.access_gate import get_student_access_gate


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


@pytest.fixture
def db():
    engine = create_engine("sqlite://")

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine, tables=[User.__table__, Student.__table__, CafRecord.__table__])
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()
    engine.dispose()


def test_premiere_soumission_sans_fiche_etudiant(db, caf_payload):
    result = caf_workflow.submit_caf(db, caf_payload["enrollment_no"], CafSubmission(**caf_payload))

    assert result.status == STATUS_PENDING
    assert result.version == 1
    student = db.get(Student, caf_payload["enrollment_no"])
    assert student is not None
    assert student.full_name == "Aarav Sharma"


def test_soumission_puis_approbation_en_base(db, caf_payload):
    enrollment_no = caf_payload["enrollment_no"]
    submitted = caf_workflow.submit_caf(db, enrollment_no, CafSubmission(**caf_payload))

    result = caf_workflow.resolve_caf(db, submitted.caf_id, CafDecision(decision="approve"))

    assert result.status == STATUS_APPROVED
    assert result.version == 2
    assert db.get(Student, enrollment_no).current_cgpa == 8.2
    gate = get_student_access_gate(db, enrollment_no)
    assert gate.internships and gate.placements and gate.mock_interviews
