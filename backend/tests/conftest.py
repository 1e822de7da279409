"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL.
"""

import uuid
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.auth import ROLE_ADMIN, ROLE_STUDENT, create_access_token
from app.config import settings
from app.database import get_db
from app.main import app
from app.models.caf import STATUS_APPROVED, CafRecord
from app.schemas.caf import CafSubmission

# Pas de thread APScheduler pendant les tests
settings.SCHEDULER_ENABLED = False

STUDENT_ENROLLMENT = "0101CS211001"

VALID_CAF = {
    "enrollment_no": STUDENT_ENROLLMENT,
    "full_name": "Aarav Sharma",
    "rgpv_enrollment_no": "0101CS211001",
    "gender": "Male",
    "dob": "2003-05-14",
    "mobile": "9876543210",
    "email_personal": "aarav.sharma@gmail.com",
    "branch": "CSE",
    "current_address": "12 MG Road",
    "permanent_address": "12 MG Road",
    "city": "Bhopal",
    "tenth_board": "CBSE",
    "tenth_percentage": 88.5,
    "tenth_year_of_passing": 2019,
    "twelfth_board": "CBSE",
    "twelfth_percentage": 84.0,
    "twelfth_year_of_passing": 2021,
    "current_cgpa": 8.2,
    "backlogs_active": 0,
    "backlogs_history": 1,
    "domain_interest_primary": "Python Full Stack",
    "declaration": True,
}


@pytest.fixture
def client():
    """Client HTTP de test avec la BDD mockée."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token(str(uuid.uuid4()), ROLE_ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers():
    token = create_access_token(STUDENT_ENROLLMENT, ROLE_STUDENT)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def caf_payload():
    """Corps de soumission CAF valide (copie modifiable)."""
    return dict(VALID_CAF)


@pytest.fixture
def make_caf():
    """Fabrique de CafRecord (instances réelles, non persistées)."""
    def _make(status=STATUS_APPROVED, edit_pending=False, version=1, **overrides):
        form = CafSubmission(**{**VALID_CAF, **overrides}).model_dump(exclude={"enrollment_no"})
        caf = CafRecord(
            id=uuid.uuid4(),
            enrollment_no=overrides.get("enrollment_no", STUDENT_ENROLLMENT),
            status=status,
            edit_pending=edit_pending,
            **form,
        )
        caf.version = version
        return caf
    return _make


@pytest.fixture
def db_with_caf():
    """Session mockée dont les SELECT retournent le CAF donné."""
    def _make(caf, student=None, user=None):
        db = MagicMock()
        db.execute.return_value.scalar_one_or_none.return_value = caf
        lookup = {"Student": student, "User": user}
        db.get.side_effect = lambda model, key: lookup.get(model.__name__)
        return db
    return _make
