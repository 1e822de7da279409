"""
Tests d'intégration API pour l'import et la consultation des entretiens blancs.
"""

from unittest.mock import MagicMock, patch

from app.auth import CurrentUser, require_approved_student
from app.database import get_db
from app.main import app
from app.models.mock_interview import MockInterviewResult
from app.schemas.mock_interview import MockResultImportReport

CSV_CONTENT = b"enrollment_no,gd,hr,technical\n0101CS211001,yes,yes,no\n"


def test_upload_ok(client, admin_headers):
    report = MockResultImportReport(total_rows=1, imported=1, created=1, updated=0, rejected=0, errors=[])
    with patch("app.routers.mock_interviews.parse_and_import_results", return_value=report) as parse:
        resp = client.post(
            "/api/v1/mock-interviews/upload",
            files={"file": ("results.csv", CSV_CONTENT, "text/csv")},
            headers=admin_headers,
        )

    assert resp.status_code == 200
    assert resp.json()["created"] == 1
    assert parse.call_args.args[:2] == (CSV_CONTENT, "results.csv")


def test_upload_format_refuse(client, admin_headers):
    resp = client.post(
        "/api/v1/mock-interviews/upload",
        files={"file": ("results.xls", b"\xd0\xcf\x11\xe0", "application/vnd.ms-excel")},
        headers=admin_headers,
    )
    assert resp.status_code == 400
    assert ".xlsx" in resp.json()["detail"]


def test_upload_fichier_vide(client, admin_headers):
    resp = client.post(
        "/api/v1/mock-interviews/upload",
        files={"file": ("results.csv", b"", "text/csv")},
        headers=admin_headers,
    )
    assert resp.status_code == 400


def test_upload_reserve_aux_admins(client, student_headers):
    resp = client.post(
        "/api/v1/mock-interviews/upload",
        files={"file": ("results.csv", CSV_CONTENT, "text/csv")},
        headers=student_headers,
    )
    assert resp.status_code == 403


def test_mes_resultats(client):
    results = [
        MockInterviewResult(
            enrollment_no="0101CS211001", attempt_number=1, gd_cleared=True, hr_cleared=False,
            technical_cleared=False, selected=False, rejected_at="HR",
        ),
        MockInterviewResult(
            enrollment_no="0101CS211001", attempt_number=2, gd_cleared=True, hr_cleared=True,
            technical_cleared=True, selected=True, rejected_at=None,
        ),
    ]
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = results
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[require_approved_student] = lambda: CurrentUser(subject="0101CS211001", role="student")

    resp = client.get("/api/v1/mock-interviews/me")

    assert resp.status_code == 200
    data = resp.json()
    assert [r["attempt_number"] for r in data] == [1, 2]
    assert data[0]["rejected_at"] == "HR"
    assert data[1]["selected"] is True
